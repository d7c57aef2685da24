from bedflow.services.bed.bed_scorer import BedScorer
from bedflow.services.bed.bed_service import BedService
from bedflow.services.bed.constants import BedScoringWeights, confidence_for_score

__all__ = ["BedScorer", "BedScoringWeights", "BedService", "confidence_for_score"]
