"""
Bed scoring weights.

Full weights add up to 110 and totals are capped at 100. Criteria the
patient does not require still award partial credit, so two beds with the
same total may satisfy different criteria.
"""

from dataclasses import dataclass

from bedflow.models.base.enums import ConfidenceLevel


@dataclass(frozen=True)
class BedScoringWeights:
    # isolation
    isolation_match: int = 30
    isolation_type_mismatch: int = 15
    isolation_capable_unused: int = 5
    isolation_standard: int = 10
    # telemetry
    telemetry_match: int = 20
    telemetry_capable_unused: int = 5
    telemetry_standard: int = 10
    # oxygen
    oxygen_match: int = 15
    oxygen_not_required: int = 5
    # specialty unit
    specialty_match: int = 15
    specialty_not_requested: int = 10
    # proximity to nurses station
    proximity_near: int = 10
    proximity_moderate: int = 5
    proximity_far: int = 2
    proximity_not_requested: int = 5
    # bariatric
    bariatric_match: int = 10
    bariatric_not_required: int = 5
    # staffing
    staff_ratio_adequate: int = 5
    staff_ratio_high: int = 2
    # cleanliness
    clean: int = 5
    cleaning_in_progress: int = 3


DEFAULT_WEIGHTS = BedScoringWeights()

# Distance thresholds, in the unit stored on the bed (metres)
PROXIMITY_NEAR_DISTANCE = 20
PROXIMITY_MODERATE_DISTANCE = 50
UNKNOWN_DISTANCE = 999.0

HIGH_CONFIDENCE_SCORE = 80
MEDIUM_CONFIDENCE_SCORE = 60


def confidence_for_score(score: float) -> ConfidenceLevel:
    if score >= HIGH_CONFIDENCE_SCORE:
        return ConfidenceLevel.HIGH
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
