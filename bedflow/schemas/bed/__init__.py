from bedflow.schemas.bed.bed_recommendation import (
    BedAssignmentResult,
    BedRecommendation,
    BedRequirements,
    BedScore,
)

__all__ = ["BedAssignmentResult", "BedRecommendation", "BedRequirements", "BedScore"]
