from bedflow.schemas.capacity.capacity import (
    CapacityForecast,
    CapacityMetrics,
    OccupancySnapshotResult,
    SeasonalPattern,
    StaffingRecommendation,
    SurgeCapacityPlan,
    SurgeResourceRequirements,
)

__all__ = [
    "CapacityForecast",
    "CapacityMetrics",
    "OccupancySnapshotResult",
    "SeasonalPattern",
    "StaffingRecommendation",
    "SurgeCapacityPlan",
    "SurgeResourceRequirements",
]
