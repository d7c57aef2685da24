from bedflow.services.capacity.capacity_service import (
    CapacityService,
    classify_trend,
    forecast_factors,
    occupancy_percent,
)

__all__ = ["CapacityService", "classify_trend", "forecast_factors", "occupancy_percent"]
