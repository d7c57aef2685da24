"""
Capacity forecasting, staffing and surge schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal

from pydantic import Field

from bedflow.models.base.enums import ConfidenceLevel
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "CapacityForecast",
    "SeasonalPattern",
    "StaffingRecommendation",
    "SurgeResourceRequirements",
    "SurgeCapacityPlan",
    "OccupancySnapshotResult",
    "CapacityMetrics",
]


class CapacityForecast(BaseSchema):
    unit: str
    forecast_date: datetime
    predicted_occupancy: int = Field(..., ge=0)
    predicted_available: int
    total_capacity: int = Field(..., ge=0)
    occupancy_rate: float
    confidence_level: ConfidenceLevel
    factors: List[str] = Field(default_factory=list)


class SeasonalPattern(BaseSchema):
    period: str = Field(..., description="Month label, e.g. 'January 2026'")
    average_occupancy: float
    peak_days: List[str] = Field(default_factory=list)
    low_days: List[str] = Field(default_factory=list)
    trend: Literal["increasing", "stable", "decreasing"]


class StaffingRecommendation(BaseSchema):
    unit: str
    shift: Literal["day", "evening", "night"]
    date: datetime
    recommended_nurses: int
    recommended_doctors: int
    recommended_support_staff: int
    patient_to_nurse_ratio: int
    reasoning: List[str] = Field(default_factory=list)


class SurgeResourceRequirements(BaseSchema):
    staff: int
    equipment: List[str] = Field(default_factory=list)
    supplies: List[str] = Field(default_factory=list)


class SurgeCapacityPlan(BaseSchema):
    unit: str
    trigger_level: float
    current_level: float
    surge_activated: bool
    surge_status: Literal["activated", "warning", "normal"]
    additional_beds_available: int
    estimated_activation_time: str
    resource_requirements: SurgeResourceRequirements
    recommendations: List[str] = Field(default_factory=list)


class OccupancySnapshotResult(BaseSchema):
    unit: str
    snapshot_date: date
    occupied_beds: int
    total_beds: int
    occupancy_rate: float


class CapacityMetrics(BaseSchema):
    start: date
    end: date
    snapshot_count: int = 0
    average_occupancy: float = 0.0
    peak_occupancy: float = 0.0
    surge_days: int = Field(default=0, description="Unit-days at or above the surge trigger")
    average_occupancy_by_unit: Dict[str, float] = Field(default_factory=dict)
