"""
Discharge readiness schemas.

Barriers and interventions are stored as JSON on the prediction row and
validated through these schemas on the way in and out.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from bedflow.models.base.enums import (
    BarrierCategory,
    BarrierSeverity,
    ConfidenceLevel,
    PriorityTier,
    TaskStatus,
)
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "DischargeBarrier",
    "DischargeIntervention",
    "DischargeReadinessResult",
    "DischargeMetrics",
]


class DischargeBarrier(BaseSchema):
    barrier_id: str = Field(..., description="Stable id derived from the barrier type")
    barrier_type: str
    category: BarrierCategory
    description: str
    severity: BarrierSeverity
    estimated_delay_hours: int = Field(..., ge=0)
    identified_at: datetime
    resolved: bool = False
    resolved_at: Optional[datetime] = None


class DischargeIntervention(BaseSchema):
    intervention_id: str
    barrier_id: str
    intervention_type: str
    description: str
    assigned_to: str = Field(..., description="Responsible role")
    priority: PriorityTier
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime
    completed_at: Optional[datetime] = None


class DischargeReadinessResult(BaseSchema):
    prediction_id: str
    patient_id: str
    admission_id: str
    medical_readiness_score: float = Field(..., ge=0, le=100)
    social_readiness_score: float = Field(..., ge=0, le=100)
    overall_readiness_score: float = Field(..., ge=0, le=100)
    predicted_discharge_date: datetime
    confidence_level: ConfidenceLevel
    barriers: List[DischargeBarrier] = Field(default_factory=list)
    recommended_interventions: List[DischargeIntervention] = Field(default_factory=list)
    computed_at: datetime


class DischargeMetrics(BaseSchema):
    total_discharges: int = 0
    average_los_hours: float = 0.0
    delayed_discharges: int = 0
    delayed_discharge_rate: float = Field(default=0.0, description="Percent of discharges after prediction")
    average_delay_hours: float = 0.0
    barriers_by_category: Dict[str, int] = Field(default_factory=dict)
    intervention_completion_rate: float = Field(default=0.0, description="Percent")
