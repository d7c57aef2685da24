"""
ED transfer schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from bedflow.models.base.enums import AdmissionStatus, ConfidenceLevel, PriorityTier
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "EDPatientPriority",
    "BedAvailabilityPrediction",
    "TransferPriorityResult",
    "TransferNotificationResult",
    "TransferCompletionResult",
    "TransferMetrics",
]


class EDPatientPriority(BaseSchema):
    patient_id: str
    admission_id: str
    patient_name: str
    medical_record_number: Optional[str] = None
    arrival_time: datetime
    acuity_level: int = Field(..., ge=1, le=5)
    chief_complaint: Optional[str] = None
    required_unit: Optional[str] = None
    isolation_required: bool = False
    wait_time_hours: float
    priority_score: int = Field(..., ge=0, le=100)


class BedAvailabilityPrediction(BaseSchema):
    """Available beds now and at the 1/2/4/8 hour checkpoints."""

    unit: str
    current_available: int
    predicted_available_1h: int
    predicted_available_2h: int
    predicted_available_4h: int
    predicted_available_8h: int
    horizon_hours: int
    predicted_available_at_horizon: int
    confidence_level: ConfidenceLevel
    next_expected_discharge: Optional[datetime] = None


class TransferPriorityResult(BaseSchema):
    id: str
    patient_id: str
    admission_id: str
    priority_score: int
    priority_level: PriorityTier
    wait_time_hours: float
    acuity_level: int
    recommended_unit: Optional[str] = None
    estimated_bed_availability: datetime
    transfer_urgency: str
    reasoning: List[str] = Field(default_factory=list)
    computed_at: datetime


class TransferNotificationResult(BaseSchema):
    admission_id: str
    receiving_unit: str
    estimated_arrival: datetime
    notifications_sent: int
    status: AdmissionStatus


class TransferCompletionResult(BaseSchema):
    admission_id: str
    unit: str
    completed_at: datetime
    boarding_time_hours: float
    target_hours: int
    within_target: bool


class TransferMetrics(BaseSchema):
    total_transfers: int = 0
    average_boarding_time_hours: float = 0.0
    transfers_within_target: int = 0
    target_compliance_rate: float = 0.0
    average_priority_score: float = 0.0
    urgent_transfers: int = 0
