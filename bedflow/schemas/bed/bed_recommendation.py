"""
Bed requirement, recommendation and assignment schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from bedflow.models.base.enums import ConfidenceLevel, IsolationType
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "BedRequirements",
    "BedScore",
    "BedRecommendation",
    "BedAssignmentResult",
]


class BedRequirements(BaseSchema):
    """
    Clinical requirements for a bed search.

    Each ``*_required`` flag is a hard filter when set; unset flags only
    affect partial credit during scoring.
    """

    patient_id: str = Field(..., min_length=1)
    isolation_required: bool = False
    isolation_type: Optional[IsolationType] = None
    telemetry_required: bool = False
    oxygen_required: bool = False
    specialty_unit: Optional[str] = Field(default=None, description="Required unit type, e.g. ICU")
    bariatric_required: bool = False
    proximity_to_nurses_station: bool = False
    max_nurse_patient_ratio: Optional[int] = Field(default=None, ge=1, description="Defaults to the configured limit")

    @model_validator(mode="after")
    def validate_isolation(self) -> "BedRequirements":
        if self.isolation_required and self.isolation_type is None:
            raise ValueError("isolation_type is required when isolation_required is set")
        return self


class BedScore(BaseSchema):
    """Score of one bed against one set of requirements."""

    score: float = Field(..., ge=0, le=100)
    reasons: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class BedRecommendation(BaseSchema):
    bed_id: str
    bed_number: str
    room_number: Optional[str] = None
    unit_id: str
    unit_name: str
    score: float
    confidence: ConfidenceLevel
    reasoning: str
    reasons: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class BedAssignmentResult(BaseSchema):
    assignment_id: str
    bed_id: str
    patient_id: str
    assigned_at: datetime
    assigned_by: Optional[str] = None
    assignment_reason: Optional[str] = None
    isolation_required: bool = False
    isolation_type: Optional[IsolationType] = None
