"""
Isolation check, validation and availability schemas.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from bedflow.models.base.enums import IsolationType
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "IsolationRequirement",
    "IsolationValidation",
    "IsolationRoomAvailability",
]


class IsolationRequirement(BaseSchema):
    """
    Outcome of scanning a patient's diagnoses and lab results.

    ``isolation_type`` is the most restrictive of ``matched_types``.
    """

    patient_id: str
    isolation_required: bool
    isolation_type: Optional[IsolationType] = None
    matched_types: List[IsolationType] = Field(default_factory=list)
    reasons: List[str] = Field(default_factory=list)
    ppe_required: List[str] = Field(default_factory=list)
    negative_pressure_required: bool = False
    positive_pressure_required: bool = False
    anteroom_required: bool = False


class IsolationValidation(BaseSchema):
    valid: bool
    reason: Optional[str] = None


class IsolationRoomAvailability(BaseSchema):
    unit_id: str
    unit_name: str
    isolation_type: Optional[IsolationType] = None
    available_count: int = Field(..., ge=0)
    occupied_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)
    utilization_rate: float = Field(..., ge=0, description="Occupied share of total, percent")
