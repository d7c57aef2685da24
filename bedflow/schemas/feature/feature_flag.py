"""
Feature flag schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from bedflow.models.base.enums import BedManagementFeature
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "FeatureFlagState",
    "FeatureFlagAuditEntry",
]


class FeatureFlagState(BaseSchema):
    """Effective state of one feature for a tenant."""

    feature_name: BedManagementFeature
    enabled: bool = Field(default=True)
    configuration: Optional[Dict[str, Any]] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)


class FeatureFlagAuditEntry(BaseSchema):
    id: str
    feature_name: BedManagementFeature
    action: str = Field(..., description="enabled, disabled or configured")
    previous_state: Optional[Dict[str, Any]] = None
    new_state: Dict[str, Any]
    reason: Optional[str] = None
    performed_by: Optional[str] = None
    performed_at: datetime
