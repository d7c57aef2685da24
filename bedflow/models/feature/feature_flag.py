"""
Per-tenant feature flags and their audit trail.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["FeatureFlag", "FeatureFlagAudit"]


class FeatureFlag(BaseModel, TenantModel, TimestampModel):
    """(tenant, feature) switch with optional JSON configuration."""

    __tablename__ = "feature_flags"
    __table_args__ = (
        UniqueConstraint("tenant_id", "feature_name", name="uq_feature_flag_tenant_feature"),
    )

    feature_name: Mapped[str] = mapped_column(String(50), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enabled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    enabled_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    disabled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    disabled_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    disabled_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    configuration: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    def state(self) -> Dict[str, Any]:
        """Snapshot used for audit previous/new state."""
        return {"enabled": self.enabled, "configuration": self.configuration}


class FeatureFlagAudit(BaseModel, TenantModel):
    """Append-only history of flag changes."""

    __tablename__ = "feature_flag_audit"
    __table_args__ = (
        Index("ix_feature_audit_tenant_feature", "tenant_id", "feature_name"),
    )

    feature_name: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False, comment="enabled, disabled or configured")
    previous_state: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_state: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    performed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    performed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
