"""
Discharge readiness prediction log.

Every scoring run appends a row; the newest row per admission carries
``is_current=True`` and is the one the other engines read.
"""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["DischargeReadinessPrediction"]


class DischargeReadinessPrediction(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "discharge_readiness_predictions"
    __table_args__ = (
        Index("ix_drp_admission_current", "admission_id", "is_current"),
        # At most one current row per admission
        Index(
            "uq_drp_current_admission",
            "tenant_id",
            "admission_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current"),
        ),
    )

    admission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admissions.id", ondelete="CASCADE"), nullable=False
    )
    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )

    medical_readiness_score: Mapped[float] = mapped_column(Float, nullable=False)
    social_readiness_score: Mapped[float] = mapped_column(Float, nullable=False)
    overall_readiness_score: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    predicted_discharge_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    confidence_level: Mapped[str] = mapped_column(String(10), nullable=False)

    barriers: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    recommended_interventions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    computed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    admission: Mapped["Admission"] = relationship("Admission")
