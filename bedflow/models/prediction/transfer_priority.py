"""
ED transfer priority log, one current row per admission.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["TransferPriority"]


class TransferPriority(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "transfer_priorities"
    __table_args__ = (
        Index("ix_tp_admission_current", "admission_id", "is_current"),
        Index(
            "uq_tp_current_admission",
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

    priority_score: Mapped[int] = mapped_column(Integer, nullable=False)
    priority_level: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    wait_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    acuity_level: Mapped[int] = mapped_column(Integer, nullable=False)
    recommended_unit: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    estimated_bed_availability: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    transfer_urgency: Mapped[str] = mapped_column(String(100), nullable=False)
    reasoning: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    computed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
