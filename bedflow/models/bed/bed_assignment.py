"""
Bed assignment ledger (append-only).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["BedAssignment"]


class BedAssignment(BaseModel, TenantModel, TimestampModel):
    """
    Immutable record linking a patient to a bed.

    Rows are inserted by the assignment transaction and never updated;
    the isolation columns snapshot the patient's state at assignment time.
    """

    __tablename__ = "bed_assignments"

    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    bed_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("beds.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    assigned_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    assignment_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    isolation_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    isolation_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    bed: Mapped["Bed"] = relationship("Bed")
    patient: Mapped["Patient"] = relationship("Patient")
