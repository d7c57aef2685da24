"""
Admission model covering the ED boarding and inpatient stay.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel
from bedflow.models.base.enums import AdmissionStatus

__all__ = ["Admission", "ED_LOCATION"]

ED_LOCATION = "ED"


class Admission(BaseModel, TenantModel, TimestampModel):
    """
    One hospital stay.

    ``department_id`` is the inpatient unit caring for the patient;
    ``required_unit`` names the unit an ED patient is waiting to move to.
    """

    __tablename__ = "admissions"
    __table_args__ = (
        CheckConstraint("acuity_level BETWEEN 1 AND 5", name="ck_admission_acuity"),
        Index("ix_admissions_tenant_status", "tenant_id", "status"),
    )

    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    location: Mapped[str] = mapped_column(String(50), nullable=False, default=ED_LOCATION)
    required_unit: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    acuity_level: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    chief_complaint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    isolation_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    admission_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=AdmissionStatus.ACTIVE.value,
    )
    discharge_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)

    # Transfer lifecycle
    transfer_notified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    transfer_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)

    patient: Mapped["Patient"] = relationship("Patient", back_populates="admissions")
    department: Mapped[Optional["Department"]] = relationship("Department")
