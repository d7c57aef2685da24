"""
Discharge planning inputs: placement/transport tasks, medication
reconciliation, patient education and follow-up appointments.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = [
    "DischargePlanningTask",
    "MedicationReconciliation",
    "PatientEducation",
    "Appointment",
    "PLANNING_ARRANGED",
]

PLANNING_ARRANGED = "arranged"


class DischargePlanningTask(BaseModel, TenantModel, TimestampModel):
    """Placement or transport arrangement for an admission."""

    __tablename__ = "discharge_planning_tasks"

    admission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    planning_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="snf_placement, home_health or transportation"
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")


class MedicationReconciliation(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "medication_reconciliations"

    admission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reconciled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class PatientEducation(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "patient_education"

    admission_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("admissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    education_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="discharge_instructions, medication_education, ..."
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Appointment(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "appointments"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    appointment_type: Mapped[str] = mapped_column(String(30), nullable=False, default="follow_up")
    appointment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
