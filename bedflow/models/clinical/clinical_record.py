"""
Clinical inputs read by the isolation and discharge engines.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["Diagnosis", "LabResult", "LabOrder", "VitalSign", "Prescription"]


class Diagnosis(BaseModel, TenantModel, TimestampModel):
    """ICD-10 coded diagnosis."""

    __tablename__ = "diagnoses"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    diagnosis_code: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class LabResult(BaseModel, TenantModel, TimestampModel):
    """Resulted lab test (cultures, PCR panels)."""

    __tablename__ = "lab_results"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_name: Mapped[str] = mapped_column(String(200), nullable=False)
    result: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    result_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="positive, negative or pending"
    )
    resulted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class LabOrder(BaseModel, TenantModel, TimestampModel):
    """Ordered lab test; pending orders hold up discharge."""

    __tablename__ = "lab_orders"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    ordered_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class VitalSign(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "vital_signs"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    temperature: Mapped[Optional[float]] = mapped_column(Float, nullable=True, comment="Celsius")
    heart_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    blood_pressure_systolic: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    blood_pressure_diastolic: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class Prescription(BaseModel, TenantModel, TimestampModel):
    __tablename__ = "prescriptions"

    patient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    medication_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    requires_monitoring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
