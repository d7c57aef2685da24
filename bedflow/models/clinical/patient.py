"""
Patient model.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["Patient"]


class Patient(BaseModel, TenantModel, TimestampModel):
    """
    Patient demographics plus the bed-management state the engines read
    and write: isolation status, mobility, pain and discharge destination.
    """

    __tablename__ = "patients"

    medical_record_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Infection control
    isolation_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    isolation_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    isolation_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    isolation_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Discharge inputs
    mobility_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    pain_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="0-10 scale")
    discharge_destination: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # Weak reference to the occupied bed
    current_bed_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    admissions: Mapped[List["Admission"]] = relationship("Admission", back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
