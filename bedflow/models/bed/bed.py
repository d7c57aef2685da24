"""
Bed model.

Beds are never deleted; their status changes only through the bed
assignment and turnover services.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel
from bedflow.models.base.enums import BedStatus, CleaningPriority, CleaningStatus

__all__ = ["Bed"]


class Bed(BaseModel, TenantModel, TimestampModel):
    """
    Individual inpatient bed with clinical capability flags.

    ``isolation_type`` is fixed room metadata, not patient-specific.
    """

    __tablename__ = "beds"
    __table_args__ = (
        UniqueConstraint("tenant_id", "department_id", "bed_number", name="uq_bed_unit_number"),
        Index("ix_beds_tenant_status", "tenant_id", "status"),
    )

    department_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    bed_number: Mapped[str] = mapped_column(String(20), nullable=False)
    room_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BedStatus.AVAILABLE.value,
    )
    cleaning_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CleaningStatus.CLEAN.value,
    )
    cleaning_priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CleaningPriority.NORMAL.value,
    )

    # Capabilities
    isolation_capable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    isolation_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    telemetry_capable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    oxygen_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bariatric_capable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    distance_to_nurses_station: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Metres from the unit nurses station"
    )

    # Occupancy (weak reference, no FK)
    current_patient_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    occupied_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    available_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="Set on entering available or starting cleaning"
    )
    last_cleaned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    department: Mapped["Department"] = relationship("Department", back_populates="beds")

    @property
    def unit_name(self) -> Optional[str]:
        return self.department.name if self.department else None

    @property
    def unit_type(self) -> Optional[str]:
        return self.department.unit_type if self.department else None

    @property
    def is_available(self) -> bool:
        return self.status == BedStatus.AVAILABLE

    def __repr__(self) -> str:
        return f"<Bed(id={self.id}, bed_number={self.bed_number}, status={self.status})>"
