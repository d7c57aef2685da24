"""
Hospital units and the staff working in them.
"""

from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel
from bedflow.models.base.enums import StaffStatus

__all__ = ["Department", "StaffMember"]


class Department(BaseModel, TenantModel, TimestampModel):
    """
    A nursing unit (ICU, Emergency, Medical, ...) that owns beds and staff.
    """

    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    unit_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="ICU, Emergency, Medical, Surgical, Pediatric, ..."
    )
    floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    beds: Mapped[List["Bed"]] = relationship("Bed", back_populates="department")
    staff: Mapped[List["StaffMember"]] = relationship("StaffMember", back_populates="department")

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name}, unit_type={self.unit_type})>"


class StaffMember(BaseModel, TenantModel, TimestampModel):
    """Clinical or support staff assigned to a unit."""

    __tablename__ = "staff_members"

    department_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StaffStatus.ACTIVE.value,
        index=True,
    )

    department: Mapped["Department"] = relationship("Department", back_populates="staff")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
