"""
Daily occupancy history per unit, the input to seasonal analysis and
forecast confidence.
"""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bedflow.models.base.base_model import BaseModel, TenantModel

__all__ = ["OccupancySnapshot"]


class OccupancySnapshot(BaseModel, TenantModel):
    __tablename__ = "occupancy_snapshots"
    __table_args__ = (
        UniqueConstraint("tenant_id", "department_id", "snapshot_date", name="uq_occupancy_unit_day"),
    )

    department_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    occupied_beds: Mapped[int] = mapped_column(Integer, nullable=False)
    total_beds: Mapped[int] = mapped_column(Integer, nullable=False)
    occupancy_rate: Mapped[float] = mapped_column(Float, nullable=False, comment="Percent 0-100")
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
