"""
Bed turnover metrics recorded on each cleaning-to-available completion.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bedflow.models.base.base_model import BaseModel, TenantModel, TimestampModel

__all__ = ["BedTurnoverMetric"]


class BedTurnoverMetric(BaseModel, TenantModel, TimestampModel):
    """One completed turnover and whether it breached its target."""

    __tablename__ = "bed_turnover_metrics"

    bed_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("beds.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    department_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    cleaning_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    turnover_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    target_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    cleaning_priority: Mapped[str] = mapped_column(String(20), nullable=False)
    exceeded_target: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    bed: Mapped["Bed"] = relationship("Bed")
