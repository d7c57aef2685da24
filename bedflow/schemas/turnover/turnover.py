"""
Bed status board, cleaning queue and turnover metric schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from bedflow.models.base.enums import BedStatus, CleaningPriority, CleaningStatus, IsolationType
from bedflow.schemas.common.base import BaseSchema

__all__ = [
    "BedStatusChange",
    "CleaningQueueItem",
    "HousekeepingAlertResult",
    "BedBoardEntry",
    "BoardSummary",
    "UnitBoard",
    "BedStatusBoard",
    "TurnoverStats",
    "UnitTurnoverStats",
    "TurnoverMetrics",
]


class BedStatusChange(BaseSchema):
    bed_id: str
    previous_status: BedStatus
    new_status: BedStatus
    previous_cleaning_status: CleaningStatus
    cleaning_status: CleaningStatus
    changed_at: datetime
    turnover_minutes: Optional[float] = None
    target_minutes: Optional[int] = None
    exceeded_target: Optional[bool] = None


class CleaningQueueItem(BaseSchema):
    bed_id: str
    bed_number: str
    unit_id: str
    unit_name: str
    cleaning_status: CleaningStatus
    cleaning_priority: CleaningPriority
    isolation_capable: bool
    isolation_type: Optional[IsolationType] = None
    available_at: Optional[datetime] = None
    wait_time_minutes: float
    base_priority: int
    priority_score: float
    target_minutes: int
    time_remaining_minutes: float
    is_overdue: bool
    action_tier: str = Field(..., description="critical, overdue, warning or normal")
    recommended_action: str


class HousekeepingAlertResult(BaseSchema):
    bed_id: str
    cleaning_priority: CleaningPriority
    reason: str
    notified_staff: int


class BedBoardEntry(BaseSchema):
    bed_id: str
    bed_number: str
    room_number: Optional[str] = None
    unit_id: str
    unit_name: str
    status: BedStatus
    cleaning_status: CleaningStatus
    cleaning_priority: CleaningPriority
    current_patient_id: Optional[str] = None
    isolation_capable: bool = False
    isolation_type: Optional[IsolationType] = None
    time_in_current_status_minutes: Optional[float] = None
    turnover_status: str = Field(..., description="critical, overdue, warning, on_track or N/A")
    estimated_available_time: Optional[datetime] = None


class BoardSummary(BaseSchema):
    total: int = 0
    available: int = 0
    occupied: int = 0
    cleaning: int = 0
    maintenance: int = 0
    reserved: int = 0
    utilization_rate: float = 0.0
    cleaning_overdue: int = 0


class UnitBoard(BaseSchema):
    unit_id: str
    unit_name: str
    beds: List[BedBoardEntry] = Field(default_factory=list)
    summary: BoardSummary


class BedStatusBoard(BaseSchema):
    beds: List[BedBoardEntry] = Field(default_factory=list)
    beds_by_unit: List[UnitBoard] = Field(default_factory=list)
    summary: BoardSummary
    generated_at: datetime


class TurnoverStats(BaseSchema):
    total_turnovers: int = 0
    average_minutes: Optional[float] = None
    median_minutes: Optional[float] = None
    min_minutes: Optional[float] = None
    max_minutes: Optional[float] = None
    average_target_minutes: Optional[float] = None
    exceeded_target_count: int = 0
    exceeded_target_percentage: float = 0.0


class UnitTurnoverStats(TurnoverStats):
    unit_id: str
    unit_name: str


class TurnoverMetrics(BaseSchema):
    period_start: datetime
    period_end: datetime
    by_unit: List[UnitTurnoverStats] = Field(default_factory=list)
    overall: TurnoverStats
