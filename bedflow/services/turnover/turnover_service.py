"""
Turnover tracker: the bed status state machine, the cleaning queue and
turnover metrics.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from bedflow.core.exceptions import ErrorCode, ValidationError
from bedflow.core.utils import minutes_between, percentage, round_or_none, safe_mean, safe_median
from bedflow.models.base.enums import (
    BedManagementFeature,
    BedStatus,
    CleaningPriority,
    CleaningStatus,
    StaffRole,
)
from bedflow.models.bed import Bed, BedTurnoverMetric
from bedflow.repositories.bed import BedRepository, BedTurnoverMetricRepository
from bedflow.repositories.clinical import PatientRepository
from bedflow.repositories.notification import NotificationRepository
from bedflow.repositories.organization import DepartmentRepository, StaffRepository
from bedflow.schemas.turnover import (
    BedBoardEntry,
    BedStatusBoard,
    BedStatusChange,
    BoardSummary,
    CleaningQueueItem,
    HousekeepingAlertResult,
    TurnoverMetrics,
    TurnoverStats,
    UnitBoard,
    UnitTurnoverStats,
)
from bedflow.services.base.base_service import BaseService
from bedflow.services.turnover.constants import (
    ALLOWED_TRANSITIONS,
    BOARD_NOT_APPLICABLE,
    BOARD_ON_TRACK,
    DEFAULT_METRICS_DAYS,
    HOUSEKEEPING_NOTIFICATION_PRIORITY,
    HOUSEKEEPING_NOTIFICATION_TITLE,
    HOUSEKEEPING_NOTIFICATION_TYPE,
    ISOLATION_BASE_PRIORITY,
    OVERDUE_TIERS,
    ISOLATION_TARGET_MINUTES,
    PRIORITY_RANK,
    STANDARD_BASE_PRIORITY,
    STANDARD_TARGET_MINUTES,
    STAT_BASE_PRIORITY,
    STAT_TARGET_MINUTES,
    TELEMETRY_BASE_PRIORITY,
    action_tier,
)


def target_turnover_minutes(bed: Bed) -> int:
    """Stat requests first, then isolation rooms, then the standard target."""
    if bed.cleaning_priority == CleaningPriority.STAT.value:
        return STAT_TARGET_MINUTES
    if bed.isolation_capable:
        return ISOLATION_TARGET_MINUTES
    return STANDARD_TARGET_MINUTES


def base_cleaning_priority(bed: Bed) -> int:
    if bed.cleaning_priority == CleaningPriority.STAT.value:
        return STAT_BASE_PRIORITY
    if bed.isolation_capable:
        return ISOLATION_BASE_PRIORITY
    if bed.telemetry_capable:
        return TELEMETRY_BASE_PRIORITY
    return STANDARD_BASE_PRIORITY


def _coerce(enum_cls, value, field: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field} '{value}'",
            field=field,
            error_code=error_code,
            details={"valid_values": [e.value for e in enum_cls]},
        ) from None


def _turnover_stats(rows: List[BedTurnoverMetric]) -> Dict:
    minutes = [r.turnover_minutes for r in rows]
    exceeded = sum(1 for r in rows if r.exceeded_target)
    return {
        "total_turnovers": len(rows),
        "average_minutes": round_or_none(safe_mean(minutes)),
        "median_minutes": round_or_none(safe_median(minutes)),
        "min_minutes": round_or_none(min(minutes)) if minutes else None,
        "max_minutes": round_or_none(max(minutes)) if minutes else None,
        "average_target_minutes": round_or_none(safe_mean(r.target_minutes for r in rows)),
        "exceeded_target_count": exceeded,
        "exceeded_target_percentage": percentage(exceeded, len(rows)),
    }


class TurnoverService(BaseService):
    """
    Turnover Tracker.

    Status changes are not feature-gated since staff must always be able
    to move a bed through its lifecycle; the queue, board, metrics and
    housekeeping alerts are gated by ``bed_turnover_tracking``.
    """

    feature = BedManagementFeature.BED_TURNOVER_TRACKING

    def __init__(self, db_session, **kwargs):
        super().__init__(db_session, **kwargs)
        self.bed_repo = BedRepository(db_session)
        self.metric_repo = BedTurnoverMetricRepository(db_session)
        self.department_repo = DepartmentRepository(db_session)
        self.staff_repo = StaffRepository(db_session)
        self.patient_repo = PatientRepository(db_session)
        self.notification_repo = NotificationRepository(db_session)

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def update_bed_status(
        self,
        tenant_id: str,
        bed_id: str,
        status: Union[BedStatus, str],
        cleaning_status: Union[CleaningStatus, str, None] = None,
        updated_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BedStatusChange:
        """
        Move a bed to ``status`` and stamp the lifecycle timestamps.

        Entering cleaning marks the bed dirty unless a cleaning status is
        given; finishing cleaning marks it clean. A cleaning to available
        change records one turnover row, flagged when it took longer than
        the bed's target.

        Raises:
            NotFoundError: If the bed does not exist
            ValidationError: If the status or transition is invalid
        """
        new_status = _coerce(BedStatus, status, "status", ErrorCode.INVALID_STATUS_TRANSITION)
        if cleaning_status is not None:
            cleaning_status = _coerce(CleaningStatus, cleaning_status, "cleaning_status")

        turnover: Optional[BedTurnoverMetric] = None
        with self.transaction():
            bed = self.bed_repo.get_by_id(tenant_id, bed_id)
            old_status = BedStatus(bed.status)
            old_cleaning = CleaningStatus(bed.cleaning_status)

            if new_status == BedStatus.OCCUPIED and old_status != BedStatus.OCCUPIED:
                raise ValidationError(
                    f"Bed {bed.bed_number} becomes occupied only through assign_bed",
                    field="status",
                    error_code=ErrorCode.INVALID_STATUS_TRANSITION,
                )
            if new_status != old_status and new_status not in ALLOWED_TRANSITIONS[old_status]:
                raise ValidationError(
                    f"Cannot move bed {bed.bed_number} from {old_status.value} to {new_status.value}",
                    field="status",
                    error_code=ErrorCode.INVALID_STATUS_TRANSITION,
                )

            now = self.clock()
            # available_at doubles as the cleaning start
            cleaning_started = bed.available_at
            if new_status != old_status:
                if new_status in (BedStatus.AVAILABLE, BedStatus.CLEANING):
                    bed.available_at = now
                if old_status == BedStatus.OCCUPIED:
                    self._release_patient(tenant_id, bed)

            if cleaning_status is None:
                if new_status == BedStatus.CLEANING and old_status != BedStatus.CLEANING:
                    cleaning_status = CleaningStatus.DIRTY
                elif new_status == BedStatus.AVAILABLE and old_status == BedStatus.CLEANING:
                    cleaning_status = CleaningStatus.CLEAN
            if cleaning_status is not None:
                bed.cleaning_status = cleaning_status.value
                if cleaning_status == CleaningStatus.CLEAN:
                    bed.last_cleaned_at = now

            if old_status == BedStatus.CLEANING and new_status == BedStatus.AVAILABLE:
                turnover = self._record_turnover(tenant_id, bed, cleaning_started, now)
                bed.cleaning_priority = CleaningPriority.NORMAL.value

            bed.status = new_status.value
            bed.updated_at = now
            self.bed_repo.flush()

            self._audit(
                tenant_id,
                "bed_status_updated",
                "bed",
                bed_id,
                performed_by=updated_by,
                details={
                    "old_status": old_status.value,
                    "new_status": new_status.value,
                    "old_cleaning_status": old_cleaning.value,
                    "new_cleaning_status": bed.cleaning_status,
                    "notes": notes,
                },
            )

        self._logger.info(
            f"Bed {bed_id} {old_status.value} -> {new_status.value}",
            extra={"tenant_id": tenant_id},
        )
        if turnover is not None and turnover.exceeded_target:
            self._logger.warning(
                f"Bed {bed_id} turnover took {turnover.turnover_minutes:.0f} min "
                f"against a {turnover.target_minutes} min target",
                extra={"tenant_id": tenant_id},
            )

        return BedStatusChange(
            bed_id=bed_id,
            previous_status=old_status,
            new_status=new_status,
            previous_cleaning_status=old_cleaning,
            cleaning_status=bed.cleaning_status,
            changed_at=now,
            turnover_minutes=round(turnover.turnover_minutes, 1) if turnover else None,
            target_minutes=turnover.target_minutes if turnover else None,
            exceeded_target=turnover.exceeded_target if turnover else None,
        )

    def _release_patient(self, tenant_id: str, bed: Bed) -> None:
        if bed.current_patient_id:
            patient = self.patient_repo.find_by_id(tenant_id, bed.current_patient_id)
            if patient is not None and patient.current_bed_id == bed.id:
                patient.current_bed_id = None
        bed.current_patient_id = None

    def _record_turnover(
        self, tenant_id: str, bed: Bed, started: Optional[datetime], now: datetime
    ) -> BedTurnoverMetric:
        minutes = minutes_between(started, now) if started else 0.0
        target = target_turnover_minutes(bed)
        return self.metric_repo.add(
            BedTurnoverMetric(
                tenant_id=tenant_id,
                bed_id=bed.id,
                department_id=bed.department_id,
                cleaning_started_at=started,
                completed_at=now,
                turnover_minutes=minutes,
                target_minutes=target,
                cleaning_priority=bed.cleaning_priority,
                exceeded_target=minutes > target,
                created_at=now,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------------
    # Cleaning queue
    # -------------------------------------------------------------------------

    def prioritize_cleaning(self, tenant_id: str) -> List[CleaningQueueItem]:
        """
        Beds waiting for or in cleaning, most urgent first.

        Ordered by cleaning priority tier, then base priority by capability
        (isolation over telemetry over other), then longest wait.

        Raises:
            FeatureDisabledError: If turnover tracking is off
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        now = self.clock()

        queue: List[CleaningQueueItem] = []
        for bed in self.bed_repo.find_needing_cleaning(tenant_id):
            waited = max(0.0, minutes_between(bed.available_at, now)) if bed.available_at else 0.0
            target = target_turnover_minutes(bed)
            base = base_cleaning_priority(bed)
            tier, action = action_tier(waited, target)
            queue.append(
                CleaningQueueItem(
                    bed_id=bed.id,
                    bed_number=bed.bed_number,
                    unit_id=bed.department_id,
                    unit_name=bed.unit_name,
                    cleaning_status=bed.cleaning_status,
                    cleaning_priority=bed.cleaning_priority,
                    isolation_capable=bool(bed.isolation_capable),
                    isolation_type=bed.isolation_type,
                    available_at=bed.available_at,
                    wait_time_minutes=round(waited, 1),
                    base_priority=base,
                    priority_score=round(base + waited / target * 100, 1),
                    target_minutes=target,
                    time_remaining_minutes=round(max(0.0, target - waited), 1),
                    is_overdue=waited > target,
                    action_tier=tier,
                    recommended_action=action,
                )
            )

        queue.sort(
            key=lambda item: (
                PRIORITY_RANK.get(item.cleaning_priority.value, len(PRIORITY_RANK) + 1),
                -item.base_priority,
                -item.wait_time_minutes,
            )
        )
        return queue

    def alert_housekeeping(
        self,
        tenant_id: str,
        bed_id: str,
        priority: Union[CleaningPriority, str],
        reason: str,
        alerted_by: Optional[str] = None,
    ) -> HousekeepingAlertResult:
        """
        Raise a bed's cleaning priority and notify the unit's housekeeping staff.

        Raises:
            FeatureDisabledError: If turnover tracking is off
            NotFoundError: If the bed does not exist
            ValidationError: If the priority is unknown or ``reason`` is empty
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        priority = _coerce(CleaningPriority, priority, "priority")
        reason = self._require(reason, "reason")

        with self.transaction():
            bed = self.bed_repo.get_by_id(tenant_id, bed_id)
            bed.cleaning_priority = priority.value
            self.bed_repo.flush()

            now = self.clock()
            staff = self.staff_repo.active_in_department(tenant_id, bed.department_id, StaffRole.HOUSEKEEPING.value)
            for member in staff:
                self.notification_repo.enqueue(
                    tenant_id=tenant_id,
                    recipient_id=member.id,
                    notification_type=HOUSEKEEPING_NOTIFICATION_TYPE,
                    title=HOUSEKEEPING_NOTIFICATION_TITLE,
                    message=f"Bed {bed.bed_number} in {bed.unit_name} ({priority.value}): {reason}",
                    priority=HOUSEKEEPING_NOTIFICATION_PRIORITY[priority.value],
                    created_at=now,
                    data={"bed_id": bed_id, "cleaning_priority": priority.value},
                )

            self._audit(
                tenant_id,
                "housekeeping_alert",
                "bed",
                bed_id,
                performed_by=alerted_by,
                details={"priority": priority.value, "reason": reason, "notified_staff": len(staff)},
            )

        if not staff:
            self._logger.warning(
                f"No active housekeeping staff to alert for bed {bed_id}",
                extra={"tenant_id": tenant_id},
            )
        return HousekeepingAlertResult(
            bed_id=bed_id,
            cleaning_priority=priority,
            reason=reason,
            notified_staff=len(staff),
        )

    # -------------------------------------------------------------------------
    # Board
    # -------------------------------------------------------------------------

    def get_bed_status_board(self, tenant_id: str, unit: Optional[str] = None) -> BedStatusBoard:
        """
        Every bed with its turnover status and estimated available time,
        overall and grouped by unit.

        Raises:
            FeatureDisabledError: If turnover tracking is off
            NotFoundError: If ``unit`` is given and does not exist
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        department_id = self.department_repo.get_by_name(tenant_id, unit).id if unit else None
        now = self.clock()

        entries = [self._board_entry(bed, now) for bed in self.bed_repo.find_for_board(tenant_id, department_id)]

        units: Dict[str, List[BedBoardEntry]] = {}
        for entry in entries:
            units.setdefault(entry.unit_id, []).append(entry)

        return BedStatusBoard(
            beds=entries,
            beds_by_unit=[
                UnitBoard(
                    unit_id=unit_id,
                    unit_name=beds[0].unit_name,
                    beds=beds,
                    summary=self._summarize(beds),
                )
                for unit_id, beds in units.items()
            ],
            summary=self._summarize(entries),
            generated_at=now,
        )

    @staticmethod
    def _board_entry(bed: Bed, now: datetime) -> BedBoardEntry:
        if bed.status == BedStatus.OCCUPIED.value:
            since = bed.occupied_at
        elif bed.status in (BedStatus.AVAILABLE.value, BedStatus.CLEANING.value):
            since = bed.available_at
        else:
            since = bed.updated_at
        in_status = max(0.0, minutes_between(since, now)) if since else None

        turnover_status = BOARD_NOT_APPLICABLE
        estimated: Optional[datetime] = None
        if bed.status == BedStatus.AVAILABLE.value:
            estimated = now
        elif bed.status == BedStatus.CLEANING.value:
            target = target_turnover_minutes(bed)
            elapsed = in_status or 0.0
            tier, _ = action_tier(elapsed, target)
            turnover_status = BOARD_ON_TRACK if tier == "normal" else tier
            estimated = now + timedelta(minutes=max(0.0, target - elapsed))

        return BedBoardEntry(
            bed_id=bed.id,
            bed_number=bed.bed_number,
            room_number=bed.room_number,
            unit_id=bed.department_id,
            unit_name=bed.unit_name,
            status=bed.status,
            cleaning_status=bed.cleaning_status,
            cleaning_priority=bed.cleaning_priority,
            current_patient_id=bed.current_patient_id,
            isolation_capable=bool(bed.isolation_capable),
            isolation_type=bed.isolation_type,
            time_in_current_status_minutes=round_or_none(in_status),
            turnover_status=turnover_status,
            estimated_available_time=estimated,
        )

    @staticmethod
    def _summarize(entries: List[BedBoardEntry]) -> BoardSummary:
        counts = {status: 0 for status in BedStatus}
        for entry in entries:
            counts[entry.status] += 1
        return BoardSummary(
            total=len(entries),
            available=counts[BedStatus.AVAILABLE],
            occupied=counts[BedStatus.OCCUPIED],
            cleaning=counts[BedStatus.CLEANING],
            maintenance=counts[BedStatus.MAINTENANCE],
            reserved=counts[BedStatus.RESERVED],
            utilization_rate=percentage(counts[BedStatus.OCCUPIED], len(entries)),
            cleaning_overdue=sum(
                1 for e in entries if e.status == BedStatus.CLEANING and e.turnover_status in OVERDUE_TIERS
            ),
        )

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def get_turnover_metrics(
        self,
        tenant_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> TurnoverMetrics:
        """
        Turnover statistics per unit and overall for ``[start, end]``.

        Defaults to the last seven days.

        Raises:
            FeatureDisabledError: If turnover tracking is off
            ValidationError: If ``end`` is before ``start``
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        end = end or self.clock()
        start = start or end - timedelta(days=DEFAULT_METRICS_DAYS)
        if end < start:
            raise ValidationError("end must not be before start", field="end")

        rows = self.metric_repo.completed_between(tenant_id, start, end)
        names = {d.id: d.name for d in self.department_repo.list_all(tenant_id)}

        by_unit: Dict[str, List[BedTurnoverMetric]] = {}
        for row in rows:
            by_unit.setdefault(row.department_id, []).append(row)

        return TurnoverMetrics(
            period_start=start,
            period_end=end,
            by_unit=sorted(
                (
                    UnitTurnoverStats(
                        unit_id=unit_id,
                        unit_name=names.get(unit_id, unit_id),
                        **_turnover_stats(unit_rows),
                    )
                    for unit_id, unit_rows in by_unit.items()
                ),
                key=lambda s: s.unit_name,
            ),
            overall=TurnoverStats(**_turnover_stats(rows)),
        )
