"""
Transfer priority engine for ED boarders.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from bedflow.core.exceptions import ErrorCode, NotFoundError, ValidationError
from bedflow.core.utils import clamp, hours_between, percentage, round_or_none, safe_mean
from bedflow.models.base.enums import AdmissionStatus, BedManagementFeature, BedStatus, PriorityTier
from bedflow.models.clinical import Admission
from bedflow.models.prediction import TransferPriority
from bedflow.repositories.bed import BedRepository
from bedflow.repositories.clinical import AdmissionRepository
from bedflow.repositories.notification import NotificationRepository
from bedflow.repositories.organization import DepartmentRepository, StaffRepository
from bedflow.repositories.prediction import DischargePredictionRepository, TransferPriorityRepository
from bedflow.schemas.common import DateRange
from bedflow.schemas.transfer import (
    BedAvailabilityPrediction,
    EDPatientPriority,
    TransferCompletionResult,
    TransferMetrics,
    TransferNotificationResult,
    TransferPriorityResult,
)
from bedflow.services.base.base_service import BaseService
from bedflow.services.transfer.constants import (
    ACUITY_BASE,
    ACUITY_CHECKPOINT,
    ACUITY_SCORE_RANGE,
    ACUITY_STEP,
    AVAILABILITY_CHECKPOINTS,
    DEFAULT_CHECKPOINT,
    HIGH_PRIORITY_MAX_ACUITY,
    ISOLATION_BONUS,
    MAX_PRIORITY_SCORE,
    SIGNIFICANT_DELAY_FACTOR,
    TRANSFER_NOTIFICATION_TITLE,
    TRANSFER_NOTIFICATION_TYPE,
    WAIT_SCORE_CAP,
    WAIT_SCORE_SCALE,
    availability_confidence,
    boarding_target,
    priority_tier,
)

TRANSFER_STATUSES = (AdmissionStatus.AWAITING_TRANSFER.value, AdmissionStatus.TRANSFER_IN_PROGRESS.value)


def transfer_priority_score(acuity_level: int, wait_hours: float, isolation_required: bool) -> int:
    """
    Acuity points, plus wait time relative to the acuity target, plus an
    isolation bonus. Lower acuity numbers always score at least as high.
    """
    acuity_points = clamp(ACUITY_BASE - acuity_level * ACUITY_STEP, *ACUITY_SCORE_RANGE)
    wait_points = min(WAIT_SCORE_CAP, max(wait_hours, 0) / boarding_target(acuity_level) * WAIT_SCORE_SCALE)
    score = acuity_points + wait_points + (ISOLATION_BONUS if isolation_required else 0)
    return int(min(MAX_PRIORITY_SCORE, round(score)))


def transfer_urgency(acuity_level: int, wait_hours: float, beds_available: int) -> str:
    if acuity_level == 1 and beds_available > 0:
        return "IMMEDIATE - Critical patient with bed available"
    if acuity_level == 1:
        return "URGENT - Critical patient awaiting bed"

    target = boarding_target(acuity_level)
    if wait_hours > target * SIGNIFICANT_DELAY_FACTOR:
        return "URGENT - Significantly exceeding target boarding time"
    if wait_hours > target:
        return "HIGH - Exceeding target boarding time"
    if beds_available > 0:
        return "READY - Bed available for transfer"
    return "ROUTINE - Within target boarding time"


class TransferService(BaseService):
    """
    Transfer Priority Engine.

    Handles:
    - Ranking ED patients awaiting a ward bed
    - Bed availability prediction from discharge readiness
    - Transfer timing, notification and completion
    - Boarding time metrics
    """

    feature = BedManagementFeature.TRANSFER_OPTIMIZATION

    def __init__(self, db_session, **kwargs):
        super().__init__(db_session, **kwargs)
        self.admission_repo = AdmissionRepository(db_session)
        self.bed_repo = BedRepository(db_session)
        self.department_repo = DepartmentRepository(db_session)
        self.staff_repo = StaffRepository(db_session)
        self.notification_repo = NotificationRepository(db_session)
        self.discharge_repo = DischargePredictionRepository(db_session)
        self.priority_repo = TransferPriorityRepository(db_session)

    # -------------------------------------------------------------------------
    # Ranking
    # -------------------------------------------------------------------------

    def prioritize_ed_patients(self, tenant_id: str, unit: Optional[str] = None) -> List[EDPatientPriority]:
        """
        Score every ED admission awaiting transfer, highest priority first.

        Args:
            tenant_id: Tenant scope
            unit: Only patients waiting for this unit

        Raises:
            FeatureDisabledError: If transfer optimization is off
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        now = self.clock()

        ranked: List[EDPatientPriority] = []
        for admission in self.admission_repo.ed_awaiting_transfer(tenant_id, unit):
            wait_hours = hours_between(admission.admission_date, now)
            ranked.append(
                EDPatientPriority(
                    patient_id=admission.patient_id,
                    admission_id=admission.id,
                    patient_name=admission.patient.full_name,
                    medical_record_number=admission.patient.medical_record_number,
                    arrival_time=admission.admission_date,
                    acuity_level=admission.acuity_level,
                    chief_complaint=admission.chief_complaint,
                    required_unit=admission.required_unit,
                    isolation_required=bool(admission.isolation_required),
                    wait_time_hours=round(wait_hours, 2),
                    priority_score=transfer_priority_score(
                        admission.acuity_level, wait_hours, bool(admission.isolation_required)
                    ),
                )
            )

        # Stable sort keeps the repository's acuity/arrival order on ties
        ranked.sort(key=lambda p: p.priority_score, reverse=True)
        return ranked

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    def predict_bed_availability(self, tenant_id: str, unit: str, hours: int = 8) -> BedAvailabilityPrediction:
        """
        Beds free now plus discharges expected by each checkpoint.

        Expected discharges are current readiness predictions for active
        admissions on the unit that score at least the configured minimum
        and fall due by the checkpoint.

        Raises:
            FeatureDisabledError: If transfer optimization is off
            NotFoundError: If ``unit`` does not exist
            ValidationError: If ``hours`` is not positive
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        if hours < 1:
            raise ValidationError("hours must be at least 1", field="hours")
        return self._predict_availability(tenant_id, unit, hours)

    def _predict_availability(self, tenant_id: str, unit: str, hours: int) -> BedAvailabilityPrediction:
        now = self.clock()
        department = self.department_repo.get_by_name(tenant_id, unit)
        current = self.bed_repo.count_by_status(tenant_id, department.id).get(BedStatus.AVAILABLE.value, 0)

        expected = self.discharge_repo.current_for_department(
            tenant_id,
            department.id,
            min_score=self.settings.engine.DISCHARGE_AVAILABILITY_MIN_SCORE,
        )
        due_dates = [p.predicted_discharge_date for p in expected]

        def discharges_within(h: int) -> int:
            cutoff = now + timedelta(hours=h)
            return sum(1 for due in due_dates if due <= cutoff)

        by_checkpoint: Dict[int, int] = {h: discharges_within(h) for h in AVAILABILITY_CHECKPOINTS}

        return BedAvailabilityPrediction(
            unit=unit,
            current_available=current,
            predicted_available_1h=current + by_checkpoint[1],
            predicted_available_2h=current + by_checkpoint[2],
            predicted_available_4h=current + by_checkpoint[4],
            predicted_available_8h=current + by_checkpoint[8],
            horizon_hours=hours,
            predicted_available_at_horizon=current + discharges_within(hours),
            confidence_level=availability_confidence(by_checkpoint[AVAILABILITY_CHECKPOINTS[-1]]),
            next_expected_discharge=min(due_dates) if due_dates else None,
        )

    def _estimate_bed_time(self, now: datetime, availability: BedAvailabilityPrediction, acuity_level: int) -> datetime:
        if availability.current_available > 0:
            return now

        checkpoint = ACUITY_CHECKPOINT.get(acuity_level)
        if checkpoint and getattr(availability, f"predicted_available_{checkpoint}h") > 0:
            return now + timedelta(hours=checkpoint)
        if availability.predicted_available_4h > 0:
            return now + timedelta(hours=DEFAULT_CHECKPOINT)
        return now + timedelta(hours=self.settings.engine.TRANSFER_FALLBACK_HOURS)

    # -------------------------------------------------------------------------
    # Timing
    # -------------------------------------------------------------------------

    def optimize_transfer_timing(self, tenant_id: str, patient_id: str, admission_id: str) -> TransferPriorityResult:
        """
        Score one ED patient, estimate when a bed opens and store the result.

        Raises:
            FeatureDisabledError: If transfer optimization is off
            NotFoundError: If the admission or its required unit does not exist
            ValidationError: If the admission names no required unit
        """
        self._ensure_feature_enabled(tenant_id, self.feature)

        with self.transaction():
            admission = self.admission_repo.get_for_patient(tenant_id, admission_id, patient_id)
            if admission is None:
                raise NotFoundError("Admission", admission_id)
            unit = self._require(admission.required_unit, "required_unit")

            now = self.clock()
            wait_hours = hours_between(admission.admission_date, now)
            isolation = bool(admission.isolation_required)
            score = transfer_priority_score(admission.acuity_level, wait_hours, isolation)
            availability = self._predict_availability(tenant_id, unit, self.settings.engine.TRANSFER_FALLBACK_HOURS)

            row = self.priority_repo.append_current(
                TransferPriority(
                    tenant_id=tenant_id,
                    admission_id=admission.id,
                    patient_id=admission.patient_id,
                    priority_score=score,
                    priority_level=priority_tier(score).value,
                    wait_time_hours=round(wait_hours, 2),
                    acuity_level=admission.acuity_level,
                    recommended_unit=unit,
                    estimated_bed_availability=self._estimate_bed_time(now, availability, admission.acuity_level),
                    transfer_urgency=transfer_urgency(
                        admission.acuity_level, wait_hours, availability.current_available
                    ),
                    reasoning=self._reasoning(admission, wait_hours, score, availability),
                    computed_at=now,
                    created_at=now,
                    updated_at=now,
                )
            )

        self._logger.info(
            f"Transfer priority {row.priority_score} ({row.priority_level}) for admission {admission_id}",
            extra={"tenant_id": tenant_id, "unit": unit},
        )
        return self._to_result(row)

    @staticmethod
    def _reasoning(
        admission: Admission,
        wait_hours: float,
        score: int,
        availability: BedAvailabilityPrediction,
    ) -> List[str]:
        reasons: List[str] = []

        if admission.acuity_level == 1:
            reasons.append("Critical acuity level requires immediate transfer")
        elif admission.acuity_level == 2:
            reasons.append("High acuity level requires urgent transfer")

        target = boarding_target(admission.acuity_level)
        if wait_hours > target:
            reasons.append(f"Wait time ({wait_hours:.1f}h) exceeds target ({target}h)")

        if admission.isolation_required:
            reasons.append("Isolation required - limited bed availability")

        if availability.current_available > 0:
            reasons.append(
                f"{availability.current_available} bed(s) currently available in {admission.required_unit}"
            )
        else:
            reasons.append(
                f"No beds currently available - {availability.predicted_available_2h} expected in 2 hours"
            )

        tier = priority_tier(score)
        if tier == PriorityTier.URGENT:
            reasons.append("Urgent priority - transfer should occur immediately")
        elif tier == PriorityTier.HIGH:
            reasons.append("High priority - transfer should occur within 1-2 hours")

        return reasons

    def get_current_priorities(self, tenant_id: str) -> List[TransferPriorityResult]:
        """Latest stored priority for every admission still in transfer, highest first."""
        self._ensure_feature_enabled(tenant_id, self.feature)
        return [self._to_result(row) for row in self.priority_repo.current_pending(tenant_id)]

    # -------------------------------------------------------------------------
    # Notification and completion
    # -------------------------------------------------------------------------

    def notify_transfer(
        self,
        tenant_id: str,
        admission_id: str,
        receiving_unit: str,
        estimated_arrival: datetime,
        notified_by: Optional[str] = None,
    ) -> TransferNotificationResult:
        """
        Notify the receiving unit's active staff and mark the transfer in progress.

        Calling this twice sends a second round of notifications.

        Raises:
            FeatureDisabledError: If transfer optimization is off
            NotFoundError: If the admission or unit does not exist
            ValidationError: If the admission is already discharged
        """
        self._ensure_feature_enabled(tenant_id, self.feature)

        with self.transaction():
            admission = self.admission_repo.get_by_id(tenant_id, admission_id)
            if admission.status == AdmissionStatus.DISCHARGED.value:
                raise ValidationError(
                    f"Admission {admission_id} is already discharged",
                    field="admission_id",
                    error_code=ErrorCode.INVALID_STATUS_TRANSITION,
                )
            department = self.department_repo.get_by_name(tenant_id, receiving_unit)
            patient = admission.patient
            now = self.clock()

            message = (
                f"Patient {patient.full_name} ({patient.medical_record_number}) transferring to "
                f"{receiving_unit}. ETA: {estimated_arrival.strftime('%H:%M')}"
            )
            priority = "high" if admission.acuity_level <= HIGH_PRIORITY_MAX_ACUITY else "medium"
            data = {
                "admission_id": admission.id,
                "patient_name": patient.full_name,
                "acuity_level": admission.acuity_level,
                "chief_complaint": admission.chief_complaint,
                "isolation_required": bool(admission.isolation_required),
                "estimated_arrival": estimated_arrival.isoformat(),
            }

            recipients = self.staff_repo.active_in_department(tenant_id, department.id)
            for staff in recipients:
                self.notification_repo.enqueue(
                    tenant_id=tenant_id,
                    recipient_id=staff.id,
                    notification_type=TRANSFER_NOTIFICATION_TYPE,
                    title=TRANSFER_NOTIFICATION_TITLE,
                    message=message,
                    priority=priority,
                    created_at=now,
                    data=data,
                )

            admission.status = AdmissionStatus.TRANSFER_IN_PROGRESS.value
            admission.transfer_notified_at = now
            self.admission_repo.flush()
            self._audit(
                tenant_id,
                "transfer_notified",
                "admission",
                admission_id,
                performed_by=notified_by,
                details={"receiving_unit": receiving_unit, "notifications_sent": len(recipients)},
            )

        self._logger.info(
            f"Transfer of admission {admission_id} to {receiving_unit} notified to {len(recipients)} staff",
            extra={"tenant_id": tenant_id},
        )
        return TransferNotificationResult(
            admission_id=admission_id,
            receiving_unit=receiving_unit,
            estimated_arrival=estimated_arrival,
            notifications_sent=len(recipients),
            status=AdmissionStatus.TRANSFER_IN_PROGRESS,
        )

    def complete_transfer(
        self,
        tenant_id: str,
        admission_id: str,
        unit: Optional[str] = None,
        completed_by: Optional[str] = None,
    ) -> TransferCompletionResult:
        """
        Move a boarding patient out of the ED onto ``unit``.

        Defaults to the admission's required unit. Not feature-gated, since
        the move happens whether or not the optimizer is in use.

        Raises:
            NotFoundError: If the admission or unit does not exist
            ValidationError: If the admission is not waiting for transfer
        """
        with self.transaction():
            admission = self.admission_repo.get_by_id(tenant_id, admission_id)
            if admission.status not in TRANSFER_STATUSES:
                raise ValidationError(
                    f"Admission {admission_id} is not awaiting transfer (status {admission.status})",
                    field="admission_id",
                    error_code=ErrorCode.INVALID_STATUS_TRANSITION,
                )
            unit = self._require(unit or admission.required_unit, "unit")
            department = self.department_repo.get_by_name(tenant_id, unit)

            now = self.clock()
            admission.department_id = department.id
            admission.location = department.name
            admission.status = AdmissionStatus.ACTIVE.value
            admission.transfer_completed_at = now
            self.admission_repo.flush()

            boarding_hours = hours_between(admission.admission_date, now)
            target = boarding_target(admission.acuity_level)
            self._audit(
                tenant_id,
                "transfer_completed",
                "admission",
                admission_id,
                performed_by=completed_by,
                details={"unit": unit, "boarding_time_hours": round(boarding_hours, 2)},
            )

        if boarding_hours > target:
            self._logger.warning(
                f"Admission {admission_id} boarded {boarding_hours:.1f}h against a {target}h target",
                extra={"tenant_id": tenant_id},
            )
        return TransferCompletionResult(
            admission_id=admission_id,
            unit=unit,
            completed_at=now,
            boarding_time_hours=round(boarding_hours, 2),
            target_hours=target,
            within_target=boarding_hours <= target,
        )

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def get_transfer_metrics(self, tenant_id: str, start: datetime, end: datetime) -> TransferMetrics:
        """
        Boarding performance for transfers completed in ``[start, end]``.

        Average priority and the urgent count come from priorities computed
        in the same window.

        Raises:
            FeatureDisabledError: If transfer optimization is off
            ValidationError: If ``end`` is before ``start``
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        window = self._validate(DateRange, {"start": start, "end": end})

        transfers = self.admission_repo.transfers_completed_between(tenant_id, window.start, window.end)
        boarding = [hours_between(a.admission_date, a.transfer_completed_at) for a in transfers]
        within = sum(
            1 for a, hours in zip(transfers, boarding) if hours <= boarding_target(a.acuity_level)
        )
        priorities = self.priority_repo.computed_between(tenant_id, window.start, window.end)

        return TransferMetrics(
            total_transfers=len(transfers),
            average_boarding_time_hours=round_or_none(safe_mean(boarding), 2) or 0.0,
            transfers_within_target=within,
            target_compliance_rate=percentage(within, len(transfers)),
            average_priority_score=round_or_none(safe_mean(p.priority_score for p in priorities)) or 0.0,
            urgent_transfers=sum(1 for p in priorities if p.priority_level == PriorityTier.URGENT.value),
        )

    @staticmethod
    def _to_result(row: TransferPriority) -> TransferPriorityResult:
        return TransferPriorityResult(
            id=row.id,
            patient_id=row.patient_id,
            admission_id=row.admission_id,
            priority_score=row.priority_score,
            priority_level=row.priority_level,
            wait_time_hours=row.wait_time_hours,
            acuity_level=row.acuity_level,
            recommended_unit=row.recommended_unit,
            estimated_bed_availability=row.estimated_bed_availability,
            transfer_urgency=row.transfer_urgency,
            reasoning=list(row.reasoning or []),
            computed_at=row.computed_at,
        )
