"""
Discharge readiness engine.

Scores medical and social readiness from clinical and planning records,
derives barriers and interventions from the deductions that fired, and
appends the result to the prediction log.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from bedflow.core.exceptions import ErrorCode, NotFoundError, ValidationError
from bedflow.core.utils import clamp, hours_between, percentage, round_or_none, safe_mean
from bedflow.models.base.enums import BedManagementFeature, TaskStatus
from bedflow.models.clinical import PLANNING_ARRANGED, Admission, Patient, VitalSign
from bedflow.models.prediction import DischargeReadinessPrediction
from bedflow.repositories.clinical import (
    AdmissionRepository,
    ClinicalRecordRepository,
    DischargePlanningRepository,
)
from bedflow.repositories.prediction import DischargePredictionRepository
from bedflow.schemas.common import DateRange
from bedflow.schemas.discharge import (
    DischargeBarrier,
    DischargeIntervention,
    DischargeMetrics,
    DischargeReadinessResult,
)
from bedflow.services.base.base_service import BaseService
from bedflow.services.discharge import constants as c


@dataclass
class Deduction:
    """One triggered rule: the barrier it raises and the points it costs."""

    barrier_type: str
    description: str
    points: int


def vitals_unstable(vital: VitalSign) -> bool:
    """True when any recorded reading falls outside its stable range."""
    checks = (
        (vital.temperature, c.TEMPERATURE_RANGE),
        (vital.heart_rate, c.HEART_RATE_RANGE),
        (vital.blood_pressure_systolic, c.SYSTOLIC_BP_RANGE),
    )
    for value, (low, high) in checks:
        if value is not None and (value < low or value > high):
            return True
    return False


def score_from(deductions: List[Deduction]) -> float:
    """Start at 100, subtract every deduction, clamp into [0, 100]."""
    return clamp(100 - sum(d.points for d in deductions), 0, 100)


def predicted_discharge_date(now: datetime, overall: float, barriers: List[DischargeBarrier]) -> datetime:
    """
    ``now`` plus the score band plus the delay of every unresolved barrier.

    Adding a barrier can only push the date later.
    """
    delay = sum(b.estimated_delay_hours for b in barriers if not b.resolved)
    return now + timedelta(hours=c.band_hours(overall) + delay)


class DischargeService(BaseService):
    """
    Discharge Readiness Engine.

    Every operation is gated by ``discharge_readiness``. Each scoring run
    appends a prediction row and demotes the previous current one, so the
    full history of an admission stays queryable.
    """

    feature = BedManagementFeature.DISCHARGE_READINESS

    def __init__(self, db_session, **kwargs):
        super().__init__(db_session, **kwargs)
        self.admission_repo = AdmissionRepository(db_session)
        self.clinical_repo = ClinicalRecordRepository(db_session)
        self.planning_repo = DischargePlanningRepository(db_session)
        self.prediction_repo = DischargePredictionRepository(db_session)

    # -------------------------------------------------------------------------
    # Prediction
    # -------------------------------------------------------------------------

    def predict_discharge_readiness(
        self,
        tenant_id: str,
        patient_id: str,
        admission_id: str,
    ) -> DischargeReadinessResult:
        """
        Compute and store discharge readiness for an admission.

        Barriers resolved on the previous run stay resolved while their rule
        still fires, and intervention progress carries over by id.

        Raises:
            FeatureDisabledError: If discharge readiness is off
            NotFoundError: If the admission does not exist for this patient
        """
        self._ensure_feature_enabled(tenant_id, self.feature)

        with self.transaction():
            admission = self.admission_repo.get_for_patient(tenant_id, admission_id, patient_id)
            if admission is None:
                raise NotFoundError("Admission", admission_id)
            previous = self.prediction_repo.find_current(tenant_id, admission_id)
            row = self._score_and_append(
                tenant_id,
                admission,
                self._barriers_of(previous),
                self._interventions_of(previous),
            )

        self._logger.info(
            f"Discharge readiness for admission {admission_id}: {row.overall_readiness_score}",
            extra={"tenant_id": tenant_id, "confidence": row.confidence_level},
        )
        return self._to_result(row)

    def _score_and_append(
        self,
        tenant_id: str,
        admission: Admission,
        previous_barriers: Dict[str, DischargeBarrier],
        previous_interventions: Dict[str, DischargeIntervention],
    ) -> DischargeReadinessPrediction:
        now = self.clock()
        patient = admission.patient

        medical = self._medical_deductions(tenant_id, patient, now)
        social = self._social_deductions(tenant_id, patient, admission, now)
        medical_score = score_from(medical)
        social_score = score_from(social)
        overall = round(
            clamp(c.MEDICAL_WEIGHT * medical_score + c.SOCIAL_WEIGHT * social_score, 0, 100), 1
        )

        barriers = [self._build_barrier(d, now, previous_barriers) for d in medical + social]
        interventions = [self._build_intervention(b, now, previous_interventions) for b in barriers]
        unresolved = sum(1 for b in barriers if not b.resolved)

        row = DischargeReadinessPrediction(
            tenant_id=tenant_id,
            admission_id=admission.id,
            patient_id=admission.patient_id,
            medical_readiness_score=medical_score,
            social_readiness_score=social_score,
            overall_readiness_score=overall,
            predicted_discharge_date=predicted_discharge_date(now, overall, barriers),
            confidence_level=c.readiness_confidence(overall, unresolved).value,
            barriers=[b.model_dump(mode="json") for b in barriers],
            recommended_interventions=[i.model_dump(mode="json") for i in interventions],
            computed_at=now,
            created_at=now,
            updated_at=now,
        )
        return self.prediction_repo.append_current(row)

    def _medical_deductions(self, tenant_id: str, patient: Patient, now: datetime) -> List[Deduction]:
        found: List[Deduction] = []

        vitals = self.clinical_repo.vitals_since(
            tenant_id,
            patient.id,
            now - timedelta(hours=c.VITALS_LOOKBACK_HOURS),
            limit=c.VITALS_SAMPLE_LIMIT,
        )
        if any(vitals_unstable(v) for v in vitals):
            found.append(Deduction("unstable_vitals", "Unstable vital signs in the last 24 hours",
                                   c.UNSTABLE_VITALS_DEDUCTION))

        pending = self.clinical_repo.count_pending_lab_orders(tenant_id, patient.id)
        if pending:
            found.append(Deduction(
                "pending_labs",
                f"{pending} pending lab results",
                min(pending * c.PENDING_LAB_DEDUCTION, c.PENDING_LAB_CAP),
            ))

        monitored = self.clinical_repo.count_monitored_prescriptions(tenant_id, patient.id)
        if monitored:
            found.append(Deduction(
                "monitored_medications",
                f"{monitored} active medications require monitoring",
                min(monitored * c.MONITORED_MEDICATION_DEDUCTION, c.MONITORED_MEDICATION_CAP),
            ))

        mobility_points = c.MOBILITY_DEDUCTIONS.get(patient.mobility_status or "")
        if mobility_points:
            found.append(Deduction(
                "limited_mobility",
                f"Patient mobility is {patient.mobility_status}",
                mobility_points,
            ))

        if patient.pain_level is not None and patient.pain_level > c.HIGH_PAIN_THRESHOLD:
            found.append(Deduction(
                "uncontrolled_pain",
                f"Pain level {patient.pain_level}/10",
                c.HIGH_PAIN_DEDUCTION,
            ))

        return found

    def _social_deductions(
        self,
        tenant_id: str,
        patient: Patient,
        admission: Admission,
        now: datetime,
    ) -> List[Deduction]:
        found: List[Deduction] = []
        destination = patient.discharge_destination

        if not destination:
            found.append(Deduction("no_destination", "Discharge destination not determined",
                                   c.NO_DESTINATION_DEDUCTION))
        elif destination in c.DESTINATION_PLANNING:
            barrier_type, planning_type, points = c.DESTINATION_PLANNING[destination]
            if self.planning_repo.planning_status(tenant_id, admission.id, planning_type) != PLANNING_ARRANGED:
                label = "SNF placement" if barrier_type == "snf_placement" else "Home health services"
                found.append(Deduction(barrier_type, f"{label} not arranged", points))

        transport = self.planning_repo.planning_status(tenant_id, admission.id, c.TRANSPORTATION_PLANNING_TYPE)
        if transport != PLANNING_ARRANGED:
            found.append(Deduction("transportation", "Transportation not arranged",
                                   c.TRANSPORT_UNARRANGED_DEDUCTION))

        med_rec = self.planning_repo.latest_medication_reconciliation(tenant_id, admission.id)
        if med_rec is None or not med_rec.completed:
            found.append(Deduction("medication_reconciliation", "Medication reconciliation incomplete",
                                   c.MED_REC_INCOMPLETE_DEDUCTION))

        education = self.planning_repo.count_completed_education(
            tenant_id, admission.id, c.REQUIRED_EDUCATION_TYPES
        )
        if education < c.REQUIRED_EDUCATION_COUNT:
            found.append(Deduction(
                "patient_education",
                f"{education} of {c.REQUIRED_EDUCATION_COUNT} education items completed",
                c.EDUCATION_INCOMPLETE_DEDUCTION,
            ))

        if self.planning_repo.count_future_follow_ups(tenant_id, patient.id, now) == 0:
            found.append(Deduction("follow_up_appointment", "No follow-up appointment scheduled",
                                   c.NO_FOLLOW_UP_DEDUCTION))

        return found

    @staticmethod
    def _build_barrier(
        deduction: Deduction,
        now: datetime,
        previous: Dict[str, DischargeBarrier],
    ) -> DischargeBarrier:
        entry = c.BARRIER_CATALOG[deduction.barrier_type]
        barrier_id = f"barrier_{deduction.barrier_type}"
        prior = previous.get(barrier_id)
        return DischargeBarrier(
            barrier_id=barrier_id,
            barrier_type=deduction.barrier_type,
            category=entry["category"],
            description=deduction.description,
            severity=entry["severity"],
            estimated_delay_hours=entry["delay_hours"],
            identified_at=prior.identified_at if prior else now,
            resolved=prior.resolved if prior else False,
            resolved_at=prior.resolved_at if prior else None,
        )

    @staticmethod
    def _build_intervention(
        barrier: DischargeBarrier,
        now: datetime,
        previous: Dict[str, DischargeIntervention],
    ) -> DischargeIntervention:
        template = c.INTERVENTION_CATALOG[barrier.barrier_type]
        intervention_id = f"intervention_{barrier.barrier_type}"
        prior = previous.get(intervention_id)
        return DischargeIntervention(
            intervention_id=intervention_id,
            barrier_id=barrier.barrier_id,
            intervention_type=template["intervention_type"],
            description=template["description"],
            assigned_to=template["assigned_to"],
            priority=template["priority"],
            status=prior.status if prior else TaskStatus.PENDING,
            created_at=prior.created_at if prior else now,
            completed_at=prior.completed_at if prior else None,
        )

    # -------------------------------------------------------------------------
    # Barrier and intervention updates
    # -------------------------------------------------------------------------

    def update_barrier_status(
        self,
        tenant_id: str,
        admission_id: str,
        barrier_id: str,
        resolved: bool = True,
        resolved_by: Optional[str] = None,
    ) -> DischargeReadinessResult:
        """
        Mark a barrier resolved (or reopen it) and recompute readiness.

        Raises:
            FeatureDisabledError: If discharge readiness is off
            NotFoundError: If the admission has no current prediction
            ValidationError: If ``barrier_id`` is not on the current prediction
        """
        self._ensure_feature_enabled(tenant_id, self.feature)

        with self.transaction():
            current = self._current_or_raise(tenant_id, admission_id)
            barriers = self._barriers_of(current)
            if barrier_id not in barriers:
                raise ValidationError(
                    f"Unknown barrier '{barrier_id}' for admission {admission_id}",
                    field="barrier_id",
                    error_code=ErrorCode.UNKNOWN_BARRIER,
                    details={"known_barriers": sorted(barriers)},
                )

            now = self.clock()
            barrier = barriers[barrier_id]
            barrier.resolved = resolved
            barrier.resolved_at = now if resolved else None

            admission = self.admission_repo.get_by_id(tenant_id, admission_id)
            row = self._score_and_append(tenant_id, admission, barriers, self._interventions_of(current))
            self._audit(
                tenant_id,
                "discharge_barrier_updated",
                "admission",
                admission_id,
                performed_by=resolved_by,
                details={"barrier_id": barrier_id, "resolved": resolved},
            )

        self._logger.info(
            f"Barrier {barrier_id} {'resolved' if resolved else 'reopened'} for admission {admission_id}",
            extra={"tenant_id": tenant_id},
        )
        return self._to_result(row)

    def update_intervention_status(
        self,
        tenant_id: str,
        admission_id: str,
        intervention_id: str,
        status: Union[TaskStatus, str],
        updated_by: Optional[str] = None,
    ) -> DischargeReadinessResult:
        """
        Record progress on an intervention.

        Scores are not recomputed; a copy of the current prediction with the
        updated intervention is appended to the log.

        Raises:
            FeatureDisabledError: If discharge readiness is off
            NotFoundError: If the admission has no current prediction
            ValidationError: If the intervention id or status is unknown
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        try:
            status = TaskStatus(status)
        except ValueError:
            raise ValidationError(
                f"Invalid intervention status '{status}'",
                field="status",
                details={"valid_statuses": [s.value for s in TaskStatus]},
            ) from None

        with self.transaction():
            current = self._current_or_raise(tenant_id, admission_id)
            interventions = self._interventions_of(current)
            if intervention_id not in interventions:
                raise ValidationError(
                    f"Unknown intervention '{intervention_id}' for admission {admission_id}",
                    field="intervention_id",
                )

            now = self.clock()
            intervention = interventions[intervention_id]
            intervention.status = status
            intervention.completed_at = now if status == TaskStatus.COMPLETED else None

            row = DischargeReadinessPrediction(
                tenant_id=tenant_id,
                admission_id=current.admission_id,
                patient_id=current.patient_id,
                medical_readiness_score=current.medical_readiness_score,
                social_readiness_score=current.social_readiness_score,
                overall_readiness_score=current.overall_readiness_score,
                predicted_discharge_date=current.predicted_discharge_date,
                confidence_level=current.confidence_level,
                barriers=list(current.barriers),
                recommended_interventions=[i.model_dump(mode="json") for i in interventions.values()],
                computed_at=now,
                created_at=now,
                updated_at=now,
            )
            self.prediction_repo.append_current(row)
            self._audit(
                tenant_id,
                "discharge_intervention_updated",
                "admission",
                admission_id,
                performed_by=updated_by,
                details={"intervention_id": intervention_id, "status": status.value},
            )

        return self._to_result(row)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_prediction_history(
        self,
        tenant_id: str,
        admission_id: str,
        limit: int = 50,
    ) -> List[DischargeReadinessResult]:
        """Prediction log for an admission, newest first."""
        self._ensure_feature_enabled(tenant_id, self.feature)
        return [self._to_result(row) for row in self.prediction_repo.history(tenant_id, admission_id, limit)]

    def get_discharge_ready_patients(
        self,
        tenant_id: str,
        min_score: Optional[float] = None,
    ) -> List[DischargeReadinessResult]:
        """
        Active admissions whose current score is at least ``min_score``.

        Ordered by score descending, then predicted discharge date ascending.
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        if min_score is None:
            min_score = self.settings.engine.DISCHARGE_READY_MIN_SCORE
        return [self._to_result(row) for row in self.prediction_repo.current_ready(tenant_id, min_score)]

    def get_discharge_metrics(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
    ) -> DischargeMetrics:
        """
        Aggregate discharges in ``[start, end]``.

        A discharge is delayed when it happened after the current prediction's
        date. Barrier and intervention counts come from those predictions.

        Raises:
            FeatureDisabledError: If discharge readiness is off
            ValidationError: If ``end`` is before ``start``
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        window = self._validate(DateRange, {"start": start, "end": end})

        admissions = self.admission_repo.discharged_between(tenant_id, window.start, window.end)
        if not admissions:
            return DischargeMetrics()

        predictions = {
            p.admission_id: p
            for p in self.prediction_repo.current_for_admissions(tenant_id, [a.id for a in admissions])
        }

        los_hours: List[float] = []
        delays: List[float] = []
        barriers_by_category: Dict[str, int] = {}
        interventions_total = 0
        interventions_completed = 0

        for admission in admissions:
            los_hours.append(hours_between(admission.admission_date, admission.discharge_date))
            prediction = predictions.get(admission.id)
            if prediction is None:
                continue
            if admission.discharge_date > prediction.predicted_discharge_date:
                delays.append(hours_between(prediction.predicted_discharge_date, admission.discharge_date))
            for barrier in prediction.barriers or []:
                category = barrier.get("category", "unknown")
                barriers_by_category[category] = barriers_by_category.get(category, 0) + 1
            for intervention in prediction.recommended_interventions or []:
                interventions_total += 1
                if intervention.get("status") == TaskStatus.COMPLETED.value:
                    interventions_completed += 1

        return DischargeMetrics(
            total_discharges=len(admissions),
            average_los_hours=round_or_none(safe_mean(los_hours)) or 0.0,
            delayed_discharges=len(delays),
            delayed_discharge_rate=percentage(len(delays), len(admissions)),
            average_delay_hours=round_or_none(safe_mean(delays)) or 0.0,
            barriers_by_category=barriers_by_category,
            intervention_completion_rate=percentage(interventions_completed, interventions_total),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _current_or_raise(self, tenant_id: str, admission_id: str) -> DischargeReadinessPrediction:
        current = self.prediction_repo.find_current(tenant_id, admission_id)
        if current is None:
            raise NotFoundError("DischargeReadinessPrediction", admission_id)
        return current

    @staticmethod
    def _barriers_of(row: Optional[DischargeReadinessPrediction]) -> Dict[str, DischargeBarrier]:
        if row is None:
            return {}
        barriers = (DischargeBarrier.model_validate(b) for b in row.barriers or [])
        return {b.barrier_id: b for b in barriers}

    @staticmethod
    def _interventions_of(row: Optional[DischargeReadinessPrediction]) -> Dict[str, DischargeIntervention]:
        if row is None:
            return {}
        interventions = (DischargeIntervention.model_validate(i) for i in row.recommended_interventions or [])
        return {i.intervention_id: i for i in interventions}

    @staticmethod
    def _to_result(row: DischargeReadinessPrediction) -> DischargeReadinessResult:
        return DischargeReadinessResult(
            prediction_id=row.id,
            patient_id=row.patient_id,
            admission_id=row.admission_id,
            medical_readiness_score=row.medical_readiness_score,
            social_readiness_score=row.social_readiness_score,
            overall_readiness_score=row.overall_readiness_score,
            predicted_discharge_date=row.predicted_discharge_date,
            confidence_level=row.confidence_level,
            barriers=row.barriers or [],
            recommended_interventions=row.recommended_interventions or [],
            computed_at=row.computed_at,
        )
