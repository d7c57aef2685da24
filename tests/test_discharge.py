"""
Discharge readiness engine.
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import NOW, TENANT
from bedflow.core.exceptions import ErrorCode, NotFoundError, ValidationError
from bedflow.models.base.enums import (
    AdmissionStatus,
    BarrierCategory,
    BarrierSeverity,
    ConfidenceLevel,
    TaskStatus,
)
from bedflow.models.clinical import LabOrder, Prescription, VitalSign
from bedflow.models.prediction import DischargeReadinessPrediction
from bedflow.schemas.discharge import DischargeBarrier
from bedflow.services.discharge import predicted_discharge_date, score_from, vitals_unstable
from bedflow.services.discharge.discharge_service import Deduction


@pytest.fixture
def discharge(factory):
    return factory.discharge()


def barrier(barrier_type, delay, resolved=False):
    return DischargeBarrier(
        barrier_id=f"barrier_{barrier_type}",
        barrier_type=barrier_type,
        category=BarrierCategory.SOCIAL,
        description=barrier_type,
        severity=BarrierSeverity.MEDIUM,
        estimated_delay_hours=delay,
        identified_at=NOW,
        resolved=resolved,
    )


class TestScoringRules:
    """Pure helpers."""

    def test_score_is_clamped_at_zero(self):
        assert score_from([Deduction("a", "a", 70), Deduction("b", "b", 45)]) == 0

    def test_score_without_deductions(self):
        assert score_from([]) == 100

    def test_vitals_out_of_range(self):
        assert vitals_unstable(VitalSign(temperature=37.0, heart_rate=130, blood_pressure_systolic=120))
        assert vitals_unstable(VitalSign(temperature=35.5))
        assert not vitals_unstable(VitalSign(temperature=37.0, heart_rate=80, blood_pressure_systolic=120))

    def test_missing_readings_are_not_unstable(self):
        assert not vitals_unstable(VitalSign())

    def test_adding_a_barrier_never_moves_the_date_earlier(self):
        barriers = [barrier("transportation", 6)]
        before = predicted_discharge_date(NOW, 85.0, barriers)
        after = predicted_discharge_date(NOW, 85.0, barriers + [barrier("patient_education", 4)])

        assert after >= before
        assert after - before == timedelta(hours=4)

    def test_resolved_barriers_add_no_delay(self):
        date = predicted_discharge_date(NOW, 92.0, [barrier("snf_placement", 72, resolved=True)])
        assert date == NOW + timedelta(hours=6)

    @pytest.mark.parametrize(
        "score, hours",
        [(95, 6), (90, 6), (85, 12), (72.5, 24), (60, 48), (59.9, 72), (0, 72)],
    )
    def test_score_bands(self, score, hours):
        assert predicted_discharge_date(NOW, score, []) == NOW + timedelta(hours=hours)


class TestPredictDischargeReadiness:
    def test_fully_planned_patient_is_ready(self, discharge, build, clock):
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient))

        result = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        assert result.medical_readiness_score == 100
        assert result.social_readiness_score == 100
        assert result.overall_readiness_score == 100
        assert result.barriers == []
        assert result.recommended_interventions == []
        assert result.confidence_level == ConfidenceLevel.HIGH
        assert result.predicted_discharge_date == clock() + timedelta(hours=6)

    def test_scores_are_clamped_when_everything_fails(self, discharge, build, clock):
        patient = build.patient(mobility_status="bedbound", pain_level=9)
        admission = build.admission(patient)
        build.add(VitalSign(patient_id=patient.id, recorded_at=clock() - timedelta(hours=2), temperature=39.2))
        for i in range(5):
            build.add(LabOrder(patient_id=patient.id, test_name=f"Panel {i}", ordered_at=clock()))
        for i in range(4):
            build.add(Prescription(patient_id=patient.id, medication_name=f"Drug {i}", requires_monitoring=True))

        result = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        assert result.medical_readiness_score == 0
        assert result.social_readiness_score == 0
        assert result.overall_readiness_score == 0
        assert result.confidence_level == ConfidenceLevel.LOW
        assert len(result.barriers) == 10
        assert len(result.recommended_interventions) == 10
        # 72h band plus the delay of all ten barriers
        assert result.predicted_discharge_date == clock() + timedelta(hours=72 + 150)

    def test_caps_on_labs_and_medications(self, discharge, build):
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient))
        for i in range(6):
            build.add(LabOrder(patient_id=patient.id, test_name=f"Panel {i}", ordered_at=build.clock()))
        for i in range(2):
            build.add(Prescription(patient_id=patient.id, medication_name=f"Drug {i}", requires_monitoring=True))

        result = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        # 100 - 20 (labs, capped) - 20 (two monitored medications)
        assert result.medical_readiness_score == 60
        assert result.overall_readiness_score == 76.0

    def test_old_vitals_are_ignored(self, discharge, build, clock):
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient))
        build.add(VitalSign(patient_id=patient.id, recorded_at=clock() - timedelta(hours=30), heart_rate=140))

        assert discharge.predict_discharge_readiness(TENANT, patient.id, admission.id).medical_readiness_score == 100

    def test_unarranged_snf_placement(self, discharge, build, clock):
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient), destination="snf")

        result = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        assert result.social_readiness_score == 70
        assert result.overall_readiness_score == 88.0
        assert [b.barrier_id for b in result.barriers] == ["barrier_snf_placement"]
        assert result.barriers[0].description == "SNF placement not arranged"
        assert result.recommended_interventions[0].barrier_id == "barrier_snf_placement"
        assert result.confidence_level == ConfidenceLevel.MEDIUM
        assert result.predicted_discharge_date == clock() + timedelta(hours=12 + 72)

    def test_admission_must_belong_to_patient(self, discharge, build):
        admission = build.admission(build.patient())
        stranger = build.patient()

        with pytest.raises(NotFoundError):
            discharge.predict_discharge_readiness(TENANT, stranger.id, admission.id)

    def test_each_run_is_appended_to_history(self, discharge, build, clock):
        patient = build.patient()
        admission = build.admission(patient)
        discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)
        clock.advance(hours=1)
        build.discharge_plan(admission)
        latest = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        history = discharge.get_prediction_history(TENANT, admission.id)

        assert [h.prediction_id for h in history][0] == latest.prediction_id
        assert len(history) == 2
        assert history[0].overall_readiness_score > history[1].overall_readiness_score

    def test_database_allows_one_current_row_per_admission(self, discharge, build, db_session):
        patient = build.patient()
        admission = build.admission(patient)
        discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        def stale_current():
            return DischargeReadinessPrediction(
                tenant_id=TENANT,
                admission_id=admission.id,
                patient_id=patient.id,
                medical_readiness_score=50,
                social_readiness_score=50,
                overall_readiness_score=50,
                predicted_discharge_date=NOW,
                confidence_level="low",
                computed_at=NOW,
                is_current=True,
            )

        db_session.add(stale_current())
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

        demoted = stale_current()
        demoted.is_current = False
        db_session.add(demoted)
        db_session.flush()
        rows = db_session.query(DischargeReadinessPrediction).filter_by(admission_id=admission.id).all()
        assert sorted(row.is_current for row in rows) == [False, True]


class TestBarrierAndInterventionUpdates:
    @pytest.fixture
    def snf_case(self, discharge, build):
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient), destination="snf")
        discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)
        return patient, admission

    def test_resolving_removes_the_delay_but_keeps_the_deduction(self, discharge, snf_case, clock):
        patient, admission = snf_case
        clock.advance(minutes=30)

        result = discharge.update_barrier_status(
            TENANT, admission.id, "barrier_snf_placement", resolved=True, resolved_by="cm-1"
        )

        assert result.overall_readiness_score == 88.0
        assert result.barriers[0].resolved is True
        assert result.barriers[0].resolved_at == clock()
        assert result.predicted_discharge_date == clock() + timedelta(hours=12)
        assert result.confidence_level == ConfidenceLevel.HIGH
        audit = discharge.audit_repo.by_action(TENANT, "discharge_barrier_updated")
        assert audit[0].details == {"barrier_id": "barrier_snf_placement", "resolved": True}

    def test_resolution_survives_rescoring(self, discharge, snf_case, clock):
        patient, admission = snf_case
        discharge.update_barrier_status(TENANT, admission.id, "barrier_snf_placement")
        clock.advance(hours=1)

        result = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        assert result.barriers[0].resolved is True

    def test_unknown_barrier(self, discharge, snf_case):
        _, admission = snf_case

        with pytest.raises(ValidationError) as exc:
            discharge.update_barrier_status(TENANT, admission.id, "barrier_weather")
        assert exc.value.error_code == ErrorCode.UNKNOWN_BARRIER

    def test_update_without_prediction(self, discharge, build):
        admission = build.admission(build.patient())

        with pytest.raises(NotFoundError):
            discharge.update_barrier_status(TENANT, admission.id, "barrier_snf_placement")

    def test_intervention_progress_is_logged(self, discharge, snf_case, clock):
        patient, admission = snf_case
        clock.advance(minutes=10)

        result = discharge.update_intervention_status(
            TENANT, admission.id, "intervention_snf_placement", TaskStatus.COMPLETED, updated_by="cm-1"
        )

        intervention = result.recommended_interventions[0]
        assert intervention.status == TaskStatus.COMPLETED
        assert intervention.completed_at == clock()
        assert result.overall_readiness_score == 88.0
        assert len(discharge.get_prediction_history(TENANT, admission.id)) == 2

    def test_intervention_progress_carries_over(self, discharge, snf_case, clock):
        patient, admission = snf_case
        discharge.update_intervention_status(TENANT, admission.id, "intervention_snf_placement", "in_progress")
        clock.advance(hours=1)

        result = discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        assert result.recommended_interventions[0].status == TaskStatus.IN_PROGRESS

    def test_invalid_intervention_status(self, discharge, snf_case):
        _, admission = snf_case

        with pytest.raises(ValidationError):
            discharge.update_intervention_status(TENANT, admission.id, "intervention_snf_placement", "done")


class TestQueries:
    def test_ready_patients_sorted_by_score(self, discharge, build):
        ready = build.patient()
        ready_admission = build.discharge_plan(build.admission(ready))
        snf = build.patient()
        snf_admission = build.discharge_plan(build.admission(snf), destination="snf")
        not_ready = build.patient()
        not_ready_admission = build.admission(not_ready)
        for patient, admission in ((ready, ready_admission), (snf, snf_admission), (not_ready, not_ready_admission)):
            discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)

        results = discharge.get_discharge_ready_patients(TENANT)

        assert [r.admission_id for r in results] == [ready_admission.id, snf_admission.id]
        assert [r.admission_id for r in discharge.get_discharge_ready_patients(TENANT, min_score=95)] == [
            ready_admission.id
        ]

    def test_discharged_admissions_are_not_ready(self, discharge, build):
        patient = build.patient()
        admission = build.discharge_plan(build.admission(patient))
        discharge.predict_discharge_readiness(TENANT, patient.id, admission.id)
        admission.status = AdmissionStatus.DISCHARGED.value
        build.session.commit()

        assert discharge.get_discharge_ready_patients(TENANT) == []

    def test_metrics(self, discharge, build, clock):
        on_time = build.patient()
        on_time_admission = build.discharge_plan(build.admission(on_time, admission_date=clock() - timedelta(hours=48)))
        late = build.patient()
        late_admission = build.discharge_plan(
            build.admission(late, admission_date=clock() - timedelta(hours=24)), destination="snf"
        )
        discharge.predict_discharge_readiness(TENANT, on_time.id, on_time_admission.id)
        discharge.predict_discharge_readiness(TENANT, late.id, late_admission.id)

        # predicted: on time at +6h, late at +84h
        on_time_admission.status = AdmissionStatus.DISCHARGED.value
        on_time_admission.discharge_date = clock() + timedelta(hours=4)
        late_admission.status = AdmissionStatus.DISCHARGED.value
        late_admission.discharge_date = clock() + timedelta(hours=94)
        build.session.commit()

        metrics = discharge.get_discharge_metrics(TENANT, clock(), clock() + timedelta(days=5))

        assert metrics.total_discharges == 2
        assert metrics.average_los_hours == 85.0
        assert metrics.delayed_discharges == 1
        assert metrics.delayed_discharge_rate == 50.0
        assert metrics.average_delay_hours == 10.0
        assert metrics.barriers_by_category == {"social": 1}
        assert metrics.intervention_completion_rate == 0.0

    def test_metrics_reject_reversed_window(self, discharge, clock):
        with pytest.raises(ValidationError):
            discharge.get_discharge_metrics(TENANT, clock(), clock() - timedelta(days=1))

    def test_metrics_empty_window(self, discharge, clock):
        assert discharge.get_discharge_metrics(TENANT, clock(), clock()).total_discharges == 0
