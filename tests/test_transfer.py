"""
Transfer priority engine for ED boarders.
"""

from datetime import timedelta

import pytest

from conftest import TENANT
from bedflow.core.exceptions import ErrorCode, NotFoundError, ValidationError
from bedflow.models.base.enums import (
    AdmissionStatus,
    BedManagementFeature,
    BedStatus,
    ConfidenceLevel,
    PriorityTier,
    StaffRole,
    StaffStatus,
)
from bedflow.repositories.notification import NotificationRepository
from bedflow.services.transfer import transfer_priority_score, transfer_urgency


@pytest.fixture
def transfer(factory):
    return factory.transfer()


@pytest.fixture
def medical(build):
    return build.department("Medical")


def ready_inpatient(build, department):
    """An active inpatient on ``department`` predicted to leave in six hours."""
    patient = build.patient()
    return patient, build.discharge_plan(build.admission(patient, department_id=department.id, location=department.name))


class TestPriorityScore:
    def test_components(self):
        assert transfer_priority_score(1, 1.0, False) == 65
        assert transfer_priority_score(3, 4.0, False) == 45
        assert transfer_priority_score(3, 4.0, True) == 65

    def test_wait_points_are_capped(self):
        assert transfer_priority_score(5, 100.0, False) == 10 + 30

    def test_total_is_capped_at_100(self):
        assert transfer_priority_score(1, 10.0, True) == 100

    @pytest.mark.parametrize("wait_hours", [0, 0.5, 1, 3, 6, 12])
    @pytest.mark.parametrize("acuity", [1, 2, 3, 4])
    def test_more_acute_never_scores_lower(self, acuity, wait_hours):
        for isolation in (False, True):
            assert transfer_priority_score(acuity, wait_hours, isolation) >= transfer_priority_score(
                acuity + 1, wait_hours, isolation
            )

    @pytest.mark.parametrize(
        "acuity, wait, beds, expected",
        [
            (1, 0.2, 1, "IMMEDIATE - Critical patient with bed available"),
            (1, 0.2, 0, "URGENT - Critical patient awaiting bed"),
            (3, 7.0, 0, "URGENT - Significantly exceeding target boarding time"),
            (3, 5.0, 0, "HIGH - Exceeding target boarding time"),
            (3, 1.0, 2, "READY - Bed available for transfer"),
            (3, 1.0, 0, "ROUTINE - Within target boarding time"),
        ],
    )
    def test_urgency(self, acuity, wait, beds, expected):
        assert transfer_urgency(acuity, wait, beds) == expected


class TestPrioritizeEDPatients:
    def test_ranked_by_score(self, transfer, build):
        critical = build.ed_boarder("Medical", acuity_level=1, waited_hours=0.5)
        long_wait = build.ed_boarder("Medical", acuity_level=3, waited_hours=8)
        minor = build.ed_boarder("Surgical", acuity_level=4, waited_hours=2)

        ranked = transfer.prioritize_ed_patients(TENANT)

        assert [p.admission_id for p in ranked] == [long_wait.id, critical.id, minor.id]
        assert [p.priority_score for p in ranked] == [60, 58, 25]
        assert ranked[0].wait_time_hours == 8.0

    def test_unit_filter_and_non_boarders(self, transfer, build, medical):
        boarder = build.ed_boarder("Medical")
        build.ed_boarder("Surgical")
        build.admission(build.patient(), department_id=medical.id, location="Medical")

        ranked = transfer.prioritize_ed_patients(TENANT, unit="Medical")

        assert [p.admission_id for p in ranked] == [boarder.id]


class TestPredictBedAvailability:
    def test_adds_expected_discharges_at_checkpoints(self, factory, transfer, build, medical, clock):
        build.bed(medical, "101")
        build.bed(medical, "102")
        build.bed(medical, "103", status=BedStatus.OCCUPIED.value)
        patient, admission = ready_inpatient(build, medical)
        factory.discharge().predict_discharge_readiness(TENANT, patient.id, admission.id)

        prediction = transfer.predict_bed_availability(TENANT, "Medical", hours=12)

        assert prediction.current_available == 2
        assert prediction.predicted_available_4h == 2
        assert prediction.predicted_available_8h == 3
        assert prediction.predicted_available_at_horizon == 3
        assert prediction.confidence_level == ConfidenceLevel.MEDIUM
        assert prediction.next_expected_discharge == clock() + timedelta(hours=6)

    def test_no_discharges(self, transfer, build, medical):
        build.bed(medical, "101", status=BedStatus.OCCUPIED.value)

        prediction = transfer.predict_bed_availability(TENANT, "Medical")

        assert prediction.current_available == 0
        assert prediction.predicted_available_8h == 0
        assert prediction.confidence_level == ConfidenceLevel.LOW
        assert prediction.next_expected_discharge is None

    def test_hours_must_be_positive(self, transfer, medical):
        with pytest.raises(ValidationError):
            transfer.predict_bed_availability(TENANT, "Medical", hours=0)

    def test_unknown_unit(self, transfer):
        with pytest.raises(NotFoundError):
            transfer.predict_bed_availability(TENANT, "Cardiology")


class TestOptimizeTransferTiming:
    def test_no_beds_falls_back_to_default_wait(self, transfer, build, medical, clock):
        build.bed(medical, "101", status=BedStatus.OCCUPIED.value)
        admission = build.ed_boarder("Medical", acuity_level=2, waited_hours=4)

        result = transfer.optimize_transfer_timing(TENANT, admission.patient_id, admission.id)

        assert result.priority_score == 70
        assert result.priority_level == PriorityTier.HIGH
        assert result.transfer_urgency == "URGENT - Significantly exceeding target boarding time"
        assert result.estimated_bed_availability == clock() + timedelta(hours=8)
        assert result.reasoning == [
            "High acuity level requires urgent transfer",
            "Wait time (4.0h) exceeds target (2h)",
            "No beds currently available - 0 expected in 2 hours",
            "High priority - transfer should occur within 1-2 hours",
        ]

    def test_available_bed_means_now(self, transfer, build, medical, clock):
        build.bed(medical, "101")
        admission = build.ed_boarder("Medical", acuity_level=3, waited_hours=1)

        result = transfer.optimize_transfer_timing(TENANT, admission.patient_id, admission.id)

        assert result.estimated_bed_availability == clock()
        assert result.transfer_urgency == "READY - Bed available for transfer"
        assert "1 bed(s) currently available in Medical" in result.reasoning

    def test_isolation_reason(self, transfer, build, medical):
        admission = build.ed_boarder("Medical", acuity_level=3, waited_hours=1, isolation_required=True)

        result = transfer.optimize_transfer_timing(TENANT, admission.patient_id, admission.id)

        assert "Isolation required - limited bed availability" in result.reasoning

    def test_required_unit_is_mandatory(self, transfer, build):
        admission = build.ed_boarder(None)

        with pytest.raises(ValidationError) as exc:
            transfer.optimize_transfer_timing(TENANT, admission.patient_id, admission.id)
        assert exc.value.error_code == ErrorCode.MISSING_REQUIRED_FIELD

    def test_current_priorities_keep_latest_per_admission(self, transfer, build, medical, clock):
        first = build.ed_boarder("Medical", acuity_level=3, waited_hours=1)
        second = build.ed_boarder("Medical", acuity_level=1, waited_hours=1)
        transfer.optimize_transfer_timing(TENANT, first.patient_id, first.id)
        transfer.optimize_transfer_timing(TENANT, second.patient_id, second.id)
        clock.advance(hours=2)
        transfer.optimize_transfer_timing(TENANT, first.patient_id, first.id)

        current = transfer.get_current_priorities(TENANT)

        assert [p.admission_id for p in current] == [second.id, first.id]
        assert current[1].wait_time_hours == 3.0


class TestNotifyTransfer:
    def test_notifies_active_unit_staff(self, transfer, build, medical, clock):
        build.staff(medical, StaffRole.NURSE)
        build.staff(medical, StaffRole.DOCTOR)
        build.staff(medical, StaffRole.NURSE, status=StaffStatus.INACTIVE.value)
        admission = build.ed_boarder("Medical", acuity_level=2, chief_complaint="Chest pain")
        eta = clock().replace(hour=11, minute=30)

        result = transfer.notify_transfer(TENANT, admission.id, "Medical", eta, notified_by="ed-1")

        assert result.notifications_sent == 2
        assert result.status == AdmissionStatus.TRANSFER_IN_PROGRESS
        assert admission.status == AdmissionStatus.TRANSFER_IN_PROGRESS.value
        assert admission.transfer_notified_at == clock()
        sent = NotificationRepository(build.session).by_type(TENANT, "transfer_notification")
        assert len(sent) == 2
        assert all(n.priority == "high" for n in sent)
        assert sent[0].message.endswith("ETA: 11:30")
        assert sent[0].data["chief_complaint"] == "Chest pain"

    def test_second_call_sends_another_round(self, transfer, build, medical, clock):
        build.staff(medical, StaffRole.NURSE)
        build.staff(medical, StaffRole.DOCTOR)
        admission = build.ed_boarder("Medical")

        transfer.notify_transfer(TENANT, admission.id, "Medical", clock())
        again = transfer.notify_transfer(TENANT, admission.id, "Medical", clock())

        assert again.notifications_sent == 2
        assert len(NotificationRepository(build.session).by_type(TENANT, "transfer_notification")) == 4

    def test_discharged_admission_rejected(self, transfer, build, medical, clock):
        admission = build.ed_boarder("Medical", status=AdmissionStatus.DISCHARGED.value)

        with pytest.raises(ValidationError) as exc:
            transfer.notify_transfer(TENANT, admission.id, "Medical", clock())
        assert exc.value.error_code == ErrorCode.INVALID_STATUS_TRANSITION


class TestCompleteTransfer:
    def test_moves_patient_to_unit(self, transfer, build, medical, clock):
        admission = build.ed_boarder("Medical", acuity_level=3, waited_hours=3)

        result = transfer.complete_transfer(TENANT, admission.id, completed_by="rn-4")

        assert result.within_target is True
        assert result.boarding_time_hours == 3.0
        assert result.target_hours == 4
        assert admission.status == AdmissionStatus.ACTIVE.value
        assert admission.location == "Medical"
        assert admission.department_id == medical.id
        assert admission.transfer_completed_at == clock()

    def test_cannot_complete_twice(self, transfer, build, medical):
        admission = build.ed_boarder("Medical")
        transfer.complete_transfer(TENANT, admission.id)

        with pytest.raises(ValidationError) as exc:
            transfer.complete_transfer(TENANT, admission.id)
        assert exc.value.error_code == ErrorCode.INVALID_STATUS_TRANSITION

    def test_not_gated(self, factory, build, medical):
        factory.feature_flags().disable_feature(
            TENANT, BedManagementFeature.TRANSFER_OPTIMIZATION, reason="Vendor review"
        )
        admission = build.ed_boarder("Medical")

        assert factory.transfer().complete_transfer(TENANT, admission.id).unit == "Medical"


class TestTransferMetrics:
    def test_boarding_compliance(self, transfer, build, medical, clock):
        within = build.ed_boarder("Medical", acuity_level=3, waited_hours=3)
        late = build.ed_boarder("Medical", acuity_level=1, waited_hours=2)
        transfer.optimize_transfer_timing(TENANT, late.patient_id, late.id)
        transfer.complete_transfer(TENANT, within.id)
        transfer.complete_transfer(TENANT, late.id)

        metrics = transfer.get_transfer_metrics(TENANT, clock() - timedelta(days=1), clock())

        assert metrics.total_transfers == 2
        assert metrics.average_boarding_time_hours == 2.5
        assert metrics.transfers_within_target == 1
        assert metrics.target_compliance_rate == 50.0
        # acuity 1 after 2h: 50 + 30 (capped wait)
        assert metrics.average_priority_score == 80.0
        assert metrics.urgent_transfers == 1

    def test_reversed_window(self, transfer, clock):
        with pytest.raises(ValidationError):
            transfer.get_transfer_metrics(TENANT, clock(), clock() - timedelta(hours=1))
