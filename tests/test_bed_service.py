"""
Bed scoring engine: pure scorer, recommendations and assignment.
"""

from datetime import timedelta

import pytest
from sqlalchemy import update

from conftest import TENANT
from bedflow.core.exceptions import ConflictError, RepositoryError, ValidationError
from bedflow.models.base.enums import BedStatus, CleaningStatus, ConfidenceLevel, IsolationType
from bedflow.models.bed import Bed, BedAssignment
from bedflow.models.clinical import Diagnosis
from bedflow.models.organization import Department
from bedflow.schemas.bed import BedRequirements
from bedflow.services.bed import BedScorer, confidence_for_score


def unsaved_bed(unit_type="Medical", **fields) -> Bed:
    fields.setdefault("status", BedStatus.AVAILABLE.value)
    fields.setdefault("cleaning_status", CleaningStatus.CLEAN.value)
    fields.setdefault("isolation_capable", False)
    fields.setdefault("telemetry_capable", False)
    fields.setdefault("oxygen_available", False)
    fields.setdefault("bariatric_capable", False)
    return Bed(
        tenant_id=TENANT,
        bed_number="X1",
        department=Department(tenant_id=TENANT, name=unit_type, unit_type=unit_type),
        **fields,
    )


class TestBedScorer:
    """Scoring without a database."""

    def test_perfect_match_is_capped_at_100(self):
        bed = unsaved_bed(
            unit_type="ICU",
            isolation_capable=True,
            isolation_type="airborne",
            telemetry_capable=True,
            oxygen_available=True,
            bariatric_capable=True,
            distance_to_nurses_station=10,
        )
        requirements = BedRequirements(
            patient_id="p1",
            isolation_required=True,
            isolation_type=IsolationType.AIRBORNE,
            telemetry_required=True,
            oxygen_required=True,
            specialty_unit="ICU",
            bariatric_required=True,
            proximity_to_nurses_station=True,
        )

        scored = BedScorer().score(bed, requirements, staff_ratio=2, max_ratio=4)

        assert scored.score == 100
        assert scored.warnings == []

    def test_standard_patient_on_standard_bed(self):
        scored = BedScorer().score(unsaved_bed(), BedRequirements(patient_id="p1"), staff_ratio=3, max_ratio=4)

        # 10 + 10 + 5 + 10 + 5 + 5 + 5 + 5
        assert scored.score == 55
        assert "Standard bed for non-isolation patient" in scored.reasons

    def test_unused_capabilities_earn_less(self):
        requirements = BedRequirements(patient_id="p1")
        standard = BedScorer().score(unsaved_bed(), requirements, 1, 4)
        equipped = BedScorer().score(
            unsaved_bed(isolation_capable=True, isolation_type="contact", telemetry_capable=True),
            requirements,
            1,
            4,
        )
        assert equipped.score < standard.score

    def test_staffing_and_cleanliness_warnings(self):
        bed = unsaved_bed(cleaning_status=CleaningStatus.DIRTY.value)

        scored = BedScorer().score(bed, BedRequirements(patient_id="p1"), staff_ratio=None, max_ratio=4)

        assert "No active nursing staff on unit" in scored.warnings
        assert "Bed requires cleaning" in scored.warnings

    def test_high_ratio_scores_partial(self):
        scored = BedScorer().score(unsaved_bed(), BedRequirements(patient_id="p1"), staff_ratio=6, max_ratio=4)
        assert "High staffing ratio: 1:6" in scored.warnings

    @pytest.mark.parametrize(
        "distance, expected",
        [(15, "Close to nurses station (high visibility)"),
         (40, "Moderate distance to nurses station"),
         (None, "Far from nurses station")],
    )
    def test_proximity_bands(self, distance, expected):
        bed = unsaved_bed(distance_to_nurses_station=distance)
        requirements = BedRequirements(patient_id="p1", proximity_to_nurses_station=True)

        assert expected in BedScorer().score(bed, requirements, 1, 4).reasons

    @pytest.mark.parametrize(
        "unmet, met",
        [
            ({}, {"isolation_capable": True, "isolation_type": "droplet"}),
            ({"isolation_capable": True, "isolation_type": "droplet"}, {"isolation_capable": True, "isolation_type": "contact"}),
            ({}, {"telemetry_capable": True}),
            ({}, {"oxygen_available": True}),
            ({}, {"bariatric_capable": True}),
            ({}, {"unit_type": "ICU"}),
        ],
    )
    def test_meeting_another_requirement_never_lowers_score(self, unmet, met):
        requirements = BedRequirements(
            patient_id="p1",
            isolation_required=True,
            isolation_type=IsolationType.CONTACT,
            telemetry_required=True,
            oxygen_required=True,
            specialty_unit="ICU",
            bariatric_required=True,
        )
        scorer = BedScorer()

        before = scorer.score(unsaved_bed(**unmet), requirements, 2, 4)
        after = scorer.score(unsaved_bed(**met), requirements, 2, 4)

        assert after.score >= before.score

    def test_confidence_bands(self):
        assert confidence_for_score(80) == ConfidenceLevel.HIGH
        assert confidence_for_score(60) == ConfidenceLevel.MEDIUM
        assert confidence_for_score(59.9) == ConfidenceLevel.LOW


class TestRecommendBeds:
    def test_contact_patient_gets_only_the_contact_room(self, factory, build):
        """A04.7 drives contact isolation; the plain bed is filtered out."""
        medical = build.department("Medical")
        build.staff(medical)
        room_101 = build.bed(medical, "101", isolation_capable=True, isolation_type="contact")
        build.bed(medical, "102")
        patient = build.patient()
        build.add(
            Diagnosis(
                patient_id=patient.id,
                diagnosis_code="A04.7",
                recorded_at=build.clock() - timedelta(hours=1),
            )
        )

        requirement = factory.isolation().check_isolation_requirements(TENANT, patient.id)
        recommendations = factory.beds().recommend_beds(
            TENANT,
            {
                "patient_id": patient.id,
                "isolation_required": requirement.isolation_required,
                "isolation_type": requirement.isolation_type,
            },
        )

        assert [r.bed_id for r in recommendations] == [room_101.id]
        top = recommendations[0]
        assert "Matches required contact isolation" in top.reasons
        assert top.warnings == []
        assert top.unit_name == "Medical"

    def test_returns_top_three_best_first(self, factory, build):
        medical = build.department("Medical")
        build.staff(medical)
        build.bed(medical, "101", cleaning_status=CleaningStatus.IN_PROGRESS.value)
        build.bed(medical, "102")
        build.bed(medical, "103", telemetry_capable=True)
        build.bed(medical, "104", isolation_capable=True, isolation_type="contact")
        build.bed(medical, "105", status=BedStatus.OCCUPIED.value)

        recommendations = factory.beds().recommend_beds(TENANT, {"patient_id": "p1"})

        assert len(recommendations) == 3
        scores = [r.score for r in recommendations]
        assert scores == sorted(scores, reverse=True)
        assert recommendations[0].bed_number == "102"

    def test_no_candidates_returns_empty(self, factory, build):
        build.bed(build.department("Medical"), "101")

        assert factory.beds().recommend_beds(TENANT, {"patient_id": "p1", "specialty_unit": "ICU"}) == []

    def test_isolation_type_required_with_isolation(self, factory):
        with pytest.raises(ValidationError):
            factory.beds().recommend_beds(TENANT, {"patient_id": "p1", "isolation_required": True})


class TestAssignBed:
    def test_assignment_occupies_bed_and_audits(self, factory, build, clock):
        medical = build.department("Medical")
        bed = build.bed(medical, "101")
        patient = build.patient()

        result = factory.beds().assign_bed(TENANT, patient.id, bed.id, assigned_by="nurse-1", reasoning="Best fit")

        assert result.assigned_at == clock()
        assert bed.status == BedStatus.OCCUPIED.value
        assert bed.current_patient_id == patient.id
        assert patient.current_bed_id == bed.id
        audit = factory.beds().audit_repo.by_action(TENANT, "bed_assigned")
        assert audit[0].details["assignment_id"] == result.assignment_id

    def test_second_assignment_conflicts(self, factory, build):
        bed = build.bed(build.department("Medical"), "101")
        first, second = build.patient(), build.patient()
        factory.beds().assign_bed(TENANT, first.id, bed.id)

        with pytest.raises(ConflictError):
            factory.beds().assign_bed(TENANT, second.id, bed.id)
        assert bed.current_patient_id == first.id

    def test_lost_claim_rolls_back(self, factory, build, db_session, monkeypatch):
        """Another transaction occupies the bed between the status check and the claim."""
        bed = build.bed(build.department("Medical"), "101")
        patient = build.patient()
        beds = factory.beds()
        claim = beds.bed_repo.claim_if_available

        def _taken_first(tenant_id, bed_id, patient_id, occupied_at):
            db_session.execute(
                update(Bed).where(Bed.id == bed_id).values(status=BedStatus.RESERVED.value)
            )
            return claim(tenant_id, bed_id, patient_id, occupied_at)

        monkeypatch.setattr(beds.bed_repo, "claim_if_available", _taken_first)

        with pytest.raises(ConflictError) as exc:
            beds.assign_bed(TENANT, patient.id, bed.id)

        assert "taken by another assignment" in exc.value.message
        db_session.refresh(bed)
        assert bed.status == BedStatus.AVAILABLE.value
        assert patient.current_bed_id is None
        assert db_session.query(BedAssignment).count() == 0

    def test_audit_failure_rolls_back_assignment(self, factory, build, db_session, monkeypatch):
        bed = build.bed(build.department("Medical"), "101")
        patient = build.patient()
        beds = factory.beds()

        def _fail(**kwargs):
            raise RepositoryError("AuditLog create violated a constraint")

        monkeypatch.setattr(beds.audit_repo, "log", _fail)

        with pytest.raises(RepositoryError):
            beds.assign_bed(TENANT, patient.id, bed.id)

        db_session.refresh(bed)
        db_session.refresh(patient)
        assert bed.status == BedStatus.AVAILABLE.value
        assert bed.current_patient_id is None
        assert patient.current_bed_id is None
        assert db_session.query(BedAssignment).count() == 0

    def test_isolation_mismatch_rejected(self, factory, build):
        bed = build.bed(build.department("Medical"), "101", isolation_capable=True, isolation_type="droplet")
        patient = build.patient(isolation_required=True, isolation_type="contact")

        with pytest.raises(ValidationError):
            factory.beds().assign_bed(TENANT, patient.id, bed.id)
        assert bed.status == BedStatus.AVAILABLE.value

    def test_isolation_check_can_be_skipped(self, factory, build):
        bed = build.bed(build.department("Medical"), "101")
        patient = build.patient(isolation_required=True, isolation_type="contact")

        result = factory.beds().assign_bed(TENANT, patient.id, bed.id, validate_isolation=False)

        assert result.isolation_required is True
        assert result.isolation_type == IsolationType.CONTACT
