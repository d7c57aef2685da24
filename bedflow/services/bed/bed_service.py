"""
Bed scoring engine: recommendations and the assignment transaction.
"""

from typing import Any, Dict, List, Optional, Union

from bedflow.core.exceptions import ConflictError, ValidationError
from bedflow.core.utils import ceil_div
from bedflow.models.base.enums import BedManagementFeature, BedStatus, StaffRole
from bedflow.models.bed import BedAssignment
from bedflow.repositories.bed import BedAssignmentRepository, BedRepository
from bedflow.repositories.clinical import PatientRepository
from bedflow.repositories.organization import StaffRepository
from bedflow.schemas.bed import BedAssignmentResult, BedRecommendation, BedRequirements
from bedflow.services.base.base_service import BaseService
from bedflow.services.bed.bed_scorer import BedScorer
from bedflow.services.bed.constants import confidence_for_score
from bedflow.services.isolation import check_bed_compatibility


class BedService(BaseService):
    """
    Bed Scoring Engine.

    Recommendations are gated by ``bed_assignment_optimization``;
    assignment is not, since staff may assign a bed manually.
    """

    feature = BedManagementFeature.BED_ASSIGNMENT_OPTIMIZATION

    def __init__(self, db_session, scorer: Optional[BedScorer] = None, **kwargs):
        super().__init__(db_session, **kwargs)
        self.scorer = scorer or BedScorer()
        self.bed_repo = BedRepository(db_session)
        self.assignment_repo = BedAssignmentRepository(db_session)
        self.patient_repo = PatientRepository(db_session)
        self.staff_repo = StaffRepository(db_session)

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def recommend_beds(
        self,
        tenant_id: str,
        requirements: Union[BedRequirements, Dict[str, Any]],
    ) -> List[BedRecommendation]:
        """
        Rank available beds for a patient.

        Hard constraints (isolation type, telemetry, oxygen, specialty unit,
        bariatric) filter candidates only when required. Returns up to the
        configured number of beds, best first; an empty list when no bed
        passes filtering.

        Raises:
            FeatureDisabledError: If bed assignment optimization is off
            ValidationError: If ``requirements`` is malformed
        """
        self._ensure_feature_enabled(tenant_id, self.feature)
        requirements = self._validate(BedRequirements, requirements)
        engine = self.settings.engine

        candidates = self.bed_repo.find_candidates(
            tenant_id,
            isolation_type=requirements.isolation_type.value if requirements.isolation_required else None,
            telemetry_required=requirements.telemetry_required,
            oxygen_required=requirements.oxygen_required,
            specialty_unit=requirements.specialty_unit,
            bariatric_required=requirements.bariatric_required,
            limit=engine.BED_CANDIDATE_LIMIT,
        )
        if not candidates:
            self._logger.info(
                f"No candidate beds for patient {requirements.patient_id}",
                extra={"tenant_id": tenant_id},
            )
            return []

        max_ratio = requirements.max_nurse_patient_ratio or engine.MAX_NURSE_PATIENT_RATIO
        ratios: Dict[str, Optional[int]] = {}
        recommendations: List[BedRecommendation] = []

        for bed in candidates:
            if bed.department_id not in ratios:
                ratios[bed.department_id] = self._unit_staff_ratio(tenant_id, bed.department_id)
            scored = self.scorer.score(bed, requirements, ratios[bed.department_id], max_ratio)
            recommendations.append(
                BedRecommendation(
                    bed_id=bed.id,
                    bed_number=bed.bed_number,
                    room_number=bed.room_number,
                    unit_id=bed.department_id,
                    unit_name=bed.unit_name,
                    score=scored.score,
                    confidence=confidence_for_score(scored.score),
                    reasoning="; ".join(scored.reasons),
                    reasons=scored.reasons,
                    warnings=scored.warnings,
                )
            )

        # sorted() is stable, so equal scores keep bed-number order
        ranked = sorted(recommendations, key=lambda r: r.score, reverse=True)
        top = ranked[: engine.BED_RECOMMENDATION_COUNT]
        self._logger.debug(
            f"Scored {len(candidates)} beds for patient {requirements.patient_id}; "
            f"top score {top[0].score}"
        )
        return top

    def _unit_staff_ratio(self, tenant_id: str, department_id: str) -> Optional[int]:
        """Patients per active nurse, rounded up; ``None`` without nurses."""
        nurses = len(self.staff_repo.active_in_department(tenant_id, department_id, StaffRole.NURSE.value))
        if nurses == 0:
            return None
        occupied = self.bed_repo.count_by_status(tenant_id, department_id).get(BedStatus.OCCUPIED.value, 0)
        return ceil_div(occupied, nurses)

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    def assign_bed(
        self,
        tenant_id: str,
        patient_id: str,
        bed_id: str,
        assigned_by: Optional[str] = None,
        reasoning: Optional[str] = None,
        validate_isolation: bool = True,
    ) -> BedAssignmentResult:
        """
        Assign a bed in one transaction.

        The bed is claimed with a conditional update, so two concurrent
        assignments of the same bed cannot both succeed. The ledger row
        snapshots the patient's isolation state at assignment time.

        Raises:
            NotFoundError: If the patient or bed does not exist
            ValidationError: If the bed does not meet the patient's isolation needs
            ConflictError: If the bed is no longer available
        """
        with self.transaction():
            patient = self.patient_repo.get_by_id(tenant_id, patient_id)
            bed = self.bed_repo.get_by_id(tenant_id, bed_id)

            if bed.status != BedStatus.AVAILABLE.value:
                raise ConflictError(
                    f"Bed {bed.bed_number} is not available",
                    details={"bed_id": bed_id, "status": bed.status},
                )
            if validate_isolation:
                check = check_bed_compatibility(patient, bed)
                if not check.valid:
                    raise ValidationError(check.reason, field="bed_id")

            now = self.clock()
            claimed = self.bed_repo.claim_if_available(tenant_id, bed_id, patient_id, now)
            if claimed != 1:
                raise ConflictError(
                    f"Bed {bed.bed_number} was taken by another assignment",
                    details={"bed_id": bed_id},
                )

            assignment = self.assignment_repo.add(
                BedAssignment(
                    tenant_id=tenant_id,
                    patient_id=patient_id,
                    bed_id=bed_id,
                    assigned_at=now,
                    assigned_by=assigned_by,
                    assignment_reason=reasoning,
                    isolation_required=bool(patient.isolation_required),
                    isolation_type=patient.isolation_type,
                )
            )
            patient.current_bed_id = bed_id
            self.patient_repo.flush()

            self._audit(
                tenant_id,
                "bed_assigned",
                "bed",
                bed_id,
                performed_by=assigned_by,
                details={"patient_id": patient_id, "assignment_id": assignment.id, "reasoning": reasoning},
            )

        self._logger.info(
            f"Bed {bed_id} assigned to patient {patient_id}",
            extra={"tenant_id": tenant_id, "assigned_by": assigned_by},
        )
        return BedAssignmentResult(
            assignment_id=assignment.id,
            bed_id=bed_id,
            patient_id=patient_id,
            assigned_at=assignment.assigned_at,
            assigned_by=assigned_by,
            assignment_reason=reasoning,
            isolation_required=assignment.isolation_required,
            isolation_type=assignment.isolation_type,
        )
