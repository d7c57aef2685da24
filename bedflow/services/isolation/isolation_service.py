"""
Isolation rule engine.

Derives a patient's isolation category from recent diagnoses and positive
labs, and checks bed assignments against it. Isolation checks are a
safety rule and are never feature-gated.
"""

from datetime import timedelta
from typing import List, Optional, Set, Union

from bedflow.core.exceptions import ErrorCode, ValidationError
from bedflow.models.base.enums import BedStatus, IsolationType
from bedflow.models.bed import Bed
from bedflow.models.clinical import Patient
from bedflow.repositories.bed import BedRepository
from bedflow.repositories.clinical import ClinicalRecordRepository, PatientRepository
from bedflow.schemas.isolation import (
    IsolationRequirement,
    IsolationRoomAvailability,
    IsolationValidation,
)
from bedflow.services.base.base_service import BaseService
from bedflow.services.isolation.constants import (
    ANTEROOM_TYPES,
    ISOLATION_DIAGNOSIS_PREFIXES,
    ISOLATION_LAB_ORGANISMS,
    ISOLATION_PRIORITY,
    POSITIVE_LAB_LOOKBACK_DAYS,
    PPE_REQUIREMENTS,
    RECENT_DIAGNOSIS_LIMIT,
    STANDARD_PRECAUTIONS,
)


def most_restrictive(types: Set[IsolationType]) -> Optional[IsolationType]:
    """Pick airborne over droplet over contact over protective."""
    for isolation_type in ISOLATION_PRIORITY:
        if isolation_type in types:
            return isolation_type
    return None


def coerce_isolation_type(value: Union[IsolationType, str, None]) -> Optional[IsolationType]:
    if value is None or value == "":
        return None
    try:
        return IsolationType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid isolation type '{value}'",
            field="isolation_type",
            error_code=ErrorCode.INVALID_ISOLATION_TYPE,
            details={"valid_types": [t.value for t in IsolationType]},
        ) from None


def check_bed_compatibility(patient: Patient, bed: Bed) -> IsolationValidation:
    """
    Pure compatibility rule between a patient's isolation needs and a bed.

    Isolation types must match exactly; no category substitutes for another.
    """
    if bed.status != BedStatus.AVAILABLE.value:
        return IsolationValidation(valid=False, reason="Bed is not available")

    if patient.isolation_required:
        if not bed.isolation_capable:
            return IsolationValidation(
                valid=False,
                reason=f"Patient requires {patient.isolation_type} isolation but bed is not isolation-capable",
            )
        if bed.isolation_type != patient.isolation_type:
            return IsolationValidation(
                valid=False,
                reason=(
                    f"Isolation type mismatch: patient needs {patient.isolation_type}, "
                    f"bed provides {bed.isolation_type}"
                ),
            )

    return IsolationValidation(valid=True)


class IsolationService(BaseService):
    """
    Isolation Rule Engine.

    Handles:
    - Isolation category detection from diagnoses and labs
    - Bed compatibility validation
    - Isolation clearance with audit
    - Isolation room availability per unit
    """

    def __init__(self, db_session, **kwargs):
        super().__init__(db_session, **kwargs)
        self.patient_repo = PatientRepository(db_session)
        self.bed_repo = BedRepository(db_session)
        self.clinical_repo = ClinicalRecordRepository(db_session)

    def check_isolation_requirements(self, tenant_id: str, patient_id: str) -> IsolationRequirement:
        """
        Scan recent diagnoses and positive labs for isolation triggers.

        When a category matches, the patient's isolation fields are updated;
        ``isolation_start_date`` is only set the first time.

        Raises:
            NotFoundError: If the patient does not exist for this tenant
        """
        now = self.clock()
        matched: Set[IsolationType] = set()
        reasons: List[str] = []

        with self.transaction():
            patient = self.patient_repo.get_by_id(tenant_id, patient_id)

            for diagnosis in self.clinical_repo.recent_diagnoses(tenant_id, patient_id, RECENT_DIAGNOSIS_LIMIT):
                code = (diagnosis.diagnosis_code or "").upper()
                for isolation_type, prefixes in ISOLATION_DIAGNOSIS_PREFIXES.items():
                    if any(code.startswith(prefix) for prefix in prefixes):
                        matched.add(isolation_type)
                        reasons.append(f"Diagnosis: {diagnosis.description or code} ({diagnosis.diagnosis_code})")

            since = now - timedelta(days=POSITIVE_LAB_LOOKBACK_DAYS)
            for lab in self.clinical_repo.positive_labs_since(tenant_id, patient_id, since):
                test_name = (lab.test_name or "").upper()
                for isolation_type, organisms in ISOLATION_LAB_ORGANISMS.items():
                    if any(organism in test_name for organism in organisms):
                        matched.add(isolation_type)
                        reasons.append(f"Lab: {lab.test_name} - {lab.result}")

            primary = most_restrictive(matched)
            if primary is not None:
                patient.isolation_required = True
                patient.isolation_type = primary.value
                if patient.isolation_start_date is None:
                    patient.isolation_start_date = now
                self.patient_repo.flush()

        if primary is not None:
            self._logger.info(
                f"Patient {patient_id} requires {primary.value} isolation",
                extra={"tenant_id": tenant_id, "matched": sorted(t.value for t in matched)},
            )

        return IsolationRequirement(
            patient_id=patient_id,
            isolation_required=primary is not None,
            isolation_type=primary,
            matched_types=[t for t in ISOLATION_PRIORITY if t in matched],
            reasons=reasons,
            ppe_required=list(PPE_REQUIREMENTS[primary]) if primary else list(STANDARD_PRECAUTIONS),
            negative_pressure_required=primary == IsolationType.AIRBORNE,
            positive_pressure_required=primary == IsolationType.PROTECTIVE,
            anteroom_required=primary in ANTEROOM_TYPES,
        )

    def validate_bed_assignment(self, tenant_id: str, patient_id: str, bed_id: str) -> IsolationValidation:
        """
        Check that ``bed_id`` is available and satisfies the patient's isolation.

        Raises:
            NotFoundError: If the patient or bed does not exist
        """
        patient = self.patient_repo.get_by_id(tenant_id, patient_id)
        bed = self.bed_repo.get_by_id(tenant_id, bed_id)
        result = check_bed_compatibility(patient, bed)
        if not result.valid:
            self._logger.info(f"Bed {bed_id} rejected for patient {patient_id}: {result.reason}")
        return result

    def clear_isolation(
        self,
        tenant_id: str,
        patient_id: str,
        cleared_by: Optional[str],
        reason: str,
    ) -> None:
        """
        Clear a patient's isolation status.

        Raises:
            ValidationError: If ``reason`` is empty
            NotFoundError: If the patient does not exist
        """
        reason = self._require(reason, "reason")

        with self.transaction():
            patient = self.patient_repo.get_by_id(tenant_id, patient_id)
            previous_type = patient.isolation_type
            patient.isolation_required = False
            patient.isolation_type = None
            patient.isolation_end_date = self.clock()
            self.patient_repo.flush()
            self._audit(
                tenant_id,
                "isolation_cleared",
                "patient",
                patient_id,
                performed_by=cleared_by,
                details={"reason": reason, "previous_isolation_type": previous_type},
            )

        self._logger.info(f"Isolation cleared for patient {patient_id}", extra={"tenant_id": tenant_id})

    def get_isolation_room_availability(
        self,
        tenant_id: str,
        isolation_type: Union[IsolationType, str, None] = None,
    ) -> List[IsolationRoomAvailability]:
        """
        Available, occupied and total isolation-capable beds per unit and type.

        Raises:
            ValidationError: If ``isolation_type`` is not a known category
        """
        isolation_type = coerce_isolation_type(isolation_type)
        rows = self.bed_repo.isolation_availability(
            tenant_id, isolation_type.value if isolation_type else None
        )
        return [
            IsolationRoomAvailability(
                **row,
                utilization_rate=round(row["occupied_count"] / row["total_count"] * 100, 1)
                if row["total_count"]
                else 0.0,
            )
            for row in rows
        ]
