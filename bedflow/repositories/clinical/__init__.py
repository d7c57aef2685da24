from bedflow.repositories.clinical.clinical_record_repository import (
    ClinicalRecordRepository,
    DischargePlanningRepository,
)
from bedflow.repositories.clinical.patient_repository import AdmissionRepository, PatientRepository

__all__ = [
    "AdmissionRepository",
    "ClinicalRecordRepository",
    "DischargePlanningRepository",
    "PatientRepository",
]
