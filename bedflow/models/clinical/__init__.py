from bedflow.models.clinical.admission import ED_LOCATION, Admission
from bedflow.models.clinical.clinical_record import (
    Diagnosis,
    LabOrder,
    LabResult,
    Prescription,
    VitalSign,
)
from bedflow.models.clinical.discharge_planning import (
    PLANNING_ARRANGED,
    Appointment,
    DischargePlanningTask,
    MedicationReconciliation,
    PatientEducation,
)
from bedflow.models.clinical.patient import Patient

__all__ = [
    "ED_LOCATION",
    "PLANNING_ARRANGED",
    "Admission",
    "Appointment",
    "Diagnosis",
    "DischargePlanningTask",
    "LabOrder",
    "LabResult",
    "MedicationReconciliation",
    "Patient",
    "PatientEducation",
    "Prescription",
    "VitalSign",
]
