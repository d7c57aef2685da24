"""
ORM models. Importing this package registers every table on ``Base.metadata``.
"""

from bedflow.models.audit import AuditLog
from bedflow.models.base import Base, BaseModel, TenantModel, TimestampModel
from bedflow.models.bed import Bed, BedAssignment, BedTurnoverMetric
from bedflow.models.capacity import OccupancySnapshot
from bedflow.models.clinical import (
    Admission,
    Appointment,
    Diagnosis,
    DischargePlanningTask,
    LabOrder,
    LabResult,
    MedicationReconciliation,
    Patient,
    PatientEducation,
    Prescription,
    VitalSign,
)
from bedflow.models.feature import FeatureFlag, FeatureFlagAudit
from bedflow.models.notification import Notification
from bedflow.models.organization import Department, StaffMember
from bedflow.models.prediction import DischargeReadinessPrediction, TransferPriority

__all__ = [
    "Base",
    "BaseModel",
    "TenantModel",
    "TimestampModel",
    "Admission",
    "Appointment",
    "AuditLog",
    "Bed",
    "BedAssignment",
    "BedTurnoverMetric",
    "Department",
    "Diagnosis",
    "DischargePlanningTask",
    "DischargeReadinessPrediction",
    "FeatureFlag",
    "FeatureFlagAudit",
    "LabOrder",
    "LabResult",
    "MedicationReconciliation",
    "Notification",
    "OccupancySnapshot",
    "Patient",
    "PatientEducation",
    "Prescription",
    "StaffMember",
    "TransferPriority",
    "VitalSign",
]
