"""
Data access layer. Repositories stage changes; services own commits.
"""

from bedflow.repositories.audit import AuditLogRepository
from bedflow.repositories.base import BaseRepository, CurrentViewRepository
from bedflow.repositories.bed import BedAssignmentRepository, BedRepository, BedTurnoverMetricRepository
from bedflow.repositories.capacity import OccupancySnapshotRepository
from bedflow.repositories.clinical import (
    AdmissionRepository,
    ClinicalRecordRepository,
    DischargePlanningRepository,
    PatientRepository,
)
from bedflow.repositories.feature import FeatureFlagAuditRepository, FeatureFlagRepository
from bedflow.repositories.notification import NotificationRepository
from bedflow.repositories.organization import DepartmentRepository, StaffRepository
from bedflow.repositories.prediction import DischargePredictionRepository, TransferPriorityRepository

__all__ = [
    "AdmissionRepository",
    "AuditLogRepository",
    "BaseRepository",
    "BedAssignmentRepository",
    "BedRepository",
    "BedTurnoverMetricRepository",
    "ClinicalRecordRepository",
    "CurrentViewRepository",
    "DepartmentRepository",
    "DischargePlanningRepository",
    "DischargePredictionRepository",
    "FeatureFlagAuditRepository",
    "FeatureFlagRepository",
    "NotificationRepository",
    "OccupancySnapshotRepository",
    "PatientRepository",
    "StaffRepository",
    "TransferPriorityRepository",
]
