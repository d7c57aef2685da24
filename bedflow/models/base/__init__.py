from bedflow.models.base.base_model import (
    Base,
    BaseModel,
    ModelType,
    TenantModel,
    TimestampModel,
    generate_uuid,
)
from bedflow.models.base.enums import (
    AdmissionStatus,
    BarrierCategory,
    BarrierSeverity,
    BedManagementFeature,
    BedStatus,
    CleaningPriority,
    CleaningStatus,
    ConfidenceLevel,
    DischargeDestination,
    IsolationType,
    MobilityStatus,
    NotificationPriority,
    PriorityTier,
    StaffRole,
    StaffStatus,
    TaskStatus,
)

__all__ = [
    "Base",
    "BaseModel",
    "ModelType",
    "TenantModel",
    "TimestampModel",
    "generate_uuid",
    "AdmissionStatus",
    "BarrierCategory",
    "BarrierSeverity",
    "BedManagementFeature",
    "BedStatus",
    "CleaningPriority",
    "CleaningStatus",
    "ConfidenceLevel",
    "DischargeDestination",
    "IsolationType",
    "MobilityStatus",
    "NotificationPriority",
    "PriorityTier",
    "StaffRole",
    "StaffStatus",
    "TaskStatus",
]
