"""
Enumerations shared by models, schemas and services.

Columns store the ``.value`` string; every enum subclasses ``str`` so
plain column values compare equal to members.
"""

from enum import Enum


class BedStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class CleaningStatus(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    IN_PROGRESS = "in_progress"


class CleaningPriority(str, Enum):
    STAT = "stat"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class IsolationType(str, Enum):
    CONTACT = "contact"
    DROPLET = "droplet"
    AIRBORNE = "airborne"
    PROTECTIVE = "protective"


class AdmissionStatus(str, Enum):
    ACTIVE = "active"
    AWAITING_TRANSFER = "awaiting_transfer"
    TRANSFER_IN_PROGRESS = "transfer_in_progress"
    DISCHARGED = "discharged"


class MobilityStatus(str, Enum):
    INDEPENDENT = "independent"
    ASSISTED = "assisted"
    WHEELCHAIR = "wheelchair"
    BEDBOUND = "bedbound"


class DischargeDestination(str, Enum):
    HOME = "home"
    HOME_HEALTH = "home_health"
    SNF = "snf"
    REHAB = "rehab"
    HOSPICE = "hospice"


class StaffRole(str, Enum):
    NURSE = "nurse"
    DOCTOR = "doctor"
    SUPPORT = "support"
    HOUSEKEEPING = "housekeeping"


class StaffStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BedManagementFeature(str, Enum):
    """Capabilities a tenant can switch on or off."""

    BED_ASSIGNMENT_OPTIMIZATION = "bed_assignment_optimization"
    DISCHARGE_READINESS = "discharge_readiness"
    TRANSFER_OPTIMIZATION = "transfer_optimization"
    CAPACITY_FORECASTING = "capacity_forecasting"
    BED_TURNOVER_TRACKING = "bed_turnover_tracking"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PriorityTier(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BarrierCategory(str, Enum):
    MEDICAL = "medical"
    SOCIAL = "social"
    ADMINISTRATIVE = "administrative"
    EQUIPMENT = "equipment"


class BarrierSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
