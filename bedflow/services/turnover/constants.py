"""
Bed state machine and cleaning turnover tables.
"""

from typing import Dict, FrozenSet, Tuple

from bedflow.models.base.enums import BedStatus, CleaningPriority, NotificationPriority

# Legal status changes; staying in the same status is always allowed.
# Occupied is entered only by an assignment, never by a status update.
ALLOWED_TRANSITIONS: Dict[BedStatus, FrozenSet[BedStatus]] = {
    BedStatus.AVAILABLE: frozenset({BedStatus.CLEANING, BedStatus.MAINTENANCE, BedStatus.RESERVED}),
    BedStatus.OCCUPIED: frozenset({BedStatus.AVAILABLE, BedStatus.CLEANING}),
    BedStatus.CLEANING: frozenset({BedStatus.AVAILABLE}),
    BedStatus.MAINTENANCE: frozenset({BedStatus.AVAILABLE}),
    BedStatus.RESERVED: frozenset({BedStatus.AVAILABLE}),
}

# Target turnover minutes
STAT_TARGET_MINUTES = 30
ISOLATION_TARGET_MINUTES = 90
STANDARD_TARGET_MINUTES = 60

# Base cleaning priority by bed capability
STAT_BASE_PRIORITY = 100
ISOLATION_BASE_PRIORITY = 80
TELEMETRY_BASE_PRIORITY = 70
STANDARD_BASE_PRIORITY = 50

PRIORITY_RANK: Dict[str, int] = {
    CleaningPriority.STAT.value: 1,
    CleaningPriority.HIGH.value: 2,
    CleaningPriority.NORMAL.value: 3,
    CleaningPriority.LOW.value: 4,
}

# (multiple of target elapsed, tier, recommended action), most severe first
ACTION_TIERS: Tuple[Tuple[float, str, str], ...] = (
    (1.5, "critical", "Immediate attention required - significantly overdue"),
    (1.0, "overdue", "Expedite cleaning - target time exceeded"),
    (0.8, "warning", "Monitor closely - approaching target time"),
)
NORMAL_TIER = ("normal", "Continue normal cleaning process")
OVERDUE_TIERS = frozenset({"overdue", "critical"})
BOARD_ON_TRACK = "on_track"
BOARD_NOT_APPLICABLE = "N/A"

DEFAULT_METRICS_DAYS = 7

HOUSEKEEPING_NOTIFICATION_TYPE = "housekeeping_alert"
HOUSEKEEPING_NOTIFICATION_TITLE = "Bed Cleaning Request"
HOUSEKEEPING_NOTIFICATION_PRIORITY: Dict[str, str] = {
    CleaningPriority.STAT.value: NotificationPriority.HIGH.value,
    CleaningPriority.HIGH.value: NotificationPriority.HIGH.value,
    CleaningPriority.NORMAL.value: NotificationPriority.MEDIUM.value,
    CleaningPriority.LOW.value: NotificationPriority.LOW.value,
}


def action_tier(elapsed_minutes: float, target_minutes: int) -> Tuple[str, str]:
    """Tier name and recommended action for a bed ``elapsed_minutes`` into cleaning."""
    for multiple, tier, action in ACTION_TIERS:
        if elapsed_minutes > target_minutes * multiple:
            return tier, action
    return NORMAL_TIER
