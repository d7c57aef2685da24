"""
Transfer priority tables.
"""

from typing import Dict, Tuple

from bedflow.models.base.enums import ConfidenceLevel, PriorityTier

# Target ED boarding hours by acuity level (1 = critical)
BOARDING_TIME_TARGETS: Dict[int, int] = {1: 1, 2: 2, 3: 4, 4: 6, 5: 8}
DEFAULT_BOARDING_TARGET = 4

ACUITY_BASE = 60
ACUITY_STEP = 10
ACUITY_SCORE_RANGE = (10, 50)
WAIT_SCORE_SCALE = 15
WAIT_SCORE_CAP = 30
ISOLATION_BONUS = 20
MAX_PRIORITY_SCORE = 100

# (minimum score, tier), highest first
PRIORITY_TIERS: Tuple[Tuple[int, PriorityTier], ...] = (
    (80, PriorityTier.URGENT),
    (60, PriorityTier.HIGH),
    (40, PriorityTier.MEDIUM),
)

# Hours ahead at which bed availability is predicted
AVAILABILITY_CHECKPOINTS: Tuple[int, ...] = (1, 2, 4, 8)

# Checkpoint consulted first for the most acute patients
ACUITY_CHECKPOINT: Dict[int, int] = {1: 1, 2: 2}
DEFAULT_CHECKPOINT = 4

# Discharges expected by the last checkpoint -> confidence
AVAILABILITY_CONFIDENCE: Tuple[Tuple[int, ConfidenceLevel], ...] = (
    (3, ConfidenceLevel.HIGH),
    (1, ConfidenceLevel.MEDIUM),
)

SIGNIFICANT_DELAY_FACTOR = 1.5

TRANSFER_NOTIFICATION_TYPE = "transfer_notification"
TRANSFER_NOTIFICATION_TITLE = "Incoming Patient Transfer"
HIGH_PRIORITY_MAX_ACUITY = 2


def boarding_target(acuity_level: int) -> int:
    return BOARDING_TIME_TARGETS.get(acuity_level, DEFAULT_BOARDING_TARGET)


def priority_tier(score: int) -> PriorityTier:
    for minimum, tier in PRIORITY_TIERS:
        if score >= minimum:
            return tier
    return PriorityTier.LOW


def availability_confidence(expected_discharges: int) -> ConfidenceLevel:
    for minimum, level in AVAILABILITY_CONFIDENCE:
        if expected_discharges >= minimum:
            return level
    return ConfidenceLevel.LOW
