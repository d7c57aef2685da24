"""
Discharge readiness scoring tables.

Every deduction has a barrier of the same type, so the barrier list is
exactly the set of deductions that fired.
"""

from typing import Any, Dict, Tuple

from bedflow.models.base.enums import (
    BarrierCategory,
    BarrierSeverity,
    ConfidenceLevel,
    DischargeDestination,
    MobilityStatus,
    PriorityTier,
)

MEDICAL_WEIGHT = 0.6
SOCIAL_WEIGHT = 0.4

# ---------------------------------------------------------------------------
# Medical deductions
# ---------------------------------------------------------------------------

VITALS_LOOKBACK_HOURS = 24
VITALS_SAMPLE_LIMIT = 10

TEMPERATURE_RANGE = (36.0, 38.5)
HEART_RATE_RANGE = (50, 120)
SYSTOLIC_BP_RANGE = (90, 180)

UNSTABLE_VITALS_DEDUCTION = 30
PENDING_LAB_DEDUCTION = 5
PENDING_LAB_CAP = 20
MONITORED_MEDICATION_DEDUCTION = 10
MONITORED_MEDICATION_CAP = 30
MOBILITY_DEDUCTIONS: Dict[str, int] = {
    MobilityStatus.BEDBOUND.value: 20,
    MobilityStatus.WHEELCHAIR.value: 10,
}
HIGH_PAIN_THRESHOLD = 7
HIGH_PAIN_DEDUCTION = 15

# ---------------------------------------------------------------------------
# Social deductions
# ---------------------------------------------------------------------------

NO_DESTINATION_DEDUCTION = 40
SNF_UNARRANGED_DEDUCTION = 30
HOME_HEALTH_UNARRANGED_DEDUCTION = 25
TRANSPORT_UNARRANGED_DEDUCTION = 15
MED_REC_INCOMPLETE_DEDUCTION = 20
EDUCATION_INCOMPLETE_DEDUCTION = 15
NO_FOLLOW_UP_DEDUCTION = 10

REQUIRED_EDUCATION_TYPES: Tuple[str, ...] = ("discharge_instructions", "medication_education")
REQUIRED_EDUCATION_COUNT = 2

# Destination -> planning task that must be arranged
DESTINATION_PLANNING: Dict[str, Tuple[str, str, int]] = {
    DischargeDestination.SNF.value: ("snf_placement", "snf_placement", SNF_UNARRANGED_DEDUCTION),
    DischargeDestination.HOME_HEALTH.value: ("home_health", "home_health", HOME_HEALTH_UNARRANGED_DEDUCTION),
}
TRANSPORTATION_PLANNING_TYPE = "transportation"

# ---------------------------------------------------------------------------
# Barriers and interventions, keyed by barrier type
# ---------------------------------------------------------------------------

BARRIER_CATALOG: Dict[str, Dict[str, Any]] = {
    "unstable_vitals": {
        "category": BarrierCategory.MEDICAL,
        "severity": BarrierSeverity.HIGH,
        "delay_hours": 24,
    },
    "pending_labs": {
        "category": BarrierCategory.MEDICAL,
        "severity": BarrierSeverity.MEDIUM,
        "delay_hours": 12,
    },
    "monitored_medications": {
        "category": BarrierCategory.MEDICAL,
        "severity": BarrierSeverity.MEDIUM,
        "delay_hours": 12,
    },
    "limited_mobility": {
        "category": BarrierCategory.MEDICAL,
        "severity": BarrierSeverity.MEDIUM,
        "delay_hours": 24,
    },
    "uncontrolled_pain": {
        "category": BarrierCategory.MEDICAL,
        "severity": BarrierSeverity.MEDIUM,
        "delay_hours": 12,
    },
    "no_destination": {
        "category": BarrierCategory.SOCIAL,
        "severity": BarrierSeverity.CRITICAL,
        "delay_hours": 48,
    },
    "snf_placement": {
        "category": BarrierCategory.SOCIAL,
        "severity": BarrierSeverity.HIGH,
        "delay_hours": 72,
    },
    "home_health": {
        "category": BarrierCategory.SOCIAL,
        "severity": BarrierSeverity.HIGH,
        "delay_hours": 24,
    },
    "transportation": {
        "category": BarrierCategory.SOCIAL,
        "severity": BarrierSeverity.MEDIUM,
        "delay_hours": 6,
    },
    "medication_reconciliation": {
        "category": BarrierCategory.ADMINISTRATIVE,
        "severity": BarrierSeverity.MEDIUM,
        "delay_hours": 6,
    },
    "patient_education": {
        "category": BarrierCategory.ADMINISTRATIVE,
        "severity": BarrierSeverity.LOW,
        "delay_hours": 4,
    },
    "follow_up_appointment": {
        "category": BarrierCategory.ADMINISTRATIVE,
        "severity": BarrierSeverity.LOW,
        "delay_hours": 2,
    },
}

INTERVENTION_CATALOG: Dict[str, Dict[str, Any]] = {
    "unstable_vitals": {
        "intervention_type": "medical_treatment",
        "description": "Stabilize vital signs and monitor q4h",
        "assigned_to": "nursing_staff",
        "priority": PriorityTier.HIGH,
    },
    "pending_labs": {
        "intervention_type": "lab_follow_up",
        "description": "Follow up on pending lab results with laboratory",
        "assigned_to": "case_manager",
        "priority": PriorityTier.MEDIUM,
    },
    "monitored_medications": {
        "intervention_type": "medication_review",
        "description": "Review monitored medications for transition to oral or home regimen",
        "assigned_to": "nursing_staff",
        "priority": PriorityTier.MEDIUM,
    },
    "limited_mobility": {
        "intervention_type": "equipment_coordination",
        "description": "Arrange mobility assessment and durable medical equipment",
        "assigned_to": "case_manager",
        "priority": PriorityTier.MEDIUM,
    },
    "uncontrolled_pain": {
        "intervention_type": "pain_management",
        "description": "Adjust pain management plan and reassess within 4 hours",
        "assigned_to": "nursing_staff",
        "priority": PriorityTier.HIGH,
    },
    "no_destination": {
        "intervention_type": "discharge_planning",
        "description": "Meet with patient/family to determine discharge destination",
        "assigned_to": "social_worker",
        "priority": PriorityTier.URGENT,
    },
    "snf_placement": {
        "intervention_type": "placement_coordination",
        "description": "Contact SNF facilities for placement availability",
        "assigned_to": "case_manager",
        "priority": PriorityTier.HIGH,
    },
    "home_health": {
        "intervention_type": "home_health_referral",
        "description": "Submit home health referral and confirm start of care",
        "assigned_to": "case_manager",
        "priority": PriorityTier.HIGH,
    },
    "transportation": {
        "intervention_type": "transportation_arrangement",
        "description": "Arrange medical transportation for discharge",
        "assigned_to": "case_manager",
        "priority": PriorityTier.MEDIUM,
    },
    "medication_reconciliation": {
        "intervention_type": "administrative_resolution",
        "description": "Complete discharge medication reconciliation",
        "assigned_to": "nursing_staff",
        "priority": PriorityTier.HIGH,
    },
    "patient_education": {
        "intervention_type": "patient_education",
        "description": "Complete discharge and medication teaching with patient",
        "assigned_to": "nursing_staff",
        "priority": PriorityTier.MEDIUM,
    },
    "follow_up_appointment": {
        "intervention_type": "appointment_scheduling",
        "description": "Schedule follow-up appointment before discharge",
        "assigned_to": "case_manager",
        "priority": PriorityTier.MEDIUM,
    },
}

# ---------------------------------------------------------------------------
# Discharge date bands and confidence
# ---------------------------------------------------------------------------

# (minimum overall score, hours until discharge), highest first
DISCHARGE_TIME_BANDS: Tuple[Tuple[float, int], ...] = (
    (90, 6),
    (80, 12),
    (70, 24),
    (60, 48),
)
DEFAULT_DISCHARGE_HOURS = 72

HIGH_CONFIDENCE = (80, 0)    # (min score, max unresolved barriers)
MEDIUM_CONFIDENCE = (60, 2)


def band_hours(score: float) -> int:
    for minimum, hours in DISCHARGE_TIME_BANDS:
        if score >= minimum:
            return hours
    return DEFAULT_DISCHARGE_HOURS


def readiness_confidence(score: float, unresolved_barriers: int) -> ConfidenceLevel:
    if score >= HIGH_CONFIDENCE[0] and unresolved_barriers <= HIGH_CONFIDENCE[1]:
        return ConfidenceLevel.HIGH
    if score >= MEDIUM_CONFIDENCE[0] and unresolved_barriers <= MEDIUM_CONFIDENCE[1]:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
