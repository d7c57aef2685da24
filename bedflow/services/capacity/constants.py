"""
Capacity forecasting tables.
"""

from typing import Dict, NamedTuple, Tuple

from bedflow.models.base.enums import ConfidenceLevel

FORECAST_HORIZONS: Tuple[int, ...] = (24, 48, 72)
FORECAST_INTERVAL_HOURS = 6

# Daily snapshots consulted for forecast confidence
HISTORY_DAYS = 90
DAYS_PER_MONTH = 30

# Forecast confidence: (minimum history points, share of the horizon covered)
HIGH_CONFIDENCE_POINTS = 60
MEDIUM_CONFIDENCE_POINTS = 30

HIGH_OCCUPANCY_FACTOR = 90
MODERATE_OCCUPANCY_FACTOR = 75
LOW_OCCUPANCY_FACTOR = 50
BUSINESS_HOURS = (8, 17)

TREND_THRESHOLD = 0.10
PATTERN_DAY_COUNT = 3

STAFFING_HIGH_OCCUPANCY = 85

SHIFT_MULTIPLIERS: Dict[str, float] = {
    "day": 1.0,
    "evening": 0.9,
    "night": 0.8,
}


class StaffingRatio(NamedTuple):
    patients_per_nurse: int
    patients_per_doctor: int
    patients_per_support: int


STAFFING_RATIOS: Dict[str, StaffingRatio] = {
    "ICU": StaffingRatio(2, 8, 6),
    "Emergency": StaffingRatio(4, 10, 8),
    "Medical": StaffingRatio(6, 15, 10),
    "Surgical": StaffingRatio(5, 12, 8),
    "Pediatric": StaffingRatio(4, 12, 8),
}
DEFAULT_STAFFING_RATIO = StaffingRatio(6, 15, 10)

SURGE_BEDS_PER_STAFF = 4
CRITICAL_CARE_UNITS = ("ICU",)


def forecast_confidence(data_points: int, interval: int, total_intervals: int) -> ConfidenceLevel:
    """More history and nearer checkpoints earn higher confidence."""
    if data_points > HIGH_CONFIDENCE_POINTS and interval <= total_intervals / 3:
        return ConfidenceLevel.HIGH
    if data_points > MEDIUM_CONFIDENCE_POINTS and interval <= total_intervals * 2 / 3:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def staffing_ratio(unit_type: str) -> StaffingRatio:
    return STAFFING_RATIOS.get(unit_type, DEFAULT_STAFFING_RATIO)


def surge_equipment(unit_type: str, beds: int) -> list:
    equipment = [
        f"{beds} patient monitors",
        f"{beds} IV pumps",
        f"{beds} oxygen delivery systems",
    ]
    if unit_type in CRITICAL_CARE_UNITS:
        equipment.extend([f"{beds} ventilators", f"{beds} cardiac monitors"])
    return equipment


def surge_supplies(beds: int) -> list:
    return [
        f"{beds * 3} sets of linens",
        f"{beds * 5} IV start kits",
        f"{beds * 10} medication doses",
        "Additional PPE supplies",
        "Emergency medications",
    ]
