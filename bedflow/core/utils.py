"""
Small helpers shared across the engines.
"""

import math
from datetime import datetime, timezone
from statistics import median
from typing import Callable, Iterable, List, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the store keeps naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def ceil_div(numerator: float, denominator: float) -> int:
    """Ceiling division; zero denominators yield zero."""
    if denominator <= 0:
        return 0
    return int(math.ceil(numerator / denominator))


def safe_mean(values: Iterable[float]) -> Optional[float]:
    items: List[float] = list(values)
    if not items:
        return None
    return sum(items) / len(items)


def safe_median(values: Iterable[float]) -> Optional[float]:
    items = list(values)
    if not items:
        return None
    return float(median(items))


def round_or_none(value: Optional[float], digits: int = 1) -> Optional[float]:
    return None if value is None else round(value, digits)


def percentage(part: float, whole: float, digits: int = 1) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, digits)
