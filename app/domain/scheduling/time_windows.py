"""
Time-window utilities shared by the scheduling engine.

Hours of day are floats (13.5 == 13:30). Datetime intervals are half-open,
so a job ending at 10:00 and one starting at 10:00 do not overlap.
"""

import math
import re
from datetime import date, datetime, time
from typing import Iterable, List, Tuple

from .errors import InvalidInterval

# Visible calendar window (7:00 - 20:00)
VISIBLE_START_HOUR = 7
VISIBLE_END_HOUR = 20

_HHMM_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

Interval = Tuple[datetime, datetime]


def duration_hours(start: datetime, end: datetime) -> float:
    """Length of [start, end) in hours; raises InvalidInterval if end <= start"""
    if end <= start:
        raise InvalidInterval(f"Interval end {end.isoformat()} is not after start {start.isoformat()}")
    return (end - start).total_seconds() / 3600


def clamp_hour(
    hour: float, min_hour: float = VISIBLE_START_HOUR, max_hour: float = VISIBLE_END_HOUR
) -> float:
    return max(min_hour, min(hour, max_hour))


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """True iff the two half-open intervals share any time; works for datetimes and hours"""
    return a_start < b_end and b_start < a_end


def overlap_minutes(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> float:
    if not overlaps(a_start, a_end, b_start, b_end):
        return 0.0
    return (min(a_end, b_end) - max(a_start, b_start)).total_seconds() / 60


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Union of intervals, sorted by start.

    Touching intervals (one ends exactly when the next starts) are merged too,
    which keeps booked-time totals free of zero-length gaps.
    """
    merged: List[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def parse_hhmm(value: str) -> float:
    """Parse an HH:MM string into fractional hours"""
    match = _HHMM_RE.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    return int(match.group(1)) + int(match.group(2)) / 60


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the dashboard does (2.5 -> 3), unlike Python's banker's rounding"""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def is_visible_hour(hour: int) -> bool:
    return VISIBLE_START_HOUR <= hour <= VISIBLE_END_HOUR


def at_hour(day: date, hour: int, tzinfo=None) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=tzinfo)
