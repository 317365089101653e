"""
Blocked-interval projection.

Every calendar view (day, week, worker profile) projects blocked time through
project_blocked_interval so the clamping rules live in one place.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from .schemas import BlockedInterval, BlockedTime
from .time_windows import VISIBLE_END_HOUR, VISIBLE_START_HOUR, clamp_hour, overlaps, parse_hhmm

logger = logging.getLogger(__name__)

END_OF_DAY_HOUR = 24


def sunday_based_weekday(query_date: date) -> int:
    """Weekday numbered the way recurring blocks store it: 0 = Sunday, 6 = Saturday"""
    return (query_date.weekday() + 1) % 7


def block_covers_date(block: BlockedTime, query_date: date) -> bool:
    """Date range (and weekly recurrence, when set) includes the query date"""
    if not block.from_date <= query_date <= block.to_date:
        return False
    if block.recurring_days_of_week is not None:
        if block.recurring_ends_on is not None and query_date > block.recurring_ends_on:
            return False
        return sunday_based_weekday(query_date) in block.recurring_days_of_week
    return True


def block_applies_to_worker(block: BlockedTime, worker_id: Optional[str]) -> bool:
    """Provider-wide blocks apply to everyone; scoped blocks only to listed workers"""
    if block.is_provider_wide:
        return True
    return worker_id is not None and worker_id in block.blocked_worker_ids


def block_hours(block: BlockedTime) -> Tuple[float, float]:
    """Unclamped start and end hour of a timed block; 00:00 as an end means midnight"""
    start_hour = parse_hhmm(block.start_time)
    end_hour = parse_hhmm(block.end_time)
    if end_hour == 0:
        end_hour = END_OF_DAY_HOUR
    return start_hour, end_hour


def project_blocked_interval(block: BlockedTime, query_date: date) -> Optional[BlockedInterval]:
    """
    Project a blocked-time record onto the visible window of one day.

    Returns None when the block does not cover the date, or when clamping to
    the visible window leaves nothing (e.g. an evening block from 22:00-23:00).
    A block without start or end time covers the whole visible window.
    """
    if not block_covers_date(block, query_date):
        return None

    if block.is_all_day:
        return BlockedInterval(
            startHour=VISIBLE_START_HOUR,
            endHour=VISIBLE_END_HOUR,
            isAllDay=True,
            blockId=block.id,
            reason=block.reason,
        )

    start_hour, end_hour = block_hours(block)
    start_hour = clamp_hour(start_hour)
    end_hour = clamp_hour(end_hour)
    if end_hour <= start_hour:
        logger.debug(
            f"Blocked time {block.id} ({block.start_time}-{block.end_time}) is outside the visible window"
        )
        return None

    return BlockedInterval(
        startHour=start_hour,
        endHour=end_hour,
        isAllDay=False,
        blockId=block.id,
        reason=block.reason,
    )


def project_blocks_for_day(
    blocks: Iterable[BlockedTime], query_date: date, worker_id: Optional[str] = None
) -> List[BlockedInterval]:
    """All blocked intervals to render for a day (optionally in one worker's row)"""
    intervals = []
    for block in blocks:
        if not block_applies_to_worker(block, worker_id):
            continue
        interval = project_blocked_interval(block, query_date)
        if interval is not None:
            intervals.append(interval)
    return sorted(intervals, key=lambda i: (i.startHour, i.endHour))


def is_hour_blocked(
    blocks: Iterable[BlockedTime],
    query_date: date,
    hour: int,
    worker_ids: Sequence[str] = (),
) -> bool:
    """
    Whether the hour slot [hour, hour + 1) on query_date is blocked.

    With no worker ids only provider-wide blocks are considered; otherwise a
    block counts when it applies to any of the given workers. Timed blocks are
    compared unclamped, so the closing 20:00 slot is blocked by anything that
    runs past 20:00.
    """
    candidates = list(worker_ids) or [None]
    for block in blocks:
        if not any(block_applies_to_worker(block, worker_id) for worker_id in candidates):
            continue
        if not block_covers_date(block, query_date):
            continue
        # All-day blocks cover every visible slot, including the closing hour
        if block.is_all_day:
            return True
        start_hour, end_hour = block_hours(block)
        if overlaps(hour, hour + 1, start_hour, end_hour):
            return True
    return False
