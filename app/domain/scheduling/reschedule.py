"""
Job lifecycle transitions and drag-and-drop move validation.

Job statuses: scheduled → dispatched → on-the-way → in-progress → completed
'cancelled' can be set from any non-terminal status.
'completed' and 'cancelled' are terminal.
"""

import logging
from typing import Dict, FrozenSet, Sequence

from .blocked import is_hour_blocked
from .errors import InvalidTransition, SlotUnavailable
from .schemas import BlockedTime, DropTarget, Job, JobStatus, MoveProposal, TimeslotTarget, UnassignedTarget
from .time_windows import VISIBLE_END_HOUR, VISIBLE_START_HOUR, at_hour, is_visible_hour

logger = logging.getLogger(__name__)

# Single source of truth for status changes; every view validates through it
ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.SCHEDULED: frozenset({JobStatus.DISPATCHED, JobStatus.CANCELLED}),
    JobStatus.DISPATCHED: frozenset({JobStatus.ON_THE_WAY, JobStatus.CANCELLED}),
    JobStatus.ON_THE_WAY: frozenset({JobStatus.IN_PROGRESS, JobStatus.CANCELLED}),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED}),
    JobStatus.COMPLETED: frozenset(),  # Terminal state
    JobStatus.CANCELLED: frozenset(),  # Terminal state
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATUSES


def validate_status_transition(current_status: JobStatus, new_status: JobStatus) -> bool:
    """
    Check a status change against the lifecycle.

    Returns False when the status is unchanged (nothing to persist), True for
    a legal single forward step or a cancellation. Raises InvalidTransition
    for anything else: moving backwards, skipping steps, leaving a terminal
    status.
    """
    if current_status == new_status:
        return False

    if new_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransition(
            f"Cannot change job status from '{current_status.value}' to '{new_status.value}'"
        )
    return True


def validate_and_build_move(
    job: Job, target: DropTarget, blocked_times: Sequence[BlockedTime] = ()
) -> MoveProposal:
    """
    Turn a drop onto the calendar into the job's proposed next state.

    The job itself is never modified. A timeslot drop keeps the job's length:
    the new window starts at the dropped hour and runs for the original
    duration. Dropping into a worker's row replaces the assignment with that
    worker alone; dropping onto the unassigned sidebar clears it and keeps
    the time window.
    """
    if is_terminal(job.status):
        raise InvalidTransition(f"Job is {job.status.value} and can no longer be moved", job_id=job.id)

    if isinstance(target, UnassignedTarget):
        return MoveProposal(
            job_id=job.id,
            new_start_time=job.start_time,
            new_end_time=job.end_time,
            new_assigned_worker_ids=[],
            expected_version=job.version,
        )

    if not isinstance(target, TimeslotTarget):
        raise TypeError(f"Unsupported drop target: {target!r}")

    if not is_visible_hour(target.hour):
        raise SlotUnavailable(
            f"{target.hour}:00 is outside working hours ({VISIBLE_START_HOUR}:00-{VISIBLE_END_HOUR}:00)",
            job_id=job.id,
        )

    worker_ids = [target.workerId] if target.workerId else list(job.assigned_worker_ids)
    if is_hour_blocked(blocked_times, target.date, target.hour, worker_ids):
        raise SlotUnavailable(
            f"{target.date.isoformat()} {target.hour}:00 is blocked", job_id=job.id
        )

    job_duration = job.end_time - job.start_time
    new_start_time = at_hour(target.date, target.hour, tzinfo=job.start_time.tzinfo)

    logger.debug(f"Move for job {job.id} validated: {job.start_time} -> {new_start_time}")

    return MoveProposal(
        job_id=job.id,
        new_start_time=new_start_time,
        new_end_time=new_start_time + job_duration,
        new_assigned_worker_ids=worker_ids,
        expected_version=job.version,
    )
