"""Unassigned-jobs sidebar queue"""

from datetime import datetime, timedelta
from typing import List, Sequence

from .occupancy import job_sort_key
from .schemas import Job, JobStatus, UnassignedJob
from .time_windows import round_half_up

URGENT_WINDOW = timedelta(hours=2)


def job_priority(job: Job, now: datetime) -> str:
    """urgent: started or starting within 2 hours; today: later today; future: after today"""
    if job.start_time - now < URGENT_WINDOW:
        return "urgent"
    if job.start_date == now.date():
        return "today"
    return "future"


def build_unassigned_queue(jobs: Sequence[Job], now: datetime) -> List[UnassignedJob]:
    """Open jobs with nobody assigned, soonest first"""
    queue = []
    for job in sorted(jobs, key=job_sort_key):
        if job.is_assigned or job.status in (JobStatus.CANCELLED, JobStatus.COMPLETED):
            continue
        queue.append(
            UnassignedJob(
                id=job.id,
                customerName=job.customer_name,
                serviceType=job.service_type,
                startTime=job.start_time,
                endTime=job.end_time,
                durationHours=round_half_up(job.duration_hours, 1),
                status=job.status,
                estimatedValue=job.estimated_value,
                priority=job_priority(job, now),
            )
        )
    return queue
