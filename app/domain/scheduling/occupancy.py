"""Occupancy index - jobs grouped by calendar slot and by worker"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .schemas import Job

SlotKey = Tuple[date, int]


def job_sort_key(job: Job):
    return (job.start_time, job.end_time, job.id)


class OccupancyIndex:
    """
    Lookup structure rebuilt from each snapshot.

    by_slot holds every job in the period keyed by (start date, start hour);
    by_worker holds each worker's non-cancelled jobs sorted by start time.
    """

    def __init__(self, by_slot: Dict[SlotKey, List[Job]], by_worker: Dict[str, List[Job]], jobs: List[Job]):
        self.by_slot = by_slot
        self.by_worker = by_worker
        self.jobs = jobs

    @classmethod
    def build(
        cls,
        jobs: Iterable[Job],
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> "OccupancyIndex":
        """Index jobs whose start date falls in [period_start, period_end)"""
        selected = sorted(
            (
                job
                for job in jobs
                if (period_start is None or job.start_date >= period_start)
                and (period_end is None or job.start_date < period_end)
            ),
            key=job_sort_key,
        )

        by_slot: Dict[SlotKey, List[Job]] = defaultdict(list)
        by_worker: Dict[str, List[Job]] = defaultdict(list)
        for job in selected:
            by_slot[(job.start_date, job.start_time.hour)].append(job)
            if job.is_cancelled:
                continue
            for worker_id in job.assigned_worker_ids:
                by_worker[worker_id].append(job)

        return cls(dict(by_slot), dict(by_worker), selected)

    def jobs_at(self, day: date, hour: int) -> List[Job]:
        return self.by_slot.get((day, hour), [])

    def jobs_for_worker(self, worker_id: str) -> List[Job]:
        return self.by_worker.get(worker_id, [])

    @property
    def worker_ids(self) -> List[str]:
        return sorted(self.by_worker)

    def active_jobs(self) -> List[Job]:
        return [job for job in self.jobs if not job.is_cancelled]

    def unassigned_jobs(self) -> List[Job]:
        return [job for job in self.jobs if not job.is_cancelled and not job.is_assigned]
