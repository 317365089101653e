"""
Conflict detection.

Each worker's jobs are sorted by start time and only consecutive pairs are
compared. Three mutually overlapping jobs therefore report two conflicts
(A-B and B-C), and a long job that overlaps a non-adjacent later job is only
reported through its adjacent neighbours.
"""

from dataclasses import dataclass, field
from typing import List, Set

from .occupancy import OccupancyIndex
from .schemas import ConflictPair
from .time_windows import overlap_minutes, overlaps


@dataclass(frozen=True)
class ConflictReport:
    pairs: List[ConflictPair] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.pairs)

    def for_worker(self, worker_id: str) -> List[ConflictPair]:
        return [pair for pair in self.pairs if pair.workerId == worker_id]

    def conflicting_job_ids(self) -> Set[str]:
        ids = set()
        for pair in self.pairs:
            ids.add(pair.jobAId)
            ids.add(pair.jobBId)
        return ids


def detect_conflicts(index: OccupancyIndex) -> ConflictReport:
    pairs = []
    for worker_id in index.worker_ids:
        jobs = index.jobs_for_worker(worker_id)
        for current, following in zip(jobs, jobs[1:]):
            if overlaps(current.start_time, current.end_time, following.start_time, following.end_time):
                pairs.append(
                    ConflictPair(
                        workerId=worker_id,
                        jobAId=current.id,
                        jobBId=following.id,
                        overlapMinutes=overlap_minutes(
                            current.start_time, current.end_time, following.start_time, following.end_time
                        ),
                    )
                )
    return ConflictReport(pairs=pairs)
