"""Scheduling service - snapshot loading, engine calls and the reschedule transaction"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from .blocked import project_blocks_for_day
from .capacity import compute_daily_stats, compute_monthly_stats, compute_weekly_stats
from .errors import NotFound, PersistenceFailed, SchedulingError
from .repository import SchedulingRepository
from .reschedule import validate_and_build_move, validate_status_transition
from .schemas import (
    BlockedInterval,
    BlockedTime,
    DailyStats,
    DropTarget,
    Job,
    JobStatus,
    MonthlyStats,
    TimeslotTarget,
    UnassignedJob,
    WeeklyStats,
    Worker,
)
from .unassigned import build_unassigned_queue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulingContext:
    """Who the engine is working for; passed explicitly to every call"""

    provider_id: str


@dataclass(frozen=True)
class Snapshot:
    jobs: List[Job] = field(default_factory=list)
    blocked_times: List[BlockedTime] = field(default_factory=list)
    workers: List[Worker] = field(default_factory=list)

    def find_job(self, job_id: str) -> Job:
        for job in self.jobs:
            if job.id == job_id:
                return job
        raise NotFound(f"Job {job_id} not found", job_id=job_id)

    def find_worker(self, worker_id: str, job_id: Optional[str] = None) -> Worker:
        for worker in self.workers:
            if worker.id == worker_id:
                return worker
        raise NotFound(f"Worker {worker_id} not found", job_id=job_id)


class SchedulingService:
    """Service layer for calendar stats and rescheduling"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def fetch_snapshot(self, ctx: SchedulingContext) -> Snapshot:
        snapshot = Snapshot(
            jobs=self.repo.list_jobs(self.db, ctx.provider_id),
            blocked_times=self.repo.list_blocked_times(self.db, ctx.provider_id),
            workers=self.repo.list_workers(self.db, ctx.provider_id),
        )
        logger.debug(
            f"Snapshot for provider {ctx.provider_id}: {len(snapshot.jobs)} jobs, "
            f"{len(snapshot.blocked_times)} blocks, {len(snapshot.workers)} workers"
        )
        return snapshot

    # ========================================================================
    # READ VIEWS
    # ========================================================================

    def daily_stats(self, ctx: SchedulingContext, day: date) -> DailyStats:
        snapshot = self.fetch_snapshot(ctx)
        return compute_daily_stats(snapshot.jobs, snapshot.workers, day)

    def weekly_stats(self, ctx: SchedulingContext, week_start: date) -> WeeklyStats:
        snapshot = self.fetch_snapshot(ctx)
        return compute_weekly_stats(snapshot.jobs, snapshot.workers, week_start)

    def monthly_stats(self, ctx: SchedulingContext, month: date) -> MonthlyStats:
        snapshot = self.fetch_snapshot(ctx)
        return compute_monthly_stats(snapshot.jobs, snapshot.workers, month)

    def blocked_intervals(
        self, ctx: SchedulingContext, day: date, worker_id: Optional[str] = None
    ) -> List[BlockedInterval]:
        blocks = self.repo.list_blocked_times(self.db, ctx.provider_id)
        return project_blocks_for_day(blocks, day, worker_id)

    def unassigned_queue(self, ctx: SchedulingContext, now: datetime) -> List[UnassignedJob]:
        jobs = self.repo.list_jobs(self.db, ctx.provider_id)
        return build_unassigned_queue(jobs, now)

    # ========================================================================
    # RESCHEDULE TRANSACTION
    # ========================================================================

    def reschedule_job(self, ctx: SchedulingContext, job_id: str, target: DropTarget) -> Job:
        """
        Validate a drag-and-drop move against a fresh snapshot, then persist it.

        Nothing is written unless validation passes. The returned job is the
        stored state, never an optimistic copy; on PersistenceFailed the
        caller should re-fetch before trying again.
        """
        snapshot = self.fetch_snapshot(ctx)
        job = snapshot.find_job(job_id)
        if isinstance(target, TimeslotTarget) and target.workerId:
            snapshot.find_worker(target.workerId, job_id=job_id)

        try:
            proposal = validate_and_build_move(job, target, snapshot.blocked_times)
        except SchedulingError as e:
            logger.warning(f"⚠️ Move rejected for job {job_id}: {e.message}")
            raise

        updated = self._persist(
            ctx,
            job_id,
            {
                "start_time": proposal.new_start_time,
                "end_time": proposal.new_end_time,
                "assigned_worker_ids": proposal.new_assigned_worker_ids,
            },
            proposal.expected_version,
        )
        logger.info(
            f"✅ Job {job_id} moved to {updated.start_time.isoformat()}-{updated.end_time.isoformat()} "
            f"(workers: {updated.assigned_worker_ids or 'unassigned'})"
        )
        return updated

    def change_job_status(self, ctx: SchedulingContext, job_id: str, new_status: JobStatus) -> Job:
        snapshot = self.fetch_snapshot(ctx)
        job = snapshot.find_job(job_id)

        try:
            changed = validate_status_transition(job.status, new_status)
        except SchedulingError as e:
            logger.warning(f"⚠️ Status change rejected for job {job_id}: {e.message}")
            raise

        if not changed:
            return job

        updated = self._persist(ctx, job_id, {"status": new_status}, job.version)
        logger.info(f"✅ Job {job_id} transitioned: {job.status.value} → {updated.status.value}")
        return updated

    def _persist(
        self, ctx: SchedulingContext, job_id: str, changes: dict, expected_version: Optional[int]
    ) -> Job:
        try:
            return self.repo.update_job(self.db, ctx.provider_id, job_id, changes, expected_version)
        except PersistenceFailed as e:
            logger.error(f"❌ Persisting job {job_id} failed, snapshot must be re-fetched: {e.message}")
            raise
