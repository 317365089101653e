"""Scheduling repository - Database reads for snapshots and the single job write"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import BlockedTimeRecord, JobRecord, WorkerRecord
from .errors import NotFound, PersistenceFailed, StaleSnapshot
from .schemas import BlockedTime, Job, JobStatus, Worker

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"start_time", "end_time", "assigned_worker_ids", "status"}


class SchedulingRepository:
    """Repository for the records the scheduling engine reads"""

    @staticmethod
    def list_jobs(db: Session, provider_id: str) -> list[Job]:
        """Get all jobs for a provider, earliest first"""
        records = (
            db.query(JobRecord)
            .filter(JobRecord.provider_id == provider_id)
            .order_by(JobRecord.start_time, JobRecord.id)
            .all()
        )
        return [Job.model_validate(record) for record in records]

    @staticmethod
    def list_blocked_times(db: Session, provider_id: str) -> list[BlockedTime]:
        records = (
            db.query(BlockedTimeRecord)
            .filter(BlockedTimeRecord.provider_id == provider_id)
            .order_by(BlockedTimeRecord.from_date)
            .all()
        )
        return [BlockedTime.model_validate(record) for record in records]

    @staticmethod
    def list_workers(db: Session, provider_id: str) -> list[Worker]:
        """Get active team members"""
        records = (
            db.query(WorkerRecord)
            .filter(WorkerRecord.provider_id == provider_id, WorkerRecord.status == "active")
            .order_by(WorkerRecord.role, WorkerRecord.first_name)
            .all()
        )
        return [Worker.model_validate(record) for record in records]

    @staticmethod
    def update_job(
        db: Session,
        provider_id: str,
        job_id: str,
        changes: dict,
        expected_version: Optional[int] = None,
    ) -> Job:
        """
        Apply changes to a job in one transaction.

        When expected_version is given the write only succeeds if nobody else
        updated the job since it was read; otherwise StaleSnapshot is raised
        and nothing changes.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated through the scheduler: {sorted(unknown)}")

        values = {
            key: value.value if isinstance(value, JobStatus) else value for key, value in changes.items()
        }
        values["version"] = JobRecord.version + 1

        try:
            query = db.query(JobRecord).filter(
                JobRecord.id == job_id, JobRecord.provider_id == provider_id
            )
            if expected_version is not None:
                query = query.filter(JobRecord.version == expected_version)

            updated = query.update(values, synchronize_session=False)
            if not updated:
                db.rollback()
                exists = (
                    db.query(JobRecord.id)
                    .filter(JobRecord.id == job_id, JobRecord.provider_id == provider_id)
                    .first()
                )
                if exists is None:
                    raise NotFound(f"Job {job_id} not found", job_id=job_id)
                raise StaleSnapshot(
                    f"Job {job_id} was changed by someone else; refresh and try again", job_id=job_id
                )

            db.commit()
            record = (
                db.query(JobRecord)
                .filter(JobRecord.id == job_id, JobRecord.provider_id == provider_id)
                .one()
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to update job {job_id}: {e}")
            raise PersistenceFailed(f"Could not save job {job_id}", job_id=job_id) from e

        return Job.model_validate(record)
