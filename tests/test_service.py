from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.scheduling.errors import NotFound, PersistenceFailed, SlotUnavailable, StaleSnapshot
from app.domain.scheduling.repository import SchedulingRepository
from app.domain.scheduling.schemas import JobStatus, TimeslotTarget, UnassignedTarget
from app.domain.scheduling.service import SchedulingContext, SchedulingService
from app.models import JobRecord
from factories import PROVIDER_ID

CTX = SchedulingContext(provider_id=PROVIDER_ID)
MONDAY = date(2024, 3, 4)
TUESDAY = date(2024, 3, 5)


@pytest.fixture
def service(db_session):
    return SchedulingService(db_session)


def stored(db_session, job_id):
    db_session.expire_all()
    return db_session.query(JobRecord).filter(JobRecord.id == job_id).one()


def test_snapshot_is_scoped_to_provider(service, seed):
    seed.worker("w1")
    seed.worker("w-off", status="inactive")
    seed.worker("other-worker", provider_id="provider-2")
    seed.job("j1", datetime(2024, 3, 4, 9), datetime(2024, 3, 4, 10), ["w1"])
    seed.job("other", datetime(2024, 3, 4, 9), datetime(2024, 3, 4, 10), provider_id="provider-2")
    seed.block(MONDAY)

    snapshot = service.fetch_snapshot(CTX)

    assert [job.id for job in snapshot.jobs] == ["j1"]
    assert [worker.id for worker in snapshot.workers] == ["w1"]
    assert len(snapshot.blocked_times) == 1


def test_reschedule_persists_and_bumps_version(service, seed, db_session):
    seed.worker("w2")
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), ["w1"])

    job = service.reschedule_job(CTX, "j1", TimeslotTarget(date=TUESDAY, hour=14, workerId="w2"))

    assert job.start_time == datetime(2024, 3, 5, 14)
    assert job.end_time == datetime(2024, 3, 5, 16)
    assert job.assigned_worker_ids == ["w2"]
    assert job.version == 1
    record = stored(db_session, "j1")
    assert record.start_time == datetime(2024, 3, 5, 14)
    assert record.assigned_worker_ids == ["w2"]


def test_unassign_keeps_time(service, seed):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), ["w1"])

    job = service.reschedule_job(CTX, "j1", UnassignedTarget())

    assert job.assigned_worker_ids == []
    assert job.start_time == datetime(2024, 3, 4, 10)


def test_rejected_move_writes_nothing(service, seed, db_session):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), ["w1"])
    seed.block(TUESDAY, start_time="13:00", end_time="15:00", workers=["w1"])

    with pytest.raises(SlotUnavailable):
        service.reschedule_job(CTX, "j1", TimeslotTarget(date=TUESDAY, hour=14))

    record = stored(db_session, "j1")
    assert record.start_time == datetime(2024, 3, 4, 10)
    assert record.version == 0


def test_move_to_unknown_worker_is_not_found(service, seed, db_session):
    seed.worker("w1")
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), ["w1"])

    with pytest.raises(NotFound) as exc_info:
        service.reschedule_job(CTX, "j1", TimeslotTarget(date=TUESDAY, hour=14, workerId="ghost"))

    assert exc_info.value.job_id == "j1"
    record = stored(db_session, "j1")
    assert record.assigned_worker_ids == ["w1"]
    assert record.version == 0


def test_unknown_job(service):
    with pytest.raises(NotFound):
        service.reschedule_job(CTX, "missing", UnassignedTarget())


def test_other_providers_job_is_not_found(service, seed):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), provider_id="provider-2")
    with pytest.raises(NotFound):
        service.change_job_status(CTX, "j1", JobStatus.DISPATCHED)


def test_status_change(service, seed):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12))

    job = service.change_job_status(CTX, "j1", JobStatus.DISPATCHED)

    assert job.status == JobStatus.DISPATCHED
    assert job.version == 1


def test_same_status_does_not_write(service, seed, db_session):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), status="dispatched")

    job = service.change_job_status(CTX, "j1", JobStatus.DISPATCHED)

    assert job.version == 0
    assert stored(db_session, "j1").version == 0


def test_stale_version_is_rejected(seed, db_session):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), version=2)

    with pytest.raises(StaleSnapshot) as exc_info:
        SchedulingRepository.update_job(
            db_session, PROVIDER_ID, "j1", {"status": JobStatus.DISPATCHED}, expected_version=1
        )

    assert isinstance(exc_info.value, PersistenceFailed)
    record = stored(db_session, "j1")
    assert record.status == "scheduled"
    assert record.version == 2


def test_update_of_missing_job(db_session):
    with pytest.raises(NotFound):
        SchedulingRepository.update_job(db_session, PROVIDER_ID, "missing", {"status": "dispatched"})


def test_update_rejects_other_fields(seed, db_session):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12))
    with pytest.raises(ValueError):
        SchedulingRepository.update_job(db_session, PROVIDER_ID, "j1", {"actual_value": 10})


def test_database_failure_becomes_persistence_failed(service, seed, db_session, monkeypatch):
    seed.job("j1", datetime(2024, 3, 4, 10), datetime(2024, 3, 4, 12), ["w1"])

    def failing_commit():
        raise OperationalError("UPDATE jobs", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(PersistenceFailed) as exc_info:
        service.reschedule_job(CTX, "j1", TimeslotTarget(date=TUESDAY, hour=14))

    assert not isinstance(exc_info.value, StaleSnapshot)
    monkeypatch.undo()
    record = stored(db_session, "j1")
    assert record.start_time == datetime(2024, 3, 4, 10)
    assert record.version == 0
