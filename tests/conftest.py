import os
from datetime import date

# Keep the module-level engine off the developer's database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import BlockedTimeRecord, JobRecord, WorkerRecord
from factories import PROVIDER_ID


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seed(db_session):
    """Insert records for a provider and commit"""

    class Seeder:
        def worker(self, worker_id, first_name="Alex", provider_id=PROVIDER_ID, status="active"):
            record = WorkerRecord(
                id=worker_id, provider_id=provider_id, first_name=first_name, last_name="Smith", status=status
            )
            db_session.add(record)
            db_session.commit()
            return record

        def job(self, job_id, start, end, workers=(), status="scheduled", provider_id=PROVIDER_ID, **extra):
            record = JobRecord(
                id=job_id,
                provider_id=provider_id,
                customer_name=f"Customer {job_id}",
                service_type="standard",
                start_time=start,
                end_time=end,
                status=status,
                assigned_worker_ids=list(workers),
                **extra,
            )
            db_session.add(record)
            db_session.commit()
            return record

        def block(
            self,
            from_date: date,
            to_date: date = None,
            start_time=None,
            end_time=None,
            workers=(),
            provider_id=PROVIDER_ID,
        ):
            record = BlockedTimeRecord(
                provider_id=provider_id,
                from_date=from_date,
                to_date=to_date or from_date,
                start_time=start_time,
                end_time=end_time,
                reason="Unavailable",
                blocked_worker_ids=list(workers),
            )
            db_session.add(record)
            db_session.commit()
            return record

    return Seeder()
