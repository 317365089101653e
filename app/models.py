import uuid

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique opaque identifier"""
    return str(uuid.uuid4())


class WorkerRecord(Base):
    """Team member that can be assigned to jobs"""

    __tablename__ = "workers"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    provider_id = Column(String(64), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    role = Column(String(50), nullable=False, default="field")  # owner, manager, field
    status = Column(String(20), nullable=False, default="active", index=True)  # active, inactive

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class JobRecord(Base):
    """Scheduled unit of field work"""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    provider_id = Column(String(64), nullable=False, index=True)

    customer_name = Column(String(255), nullable=True)
    service_type = Column(String(100), nullable=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    # Status workflow: scheduled → dispatched → on-the-way → in-progress → completed
    # cancelled can be reached from any non-terminal status
    status = Column(String(20), nullable=False, default="scheduled", index=True)

    # Worker ids; empty list means unassigned
    assigned_worker_ids = Column(JSON, nullable=False, default=list)

    estimated_value = Column(Float, nullable=True)
    actual_value = Column(Float, nullable=True)

    # Bumped on every write; used to reject writes based on a stale snapshot
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class BlockedTimeRecord(Base):
    """Provider- or worker-level unavailability window"""

    __tablename__ = "blocked_times"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    provider_id = Column(String(64), nullable=False, index=True)

    from_date = Column(Date, nullable=False)
    to_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=True)  # HH:MM format, null = all day
    end_time = Column(String(5), nullable=True)
    reason = Column(Text, nullable=True)

    # Empty list = whole provider is blocked
    blocked_worker_ids = Column(JSON, nullable=False, default=list)
    # Weekday numbers (Sunday = 0 ... Saturday = 6); null = every day in the range
    recurring_days_of_week = Column(JSON, nullable=True)
    # Last date a recurring block repeats on; null = never ends
    recurring_ends_on = Column(Date, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
