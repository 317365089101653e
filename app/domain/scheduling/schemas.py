"""Scheduling domain schemas - Pydantic models for snapshots, drop targets and stats"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidInterval
from .time_windows import duration_hours, parse_hhmm


class JobStatus(str, Enum):
    SCHEDULED = "scheduled"
    DISPATCHED = "dispatched"
    ON_THE_WAY = "on-the-way"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SnapshotSchema(BaseModel):
    """
    Read-only records handed to the engine.

    Attributes mirror the snake_case columns so rows validate directly;
    they are serialized camelCase like every other payload.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True, frozen=True
    )


# ============================================================================
# SNAPSHOT RECORDS
# ============================================================================


class Worker(SnapshotSchema):
    id: str
    first_name: str
    last_name: str = ""
    role: str = "field"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Job(SnapshotSchema):
    id: str
    customer_name: Optional[str] = None
    service_type: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: JobStatus = JobStatus.SCHEDULED
    assigned_worker_ids: List[str] = Field(default_factory=list)
    estimated_value: Optional[float] = None
    actual_value: Optional[float] = None
    version: int = 0

    @field_validator("assigned_worker_ids", mode="before")
    @classmethod
    def dedupe_worker_ids(cls, v):
        if v is None:
            return []
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_interval(self):
        if self.end_time <= self.start_time:
            raise InvalidInterval(
                f"Job {self.id} ends at {self.end_time.isoformat()}, "
                f"which is not after its start {self.start_time.isoformat()}",
                job_id=self.id,
            )
        return self

    @property
    def is_cancelled(self) -> bool:
        return self.status == JobStatus.CANCELLED

    @property
    def is_assigned(self) -> bool:
        return bool(self.assigned_worker_ids)

    @property
    def start_date(self) -> date:
        return self.start_time.date()

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.start_time, self.end_time)

    @property
    def billable_value(self) -> float:
        """Actual value when recorded, otherwise the estimate"""
        if self.actual_value is not None:
            return self.actual_value
        return self.estimated_value or 0.0


class BlockedTime(SnapshotSchema):
    id: Optional[str] = None
    from_date: date
    to_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None
    blocked_worker_ids: List[str] = Field(default_factory=list)
    recurring_days_of_week: Optional[List[int]] = None  # 0 = Sunday ... 6 = Saturday
    recurring_ends_on: Optional[date] = None

    @field_validator("from_date", "to_date", "recurring_ends_on", mode="before")
    @classmethod
    def coerce_datetime(cls, v):
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_of_day(cls, v):
        if v is None or not v.strip():
            return None
        parse_hhmm(v)
        return v.strip()

    @field_validator("blocked_worker_ids", mode="before")
    @classmethod
    def default_worker_ids(cls, v):
        return [] if v is None else v

    @field_validator("recurring_days_of_week")
    @classmethod
    def validate_weekdays(cls, v):
        if v is not None and any(day < 0 or day > 6 for day in v):
            raise ValueError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
        return v

    @model_validator(mode="after")
    def check_range(self):
        if self.from_date > self.to_date:
            raise InvalidInterval(
                f"Blocked time ends on {self.to_date}, before it starts on {self.from_date}"
            )
        return self

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None or self.end_time is None

    @property
    def is_provider_wide(self) -> bool:
        return not self.blocked_worker_ids


class BlockedInterval(BaseModel):
    """A blocked-time record projected onto one day of the visible window"""

    startHour: float
    endHour: float
    isAllDay: bool
    blockId: Optional[str] = None
    reason: Optional[str] = None


# ============================================================================
# DROP TARGETS AND MOVES
# ============================================================================


class TimeslotTarget(BaseModel):
    """An hour cell on the calendar, optionally inside a worker's row"""

    kind: Literal["timeslot"] = "timeslot"
    date: date
    hour: int
    workerId: Optional[str] = None


class UnassignedTarget(BaseModel):
    """The unassigned-jobs sidebar"""

    kind: Literal["unassigned"] = "unassigned"


DropTarget = Annotated[Union[TimeslotTarget, UnassignedTarget], Field(discriminator="kind")]


class MoveProposal(BaseModel):
    job_id: str
    new_start_time: datetime
    new_end_time: datetime
    new_assigned_worker_ids: List[str]
    expected_version: Optional[int] = None


class StatusChangeRequest(BaseModel):
    status: JobStatus


# ============================================================================
# STATS
# ============================================================================


class ConflictPair(BaseModel):
    workerId: str
    jobAId: str
    jobBId: str
    overlapMinutes: float


class WorkerUtilization(BaseModel):
    workerId: str
    name: Optional[str] = None
    scheduledHours: float
    bookedHours: float
    utilization: int
    jobCount: int
    conflictCount: int
    isOverbooked: bool
    isUnderutilized: bool


class DailyStats(BaseModel):
    date: date
    totalJobs: int
    assignedJobs: int
    totalHours: int
    totalCapacity: int
    avgCapacityPercent: int
    activeWorkers: int
    unassignedJobs: int
    conflicts: int
    conflictPairs: List[ConflictPair] = []
    overbookedWorkers: int
    underutilizedWorkers: int
    workerUtilization: List[WorkerUtilization] = []


class WorkerDay(BaseModel):
    date: date
    isWorkingDay: bool
    hours: float
    capacity: int
    utilization: int
    jobCount: int
    conflictCount: int


class WorkerWeek(BaseModel):
    workerId: str
    name: Optional[str] = None
    totalHours: float
    totalCapacity: int
    utilization: int
    jobCount: int
    days: List[WorkerDay]


class WeeklyStats(BaseModel):
    weekStart: date
    weekEnd: date
    totalJobs: int
    assignedJobs: int
    unassignedJobs: int
    totalHours: float
    totalCapacity: int
    avgUtilization: int
    conflictCount: int
    overbookedWorkers: List[str]
    overbookedDays: int
    underutilizedDays: int
    lowUtilizationDays: List[date]
    workers: List[WorkerWeek]


class MonthlyStats(BaseModel):
    month: str  # YYYY-MM
    totalRevenue: float
    completedJobs: int
    scheduledJobs: int
    utilizationPercent: int


class UnassignedJob(BaseModel):
    id: str
    customerName: Optional[str] = None
    serviceType: Optional[str] = None
    startTime: datetime
    endTime: datetime
    durationHours: float
    status: JobStatus
    estimatedValue: Optional[float] = None
    priority: Literal["urgent", "today", "future"]
