"""Scheduling domain errors"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling engine"""

    status_code = 400
    code = "scheduling_error"

    def __init__(self, message: str, *, job_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        if self.job_id:
            payload["jobId"] = self.job_id
        return payload


class InvalidInterval(SchedulingError):
    """End of a time window is not after its start"""

    status_code = 422
    code = "invalid_interval"


class SlotUnavailable(SchedulingError):
    """Drop target is outside the visible window or blocked"""

    status_code = 409
    code = "slot_unavailable"


class InvalidTransition(SchedulingError):
    """Status change is not allowed by the job lifecycle"""

    status_code = 409
    code = "invalid_transition"


class PersistenceFailed(SchedulingError):
    """The data store rejected or failed to apply a write"""

    status_code = 502
    code = "persistence_failed"


class StaleSnapshot(PersistenceFailed):
    """The job changed since the snapshot the move was validated against"""

    status_code = 409
    code = "stale_snapshot"


class NotFound(SchedulingError):
    status_code = 404
    code = "not_found"
