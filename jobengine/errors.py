"""
Typed engine errors. Every recoverable outcome of start/claim/cancel is one of these;
storage and transport failures are left to propagate.
"""
from typing import Any, Dict, Optional


class JobError(Exception):
    status_code = 400
    code = "job_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


class SlotOccupied(JobError):
    status_code = 409
    code = "slot_occupied"


class NotReady(JobError):
    status_code = 409
    code = "not_ready"


class NoActiveJob(JobError):
    status_code = 404
    code = "no_active_job"


class StaleState(JobError):
    status_code = 409
    code = "stale_state"


class SubjectGone(JobError):
    status_code = 410
    code = "subject_gone"


class UnknownSubject(JobError):
    status_code = 404
    code = "unknown_subject"


class GateUnsatisfied(JobError):
    status_code = 400
    code = "not_at_home"


class InvalidDuration(JobError):
    status_code = 422
    code = "invalid_duration"

    def __init__(self, message: str, minimum: Optional[int] = None, maximum: Optional[int] = None):
        super().__init__(message, min_seconds=minimum, max_seconds=maximum)


class UnknownCategory(JobError):
    status_code = 404
    code = "unknown_category"
