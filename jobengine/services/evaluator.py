"""
Completion evaluator.

Status is never stored: it is recomputed from the persisted timestamps on every
read. `evaluate` is a pure function of (job, now, gate state); it returns the
status plus the pause bookkeeping the caller must write back.

    Running -> Paused -> Running ... -> Ready -> Claimed
    Running | Paused | Ready -> Cancelled
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    READY = "ready"
    CLAIMED = "claimed"
    CANCELLED = "cancelled"


PAUSED = "paused"
RESUMED = "resumed"


@dataclass(frozen=True)
class Evaluation:
    status: JobStatus
    remaining_seconds: int
    effective_finish_at: int
    paused_at: Optional[int]
    accumulated_pause_seconds: int
    transition: Optional[str] = None  # PAUSED | RESUMED when bookkeeping changed
    pause_limit_exceeded: bool = False

    @property
    def changed(self) -> bool:
        return self.transition is not None


def evaluate(job, now: int, gate_satisfied: Optional[bool] = None,
             max_pause_seconds: int = 0) -> Evaluation:
    """Derive the status of `job` at `now`.

    `gate_satisfied` is only looked at when the job requires the location gate;
    None means the gate was not consulted. `max_pause_seconds` of 0 disables the
    pause cap.
    """
    accumulated = int(job.accumulated_pause_seconds or 0)
    paused_at = job.paused_at
    finish_at = int(job.finish_at)

    if job.claimed_at is not None:
        return Evaluation(JobStatus.CLAIMED, 0, finish_at + accumulated, None, accumulated)
    if job.cancelled_at is not None:
        return Evaluation(JobStatus.CANCELLED, 0, finish_at + accumulated, None, accumulated)

    # Gate comes first: away from home is paused even with no time left
    gate_blocked = bool(job.requires_location_gate) and gate_satisfied is False

    if gate_blocked:
        transition = None
        if paused_at is None:
            paused_at = now
            transition = PAUSED
        open_pause = max(0, now - paused_at)
        remaining = max(0, finish_at + accumulated - paused_at)
        exceeded = max_pause_seconds > 0 and accumulated + open_pause > max_pause_seconds
        return Evaluation(
            JobStatus.PAUSED,
            remaining,
            finish_at + accumulated + open_pause,
            paused_at,
            accumulated,
            transition=transition,
            pause_limit_exceeded=exceeded,
        )

    transition = None
    if paused_at is not None:
        accumulated += max(0, now - paused_at)
        paused_at = None
        transition = RESUMED

    effective_finish = finish_at + accumulated
    exceeded = max_pause_seconds > 0 and accumulated > max_pause_seconds
    if now >= effective_finish:
        return Evaluation(JobStatus.READY, 0, effective_finish, None, accumulated,
                          transition=transition, pause_limit_exceeded=exceeded)
    return Evaluation(JobStatus.RUNNING, max(0, effective_finish - now), effective_finish, None,
                      accumulated, transition=transition, pause_limit_exceeded=exceeded)


def elapsed_seconds(job, evaluation: Evaluation, now: int) -> int:
    """Seconds of progress made, excluding time spent paused."""
    duration = int(job.finish_at) - int(job.started_at)
    paused = evaluation.accumulated_pause_seconds
    if evaluation.paused_at is not None:
        paused += max(0, now - evaluation.paused_at)
    return max(0, min(duration, now - int(job.started_at) - paused))
