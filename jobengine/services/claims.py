"""
Claim processor: finalize a ready job exactly once, or cancel an active one.
"""
import logging
from typing import Any, Dict, Optional

from ..errors import NoActiveJob, NotReady, StaleState, SubjectGone
from ..logging_config import log_job_event
from ..models.job import Job
from .evaluator import JobStatus
from .job_store import JobStore
from .prometheus_metrics import prometheus_metrics
from .rewards import RewardRegistry, SubjectGoneError

logger = logging.getLogger(__name__)


def claim_payload(job: Job) -> Dict[str, Any]:
    """Claim response; identical for the first claim and every replay."""
    return {
        "job_id": job.id,
        "category": job.category,
        "subject_ref": job.subject_ref,
        "claimed_at": job.claimed_at,
        "result": job.claim_result,
    }


class ClaimProcessor:
    def __init__(self, store: JobStore, rewards: RewardRegistry, replay_seconds: int = 300):
        self.store = store
        self.rewards = rewards
        self.replay_seconds = replay_seconds

    def claim(self, owner_id: str, category: str, job_id: Optional[str] = None) -> Dict[str, Any]:
        with self.store.slot(owner_id, category) as session:
            now = self.store.clock.now()

            if job_id:
                job = self.store.get_job(session, job_id)
                if job is None or job.owner_id != str(owner_id) or job.category != str(category):
                    raise NoActiveJob("No such job for this player", job_id=job_id, category=category)
            else:
                job = self.store.get_active_job(session, owner_id, category)
                if job is None:
                    job = self.store.latest_terminated(session, owner_id, category)
                    if job is None or now - max(job.claimed_at or 0, job.cancelled_at or 0) > self.replay_seconds:
                        raise NoActiveJob("No active job in this category", category=category)

            if job.claimed_at is not None:
                prometheus_metrics.increment_claim_replayed(job.category)
                log_job_event("job_claim_replayed", f"Claim retry for job {job.id} answered from stored result",
                              job_id=job.id, owner_id=job.owner_id, category=job.category)
                return claim_payload(job)

            if job.cancelled_at is not None:
                raise StaleState("Job was terminated before it could be claimed",
                                 job_id=job.id, reason=job.cancel_reason)

            evaluation = self.store.refresh(session, job, now)
            if evaluation.status == JobStatus.CANCELLED:
                raise StaleState("Job was terminated before it could be claimed",
                                 job_id=job.id, reason=job.cancel_reason)
            if evaluation.status != JobStatus.READY:
                raise NotReady(
                    "Job is not finished yet",
                    job_id=job.id,
                    status=evaluation.status.value,
                    remaining_seconds=evaluation.remaining_seconds,
                )

            return self._finalize(session, job, now)

    def _finalize(self, session, job: Job, now: int) -> Dict[str, Any]:
        applier = self.rewards.get(job.category)

        if not applier.subject_exists(job.subject_ref):
            self._subject_gone(session, job, now)

        # Written first so a concurrent writer on the same row fails its version check
        job.claimed_at = now
        session.flush()

        metadata = {
            "job_id": job.id,
            "category": job.category,
            "started_at": job.started_at,
            "finish_at": job.finish_at,
            "accumulated_pause_seconds": job.accumulated_pause_seconds or 0,
            "meta": dict(job.meta or {}),
        }
        try:
            result = applier.apply(job.owner_id, job.subject_ref, metadata)
        except SubjectGoneError:
            job.claimed_at = None
            self._subject_gone(session, job, now)

        job.claim_result = result if result is not None else {}
        session.flush()

        prometheus_metrics.increment_claimed(job.category)
        log_job_event("job_claimed", f"Job {job.id} claimed",
                      job_id=job.id, owner_id=job.owner_id, category=job.category)
        return claim_payload(job)

    def _subject_gone(self, session, job: Job, now: int):
        self.store.terminate(session, job, "subject_gone", now)
        log_job_event(
            "data_integrity",
            f"Job {job.id} references missing subject {job.subject_ref}, terminated without reward",
            level=logging.ERROR,
            job_id=job.id, owner_id=job.owner_id, category=job.category, subject_ref=job.subject_ref,
        )
        raise SubjectGone("The target of this job no longer exists", job_id=job.id,
                          subject_ref=job.subject_ref)

    def cancel(self, owner_id: str, category: str) -> Dict[str, Any]:
        """Discard the active job. No reward, no refund of consumed materials."""
        with self.store.slot(owner_id, category) as session:
            job = self.store.get_active_job(session, owner_id, category)
            if job is None:
                raise NoActiveJob("No active job in this category", category=category)
            now = self.store.clock.now()
            self.store.terminate(session, job, "user", now)
            return {
                "job_id": job.id,
                "category": job.category,
                "status": JobStatus.CANCELLED.value,
                "cancelled_at": job.cancelled_at,
                "refunded": False,
            }
