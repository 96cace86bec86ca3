"""
Job store: persisted job records, at most one active per (owner, category).

Every mutation happens inside `slot()`, which serializes the slot in-process and
runs one transaction. The partial unique index and the row version column guard
the same invariants across processes.
"""
import logging
import uuid
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..clock import Clock
from ..errors import JobError, SlotOccupied, StaleState
from ..logging_config import log_job_event
from ..models.job import Job
from .evaluator import Evaluation, JobStatus, PAUSED, RESUMED, evaluate
from .location_gate import LocationGate
from .locks import SlotLocks
from .prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


class JobStore:
    def __init__(self, session_factory, clock: Clock, gate: LocationGate,
                 locks: Optional[SlotLocks] = None, max_pause_seconds: int = 0):
        self.session_factory = session_factory
        self.clock = clock
        self.gate = gate
        self.locks = locks or SlotLocks()
        self.max_pause_seconds = max_pause_seconds

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def slot(self, owner_id: str, category: str):
        """Serialize one (owner, category) slot and yield a session for it.

        Typed JobErrors raised inside the block still commit, so bookkeeping written
        before the error (a pause, a termination) is kept.
        """
        with self.locks.hold(owner_id, category):
            session = self.session_factory()
            try:
                try:
                    yield session
                except JobError:
                    self._commit(session)
                    raise
                except StaleDataError as e:
                    session.rollback()
                    raise StaleState("Job was changed by a concurrent request, refetch and retry") from e
                except IntegrityError as e:
                    session.rollback()
                    raise SlotOccupied("Finish or cancel your current job first", category=str(category)) from e
                self._commit(session)
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def _commit(self, session: Session):
        try:
            session.commit()
        except StaleDataError as e:
            session.rollback()
            raise StaleState("Job was changed by a concurrent request, refetch and retry") from e
        except IntegrityError as e:
            session.rollback()
            raise SlotOccupied("Finish or cancel your current job first") from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_active_job(self, session: Session, owner_id: str, category: str) -> Optional[Job]:
        stmt = (
            select(Job)
            .where(
                Job.owner_id == str(owner_id),
                Job.category == str(category),
                Job.claimed_at.is_(None),
                Job.cancelled_at.is_(None),
            )
            .with_for_update()
        )
        return session.execute(stmt).scalars().first()

    def get_job(self, session: Session, job_id: str) -> Optional[Job]:
        stmt = select(Job).where(Job.id == str(job_id)).with_for_update()
        return session.execute(stmt).scalars().first()

    def latest_terminated(self, session: Session, owner_id: str, category: str) -> Optional[Job]:
        """Most recently claimed or cancelled job of a slot"""
        stmt = (
            select(Job)
            .where(
                Job.owner_id == str(owner_id),
                Job.category == str(category),
                (Job.claimed_at.is_not(None)) | (Job.cancelled_at.is_not(None)),
            )
        )
        jobs = session.execute(stmt).scalars().all()
        if not jobs:
            return None
        return max(jobs, key=lambda j: max(j.claimed_at or 0, j.cancelled_at or 0))

    def list_all_active(self, session: Session, category: Optional[str] = None,
                        owner_id: Optional[str] = None) -> List[Job]:
        stmt = select(Job).where(Job.claimed_at.is_(None), Job.cancelled_at.is_(None))
        if category:
            stmt = stmt.where(Job.category == str(category))
        if owner_id:
            stmt = stmt.where(Job.owner_id == str(owner_id))
        stmt = stmt.order_by(Job.category, Job.started_at)
        return list(session.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def start_job(self, session: Session, owner_id: str, category: str, subject_ref: str,
                  duration: int, requires_gate: bool, meta: Optional[dict] = None) -> Job:
        existing = self.get_active_job(session, owner_id, category)
        if existing is not None:
            raise SlotOccupied(
                "Finish or cancel your current job first",
                job_id=existing.id,
                category=category,
            )

        now = self.clock.now()
        job = Job(
            id=str(uuid.uuid4()),
            owner_id=str(owner_id),
            category=str(category),
            subject_ref=str(subject_ref),
            meta=meta or {},
            started_at=now,
            finish_at=now + int(duration),
            requires_location_gate=bool(requires_gate),
            paused_at=None,
            accumulated_pause_seconds=0,
        )
        session.add(job)
        session.flush()
        return job

    def terminate(self, session: Session, job: Job, reason: str, now: Optional[int] = None):
        """Cancel an active job without reward. Materials already spent stay spent."""
        now = self.clock.now() if now is None else now
        job.cancelled_at = now
        job.cancel_reason = reason
        job.paused_at = None
        session.flush()
        prometheus_metrics.increment_cancelled(job.category, reason)
        log_job_event("job_cancelled", f"Job {job.id} terminated ({reason})",
                      job_id=job.id, owner_id=job.owner_id, category=job.category, reason=reason)

    def gate_state(self, job: Job) -> Optional[bool]:
        if not job.requires_location_gate:
            return None
        return self.gate.is_satisfied(job.owner_id)

    def preview(self, job: Job, now: Optional[int] = None) -> Evaluation:
        """Evaluate without writing anything back"""
        now = self.clock.now() if now is None else now
        if job.claimed_at is None and job.cancelled_at is None:
            gate = self.gate_state(job)
        else:
            gate = None
        return evaluate(job, now, gate, self.max_pause_seconds)

    def refresh(self, session: Session, job: Job, now: Optional[int] = None) -> Evaluation:
        """Evaluate and persist pause/resume bookkeeping. Must run inside `slot()`."""
        now = self.clock.now() if now is None else now
        evaluation = self.preview(job, now)

        if evaluation.changed:
            job.paused_at = evaluation.paused_at
            job.accumulated_pause_seconds = max(
                int(job.accumulated_pause_seconds or 0), evaluation.accumulated_pause_seconds
            )
            session.flush()
            fields = dict(job_id=job.id, owner_id=job.owner_id, category=job.category)
            if evaluation.transition == PAUSED:
                prometheus_metrics.increment_paused(job.category)
                log_job_event("job_paused", f"Job {job.id} paused, player left home", **fields)
            elif evaluation.transition == RESUMED:
                prometheus_metrics.increment_resumed(job.category)
                log_job_event("job_resumed", f"Job {job.id} resumed after "
                              f"{job.accumulated_pause_seconds}s paused in total", **fields)

        if evaluation.pause_limit_exceeded and evaluation.status in (JobStatus.RUNNING, JobStatus.PAUSED,
                                                                     JobStatus.READY):
            self.terminate(session, job, "pause_limit", now)
            return evaluate(job, now, None, self.max_pause_seconds)

        return evaluation
