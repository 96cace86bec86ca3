"""
Job engine facade: the one object the HTTP layer talks to.
"""
import logging
from typing import Any, Dict, List, Optional

from ..clock import Clock, SystemClock
from ..config import JOB_CLAIM_REPLAY_SECONDS, JOB_MAX_PAUSE_SECONDS, LOCATION_GATE_DISTANCE
from ..db import SessionLocal
from ..errors import GateUnsatisfied, NoActiveJob, UnknownCategory, UnknownSubject
from ..logging_config import log_job_event
from ..models.job import Job
from .audit import get_recent_audit_logs
from .categories import CategoryConfig, default_categories
from .claims import ClaimProcessor
from .evaluator import Evaluation, JobStatus, elapsed_seconds
from .job_store import JobStore
from .location_gate import LocationGate, PositionProvider, SqlPositionProvider
from .locks import SlotLocks
from .prometheus_metrics import prometheus_metrics
from .recovery import AdminRecoveryService
from .rewards import RewardRegistry

logger = logging.getLogger(__name__)


def status_payload(job: Job, evaluation: Evaluation, now: int) -> Dict[str, Any]:
    payload = {
        "job_id": job.id,
        "category": job.category,
        "subject_ref": job.subject_ref,
        "status": evaluation.status.value,
        "remaining_seconds": evaluation.remaining_seconds,
        "started_at": job.started_at,
        "finish_at": job.finish_at,
        "effective_finish_at": evaluation.effective_finish_at,
        "paused_at": evaluation.paused_at,
        "accumulated_pause_seconds": evaluation.accumulated_pause_seconds,
        "elapsed_seconds": elapsed_seconds(job, evaluation, now),
        "meta": job.meta or {},
    }
    if evaluation.status == JobStatus.CANCELLED:
        payload["reason"] = job.cancel_reason
    return payload


class JobEngine:
    def __init__(self, session_factory=None, clock: Optional[Clock] = None,
                 positions: Optional[PositionProvider] = None,
                 rewards: Optional[RewardRegistry] = None,
                 categories: Optional[Dict[str, CategoryConfig]] = None,
                 locks: Optional[SlotLocks] = None,
                 max_pause_seconds: int = JOB_MAX_PAUSE_SECONDS,
                 claim_replay_seconds: int = JOB_CLAIM_REPLAY_SECONDS,
                 gate_distance: float = LOCATION_GATE_DISTANCE):
        self.session_factory = session_factory or SessionLocal
        self.clock = clock or SystemClock()
        self.categories = categories or default_categories()
        self.rewards = rewards or RewardRegistry()
        self.gate = LocationGate(positions or SqlPositionProvider(self.session_factory), gate_distance)
        self.store = JobStore(self.session_factory, self.clock, self.gate,
                              locks=locks, max_pause_seconds=max_pause_seconds)
        self.claims = ClaimProcessor(self.store, self.rewards, replay_seconds=claim_replay_seconds)
        self.recovery = AdminRecoveryService(self.store, self.categories.keys())

    def _config(self, category: str) -> CategoryConfig:
        config = self.categories.get(str(category))
        if config is None:
            raise UnknownCategory(f"Unknown job category: {category}", category=str(category))
        return config

    # ------------------------------------------------------------------
    # Player operations
    # ------------------------------------------------------------------

    def start(self, owner_id: str, category: str, subject_ref: str,
              duration_seconds: Optional[int] = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        config = self._config(category)
        applier = self.rewards.get(config.name)

        if not applier.subject_exists(subject_ref):
            raise UnknownSubject(f"Nothing to {config.name} for {subject_ref}", subject_ref=subject_ref)
        duration = config.resolve_duration(applier.duration_for(subject_ref, meta), duration_seconds)

        with self.store.slot(owner_id, config.name) as session:
            existing = self.store.get_active_job(session, owner_id, config.name)
            if existing is None and config.gate_required_to_start and not self.gate.is_satisfied(owner_id):
                raise GateUnsatisfied("You have to be at home to start this job", not_at_home=True)
            job = self.store.start_job(session, owner_id, config.name, subject_ref, duration,
                                       config.requires_location_gate, meta)
            now = self.clock.now()
            evaluation = self.store.preview(job, now)
            payload = status_payload(job, evaluation, now)

        prometheus_metrics.increment_started(config.name)
        log_job_event("job_started", f"Job {payload['job_id']} started: {config.name} {subject_ref} for {duration}s",
                      job_id=payload["job_id"], owner_id=str(owner_id), category=config.name, duration=duration)
        return payload

    def status(self, owner_id: str, category: str) -> Dict[str, Any]:
        """Evaluated status of the slot, recomputed on every call"""
        config = self._config(category)
        with self.store.slot(owner_id, config.name) as session:
            job = self.store.get_active_job(session, owner_id, config.name)
            if job is None:
                raise NoActiveJob("No active job in this category", category=config.name)
            now = self.clock.now()
            evaluation = self.store.refresh(session, job, now)
            return status_payload(job, evaluation, now)

    def overview(self, owner_id: str) -> List[Dict[str, Any]]:
        jobs = []
        for name in self.categories:
            try:
                jobs.append(self.status(owner_id, name))
            except NoActiveJob:
                continue
        return jobs

    def claim(self, owner_id: str, category: str, job_id: Optional[str] = None) -> Dict[str, Any]:
        config = self._config(category)
        return self.claims.claim(owner_id, config.name, job_id)

    def cancel(self, owner_id: str, category: str) -> Dict[str, Any]:
        config = self._config(category)
        return self.claims.cancel(owner_id, config.name)

    def clear_stuck(self, owner_id: str, client_ip: Optional[str] = None,
                    user_agent: Optional[str] = None) -> Dict[str, Any]:
        """Player emergency cleanup of their own jobs, no rewards"""
        return self.recovery.force_clear(
            owner_id, actor=f"player:{owner_id}", client_ip=client_ip, user_agent=user_agent,
            action="jobs_self_clear", reason="self_clear",
        )

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def list_all_active(self, category: Optional[str] = None) -> Dict[str, Any]:
        if category:
            category = self._config(category).name
        return self.recovery.list_all_active(category)

    def force_clear(self, owner_id: str, category: Optional[str] = None, **audit) -> Dict[str, Any]:
        if category:
            category = self._config(category).name
        return self.recovery.force_clear(owner_id, category, **audit)

    def force_clear_all(self, **audit) -> Dict[str, Any]:
        return self.recovery.force_clear_all(**audit)

    def audit_log(self, limit: int = 100) -> list:
        return get_recent_audit_logs(limit=limit, session_factory=self.session_factory)
