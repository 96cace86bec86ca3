"""
Admin recovery: bulk inspection and forced termination of active jobs.

Force-clear never calls a reward applier. Each record is cleared under the same
per-slot lock and transaction as a normal claim or cancel, so a clear racing a
claim resolves to exactly one of them; the loser is reported as stale.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import JobError
from ..logging_config import log_job_event
from .audit import log_admin_action
from .evaluator import elapsed_seconds
from .job_store import JobStore

logger = logging.getLogger(__name__)


class AdminRecoveryService:
    def __init__(self, store: JobStore, categories: Iterable[str]):
        self.store = store
        self.categories = list(categories)

    def list_all_active(self, category: Optional[str] = None) -> Dict[str, Any]:
        """Active jobs across all players, grouped by category"""
        now = self.store.clock.now()
        session = self.store.session_factory()
        try:
            jobs = self.store.list_all_active(session, category=category)
        finally:
            session.close()

        groups: Dict[str, List[Dict[str, Any]]] = {c: [] for c in self.categories if not category or c == category}
        for job in jobs:
            evaluation = self.store.preview(job, now)
            entry = job.to_dict()
            entry.update({
                "status": evaluation.status.value,
                "remaining_seconds": evaluation.remaining_seconds,
                "effective_finish_at": evaluation.effective_finish_at,
                "elapsed_seconds": elapsed_seconds(job, evaluation, now),
            })
            groups.setdefault(job.category, []).append(entry)

        return {
            "jobs": groups,
            "counts": {c: len(items) for c, items in groups.items()},
            "total": len(jobs),
            "now": now,
        }

    def _clear_one(self, job_id: str, owner_id: str, category: str, reason: str) -> Optional[str]:
        """Terminate one job; returns an error code, or None when cleared."""
        try:
            with self.store.slot(owner_id, category) as session:
                job = self.store.get_job(session, job_id)
                if job is None or not job.is_active:
                    return "stale_state"
                self.store.terminate(session, job, reason)
            return None
        except JobError as e:
            return e.code
        except SQLAlchemyError:
            logger.exception(f"Force-clear of job {job_id} failed")
            return "storage_error"

    def _clear(self, targets: List[Dict[str, str]], reason: str, report: Dict[str, Any]) -> Dict[str, Any]:
        """Clear each target in turn, filling `report` as it goes."""
        for target in targets:
            error = self._clear_one(target["id"], target["owner_id"], target["category"], reason)
            if error is None:
                report["job_ids"].append(target["id"])
                report["cleared"] += 1
                by_category = report["by_category"]
                by_category[target["category"]] = by_category.get(target["category"], 0) + 1
            else:
                report["failures"].append({"job_id": target["id"], "owner_id": target["owner_id"],
                                           "category": target["category"], "error": error})
                report["failed"] += 1
        return report

    @staticmethod
    def _empty_report() -> Dict[str, Any]:
        return {"cleared": 0, "failed": 0, "by_category": {}, "job_ids": [], "failures": []}

    def _snapshot(self, owner_id: Optional[str] = None, category: Optional[str] = None) -> List[Dict[str, str]]:
        session = self.store.session_factory()
        try:
            jobs = self.store.list_all_active(session, category=category, owner_id=owner_id)
            return [{"id": j.id, "owner_id": j.owner_id, "category": j.category} for j in jobs]
        finally:
            session.close()

    def force_clear(self, owner_id: str, category: Optional[str] = None, actor: str = "unknown",
                    client_ip: Optional[str] = None, user_agent: Optional[str] = None,
                    action: str = "jobs_force_clear", reason: str = "admin_force_clear") -> Dict[str, Any]:
        targets = self._snapshot(owner_id=owner_id, category=category)
        target = f"owner:{owner_id}" + (f"/category:{category}" if category else "")
        report = self._empty_report()
        try:
            return self._clear(targets, reason, report)
        finally:
            self._record(actor, action, target, targets, report, client_ip, user_agent)

    def force_clear_all(self, actor: str = "unknown", client_ip: Optional[str] = None,
                        user_agent: Optional[str] = None) -> Dict[str, Any]:
        targets = self._snapshot()
        report = self._empty_report()
        try:
            return self._clear(targets, "admin_force_clear", report)
        finally:
            self._record(actor, "jobs_force_clear_all", "*", targets, report, client_ip, user_agent)

    def _record(self, actor, action, target, targets, report, client_ip, user_agent):
        log_job_event(
            action,
            f"{actor} force-cleared {report['cleared']} job(s) on {target} ({report['failed']} failed)",
            level=logging.WARNING,
            actor=actor,
            target=target,
            cleared=report["cleared"],
            failed=report["failed"],
        )
        log_admin_action(
            actor_key_id=actor,
            action=action,
            target=target,
            before_value={"job_ids": [t["id"] for t in targets]},
            after_value={k: report[k] for k in ("cleared", "failed", "by_category")},
            client_ip=client_ip,
            user_agent=user_agent,
            session_factory=self.store.session_factory,
        )
