"""
Reward appliers, one per category. The game registers its own at startup;
they are invoked exactly once per claimed job.
"""
from typing import Any, Dict, Optional


class SubjectGoneError(Exception):
    """Raised by an applier when the job's subject no longer resolves."""


class RewardApplier:
    def subject_exists(self, subject_ref: str) -> bool:
        return True

    def duration_for(self, subject_ref: str, meta: Optional[Dict[str, Any]] = None) -> Optional[int]:
        """Nominal duration from the subject's definition, None to use the category rules."""
        return None

    def apply(self, owner_id: str, subject_ref: str, job_metadata: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class AcknowledgeRewardApplier(RewardApplier):
    """Records the grant without side effects; used until the game registers an applier"""

    def apply(self, owner_id: str, subject_ref: str, job_metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "granted": True,
            "category": job_metadata.get("category"),
            "subject_ref": subject_ref,
            "meta": job_metadata.get("meta") or {},
        }


class RewardRegistry:
    def __init__(self, default: Optional[RewardApplier] = None):
        self._appliers: Dict[str, RewardApplier] = {}
        self._default = default or AcknowledgeRewardApplier()

    def register(self, category: str, applier: RewardApplier):
        self._appliers[str(category)] = applier

    def get(self, category: str) -> RewardApplier:
        return self._appliers.get(str(category), self._default)
