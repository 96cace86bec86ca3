from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional


class JobStart(BaseModel):
    category: str = Field(..., max_length=32, description="construction, crafting, gathering, collection")
    subject_ref: str = Field(..., min_length=1, max_length=128, description="Building, recipe or node id")
    duration_seconds: Optional[int] = Field(None, ge=1, description="Only honoured where the player picks the duration")
    meta: Dict[str, Any] = Field(default_factory=dict)


class JobClaim(BaseModel):
    category: str = Field(..., max_length=32)
    job_id: Optional[str] = Field(None, description="Pin the claim to one job for safe retries")


class JobStatusOut(BaseModel):
    job_id: str
    category: str
    subject_ref: str
    status: str  # running|paused|ready|cancelled
    remaining_seconds: int
    started_at: int
    finish_at: int
    effective_finish_at: int
    paused_at: Optional[int] = None
    accumulated_pause_seconds: int = 0
    elapsed_seconds: int = 0
    meta: Dict[str, Any] = {}
    reason: Optional[str] = None


class JobListOut(BaseModel):
    jobs: List[JobStatusOut]
    total: int


class ClaimOut(BaseModel):
    job_id: str
    category: str
    subject_ref: str
    claimed_at: int
    result: Optional[Dict[str, Any]] = None


class CancelOut(BaseModel):
    job_id: str
    category: str
    status: str
    cancelled_at: int
    refunded: bool = False


class ClearFailure(BaseModel):
    job_id: str
    owner_id: str
    category: str
    error: str


class ClearReport(BaseModel):
    cleared: int
    failed: int
    by_category: Dict[str, int] = {}
    job_ids: List[str] = []
    failures: List[ClearFailure] = []
