"""
Player job endpoints: start, poll, claim, cancel
"""

import logging
from fastapi import APIRouter, Depends, Query, Request

from ..auth import require_player
from ..schemas.job import (
    CancelOut, ClaimOut, ClearReport, JobClaim, JobListOut, JobStart, JobStatusOut
)
from ..services.engine import JobEngine
from .deps import client_info, get_job_engine

logger = logging.getLogger("jobengine.api.jobs")

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/start", response_model=JobStatusOut, status_code=201)
def start_job(
    body: JobStart,
    player_id: str = Depends(require_player),
    engine: JobEngine = Depends(get_job_engine),
):
    """Start a job; 409 if the category slot is already taken"""
    return engine.start(player_id, body.category, body.subject_ref,
                        duration_seconds=body.duration_seconds, meta=body.meta)


@router.get("/status", response_model=JobStatusOut)
def job_status(
    category: str = Query(..., description="Job category"),
    player_id: str = Depends(require_player),
    engine: JobEngine = Depends(get_job_engine),
):
    """Recomputed on every call, never cached"""
    return engine.status(player_id, category)


@router.get("", response_model=JobListOut)
def list_my_jobs(
    player_id: str = Depends(require_player),
    engine: JobEngine = Depends(get_job_engine),
):
    jobs = engine.overview(player_id)
    return {"jobs": jobs, "total": len(jobs)}


@router.post("/claim", response_model=ClaimOut)
def claim_job(
    body: JobClaim,
    player_id: str = Depends(require_player),
    engine: JobEngine = Depends(get_job_engine),
):
    return engine.claim(player_id, body.category, job_id=body.job_id)


@router.delete("/cancel", response_model=CancelOut)
def cancel_job(
    category: str = Query(..., description="Job category"),
    player_id: str = Depends(require_player),
    engine: JobEngine = Depends(get_job_engine),
):
    """Cancel the active job. Spent materials are not refunded."""
    return engine.cancel(player_id, category)


@router.post("/clear-stuck", response_model=ClearReport)
def clear_stuck_jobs(
    request: Request,
    player_id: str = Depends(require_player),
    engine: JobEngine = Depends(get_job_engine),
):
    """Emergency cleanup of the caller's own jobs"""
    return engine.clear_stuck(player_id, **client_info(request))
