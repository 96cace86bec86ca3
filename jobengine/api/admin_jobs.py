"""
Admin job recovery endpoints
"""

from fastapi import APIRouter, Depends, Query, Request
import logging
from typing import Optional

from ..auth import require_admin
from ..config import ADMIN_AUDIT_MAX
from ..schemas.job import ClearReport
from ..services.engine import JobEngine
from .deps import client_info, get_job_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/jobs")
def list_active_jobs(
    category: Optional[str] = Query(None, description="Only this category"),
    _: str = Depends(require_admin),
    engine: JobEngine = Depends(get_job_engine),
):
    """All active jobs across players, grouped by category"""
    return engine.list_all_active(category)


@router.post("/jobs/clear/{owner_id}", response_model=ClearReport)
def clear_player_jobs(
    owner_id: str,
    request: Request,
    category: Optional[str] = Query(None, description="Only this category"),
    actor: str = Depends(require_admin),
    engine: JobEngine = Depends(get_job_engine),
):
    """Force-terminate a player's active jobs without reward"""
    return engine.force_clear(owner_id, category, actor=actor, **client_info(request))


@router.post("/jobs/clear-all", response_model=ClearReport)
def clear_all_jobs(
    request: Request,
    actor: str = Depends(require_admin),
    engine: JobEngine = Depends(get_job_engine),
):
    """Force-terminate every active job of every player"""
    return engine.force_clear_all(actor=actor, **client_info(request))


@router.get("/audit")
def get_audit_logs(
    limit: int = 100,
    _: str = Depends(require_admin),
    engine: JobEngine = Depends(get_job_engine),
):
    """Get recent admin audit logs (admin only)"""
    logs = engine.audit_log(limit=min(limit, ADMIN_AUDIT_MAX))
    return {"audit_logs": logs, "count": len(logs)}
