from fastapi import Request

from ..services.engine import JobEngine


def get_job_engine(request: Request) -> JobEngine:
    """Engine built at startup; tests swap it through dependency_overrides"""
    return request.app.state.job_engine


def client_info(request: Request) -> dict:
    return {
        "client_ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
