from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
import logging
import subprocess

from .middleware import TracingMiddleware
from .logging_config import setup_logging
from .config import API_PREFIX, API_VERSION, APP_PORT, AUTO_MIGRATE
from .db import init_db
from .errors import JobError
from .services.engine import JobEngine
from .services.prometheus_metrics import prometheus_metrics
from .api.health import router as health_router
from .api.jobs import router as jobs_router
from .api.admin_jobs import router as admin_jobs_router
from .api.prometheus import router as prometheus_router

# Configure logging at import time
setup_logging()

logger = logging.getLogger("jobengine")
logger.info("startup: logging configured", extra={"component": "api"})


@asynccontextmanager
async def lifespan(application: FastAPI):
    logger.info("Job engine starting up", extra={"version": API_VERSION, "component": "api"})

    # Idempotent; alembic owns the schema when AUTO_MIGRATE is on
    init_db()
    if getattr(application.state, "job_engine", None) is None:
        application.state.job_engine = JobEngine()

    logger.info("Job engine ready", extra={"component": "api"})
    try:
        yield
    finally:
        logger.info("Job engine shutting down", extra={"component": "api"})


app = FastAPI(title="Deferred Job Engine", version=API_VERSION, lifespan=lifespan)

# Optional auto-migrate on startup
if AUTO_MIGRATE:
    try:
        subprocess.run(["alembic", "upgrade", "head"], check=True)
        logger.info("Alembic auto-migrate: upgrade head OK")
    except Exception:
        logger.exception("Alembic auto-migrate failed")

app.add_middleware(TracingMiddleware)


class ApiVersionHeaderMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-API-Version"] = "v1"
        return response


app.add_middleware(ApiVersionHeaderMiddleware)


@app.exception_handler(JobError)
async def job_error_handler(request: Request, exc: JobError):
    prometheus_metrics.increment_error(exc.code)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


app.include_router(health_router, prefix=API_PREFIX)
app.include_router(jobs_router, prefix=API_PREFIX)
app.include_router(admin_jobs_router, prefix=API_PREFIX)
app.include_router(prometheus_router, prefix=API_PREFIX)

# Server startup configuration
if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting job engine on port {APP_PORT}")
    uvicorn.run(
        "jobengine.main:app",
        host="0.0.0.0",
        port=APP_PORT,
        reload=False,
        access_log=True
    )
