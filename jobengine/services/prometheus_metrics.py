"""
Prometheus metrics for the job engine
"""

from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST
import os

# Build info
BUILD_INFO = Gauge(
    'jobengine_build_info',
    'Build information',
    ['version', 'image_tag']
)

# Request counters
REQUESTS_TOTAL = Counter(
    'jobengine_requests_total',
    'Total number of HTTP requests',
    ['status_class']
)

# Job lifecycle
JOBS_STARTED_TOTAL = Counter(
    'jobengine_jobs_started_total',
    'Total number of jobs started',
    ['category']
)

JOBS_CLAIMED_TOTAL = Counter(
    'jobengine_jobs_claimed_total',
    'Total number of jobs claimed (reward applied)',
    ['category']
)

JOBS_CLAIM_REPLAYED_TOTAL = Counter(
    'jobengine_jobs_claim_replayed_total',
    'Claim retries answered from the stored result',
    ['category']
)

JOBS_CANCELLED_TOTAL = Counter(
    'jobengine_jobs_cancelled_total',
    'Total number of jobs terminated without reward',
    ['category', 'reason']
)

JOBS_PAUSED_TOTAL = Counter(
    'jobengine_jobs_paused_total',
    'Running jobs paused by the location gate',
    ['category']
)

JOBS_RESUMED_TOTAL = Counter(
    'jobengine_jobs_resumed_total',
    'Paused jobs resumed by the location gate',
    ['category']
)

JOB_ERRORS_TOTAL = Counter(
    'jobengine_job_errors_total',
    'Typed engine errors returned to callers',
    ['kind']
)


class PrometheusMetrics:
    """Service for managing Prometheus metrics."""

    def __init__(self):
        self._setup_build_info()

    def _setup_build_info(self):
        version = os.getenv("APP_VERSION", "dev")
        image_tag = os.getenv("IMAGE_TAG", "latest")
        BUILD_INFO.labels(version=version, image_tag=image_tag).set(1)

    def increment_requests(self, status_code: int):
        """Increment request counter."""
        if 200 <= status_code < 300:
            status_class = "2xx"
        elif 400 <= status_code < 500:
            status_class = "4xx"
        elif 500 <= status_code < 600:
            status_class = "5xx"
        else:
            status_class = "other"
        REQUESTS_TOTAL.labels(status_class=status_class).inc()

    def increment_started(self, category: str):
        JOBS_STARTED_TOTAL.labels(category=category).inc()

    def increment_claimed(self, category: str):
        JOBS_CLAIMED_TOTAL.labels(category=category).inc()

    def increment_claim_replayed(self, category: str):
        JOBS_CLAIM_REPLAYED_TOTAL.labels(category=category).inc()

    def increment_cancelled(self, category: str, reason: str, count: int = 1):
        """Increment termination counter (user cancel, force clear, pause limit...)."""
        JOBS_CANCELLED_TOTAL.labels(category=category, reason=reason).inc(count)

    def increment_paused(self, category: str):
        JOBS_PAUSED_TOTAL.labels(category=category).inc()

    def increment_resumed(self, category: str):
        JOBS_RESUMED_TOTAL.labels(category=category).inc()

    def increment_error(self, kind: str):
        JOB_ERRORS_TOTAL.labels(kind=kind).inc()

    def get_metrics(self) -> bytes:
        """Get Prometheus metrics in text format."""
        return generate_latest()

    def get_content_type(self) -> str:
        """Get the content type for Prometheus metrics."""
        return CONTENT_TYPE_LATEST

# Global metrics instance
prometheus_metrics = PrometheusMetrics()
