"""
Tests for Prometheus metrics functionality
"""

from prometheus_client import REGISTRY

from jobengine.services.prometheus_metrics import PrometheusMetrics, prometheus_metrics


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestPrometheusMetrics:
    """Test the PrometheusMetrics class."""

    def test_increment_requests(self):
        before = sample("jobengine_requests_total", status_class="4xx")
        PrometheusMetrics().increment_requests(404)
        assert sample("jobengine_requests_total", status_class="4xx") == before + 1

    def test_get_metrics(self):
        text = prometheus_metrics.get_metrics().decode("utf-8")
        assert "# HELP" in text
        assert "jobengine_jobs_started" in text

    def test_get_content_type(self):
        assert "text/plain" in prometheus_metrics.get_content_type()


def test_lifecycle_counters(job_engine, clock):
    started = sample("jobengine_jobs_started_total", category="gathering")
    claimed = sample("jobengine_jobs_claimed_total", category="gathering")
    replayed = sample("jobengine_jobs_claim_replayed_total", category="gathering")
    cancelled = sample("jobengine_jobs_cancelled_total", category="crafting", reason="user")

    job_engine.start("p1", "gathering", "oak")
    clock.advance(60)
    job_engine.claim("p1", "gathering")
    job_engine.claim("p1", "gathering")
    job_engine.start("p1", "crafting", "sword")
    job_engine.cancel("p1", "crafting")

    assert sample("jobengine_jobs_started_total", category="gathering") == started + 1
    assert sample("jobengine_jobs_claimed_total", category="gathering") == claimed + 1
    assert sample("jobengine_jobs_claim_replayed_total", category="gathering") == replayed + 1
    assert sample("jobengine_jobs_cancelled_total", category="crafting", reason="user") == cancelled + 1


def test_prometheus_endpoint(client):
    r = client.get("/v1/metrics/prometheus")
    assert r.status_code == 200
    assert "jobengine_requests" in r.text


def test_subject_gone_counted_once(client, clock, applier, player_headers):
    before = sample("jobengine_job_errors_total", kind="subject_gone")
    client.post("/v1/jobs/start", json={"category": "gathering", "subject_ref": "ruin"},
                headers=player_headers)
    applier.missing.add("ruin")
    clock.advance(60)

    r = client.post("/v1/jobs/claim", json={"category": "gathering"}, headers=player_headers)
    assert r.status_code == 410
    assert sample("jobengine_job_errors_total", kind="subject_gone") == before + 1
