"""
Tests for the optional cap on total paused time
"""

import pytest

from jobengine.errors import NoActiveJob, StaleState
from jobengine.services.engine import JobEngine
from jobengine.services.rewards import RewardRegistry


@pytest.fixture
def capped_engine(session_factory, clock, positions, applier):
    return JobEngine(session_factory=session_factory, clock=clock, positions=positions,
                     rewards=RewardRegistry(default=applier), max_pause_seconds=100)


def test_pause_over_limit_terminates(capped_engine, clock, positions):
    started = capped_engine.start("p1", "construction", "barracks")
    clock.advance(10)
    positions.move("p1", 1000, 1000)
    assert capped_engine.status("p1", "construction")["status"] == "paused"

    clock.advance(90)
    assert capped_engine.status("p1", "construction")["status"] == "paused"

    clock.advance(100)
    status = capped_engine.status("p1", "construction")
    assert status["status"] == "cancelled"
    assert status["reason"] == "pause_limit"

    with pytest.raises(NoActiveJob):
        capped_engine.status("p1", "construction")
    with pytest.raises(StaleState):
        capped_engine.claim("p1", "construction", job_id=started["job_id"])


def test_unlimited_by_default(job_engine, clock, positions):
    job_engine.start("p1", "construction", "barracks")
    positions.move("p1", 1000, 1000)
    job_engine.status("p1", "construction")
    clock.advance(100_000)
    assert job_engine.status("p1", "construction")["status"] == "paused"
