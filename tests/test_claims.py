"""
Tests for claiming and cancelling
"""

import pytest

from jobengine.errors import NoActiveJob, NotReady, StaleState, SubjectGone, UnknownSubject
from jobengine.models import Job
from jobengine.services.rewards import RewardApplier


def test_claim_before_ready(job_engine, clock):
    job_engine.start("p1", "gathering", "oak")
    clock.advance(20)
    with pytest.raises(NotReady) as exc:
        job_engine.claim("p1", "gathering")
    assert exc.value.details["remaining_seconds"] == 40
    assert exc.value.details["status"] == "running"


def test_claim_applies_reward_once(job_engine, clock, applier):
    started = job_engine.start("p1", "gathering", "oak", meta={"qty": 3})
    clock.advance(60)

    first = job_engine.claim("p1", "gathering")
    assert first["job_id"] == started["job_id"]
    assert first["result"] == {"granted": "oak", "grant_no": 1}
    assert first["claimed_at"] == clock.now()

    clock.advance(5)
    assert job_engine.claim("p1", "gathering") == first
    assert job_engine.claim("p1", "gathering", job_id=started["job_id"]) == first
    assert len(applier.calls) == 1


def test_applier_receives_job_metadata(job_engine, clock, applier):
    seen = {}

    def apply(owner_id, subject_ref, job_metadata):
        seen.update(job_metadata)
        return {"ok": True}

    applier.apply = apply
    job_engine.start("p1", "crafting", "sword", meta={"recipe": 7})
    clock.advance(60)
    job_engine.claim("p1", "crafting")
    assert seen["category"] == "crafting"
    assert seen["meta"] == {"recipe": 7}
    assert seen["accumulated_pause_seconds"] == 0


def test_replay_window(job_engine, clock):
    started = job_engine.start("p1", "gathering", "oak")
    clock.advance(60)
    first = job_engine.claim("p1", "gathering")

    clock.advance(301)
    with pytest.raises(NoActiveJob):
        job_engine.claim("p1", "gathering")
    # pinned retries replay forever
    assert job_engine.claim("p1", "gathering", job_id=started["job_id"]) == first


def test_claim_unknown_job_id(job_engine, clock):
    job_engine.start("p1", "gathering", "oak")
    with pytest.raises(NoActiveJob):
        job_engine.claim("p1", "gathering", job_id="does-not-exist")


def test_claim_other_players_job(job_engine, clock):
    started = job_engine.start("p1", "gathering", "oak")
    clock.advance(60)
    with pytest.raises(NoActiveJob):
        job_engine.claim("p2", "gathering", job_id=started["job_id"])


def test_claim_after_cancel_is_stale(job_engine, clock, applier):
    started = job_engine.start("p1", "gathering", "oak")
    clock.advance(60)
    job_engine.cancel("p1", "gathering")

    with pytest.raises(StaleState) as exc:
        job_engine.claim("p1", "gathering", job_id=started["job_id"])
    assert exc.value.details["reason"] == "user"
    with pytest.raises(StaleState):
        job_engine.claim("p1", "gathering")
    assert applier.calls == []


def test_start_unknown_subject(job_engine, applier):
    applier.missing.add("ghost")
    with pytest.raises(UnknownSubject):
        job_engine.start("p1", "gathering", "ghost")


def test_subject_gone_at_claim(job_engine, clock, applier, session_factory):
    started = job_engine.start("p1", "construction", "barracks")
    applier.missing.add("barracks")
    clock.advance(300)

    with pytest.raises(SubjectGone):
        job_engine.claim("p1", "construction")
    assert applier.calls == []
    with pytest.raises(NoActiveJob):
        job_engine.status("p1", "construction")

    db = session_factory()
    job = db.get(Job, started["job_id"])
    assert job.cancel_reason == "subject_gone"
    assert job.claimed_at is None
    db.close()


def test_subject_gone_during_apply(job_engine, clock, applier, session_factory):
    started = job_engine.start("p1", "gathering", "oak")
    applier.vanish_on_apply.add("oak")
    clock.advance(60)

    with pytest.raises(SubjectGone):
        job_engine.claim("p1", "gathering")

    db = session_factory()
    job = db.get(Job, started["job_id"])
    assert job.claimed_at is None
    assert job.cancel_reason == "subject_gone"
    db.close()


def test_applier_failure_rolls_back(job_engine, clock, applier):
    job_engine.start("p1", "gathering", "oak")
    clock.advance(60)

    def boom(owner_id, subject_ref, job_metadata):
        raise RuntimeError("inventory service down")

    original = applier.apply
    applier.apply = boom
    with pytest.raises(RuntimeError):
        job_engine.claim("p1", "gathering")

    assert job_engine.status("p1", "gathering")["status"] == "ready"
    applier.apply = original
    assert job_engine.claim("p1", "gathering")["result"]["granted"] == "oak"


def test_cancel(job_engine, clock, applier):
    started = job_engine.start("p1", "crafting", "sword")
    clock.advance(10)
    result = job_engine.cancel("p1", "crafting")
    assert result == {
        "job_id": started["job_id"],
        "category": "crafting",
        "status": "cancelled",
        "cancelled_at": clock.now(),
        "refunded": False,
    }
    assert applier.calls == []
    with pytest.raises(NoActiveJob):
        job_engine.cancel("p1", "crafting")


def test_per_category_applier(job_engine, clock, applier):
    class BuildingApplier(RewardApplier):
        def duration_for(self, subject_ref, meta=None):
            return 120

        def apply(self, owner_id, subject_ref, job_metadata):
            return {"building": subject_ref, "level": job_metadata["meta"].get("level", 1) + 1}

    job_engine.rewards.register("construction", BuildingApplier())
    started = job_engine.start("p1", "construction", "barracks", meta={"level": 2})
    assert started["remaining_seconds"] == 120

    clock.advance(120)
    assert job_engine.claim("p1", "construction")["result"] == {"building": "barracks", "level": 3}
    assert applier.calls == []


def test_finished_construction_needs_player_home(job_engine, clock, positions, applier):
    job_engine.start("p1", "construction", "house")
    clock.advance(300)
    positions.move("p1", 500, 500)

    status = job_engine.status("p1", "construction")
    assert status["status"] == "paused"
    assert status["remaining_seconds"] == 0
    with pytest.raises(NotReady) as exc:
        job_engine.claim("p1", "construction")
    assert exc.value.details["status"] == "paused"
    assert applier.calls == []

    clock.advance(60)
    positions.go_home("p1")
    assert job_engine.status("p1", "construction")["status"] == "ready"
    assert job_engine.claim("p1", "construction")["result"]["granted"] == "house"
