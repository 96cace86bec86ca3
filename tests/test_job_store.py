"""
Tests for the job store: slot invariant, persistence, optimistic locking
"""

import pytest
from sqlalchemy.exc import IntegrityError

from jobengine.errors import NoActiveJob, SlotOccupied, StaleState
from jobengine.models import Job


def test_one_active_job_per_slot(job_engine):
    first = job_engine.start("p1", "gathering", "oak")
    with pytest.raises(SlotOccupied) as exc:
        job_engine.start("p1", "gathering", "pine")
    assert exc.value.details["job_id"] == first["job_id"]
    assert exc.value.to_dict()["error"] == "slot_occupied"


def test_slots_are_independent(job_engine):
    job_engine.start("p1", "gathering", "oak")
    job_engine.start("p1", "crafting", "sword")
    job_engine.start("p2", "gathering", "oak")
    assert len(job_engine.overview("p1")) == 2


def test_slot_frees_after_claim(job_engine, clock):
    job_engine.start("p1", "gathering", "oak")
    clock.advance(60)
    job_engine.claim("p1", "gathering")
    second = job_engine.start("p1", "gathering", "pine")
    assert second["subject_ref"] == "pine"


def test_database_rejects_second_active_row(session_factory):
    db = session_factory()
    for job_id in ("a", "b"):
        db.add(Job(id=job_id, owner_id="p1", category="gathering", subject_ref="oak", meta={},
                   started_at=0, finish_at=60, requires_location_gate=False,
                   accumulated_pause_seconds=0))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
    db.close()


def test_terminated_rows_do_not_count(session_factory):
    db = session_factory()
    db.add(Job(id="old", owner_id="p1", category="gathering", subject_ref="oak", meta={},
               started_at=0, finish_at=60, requires_location_gate=False,
               accumulated_pause_seconds=0, cancelled_at=10, cancel_reason="user"))
    db.add(Job(id="new", owner_id="p1", category="gathering", subject_ref="oak", meta={},
               started_at=20, finish_at=80, requires_location_gate=False,
               accumulated_pause_seconds=0))
    db.commit()
    db.close()


def test_status_is_recomputed(job_engine, clock):
    job_engine.start("p1", "gathering", "oak")
    assert job_engine.status("p1", "gathering")["remaining_seconds"] == 60
    clock.advance(45)
    assert job_engine.status("p1", "gathering")["remaining_seconds"] == 15
    clock.advance(15)
    status = job_engine.status("p1", "gathering")
    assert status["status"] == "ready"
    assert status["elapsed_seconds"] == 60


def test_status_without_job(job_engine):
    with pytest.raises(NoActiveJob):
        job_engine.status("p1", "gathering")


def test_pause_is_persisted(job_engine, clock, positions, session_factory):
    started = job_engine.start("p1", "construction", "barracks")
    clock.advance(50)
    positions.move("p1", 500, 0)
    assert job_engine.status("p1", "construction")["status"] == "paused"

    db = session_factory()
    job = db.get(Job, started["job_id"])
    assert job.paused_at == clock.now()
    assert job.version == 2
    db.close()

    clock.advance(40)
    positions.go_home("p1")
    status = job_engine.status("p1", "construction")
    assert status["status"] == "running"
    assert status["accumulated_pause_seconds"] == 40
    assert status["effective_finish_at"] == started["finish_at"] + 40


def test_concurrent_write_is_stale(job_engine, session_factory):
    started = job_engine.start("p1", "gathering", "oak")

    other = session_factory()
    job = other.get(Job, started["job_id"])
    job_engine.cancel("p1", "gathering")

    job.paused_at = 1
    with pytest.raises(StaleState):
        job_engine.store._commit(other)
    other.close()
