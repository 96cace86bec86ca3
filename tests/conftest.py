# tests/conftest.py
import pytest
from sqlalchemy.orm import sessionmaker

from jobengine.clock import FrozenClock
from jobengine.db import init_db, make_engine
from jobengine.services.engine import JobEngine
from jobengine.services.location_gate import PositionProvider
from jobengine.services.rewards import RewardApplier, RewardRegistry, SubjectGoneError

T0 = 1_700_000_000


class InMemoryPositionProvider(PositionProvider):
    """Player coordinates kept in dicts; everyone starts at home (0, 0)"""

    def __init__(self):
        self.positions = {}
        self.homes = {}

    def get_position(self, owner_id):
        return self.positions.get(str(owner_id), (0.0, 0.0))

    def get_home_position(self, owner_id):
        return self.homes.get(str(owner_id), (0.0, 0.0))

    def move(self, owner_id, x, y):
        self.positions[str(owner_id)] = (float(x), float(y))

    def go_home(self, owner_id):
        self.positions.pop(str(owner_id), None)


class RecordingApplier(RewardApplier):
    def __init__(self):
        self.calls = []
        self.missing = set()
        self.vanish_on_apply = set()
        self.durations = {}

    def subject_exists(self, subject_ref):
        return subject_ref not in self.missing

    def duration_for(self, subject_ref, meta=None):
        return self.durations.get(subject_ref)

    def apply(self, owner_id, subject_ref, job_metadata):
        if subject_ref in self.vanish_on_apply:
            raise SubjectGoneError(subject_ref)
        self.calls.append((owner_id, subject_ref, job_metadata["job_id"]))
        return {"granted": subject_ref, "grant_no": len(self.calls)}


@pytest.fixture
def db_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture
def positions():
    return InMemoryPositionProvider()


@pytest.fixture
def applier():
    return RecordingApplier()


@pytest.fixture
def job_engine(session_factory, clock, positions, applier):
    return JobEngine(
        session_factory=session_factory,
        clock=clock,
        positions=positions,
        rewards=RewardRegistry(default=applier),
    )


@pytest.fixture
def client(job_engine):
    from fastapi.testclient import TestClient
    from jobengine.api.deps import get_job_engine
    from jobengine.main import app

    app.dependency_overrides[get_job_engine] = lambda: job_engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer TEST_ADMIN_KEY"}


@pytest.fixture
def player_headers():
    return {"X-Player-Id": "p1"}
