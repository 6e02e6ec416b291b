"""
Shared pytest fixtures for voyage reporting tests.

Environment variables are set before any api.* import so that
api.config.settings and the engine in api.database pick up the in-memory
SQLite database. api.database gives in-memory SQLite a StaticPool, so every
session in a test sees the same database.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Section 1: Environment setup (before ANY api.* imports)
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DB_ECHO", "false")
os.environ.setdefault("LOG_LEVEL", "warning")
os.environ.setdefault("ENFORCE_BLS_LIMIT", "true")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from api.database import Base, get_db, engine as test_engine  # noqa: E402
import api.models  # noqa: E402,F401 (register ORM models)

from src.reporting import (  # noqa: E402
    InMemoryReportStore,
    ReportStateMachine,
    ReviewWorkflow,
    Vessel,
    VesselLockRegistry,
)

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine
)

# ---------------------------------------------------------------------------
# Section 2: Core database + client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    """Fresh schema per test.

    The reporting store commits its own transactions, so isolation comes
    from recreating the tables rather than from an outer rollback.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    """Create a FastAPI TestClient with database dependency override."""
    from api.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_vessel(db):
    """Create a vessel row (BLS 50,000 MT)."""
    from api.models import Vessel as VesselRow

    vessel = VesselRow(
        name="Ocean Star",
        flag="Panama",
        current_captain="Capt. Rivera",
        bls=50000.0,
    )
    db.add(vessel)
    db.commit()
    db.refresh(vessel)

    return vessel


# ---------------------------------------------------------------------------
# Section 3: In-memory reporting core fixtures
# ---------------------------------------------------------------------------


class FakeClock:
    """UTC clock advancing one minute per reading."""

    def __init__(self, start=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    """In-memory store with two vessels."""
    return InMemoryReportStore(vessels=[
        Vessel(id=1, name="Ocean Star", flag="Panama", current_captain="Capt. Rivera", bls=50000.0),
        Vessel(id=2, name="Nordic Wind", flag="Norway", current_captain="Capt. Berg", bls=0.0),
    ])


@pytest.fixture
def vessel_locks():
    return VesselLockRegistry()


@pytest.fixture
def machine(memory_store, vessel_locks, clock):
    return ReportStateMachine(memory_store, locks=vessel_locks, clock=clock)


@pytest.fixture
def workflow(memory_store, vessel_locks, clock):
    return ReviewWorkflow(memory_store, locks=vessel_locks, clock=clock)


# ---------------------------------------------------------------------------
# Section 4: Report payload builders
# ---------------------------------------------------------------------------


def departure_data(**overrides):
    """Departure payload: 1000 NM voyage, 50 NM harbour leg, 500 MT LSIFO on board."""
    data = {
        "departure_port": "Rotterdam",
        "destination_port": "Singapore",
        "voyage_distance": 1000,
        "harbour_distance": 50,
        "cargo_status": "loaded",
        "cargo_type": "Grain",
        "cargo_quantity": 30000,
        "initial_rob_lsifo": 500,
        "initial_rob_lsmgo": 100,
        "me_lsifo": 10,
    }
    data.update(overrides)
    return data


def noon_data(passage_state="noon", distance=200, **overrides):
    data = {
        "passage_state": passage_state,
        "distance_since_last_report": distance,
        "me_lsifo": 5,
    }
    data.update(overrides)
    return data


def arrival_data(distance=100, **overrides):
    data = {
        "distance_since_last_report": distance,
        "lsifo_consumed": 3,
        "lsmgo_consumed": 1,
    }
    data.update(overrides)
    return data


def berth_data(**overrides):
    data = {
        "harbour_lsifo_consumed": 1,
        "harbour_lsmgo_consumed": 0.5,
    }
    data.update(overrides)
    return data


@pytest.fixture
def payloads():
    """Payload builders as fixture attributes (departure, noon, arrival, berth)."""
    class _Payloads:
        departure = staticmethod(departure_data)
        noon = staticmethod(noon_data)
        arrival = staticmethod(arrival_data)
        berth = staticmethod(berth_data)
    return _Payloads
