"""
Pytest fixtures for Peptide Tracker tests.
"""
import uuid
from datetime import date, datetime

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from server.peptide_api.database import DatabaseManager
from server.peptide_api.models import (
    DoseRange,
    Injection,
    InjectionSite,
    Peptide,
    PeptideCreate,
    Protocol,
    ProtocolCreate,
    ScheduleConfig,
)
from server.peptide_api.services.store import TrackerStore, get_store

# Load environment variables
load_dotenv()

# A Wednesday; its week opens on Sunday 2026-03-08
FIXED_NOW = datetime(2026, 3, 11, 12, 0)


# ============================================================================
# Model factories for the pure analytics functions
# ============================================================================

@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def make_peptide():
    """Factory fixture building Peptide models without a database."""

    def _make(**overrides) -> Peptide:
        values = {
            "id": "pep-bpc",
            "user_id": "user-1",
            "name": "BPC-157",
            "is_custom": True,
            "category": "recovery",
            "typical_dose_range": DoseRange(min=0.25, max=0.5, unit="mg", frequency="daily"),
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        values.update(overrides)
        return Peptide(**values)

    return _make


@pytest.fixture
def make_protocol():
    """Factory fixture building Protocol models; daily 1 mg by default."""

    def _make(**overrides) -> Protocol:
        values = {
            "id": f"proto-{uuid.uuid4().hex[:8]}",
            "user_id": "user-1",
            "peptide_id": "pep-bpc",
            "name": "BPC-157 Daily",
            "daily_target": 1.0,
            "schedule_type": "daily",
            "schedule_config": ScheduleConfig(),
            "start_date": date(2026, 3, 1),
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        days = overrides.pop("days", None)
        if days is not None:
            values["schedule_config"] = ScheduleConfig(days=days)
        values.update(overrides)
        return Protocol(**values)

    return _make


@pytest.fixture
def make_injection():
    """Factory fixture building Injection models; 1 mg in the left abdomen."""

    def _make(timestamp: datetime, **overrides) -> Injection:
        location = overrides.pop("location", "abdomen")
        side = overrides.pop("side", "left")
        values = {
            "id": f"inj-{uuid.uuid4().hex[:8]}",
            "user_id": "user-1",
            "peptide_id": "pep-bpc",
            "dose": 1.0,
            "dose_unit": "mg",
            "injection_site": InjectionSite(location=location, side=side),
            "timestamp": timestamp,
            "peptide_name": "BPC-157",
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        values.update(overrides)
        return Injection(**values)

    return _make


# ============================================================================
# Database-backed fixtures
# ============================================================================

@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with the tracker schema."""
    manager = DatabaseManager(db_path=str(tmp_path / "peptide_test.db"))
    manager.init_schema()
    return manager


@pytest.fixture
def store(db):
    return TrackerStore(db)


@pytest.fixture
def user(store):
    return store.get_or_create_user("user_test_123", "tester@example.com")


@pytest.fixture
def peptide(store, user):
    return store.create_peptide(user.id, PeptideCreate(
        name="BPC-157",
        category="recovery",
        typical_dose_range=DoseRange(min=0.25, max=0.5, unit="mg", frequency="daily"),
        safety_notes=["Rotate injection sites"],
    ))


@pytest.fixture
def protocol(store, user, peptide):
    """Daily 1 mg protocol that started before the fixed test week."""
    return store.create_protocol(user.id, ProtocolCreate(
        peptide_id=peptide.id,
        name="BPC-157 Daily",
        daily_target=1.0,
        schedule_type="daily",
        start_date=date(2026, 1, 1),
    ))


@pytest.fixture
def client(store):
    """TestClient with the store dependency bound to the test database."""
    from server.peptide_api.main import app

    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    return {"X-User-Id": user.external_id}
