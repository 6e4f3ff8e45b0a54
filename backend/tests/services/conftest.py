"""Service test fixtures — wired services, fake mail, fixed clock, FastAPI client.

Invariants:
    - Every test gets a fresh in-memory SQLite database (root conftest)
    - The clock is fixed per test and shared by services, routes and the scheduler job
    - get_db, get_mail_transport and get_clock are overridden for route tests
    - db_manager patched so the scheduler job's per-step sessions hit the test DB
"""

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from reading_cohorts.api.dependencies import get_clock, get_mail_transport
from reading_cohorts.config import get_settings
from reading_cohorts.infrastructure.database import get_db, DatabaseSessionManager
import reading_cohorts.infrastructure.database as db_module
from reading_cohorts.main import app
from reading_cohorts.models.member import Member
from reading_cohorts.services.container import build_services

from tests.services.fakes import FakeMailTransport, FixedClock

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


@pytest.fixture
def clock():
    return FixedClock(date(2026, 1, 8))


@pytest.fixture
def mail():
    return FakeMailTransport()


@pytest.fixture
def services(test_db, mail, clock):
    return build_services(test_db, get_settings(), mail, clock)


@pytest.fixture
def make_member(test_db):
    """Insert a member; returns its id."""
    async def _make(name: str, email: str | None = None) -> int:
        member = Member(name=name, email=email or f"{name.lower()}@example.com")
        test_db.add(member)
        await test_db.commit()
        await test_db.refresh(member)
        return member.id
    return _make


@pytest.fixture
def fake_db_manager(test_engine, test_session_factory):
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    yield fake_manager
    db_module.db_manager = original_manager


@pytest.fixture
async def client(test_session_factory, fake_db_manager, mail, clock):
    """FastAPI test client with DB, mail and clock dependencies overridden."""
    async def override_get_db():
        async with fake_db_manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_transport] = lambda: mail
    app.dependency_overrides[get_clock] = lambda: clock
    app.state.scheduler_job = None

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    app.state.scheduler_job = None


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)
