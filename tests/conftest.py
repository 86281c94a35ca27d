"""Pytest configuration for the event registration service tests."""
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    # Insert at front so local package imports resolve
    sys.path.insert(0, str(REPO_ROOT))

# Settings are read on first import, so the environment is set up front
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from httpx import ASGITransport, AsyncClient  # noqa: E402

from eventreg import crud  # noqa: E402
from eventreg.api import deps  # noqa: E402
from eventreg.core.database_manager import DatabaseManager  # noqa: E402
from eventreg.core.security import create_access_token  # noqa: E402
from eventreg.main import app  # noqa: E402
from eventreg.models.event import Event  # noqa: E402
from eventreg.models.user import UserRole  # noqa: E402

PASSWORD = "correct horse"


@pytest.fixture
async def database(tmp_path):
    """A fresh file-backed database per test.

    A file rather than ``:memory:`` so that concurrent sessions get their
    own connections and real transaction isolation.
    """
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
async def db(database):
    async with database.get_session() as session:
        yield session


@pytest.fixture
def make_account(db):
    """Factory storing an account with the given role."""
    counter = {"n": 0}

    async def _make(role: UserRole = UserRole.USER, email: str = None):
        counter["n"] += 1
        email = email or f"{role.value}{counter['n']}@example.com"
        user = crud.user.build(
            username=f"{role.value}-{counter['n']}",
            email=email,
            password=PASSWORD,
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(db):
    """Factory storing an event directly, bypassing the role checks."""

    async def _make(
        owner,
        *,
        name: str = "Tech Conference",
        days_ahead: float = 30,
        capacity: int = 10,
        ticket_price: float = 100.0,
        dynamic_pricing: bool = False,
    ):
        event = Event(
            name=name,
            date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
            capacity=capacity,
            ticket_price=ticket_price,
            dynamic_pricing=dynamic_pricing,
            attendees_count=0,
            ratings=[],
            created_by=owner.id,
            attendee_links=[],
        )
        db.add(event)
        await db.commit()
        return event

    return _make


@pytest.fixture
def auth_headers():
    def _headers(account) -> dict:
        return {"Authorization": f"Bearer {create_access_token(account.email)}"}

    return _headers


@pytest.fixture
async def client(database):
    """HTTP client against the app, wired to the per-test database."""

    async def override_get_db():
        async with database.get_session() as session:
            yield session

    app.dependency_overrides[deps.get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
