"""Shared test fixtures.

Tests run against a throwaway SQLite file unless FB_DATABASE_URL already
points somewhere else. The variable must be set before fieldbook is imported,
because the engine is created at import time.
"""

import os
import tempfile
from datetime import timedelta
from pathlib import Path

_TEST_DB = Path(tempfile.gettempdir()) / f"fieldbook-test-{os.getpid()}.db"
os.environ.setdefault("FB_DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB}")
os.environ["FB_TELEGRAM_BOT_TOKEN"] = ""

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from fieldbook.core.auth import create_access_token, hash_password  # noqa: E402
from fieldbook.core.database import async_session_factory, engine  # noqa: E402
from fieldbook.main import app  # noqa: E402
from fieldbook.models import Base, Field, User, UserRole  # noqa: E402
from fieldbook.services.civil_day import today  # noqa: E402


@pytest.fixture(autouse=True)
async def _dispose_engine_pool():
    """Dispose stale engine pool connections before each test.

    The global engine is created at import time. When pytest-asyncio creates a new
    event loop for tests, any existing pooled connections are bound to the old loop
    and will fail with 'Future attached to a different loop'. Disposing before each
    test forces fresh connections in the current loop.
    """
    await engine.dispose()
    yield


def pytest_sessionfinish(session, exitstatus):
    _TEST_DB.unlink(missing_ok=True)


@pytest.fixture
async def schema():
    """Fresh tables for every test that touches the database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture
async def client(schema):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def staff(schema):
    """One OWNER and one ADMIN account, both with password "password123"."""
    async with async_session_factory() as db:
        owner = User(
            email="owner@futsal.com",
            hashed_password=hash_password("password123"),
            name="Field Owner",
            role=UserRole.OWNER,
        )
        admin = User(
            email="admin@futsal.com",
            hashed_password=hash_password("password123"),
            name="Booking Admin",
            role=UserRole.ADMIN,
        )
        db.add_all([owner, admin])
        await db.commit()
    return {"owner": owner, "admin": admin}


def _auth(user: User) -> dict:
    token = create_access_token(str(user.id), {"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(staff):
    return _auth(staff["owner"])


@pytest.fixture
def admin_headers(staff):
    return _auth(staff["admin"])


@pytest.fixture
async def field_a(schema):
    async with async_session_factory() as db:
        field = Field(name="Lapangan A", description="Main pitch", price_per_hour=150000)
        db.add(field)
        await db.commit()
    return field


@pytest.fixture
async def inactive_field(schema):
    async with async_session_factory() as db:
        field = Field(name="Lapangan Z", price_per_hour=100000, is_active=False)
        db.add(field)
        await db.commit()
    return field


@pytest.fixture
def future_day():
    """A civil day far enough ahead that nothing is in the past or inside the cancellation window."""
    return today() + timedelta(days=30)
