"""Root conftest — shared fixtures: per-test SQLite store, repository, API client.

Invariants:
    - Every test gets a fresh file-backed SQLite database under tmp_path
    - get_db_manager and get_settings overridden through app.dependency_overrides
    - The repository clock is a FakeClock so timestamp assertions are exact

Design Decisions:
    - File-backed over :memory:: aiosqlite shares a single connection for
      in-memory databases, which would serialize the concurrency tests
    - Real DatabaseSessionManager (not a stub): transaction and error
      classification paths are exercised by every repository test
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

# Never touch a developer's real store or .env token
os.environ.setdefault("LEDGER_BACKEND_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LEDGER_BACKEND_DATABASE_AUTO_CREATE", "false")

from ledger_backend.config import Settings, get_settings  # noqa: E402
from ledger_backend.infrastructure import database as db_module  # noqa: E402
from ledger_backend.infrastructure.category_repository import (  # noqa: E402
    SqlCategoryRepository,
)
from ledger_backend.infrastructure.database import (  # noqa: E402
    DatabaseSessionManager, get_db_manager,
)
from ledger_backend.main import app  # noqa: E402

ADMIN_TOKEN = "test-admin-token"


class FakeClock:
    """Deterministic UTC clock; each reading advances by `step`."""

    def __init__(
        self,
        start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now


@pytest.fixture
async def db_manager(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", timeout_seconds=5.0,
    )
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo(db_manager, clock):
    return SqlCategoryRepository(
        db_manager, default_page_size=50, max_page_size=1000, clock=clock,
    )


@pytest.fixture
def admin_token():
    return ADMIN_TOKEN


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        admin_token=ADMIN_TOKEN,
        page_size_default=50,
        page_size_max=1000,
    )


@pytest.fixture
async def client(db_manager, settings):
    """FastAPI test client bound to the per-test store."""
    app.dependency_overrides[get_db_manager] = lambda: db_manager
    app.dependency_overrides[get_settings] = lambda: settings

    # Readiness probe reads the module-level manager directly
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
