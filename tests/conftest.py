"""Root conftest: shared test configuration and a file-backed SQLite pool."""

import os

import pytest

# Ensure tests never reach a real database through settings
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)

from groupchat.infrastructure.database import DatabaseSessionManager  # noqa: E402


@pytest.fixture
def database_url(tmp_path):
    """One SQLite file per test: pooled connections share it, tests don't."""
    return f"sqlite+aiosqlite:///{tmp_path / 'groupchat.db'}"


@pytest.fixture
async def manager(database_url):
    manager = DatabaseSessionManager(
        database_url, pool_size=5, max_overflow=0, pool_timeout=10.0,
    )
    await manager.create_schema()
    yield manager
    await manager.dispose()
