"""Database Session Manager: bounded pool, scoped acquisition and classified failures.

Tests cover:
    - With pool_size=1 a second acquisition waits until the first releases
    - Acquisition past pool_timeout fails with DatabaseConnectionError
    - Sessions return their connection on success and on failure
    - Storage failures inside a session surface as DBError, with rollback
    - Transactions commit on success and roll back on domain errors
    - Readiness check reports healthy / unhealthy
    - Constraint violations log at WARNING, other storage failures at ERROR
"""

import asyncio
import logging

import pytest
from sqlalchemy import func, select, text

import groupchat.infrastructure.database as database
from groupchat.core.errors import (
    ConstraintViolation, DatabaseConnectionError, ForbiddenError, QueryError,
)
from groupchat.infrastructure.database import DatabaseSessionManager
from groupchat.models.user import User


@pytest.fixture
async def single_connection_manager(database_url):
    manager = DatabaseSessionManager(
        database_url, pool_size=1, max_overflow=0, pool_timeout=5.0,
    )
    await manager.create_schema()
    yield manager
    await manager.dispose()


async def test_second_acquire_waits_for_release(single_connection_manager):
    manager = single_connection_manager
    release = asyncio.Event()
    order: list[str] = []
    peak: list[int] = []

    async def first():
        async with manager.connect():
            order.append("first")
            peak.append(manager.engine.pool.checkedout())
            await release.wait()

    async def second():
        async with manager.connect():
            order.append("second")
            peak.append(manager.engine.pool.checkedout())

    first_task = asyncio.create_task(first())
    while not order:
        await asyncio.sleep(0.01)
    second_task = asyncio.create_task(second())
    await asyncio.sleep(0.2)

    assert order == ["first"]
    assert not second_task.done()

    release.set()
    await asyncio.gather(first_task, second_task)

    assert order == ["first", "second"]
    assert max(peak) == 1
    assert manager.engine.pool.checkedout() == 0


async def test_acquire_times_out_with_connection_error(database_url):
    manager = DatabaseSessionManager(
        database_url, pool_size=1, max_overflow=0, pool_timeout=0.2,
    )
    try:
        async with manager.connect():
            with pytest.raises(DatabaseConnectionError):
                async with manager.connect():
                    pass
    finally:
        await manager.dispose()


async def test_max_connections_is_explicit(database_url):
    manager = DatabaseSessionManager(database_url)
    try:
        assert manager.max_connections == 10
    finally:
        await manager.dispose()


async def test_session_releases_connection_after_failure(manager):
    with pytest.raises(QueryError):
        async with manager.session() as session:
            await session.execute(text("SELECT * FROM no_such_table"))
    assert manager.engine.pool.checkedout() == 0


async def test_constraint_failure_is_classified_and_rolled_back(manager):
    async with manager.transaction() as session:
        session.add(User(name="ann"))

    with pytest.raises(ConstraintViolation):
        async with manager.transaction() as session:
            session.add(User(name="bob"))
            await session.flush()
            session.add(User(name="ann"))
            await session.flush()

    async with manager.session() as session:
        names = (await session.scalars(select(User.name))).all()
    assert names == ["ann"]


async def test_transaction_rolls_back_on_domain_error(manager):
    with pytest.raises(ForbiddenError):
        async with manager.transaction() as session:
            session.add(User(name="carol"))
            await session.flush()
            raise ForbiddenError()

    async with manager.session() as session:
        count = await session.scalar(select(func.count()).select_from(User))
    assert count == 0


async def test_health_check_reports_ready(manager):
    assert await manager.health_check() is True


async def test_health_check_reports_unreachable_database(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nested.db'}",
        pool_size=1,
    )
    try:
        assert await manager.health_check() is False
    finally:
        await manager.dispose()


async def test_get_db_manager_requires_init(monkeypatch):
    monkeypatch.setattr(database, "db_manager", None)
    with pytest.raises(RuntimeError, match="not initialized"):
        database.get_db_manager()


async def test_init_and_close_db(database_url, monkeypatch):
    monkeypatch.setattr(database, "db_manager", None)
    created = database.init_db(database_url, pool_size=2)
    assert database.get_db_manager() is created
    await database.close_db()
    assert database.db_manager is None


async def test_constraint_violation_logged_as_warning(manager, caplog):
    async with manager.transaction() as session:
        session.add(User(name="ann"))

    with caplog.at_level(logging.WARNING, logger="groupchat.infrastructure.database"):
        with pytest.raises(ConstraintViolation):
            async with manager.transaction() as session:
                session.add(User(name="ann"))

    levels = {r.levelno for r in caplog.records if r.name.endswith("database")}
    assert levels == {logging.WARNING}


async def test_query_failure_logged_as_error(manager, caplog):
    with caplog.at_level(logging.WARNING, logger="groupchat.infrastructure.database"):
        with pytest.raises(QueryError):
            async with manager.session() as session:
                await session.execute(text("SELECT * FROM no_such_table"))

    record = next(r for r in caplog.records if r.name.endswith("database"))
    assert record.levelno == logging.ERROR
    assert record.error_code == "query_error"


async def test_pool_status_reports_usage(manager):
    async with manager.connect():
        status = manager.pool_status()
    assert status["checked_out"] == 1
    assert status["size"] == 5
    assert status["max_connections"] == 5
    assert manager.pool_status()["checked_out"] == 0
