"""Application lifespan: pool and operation services built from settings."""

import logging

import pytest

import groupchat.infrastructure.database as database
from groupchat.config import Settings
from groupchat.main import create_app, lifespan
from groupchat.services.group_operations import GroupOperations
from groupchat.services.message_operations import MessageOperations
from groupchat.services.user_operations import UserOperations


@pytest.fixture
def settings(database_url, monkeypatch):
    configured = Settings(
        database_url=database_url,
        database_pool_size=3,
        default_message_limit=7,
        log_format="plain",
    )
    monkeypatch.setattr("groupchat.main.get_settings", lambda: configured)
    monkeypatch.setattr(database, "db_manager", None)
    yield configured
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == "groupchat":
            root.removeHandler(handler)


async def test_lifespan_builds_services_from_settings(settings):
    app = create_app()
    async with lifespan(app):
        manager = database.get_db_manager()
        assert manager.max_connections == 3
        assert isinstance(app.state.users, UserOperations)
        assert isinstance(app.state.groups, GroupOperations)
        assert isinstance(app.state.messages, MessageOperations)
        assert app.state.groups.db is manager
        assert app.state.groups.default_message_limit == 7
        assert app.state.messages.default_limit == 7
    assert database.db_manager is None


async def test_lifespan_services_share_the_pool(settings):
    app = create_app()
    async with lifespan(app):
        await database.get_db_manager().create_schema()
        user = await app.state.users.register_user("ann")
        groups = await app.state.groups.list_groups_for_user(user.id)
    assert groups == []
