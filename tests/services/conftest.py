"""Service test fixtures: operation services bound to the per-test pool.

Invariants:
    - Every test gets a fresh SQLite file with the full schema
    - Services are constructed the way the app constructs them (manager injected)
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from groupchat.models.membership import Membership
from groupchat.services.group_operations import GroupOperations
from groupchat.services.message_operations import MessageOperations
from groupchat.services.user_operations import UserOperations

ONE_DAY = timedelta(days=1)


@pytest.fixture
def users(manager):
    return UserOperations(manager)


@pytest.fixture
def groups(manager):
    return GroupOperations(manager, default_message_limit=50)


@pytest.fixture
def messages(manager):
    return MessageOperations(manager, default_limit=50)


@pytest.fixture
def make_user(users):
    """Register a user with a unique name."""
    counter = {"n": 0}

    async def _make(name: str | None = None):
        counter["n"] += 1
        return await users.register_user(name or f"user-{counter['n']}")

    return _make


@pytest.fixture
def make_group(groups, make_user):
    """Create a group owned by a fresh user; returns (owner, group)."""

    async def _make(max_member: int = 3, name: str = "general"):
        owner = await make_user()
        group = await groups.create_group_with_user(
            owner.id, name, max_member, ONE_DAY,
        )
        return owner, group

    return _make


@pytest.fixture
def count_rows(manager):
    """Count memberships (optionally by status) or messages directly in the DB."""

    async def _count(model, group_id: int, status: str | None = None) -> int:
        query = select(func.count()).select_from(model).where(
            model.group_id == group_id,
        )
        if status is not None:
            query = query.where(Membership.status == status)
        async with manager.session() as session:
            return await session.scalar(query)

    return _count
