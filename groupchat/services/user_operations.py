"""User Operations: registration, alone or together with a first group.

Invariants:
    - A duplicate user name is ExistedResourceError, never a raw DatabaseError
    - create_user_and_group commits user, group and owner membership together
      or not at all

Design Decisions:
    - The unique constraint on users.name is the duplicate check: no
      read-before-insert, the storage layer decides
"""

import logging
from datetime import timedelta

from groupchat.core.domain_types import UserGroupInfo, UserInfo
from groupchat.core.enforce_membership import (
    require_capacity, require_text, require_ttl,
)
from groupchat.core.errors import ExistedResourceError
from groupchat.infrastructure.database import DatabaseSessionManager
from groupchat.models.user import User
from groupchat.services.group_operations import add_group_with_owner
from groupchat.services.records import to_group_info, to_user_info
from groupchat.services.storage_boundary import translate_storage_errors

logger = logging.getLogger(__name__)


def _user_exists(name: str) -> ExistedResourceError:
    return ExistedResourceError(f"User '{name}' already exists")


class UserOperations:
    """User registration operations."""

    def __init__(self, db: DatabaseSessionManager):
        self.db = db

    async def register_user(self, name: str) -> UserInfo:
        name = require_text(name, "name")

        async with translate_storage_errors(
            "register_user", on_conflict=lambda: _user_exists(name),
        ):
            async with self.db.transaction() as session:
                user = User(name=name)
                session.add(user)
                await session.flush()
                info = to_user_info(user)

        logger.info(f"User {info.id} registered", extra={"user_id": info.id})
        return info

    async def create_user_and_group(
        self, user_name: str, group_name: str, max_member: int, ttl: timedelta,
    ) -> UserGroupInfo:
        """Register a user and create the group they own, atomically."""
        user_name = require_text(user_name, "user_name")
        group_name = require_text(group_name, "group_name")
        require_capacity(max_member)
        require_ttl(ttl)

        async with translate_storage_errors(
            "create_user_and_group",
            on_conflict=lambda: _user_exists(user_name),
            atomic=True,
        ):
            async with self.db.transaction() as session:
                user = User(name=user_name)
                session.add(user)
                await session.flush()
                group = await add_group_with_owner(
                    session, user.id, group_name, max_member, ttl,
                )
                info = UserGroupInfo(
                    user=to_user_info(user), group=to_group_info(group),
                )

        logger.info(
            f"User {info.user.id} registered with group {info.group.id}",
            extra={"user_id": info.user.id, "group_id": info.group.id},
        )
        return info
