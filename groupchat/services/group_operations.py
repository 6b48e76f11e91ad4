"""Group Operations: create groups, join with capacity check, list memberships.

Invariants:
    - create_group_with_user writes the group and the owner's joined membership
      in one transaction; a failure of either write commits nothing
    - join_group holds the group row lock from the capacity read to the insert,
      so joined count never exceeds max_member under concurrent joins
    - A second join of the same (user, group) fails with AlreadyJoinedError,
      whatever the first join's status was
    - Storage failures leave this module as DatabaseError (services/storage_boundary.py)

Design Decisions:
    - Duplicate membership checked explicitly and by the unique constraint; a
      constraint hit is also reported as AlreadyJoinedError
    - Owner and joiner existence checked up front: a missing row is NotFoundError,
      not a foreign-key ConstraintViolation
"""

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.core.domain_types import (
    GroupDetail, GroupInfo, GroupMembershipInfo, MembershipInfo, MembershipStatus,
)
from groupchat.core.enforce_membership import (
    compute_expiry, decide_membership_status, require_capacity, require_text,
    require_ttl, utcnow,
)
from groupchat.core.errors import AlreadyJoinedError, ErrorContext, NotFoundError
from groupchat.infrastructure.database import DatabaseSessionManager
from groupchat.models.group import Group
from groupchat.models.membership import Membership
from groupchat.models.user import User
from groupchat.services.queries import (
    count_members_by_status, find_membership, lock_group, select_latest_messages,
)
from groupchat.services.records import (
    to_group_info, to_membership_info,
)
from groupchat.services.storage_boundary import translate_storage_errors

logger = logging.getLogger(__name__)


async def add_group_with_owner(
    session: AsyncSession, owner_id: int, name: str, max_member: int, ttl: timedelta,
) -> Group:
    """Insert a group and its owner's joined membership. Caller owns the transaction."""
    created_at = utcnow()
    group = Group(
        name=name,
        user_id=owner_id,
        max_member=max_member,
        created_at=created_at,
        expired_at=compute_expiry(created_at, ttl),
    )
    session.add(group)
    await session.flush()
    session.add(Membership(
        user_id=owner_id,
        group_id=group.id,
        status=MembershipStatus.JOINED.value,
        joined_at=created_at,
    ))
    await session.flush()
    return group


class GroupOperations:
    """Group creation, membership and group read operations."""

    def __init__(self, db: DatabaseSessionManager, default_message_limit: int = 50):
        self.db = db
        self.default_message_limit = default_message_limit

    async def create_group_with_user(
        self, owner_id: int, name: str, max_member: int, ttl: timedelta,
    ) -> GroupInfo:
        """Create a group owned by an existing user; the owner is auto-joined."""
        name = require_text(name, "name")
        require_capacity(max_member)
        require_ttl(ttl)
        ctx = ErrorContext(user_id=owner_id)

        async with translate_storage_errors(
            "create_group_with_user", atomic=True, context=ctx,
        ):
            async with self.db.transaction() as session:
                if await session.get(User, owner_id) is None:
                    raise NotFoundError(f"user {owner_id}", ctx)
                group = await add_group_with_owner(
                    session, owner_id, name, max_member, ttl,
                )
                info = to_group_info(group)

        logger.info(
            f"Group {info.id} created by user {owner_id}",
            extra={"group_id": info.id, "user_id": owner_id},
        )
        return info

    async def join_group(self, user_id: int, group_id: int) -> MembershipInfo:
        """Join a group: joined while below capacity, waiting afterwards."""
        ctx = ErrorContext(user_id=user_id, group_id=group_id)

        async with translate_storage_errors(
            "join_group", on_conflict=lambda: AlreadyJoinedError(ctx), context=ctx,
        ):
            async with self.db.transaction() as session:
                group = await lock_group(session, group_id)
                if group is None:
                    raise NotFoundError(f"group {group_id}", ctx)
                if await session.get(User, user_id) is None:
                    raise NotFoundError(f"user {user_id}", ctx)
                if await find_membership(session, user_id, group_id) is not None:
                    raise AlreadyJoinedError(ctx)

                counts = await count_members_by_status(session, group_id)
                status = decide_membership_status(
                    counts[MembershipStatus.JOINED], group.max_member,
                )
                membership = Membership(
                    user_id=user_id,
                    group_id=group_id,
                    status=status.value,
                    joined_at=utcnow(),
                )
                session.add(membership)
                await session.flush()
                info = to_membership_info(membership)

        logger.info(
            f"User {user_id} {info.status.value} group {group_id}",
            extra={"group_id": group_id, "user_id": user_id},
        )
        return info

    async def list_groups_for_user(self, user_id: int) -> list[GroupMembershipInfo]:
        """Groups the user has joined or is waiting on, ordered by group id."""
        async with translate_storage_errors(
            "list_groups_for_user", context=ErrorContext(user_id=user_id),
        ):
            async with self.db.session() as session:
                result = await session.execute(
                    select(Group, Membership.status)
                    .join(Membership, Membership.group_id == Group.id)
                    .where(Membership.user_id == user_id)
                    .order_by(Group.id)
                )
                return [
                    GroupMembershipInfo(
                        group=to_group_info(group),
                        status=MembershipStatus(status),
                    )
                    for group, status in result.all()
                ]

    async def get_group_detail(
        self, group_id: int, limit: int | None = None,
    ) -> GroupDetail:
        """Group fields, member counts per status, and its latest messages."""
        limit = self.default_message_limit if limit is None else limit
        ctx = ErrorContext(group_id=group_id)

        async with translate_storage_errors("get_group_detail", context=ctx):
            async with self.db.session() as session:
                group = await session.get(Group, group_id)
                if group is None:
                    raise NotFoundError(f"group {group_id}", ctx)
                counts = await count_members_by_status(session, group_id)
                messages = (
                    await select_latest_messages(session, group_id, limit)
                    if limit > 0 else []
                )
                return GroupDetail(
                    group=to_group_info(group),
                    joined_member=counts[MembershipStatus.JOINED],
                    waiting_member=counts[MembershipStatus.WAITING],
                    messages=messages,
                )
