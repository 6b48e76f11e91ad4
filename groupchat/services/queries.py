"""Shared Queries: statements reused by more than one operation service.

Invariants:
    - lock_group takes a row lock (FOR UPDATE) on PostgreSQL; on SQLite the
      transaction already holds the database write lock
    - select_latest_messages orders by created_at desc, then id desc
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupchat.core.domain_types import MembershipStatus, MessageInfo
from groupchat.models.group import Group
from groupchat.models.membership import Membership
from groupchat.models.message import Message
from groupchat.models.user import User
from groupchat.services.records import to_message_info


async def lock_group(session: AsyncSession, group_id: int) -> Group | None:
    """Load the group row and hold it until the transaction ends."""
    return await session.scalar(
        select(Group).where(Group.id == group_id).with_for_update(),
    )


async def find_membership(
    session: AsyncSession, user_id: int, group_id: int,
) -> Membership | None:
    return await session.scalar(
        select(Membership)
        .where(Membership.user_id == user_id)
        .where(Membership.group_id == group_id)
    )


async def count_members_by_status(
    session: AsyncSession, group_id: int,
) -> dict[MembershipStatus, int]:
    result = await session.execute(
        select(Membership.status, func.count(Membership.id))
        .where(Membership.group_id == group_id)
        .group_by(Membership.status)
    )
    counts = {status: 0 for status in MembershipStatus}
    for status, count in result.all():
        counts[MembershipStatus(status)] = count
    return counts


async def select_latest_messages(
    session: AsyncSession, group_id: int, limit: int,
) -> list[MessageInfo]:
    result = await session.execute(
        select(Message, User.name)
        .join(User, User.id == Message.user_id)
        .where(Message.group_id == group_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
    )
    return [to_message_info(message, name) for message, name in result.all()]
