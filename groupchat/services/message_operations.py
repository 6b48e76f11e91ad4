"""Message Operations: post to a group and read its latest messages.

Invariants:
    - Only joined members may post; anyone else gets ForbiddenError and no row
      is written (waiting members included)
    - Message created_at is non-decreasing per group in insertion order: the
      group row is locked and the stamp is max(now, latest created_at)
    - list_latest_messages returns at most `limit` messages, newest first, and
      an empty list (not an error) for a group without messages

Design Decisions:
    - Membership read before the group lock: memberships are append-only and
      their status never changes, so the answer cannot go stale
"""

import logging

from sqlalchemy import func, select

from groupchat.core.domain_types import MembershipStatus, MessageInfo, MessageType
from groupchat.core.enforce_membership import (
    next_message_timestamp, require_message_content, require_text, utcnow,
)
from groupchat.core.errors import ErrorContext, ForbiddenError, NotFoundError
from groupchat.infrastructure.database import DatabaseSessionManager
from groupchat.models.message import Message
from groupchat.models.user import User
from groupchat.services.queries import (
    find_membership, lock_group, select_latest_messages,
)
from groupchat.services.records import to_message_info
from groupchat.services.storage_boundary import translate_storage_errors

logger = logging.getLogger(__name__)


class MessageOperations:
    """Message write and read operations."""

    def __init__(self, db: DatabaseSessionManager, default_limit: int = 50):
        self.db = db
        self.default_limit = default_limit

    async def send_message(
        self,
        user_id: int,
        group_id: int,
        content: str | None,
        message_type: str = MessageType.TEXT.value,
    ) -> MessageInfo:
        message_type = require_text(message_type, "message_type")
        content = require_message_content(content, message_type)
        ctx = ErrorContext(user_id=user_id, group_id=group_id)

        async with translate_storage_errors("send_message", context=ctx):
            async with self.db.transaction() as session:
                membership = await find_membership(session, user_id, group_id)
                if (
                    membership is None
                    or membership.status != MembershipStatus.JOINED.value
                ):
                    raise ForbiddenError(ctx)

                if await lock_group(session, group_id) is None:
                    raise NotFoundError(f"group {group_id}", ctx)
                latest = await session.scalar(
                    select(func.max(Message.created_at))
                    .where(Message.group_id == group_id)
                )
                message = Message(
                    group_id=group_id,
                    user_id=user_id,
                    content=content,
                    message_type=message_type,
                    created_at=next_message_timestamp(utcnow(), latest),
                )
                session.add(message)
                await session.flush()
                author = await session.get(User, user_id)
                info = to_message_info(message, author.name)

        logger.debug(
            f"Message {info.id} posted to group {group_id}",
            extra={"group_id": group_id, "user_id": user_id},
        )
        return info

    async def list_latest_messages(
        self, group_id: int, limit: int | None = None,
    ) -> list[MessageInfo]:
        """Latest messages of a group with author names, newest first."""
        limit = self.default_limit if limit is None else limit
        if limit <= 0:
            return []

        async with translate_storage_errors(
            "list_latest_messages", context=ErrorContext(group_id=group_id),
        ):
            async with self.db.session() as session:
                return await select_latest_messages(session, group_id, limit)
