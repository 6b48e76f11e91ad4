"""Message ORM: a post in a group by one of its joined members.

Invariants:
    - Always belongs to a Group and a User (FKs)
    - content is nullable (non-text message types may carry none)
    - created_at is non-decreasing per group in insertion order
      (stamped by MessageOperations.send_message)
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupchat.core.domain_types import MessageType
from groupchat.core.enforce_membership import utcnow
from groupchat.db.base import Base


class Message(Base):
    """Group message."""
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_group_created", "group_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id"), nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    message_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MessageType.TEXT.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow,
    )

    group: Mapped["Group"] = relationship("Group", back_populates="messages")
    author: Mapped["User"] = relationship("User")
