"""Membership ORM: (user, group) relation with joined/waiting status.

Invariants:
    - (user_id, group_id) is unique: storage rejects a second join, which
      join_group reports as AlreadyJoinedError
    - status is one of MembershipStatus values (ck_group_members_status)
    - Append-only: no operation updates or deletes memberships
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupchat.core.domain_types import MembershipStatus
from groupchat.core.enforce_membership import utcnow
from groupchat.db.base import Base


class Membership(Base):
    """Membership of a user in a group."""
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_group_members_user_group"),
        CheckConstraint(
            "status IN ('joined', 'waiting')", name="ck_group_members_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True,
    )
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id"), nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MembershipStatus.JOINED.value,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow,
    )

    user: Mapped["User"] = relationship("User", back_populates="memberships")
    group: Mapped["Group"] = relationship("Group", back_populates="memberships")
