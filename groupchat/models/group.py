"""Group ORM: fixed-capacity chat group owned by one user.

Invariants:
    - max_member fixed at creation, always >= 1 (check constraint)
    - expired_at = created_at + ttl, set by the creating operation
    - The owner is also a member (joined), written in the same transaction

Design Decisions:
    - Naive UTC timestamps (DateTime without timezone): identical round-trip on
      SQLite and PostgreSQL, enables max(now, latest) comparisons in Python
    - Group row doubles as the lock target for capacity checks (SELECT ... FOR UPDATE)
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupchat.core.enforce_membership import utcnow
from groupchat.db.base import Base


class Group(Base):
    """Chat group - aggregate root for memberships and messages."""
    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint("max_member >= 1", name="ck_groups_max_member_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True,
    )
    max_member: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow,
    )
    expired_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    memberships: Mapped[list["Membership"]] = relationship(
        "Membership", back_populates="group",
    )
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="group",
    )
