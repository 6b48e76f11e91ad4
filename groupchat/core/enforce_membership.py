"""Membership & Message Enforcement: pure rules behind join, create and send.

Invariants:
    - decide_membership_status is PURE: joined only while joined_count < max_member
    - next_message_timestamp never goes backwards relative to the latest
      message of the same group
    - require_* helpers raise MissingFieldError, never return sentinel values

Design Decisions:
    - Rules separated from the operations: the shell holds the lock and does
      the IO, these functions only decide
    - Naive UTC timestamps: SQLite and PostgreSQL round-trip the same value
"""

from datetime import datetime, timedelta, timezone

from groupchat.core.domain_types import MembershipStatus, MessageType
from groupchat.core.errors import MissingFieldError


MIN_GROUP_CAPACITY: int = 1


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def decide_membership_status(
    joined_count: int, max_member: int,
) -> MembershipStatus:
    """Capacity rule: admit while there is room, otherwise queue."""
    if joined_count < max_member:
        return MembershipStatus.JOINED
    return MembershipStatus.WAITING


def next_message_timestamp(
    now: datetime, latest: datetime | None,
) -> datetime:
    """Stamp for a new message: now, unless the clock is behind the latest one."""
    if latest is not None and latest > now:
        return latest
    return now


def compute_expiry(created_at: datetime, ttl: timedelta) -> datetime:
    return created_at + ttl


def require_text(value: str | None, field_name: str) -> str:
    """Strip and return value, or raise MissingFieldError when blank."""
    if value is None or not value.strip():
        raise MissingFieldError(field_name)
    return value.strip()


def require_capacity(max_member: int) -> int:
    if max_member < MIN_GROUP_CAPACITY:
        raise MissingFieldError("max_member (must be at least 1)")
    return max_member


def require_message_content(
    content: str | None, message_type: str,
) -> str | None:
    """Text messages need content; other kinds may carry none."""
    if message_type == MessageType.TEXT.value:
        if content is None or not content.strip():
            raise MissingFieldError("content")
    return content


def require_ttl(ttl: timedelta) -> timedelta:
    if ttl <= timedelta(0):
        raise MissingFieldError("ttl (must be positive)")
    return ttl
