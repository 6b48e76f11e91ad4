"""Domain Types: identifiers, enums and the result values operations return.

Invariants:
    - UserId, GroupId, MessageId wrap ints - never use bare int in domain logic
    - Membership status is exactly one of: joined, waiting
    - Result values are frozen dataclasses; ORM instances never leave an operation

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
GroupId = NewType("GroupId", int)
MessageId = NewType("MessageId", int)


# ─── Enums ───────────────────────────────────────────────────────

class MembershipStatus(str, Enum):
    """Membership states - maps to DB `group_members.status` column."""
    JOINED = "joined"
    WAITING = "waiting"


class MessageType(str, Enum):
    """Known message tags. Other tags are stored as given."""
    TEXT = "text"


# ─── Result Values ───────────────────────────────────────────────

@dataclass(frozen=True)
class UserInfo:
    id: UserId
    name: str


@dataclass(frozen=True)
class GroupInfo:
    id: GroupId
    name: str
    user_id: UserId
    max_member: int
    created_at: datetime
    expired_at: datetime


@dataclass(frozen=True)
class MembershipInfo:
    user_id: UserId
    group_id: GroupId
    status: MembershipStatus
    joined_at: datetime


@dataclass(frozen=True)
class UserGroupInfo:
    """A freshly registered user together with the group they own."""
    user: UserInfo
    group: GroupInfo


@dataclass(frozen=True)
class GroupMembershipInfo:
    """A group as seen from one member: group fields plus their status."""
    group: GroupInfo
    status: MembershipStatus


@dataclass(frozen=True)
class MessageInfo:
    id: MessageId
    group_id: GroupId
    user_id: UserId
    user_name: str
    content: str | None
    message_type: str
    created_at: datetime


@dataclass(frozen=True)
class GroupDetail:
    group: GroupInfo
    joined_member: int
    waiting_member: int
    messages: list[MessageInfo] = field(default_factory=list)
