"""Result Records: converts ORM rows into the frozen result values of core/domain_types.

Invariants:
    - Called while the row is still loaded (before the session closes)
    - Pure attribute copies, no lazy loads
"""

from groupchat.core.domain_types import (
    GroupId, GroupInfo, MembershipInfo, MembershipStatus, MessageId,
    MessageInfo, UserId, UserInfo,
)
from groupchat.models.group import Group
from groupchat.models.membership import Membership
from groupchat.models.message import Message
from groupchat.models.user import User


def to_user_info(user: User) -> UserInfo:
    return UserInfo(id=UserId(user.id), name=user.name)


def to_group_info(group: Group) -> GroupInfo:
    return GroupInfo(
        id=GroupId(group.id),
        name=group.name,
        user_id=UserId(group.user_id),
        max_member=group.max_member,
        created_at=group.created_at,
        expired_at=group.expired_at,
    )


def to_membership_info(membership: Membership) -> MembershipInfo:
    return MembershipInfo(
        user_id=UserId(membership.user_id),
        group_id=GroupId(membership.group_id),
        status=MembershipStatus(membership.status),
        joined_at=membership.joined_at,
    )


def to_message_info(message: Message, user_name: str) -> MessageInfo:
    return MessageInfo(
        id=MessageId(message.id),
        group_id=GroupId(message.group_id),
        user_id=UserId(message.user_id),
        user_name=user_name,
        content=message.content,
        message_type=message.message_type,
        created_at=message.created_at,
    )
