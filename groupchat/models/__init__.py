"""ORM Models: SQLAlchemy declarative models for users, groups, memberships, messages.

Invariants:
    - All models inherit from Base (db/base.py)
    - Group is the aggregate root for memberships and messages

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from groupchat.models.user import User  # noqa: F401
from groupchat.models.group import Group  # noqa: F401
from groupchat.models.membership import Membership  # noqa: F401
from groupchat.models.message import Message  # noqa: F401
