"""User ORM: a registered chat participant.

Invariants:
    - id is integer primary key (autoincrement)
    - name is unique: a duplicate registration is a constraint violation
      that operations report as ExistedResourceError
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupchat.db.base import Base


class User(Base):
    """Registered user - immutable after creation."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    memberships: Mapped[list["Membership"]] = relationship(
        "Membership", back_populates="user",
    )
