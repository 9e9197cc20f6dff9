# src/tracker_alerts/models/user.py
"""SQLAlchemy models for user accounts and their preferences."""

from __future__ import annotations

from enum import IntEnum

from sqlalchemy import BigInteger, ForeignKey, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tracker_alerts.db.session import Base, BigIntPK

# Preference holding the address notifications are emailed to.
EMAIL_PREFERENCE = "email"


class UserAccess(IntEnum):
    """Global access level of a user account."""

    NO_ACCESS = 0
    NORMAL = 1
    ADMINISTRATOR = 2


class User(Base):
    """User account known to the tracker."""

    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_login: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    user_name: Mapped[str] = mapped_column(String(40), nullable=False)
    user_access: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=UserAccess.NORMAL,
    )

    preferences: Mapped[list[Preference]] = relationship(
        "Preference",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_administrator(self) -> bool:
        """Return True if the user has administrator access."""
        return self.user_access == UserAccess.ADMINISTRATOR


class Preference(Base):
    """Per-user key/value preference."""

    __tablename__ = "preferences"

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    pref_key: Mapped[str] = mapped_column(String(40), primary_key=True)
    pref_value: Mapped[str] = mapped_column(Text, nullable=False, default="")

    user: Mapped[User] = relationship("User", back_populates="preferences")
