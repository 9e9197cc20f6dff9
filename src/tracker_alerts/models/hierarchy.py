# src/tracker_alerts/models/hierarchy.py
"""Models for the content hierarchy alerts are scoped to.

Projects contain folders; every folder holds items of one issue type. Only
the columns the alert engine reads are mapped here.
"""

from __future__ import annotations

from enum import IntEnum

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tracker_alerts.db.session import Base, BigIntPK


class ProjectAccess(IntEnum):
    """Effective access level of a user within a project."""

    NONE = 0
    MEMBER = 1
    ADMINISTRATOR = 2


class IssueType(Base):
    """Type of issues stored in folders; type-wide alerts hang off it."""

    __tablename__ = "issue_types"

    type_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    type_name: Mapped[str] = mapped_column(String(40), nullable=False)


class Project(Base):
    """Top level container of folders."""

    __tablename__ = "projects"

    project_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    project_name: Mapped[str] = mapped_column(String(40), nullable=False)
    # Stamp of the most recent change anywhere in the project.
    stamp_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Public projects are accessible to every user without an explicit right.
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Folder(Base):
    """Finest-grained scope whose content changes independently."""

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_project_id", "project_id"),
        Index("ix_folders_type_id", "type_id"),
    )

    folder_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
    )
    type_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("issue_types.type_id", ondelete="CASCADE"),
        nullable=False,
    )
    folder_name: Mapped[str] = mapped_column(String(40), nullable=False)
    # Stamp of the most recent change in the folder; null until first change.
    stamp_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class View(Base):
    """Saved filter over issues of one type."""

    __tablename__ = "views"

    view_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    type_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("issue_types.type_id", ondelete="CASCADE"),
        nullable=False,
    )
    # Null for public views.
    user_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=True,
    )
    view_name: Mapped[str] = mapped_column(String(40), nullable=False)
    view_def: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ProjectRight(Base):
    """Explicit membership of a user in a project."""

    __tablename__ = "project_rights"
    __table_args__ = (Index("ix_project_rights_user_id", "user_id"),)

    project_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    project_access: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=ProjectAccess.MEMBER,
    )
