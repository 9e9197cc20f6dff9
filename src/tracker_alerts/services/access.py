"""Access context consumed by the alert engine.

Rights are computed elsewhere; this module only reads them. A user has
effective access to a project when an explicit ``project_rights`` row exists
or the project is public. Administrators bypass project rights entirely.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import ColumnElement, Select, and_, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import AliasedClass

from tracker_alerts.models import Project, ProjectAccess, ProjectRight, User, UserAccess


@dataclass(frozen=True)
class Principal:
    """The acting user of an operation.

    Passed explicitly to every alert engine call. ``user_id`` is None for
    the system principal used by dispatch and public-alert processing.
    """

    user_id: int | None
    access: UserAccess = UserAccess.NORMAL

    @property
    def is_administrator(self) -> bool:
        return self.access == UserAccess.ADMINISTRATOR

    @classmethod
    def for_user(cls, user: User) -> Principal:
        """Build a principal from a user row."""
        return cls(user_id=user.user_id, access=UserAccess(user.user_access))

    @classmethod
    def system(cls) -> Principal:
        """Return the principal used for unattended, administrator-level work."""
        return cls(user_id=None, access=UserAccess.ADMINISTRATOR)


def accessible_project_ids(user_id: int | ColumnElement[int]) -> Select[tuple[int]]:
    """Return a SELECT of project ids the user holds a usable explicit right in.

    ``user_id`` may be a literal id or a correlated column such as
    ``User.user_id``.
    """
    return select(ProjectRight.project_id).where(
        ProjectRight.user_id == user_id,
        ProjectRight.project_access > int(ProjectAccess.NONE),
    )


def revoked_project_ids(user_id: int | ColumnElement[int]) -> Select[tuple[int]]:
    """Return a SELECT of project ids where the user's right is explicitly NONE."""
    return select(ProjectRight.project_id).where(
        ProjectRight.user_id == user_id,
        ProjectRight.project_access <= int(ProjectAccess.NONE),
    )


def has_effective_access(
    user_id: int | ColumnElement[int],
    project: type[Project] | AliasedClass[Project] = Project,
) -> ColumnElement[bool]:
    """Predicate over ``Project`` rows a non-administrator may see.

    ``project`` may be an alias when the query joins projects more than once.
    """
    return or_(
        project.project_id.in_(accessible_project_ids(user_id)),
        and_(
            project.is_public.is_(True),
            project.project_id.not_in(revoked_project_ids(user_id)),
        ),
    )


class AccessContext:
    """Answers per-user access questions against the rights tables."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def is_administrator(self, user_id: int) -> bool:
        """Return True if the user has administrator access."""
        access = self.db.scalar(select(User.user_access).where(User.user_id == user_id))
        return access == UserAccess.ADMINISTRATOR

    def effective_access(self, principal: Principal, project_id: int) -> ProjectAccess:
        """Return the principal's effective access level in a project."""
        project = self.db.get(Project, project_id)
        if project is None:
            return ProjectAccess.NONE
        if principal.is_administrator:
            return ProjectAccess.ADMINISTRATOR
        if principal.user_id is None:
            return ProjectAccess.NONE

        level = self.db.scalar(
            select(ProjectRight.project_access).where(
                ProjectRight.project_id == project_id,
                ProjectRight.user_id == principal.user_id,
            )
        )
        if level is not None:
            return ProjectAccess(level)
        if project.is_public:
            return ProjectAccess.MEMBER
        return ProjectAccess.NONE

    def can_access_project(self, principal: Principal, project_id: int) -> bool:
        """Return True if the principal may see the project at all."""
        return self.effective_access(principal, project_id) > ProjectAccess.NONE
