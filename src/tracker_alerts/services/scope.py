"""Scope predicates shared by the alert engine queries.

An alert's scope resolves to a set of folders:

* folder-specific: that single folder;
* project-wide: folders of the alert's type inside the project;
* type-wide: folders of the alert's type in any project.

A scope whose folder or project no longer exists resolves to no folders,
so every EXISTS built on these predicates is simply false for it.
"""

from __future__ import annotations

from sqlalchemy import ColumnElement, Select, and_, func, or_, select

from tracker_alerts.models import Alert, Folder


def alert_scope_clause() -> ColumnElement[bool]:
    """Predicate matching ``Folder`` rows in the scope of a correlated ``Alert``."""
    return or_(
        Folder.folder_id == Alert.folder_id,
        and_(
            Alert.folder_id.is_(None),
            Folder.type_id == Alert.type_id,
            or_(Alert.project_id.is_(None), Folder.project_id == Alert.project_id),
        ),
    )


def scope_clause(
    type_id: int,
    project_id: int | None,
    folder_id: int | None,
) -> ColumnElement[bool]:
    """Predicate matching ``Folder`` rows in a concrete scope."""
    if folder_id is not None:
        return Folder.folder_id == folder_id
    if project_id is not None:
        return and_(Folder.type_id == type_id, Folder.project_id == project_id)
    return Folder.type_id == type_id


def scope_stamp_select(
    type_id: int,
    project_id: int | None,
    folder_id: int | None,
) -> Select[tuple[int | None]]:
    """Return a SELECT of the latest stamp of a scope (NULL when it has none)."""
    return select(func.max(Folder.stamp_id)).where(scope_clause(type_id, project_id, folder_id))


def changed_since_watermark() -> ColumnElement[bool]:
    """Predicate: the folder changed after the correlated alert's watermark."""
    return Folder.stamp_id > func.coalesce(Alert.stamp_id, 0)
