"""Selection of alerts for which a notification is due.

An alert is due when some folder in its scope, inside a non-archived
project, carries a stamp newer than the alert's watermark. During summary
passes digest alerts qualify as well, and periodic reports qualify even
without any change.
"""

from __future__ import annotations

import logging

from sqlalchemy import ColumnElement, Select, and_, or_, select
from sqlalchemy.orm import Session

from tracker_alerts.models import Alert, DeliveryMode, Folder, Project
from tracker_alerts.services.access import Principal, has_effective_access
from tracker_alerts.services.scope import alert_scope_clause, changed_since_watermark

logger = logging.getLogger(__name__)


def _mode_clause(include_summary: bool) -> ColumnElement[bool]:
    changed = changed_since_watermark()
    if include_summary:
        return or_(
            and_(Alert.delivery_mode > int(DeliveryMode.NO_EMAIL), changed),
            Alert.delivery_mode == int(DeliveryMode.REPORT),
        )
    return and_(Alert.delivery_mode == int(DeliveryMode.IMMEDIATE), changed)


def _due_folders(include_summary: bool) -> Select:
    """Folders making a correlated ``Alert`` due, before any access filtering."""
    return (
        select(Folder.folder_id)
        .join(Project, Project.project_id == Folder.project_id)
        .where(
            alert_scope_clause(),
            Project.is_archived.is_(False),
            _mode_clause(include_summary),
        )
    )


def get_alerts_to_email(
    db: Session,
    principal: Principal,
    *,
    include_summary: bool,
) -> list[Alert]:
    """Return the principal's own alerts for which a notification is due.

    Only changes in folders the principal can access count; administrators
    see every folder.

    Args:
        db: Database session
        principal: Owner of the alerts
        include_summary: Also consider digest alerts and periodic reports

    Returns:
        Due alerts ordered by identifier.
    """
    folders = _due_folders(include_summary)
    if not principal.is_administrator:
        folders = folders.where(has_effective_access(principal.user_id))

    stmt = (
        select(Alert)
        .where(Alert.user_id == principal.user_id, folders.exists())
        .order_by(Alert.alert_id)
    )
    alerts = list(db.scalars(stmt))
    logger.debug("User %s has %d due alert(s)", principal.user_id, len(alerts))
    return alerts


def get_public_alerts_to_email(db: Session, *, include_summary: bool) -> list[Alert]:
    """Return public alerts for which a notification is due.

    Access is not filtered here; recipients are resolved per alert.
    """
    stmt = (
        select(Alert)
        .where(Alert.user_id.is_(None), _due_folders(include_summary).exists())
        .order_by(Alert.alert_id)
    )
    alerts = list(db.scalars(stmt))
    logger.debug("%d public alert(s) due", len(alerts))
    return alerts


def is_due(db: Session, alert_id: int, *, include_summary: bool = False) -> bool:
    """Return True if the alert is due, ignoring per-user access."""
    stmt = select(Alert.alert_id).where(
        Alert.alert_id == alert_id,
        _due_folders(include_summary).exists(),
    )
    return db.scalar(stmt) is not None
