"""Recipient resolution for public alerts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from tracker_alerts.models import (
    EMAIL_PREFERENCE,
    Alert,
    DeliveryMode,
    Folder,
    Preference,
    Project,
    User,
    UserAccess,
)
from tracker_alerts.services.access import has_effective_access
from tracker_alerts.services.scope import scope_clause

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    """A user a notification is addressed to."""

    user_id: int
    user_name: str
    email: str
    user_access: UserAccess


def get_alert_recipients(db: Session, alert: Alert) -> list[Recipient]:
    """Return the users a due public alert should be delivered to.

    A user qualifies when they have an email address set, are not blocked,
    and can see at least one non-archived folder in the alert's scope. Unless
    the alert is a periodic report, that folder must also have changed since
    the alert's watermark.

    Args:
        db: Database session
        alert: Public alert already selected as due

    Returns:
        Recipients ordered by user id.
    """
    folders = (
        select(Folder.folder_id)
        .join(Project, Project.project_id == Folder.project_id)
        .where(
            scope_clause(alert.type_id, alert.project_id, alert.folder_id),
            Project.is_archived.is_(False),
            or_(
                User.user_access == int(UserAccess.ADMINISTRATOR),
                has_effective_access(User.user_id),
            ),
        )
    )
    if alert.delivery_mode != DeliveryMode.REPORT and alert.stamp_id:
        folders = folders.where(Folder.stamp_id > alert.stamp_id)

    stmt = (
        select(User.user_id, User.user_name, Preference.pref_value, User.user_access)
        .join(
            Preference,
            and_(
                Preference.user_id == User.user_id,
                Preference.pref_key == EMAIL_PREFERENCE,
            ),
        )
        .where(
            Preference.pref_value != "",
            User.user_access > int(UserAccess.NO_ACCESS),
            folders.exists(),
        )
        .order_by(User.user_id)
    )
    recipients = [
        Recipient(user_id=row[0], user_name=row[1], email=row[2], user_access=UserAccess(row[3]))
        for row in db.execute(stmt).all()
    ]
    logger.debug("Public alert %d resolves to %d recipient(s)", alert.alert_id, len(recipients))
    return recipients
