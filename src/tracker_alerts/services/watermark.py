"""Watermark advancement after a notification has been dispatched."""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tracker_alerts.models import Alert
from tracker_alerts.services.scope import scope_stamp_select

logger = logging.getLogger(__name__)


def scope_stamp(db: Session, alert: Alert) -> int | None:
    """Return the latest stamp in the alert's scope, or None if it has none."""
    return db.scalar(scope_stamp_select(alert.type_id, alert.project_id, alert.folder_id))


def advance_watermark(db: Session, alert_id: int) -> int | None:
    """Move the alert's watermark up to the current stamp of its scope.

    Call only once every intended recipient has accepted the notification;
    advancing after a partial delivery would drop it for the others.

    The update is a single statement that never lowers the watermark, so a
    concurrent deletion of the alert simply leaves nothing to update.

    Returns:
        The watermark after the call, or None if the alert no longer exists.
    """
    alert = db.get(Alert, alert_id)
    if alert is None:
        logger.debug("Alert %d vanished before its watermark could advance", alert_id)
        return None

    latest = scope_stamp_select(alert.type_id, alert.project_id, alert.folder_id).scalar_subquery()
    result = db.execute(
        update(Alert)
        .where(Alert.alert_id == alert_id, func.coalesce(Alert.stamp_id, 0) < latest)
        .values(stamp_id=latest)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    watermark = db.scalar(select(Alert.stamp_id).where(Alert.alert_id == alert_id))
    if result.rowcount:
        logger.info("Advanced watermark of alert %d to %s", alert_id, watermark)
    # Keep the identity map in line with the row updated behind the ORM's back.
    db.expire(alert)
    return watermark
