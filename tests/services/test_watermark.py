# tests/services/test_watermark.py
"""Tests for advancing alert watermarks."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tests.conftest import set_stamp
from tracker_alerts.models import Alert
from tracker_alerts.services.alert_store import AlertStore
from tracker_alerts.services.watermark import advance_watermark, scope_stamp


def _create(db: Session, member, issue_type, **scope) -> Alert:
    alert_id = AlertStore(db).create_alert(member, issue_type.type_id, **scope)
    return db.get(Alert, alert_id)


def test_advance_to_latest_scope_stamp(db_session, member, project, folder, sibling_folder,
                                       issue_type):
    alert = _create(db_session, member, issue_type, project_id=project.project_id)
    set_stamp(db_session, sibling_folder, 140)

    assert scope_stamp(db_session, alert) == 140
    assert advance_watermark(db_session, alert.alert_id) == 140
    assert alert.stamp_id == 140


def test_watermark_never_decreases(db_session, member, folder, issue_type):
    alert = _create(db_session, member, issue_type, folder_id=folder.folder_id)
    alert.stamp_id = 500
    db_session.commit()

    assert advance_watermark(db_session, alert.alert_id) == 500


def test_empty_scope_keeps_watermark(db_session, member, project, other_type):
    alert = _create(db_session, member, other_type, project_id=project.project_id)

    assert advance_watermark(db_session, alert.alert_id) is None
    assert alert.stamp_id is None


def test_repeated_advance_is_stable(db_session, member, folder, issue_type):
    alert = _create(db_session, member, issue_type, folder_id=folder.folder_id)
    set_stamp(db_session, folder, 101)

    assert advance_watermark(db_session, alert.alert_id) == 101
    assert advance_watermark(db_session, alert.alert_id) == 101


def test_deleted_alert_is_not_resurrected(db_session, member, folder, issue_type):
    alert = _create(db_session, member, issue_type, folder_id=folder.folder_id)
    alert_id = alert.alert_id
    AlertStore(db_session).delete_alert(alert)
    set_stamp(db_session, folder, 101)

    assert advance_watermark(db_session, alert_id) is None
    assert db_session.scalar(select(func.count()).select_from(Alert)) == 0
