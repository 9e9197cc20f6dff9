# tests/v1/test_alerts.py
"""API tests for the alert endpoints."""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.conftest import auth_headers, make_user, set_stamp
from tracker_alerts.core.security import create_access_token
from tracker_alerts.models import Alert, UserAccess

BASE = "/api/v1/alerts"


def _create(client: TestClient, headers, **body) -> int:
    response = client.post(f"{BASE}/", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["alert_id"]


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get(f"{BASE}/")
        assert response.status_code in {401, 403}

    def test_invalid_token(self, client):
        response = client.get(f"{BASE}/", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_unknown_user(self, client):
        token = create_access_token(9999)
        response = client.get(f"{BASE}/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_blocked_user(self, client, db_session: Session):
        blocked = make_user(db_session, "blocked", access=UserAccess.NO_ACCESS)
        response = client.get(f"{BASE}/", headers=auth_headers(blocked))
        assert response.status_code == 403


class TestPersonalAlerts:
    def test_create_and_list(self, client, member_headers, folder, issue_type):
        alert_id = _create(client, member_headers, type_id=issue_type.type_id,
                           folder_id=folder.folder_id)

        response = client.get(f"{BASE}/", headers=member_headers)
        assert response.status_code == 200
        [item] = response.json()
        assert item["alert_id"] == alert_id
        assert item["type_name"] == "Bugs"
        assert item["folder_name"] == "Frontend"
        assert item["project_name"] == "Apollo"
        assert item["is_public"] is False
        assert item["delivery_mode"] == 1
        assert item["watermark"] == 100

    def test_duplicate_is_conflict(self, client, member_headers, folder, issue_type):
        body = {"type_id": issue_type.type_id, "folder_id": folder.folder_id}
        _create(client, member_headers, **body)

        response = client.post(f"{BASE}/", json=body, headers=member_headers)
        assert response.status_code == 409

    def test_archived_scope_is_rejected(self, client, db_session: Session, member_headers,
                                        project, folder, issue_type):
        project.is_archived = True
        db_session.commit()

        response = client.post(f"{BASE}/", json={"type_id": issue_type.type_id,
                                                 "project_id": project.project_id},
                               headers=member_headers)
        assert response.status_code == 422

    def test_inaccessible_project_is_forbidden(self, client, member_headers, remote_folder,
                                               issue_type):
        response = client.post(f"{BASE}/", json={"type_id": issue_type.type_id,
                                                 "folder_id": remote_folder.folder_id},
                               headers=member_headers)
        assert response.status_code == 403

    def test_unknown_delivery_mode_fails_validation(self, client, member_headers, folder,
                                                    issue_type):
        response = client.post(f"{BASE}/", json={"type_id": issue_type.type_id,
                                                 "folder_id": folder.folder_id,
                                                 "delivery_mode": 9},
                               headers=member_headers)
        assert response.status_code == 422

    def test_modify_reports_changes(self, client, member_headers, folder, issue_type):
        alert_id = _create(client, member_headers, type_id=issue_type.type_id,
                           folder_id=folder.folder_id)
        body = {"delivery_mode": 2, "summary_days": "0,4", "summary_hours": "8"}

        first = client.patch(f"{BASE}/{alert_id}", json=body, headers=member_headers)
        second = client.patch(f"{BASE}/{alert_id}", json=body, headers=member_headers)

        assert first.json() == {"alert_id": alert_id, "changed": True}
        assert second.json() == {"alert_id": alert_id, "changed": False}
        detail = client.get(f"{BASE}/{alert_id}", headers=member_headers).json()
        assert detail["summary_days"] == "0,4"

    def test_other_users_alert_is_not_found(self, client, member_headers, second_member, folder,
                                            issue_type):
        alert_id = _create(client, auth_headers(second_member), type_id=issue_type.type_id,
                           folder_id=folder.folder_id)

        assert client.get(f"{BASE}/{alert_id}", headers=member_headers).status_code == 404
        assert client.delete(f"{BASE}/{alert_id}", headers=member_headers).status_code == 404

    def test_delete(self, client, db_session: Session, member_headers, folder, issue_type):
        alert_id = _create(client, member_headers, type_id=issue_type.type_id,
                           folder_id=folder.folder_id)

        response = client.delete(f"{BASE}/{alert_id}", headers=member_headers)

        assert response.status_code == 200
        assert response.json()["changed"] is True
        assert db_session.get(Alert, alert_id) is None

    def test_due_and_watermark(self, client, db_session: Session, member_headers, folder,
                               issue_type):
        alert_id = _create(client, member_headers, type_id=issue_type.type_id,
                           folder_id=folder.folder_id)
        assert client.get(f"{BASE}/due", headers=member_headers).json() == []

        set_stamp(db_session, folder, 105)
        due = client.get(f"{BASE}/due", headers=member_headers).json()
        assert [item["alert_id"] for item in due] == [alert_id]

        response = client.post(f"{BASE}/{alert_id}/watermark", headers=member_headers)
        assert response.json() == {"alert_id": alert_id, "watermark": 105}
        assert client.get(f"{BASE}/due", headers=member_headers).json() == []


class TestPublicAlerts:
    def test_members_cannot_create_public_alerts(self, client, member_headers, folder,
                                                 issue_type):
        response = client.post(f"{BASE}/", json={"type_id": issue_type.type_id,
                                                 "folder_id": folder.folder_id,
                                                 "public": True},
                               headers=member_headers)
        assert response.status_code == 403

    def test_public_alert_lifecycle(self, client, db_session: Session, admin_headers,
                                    member_headers, second_member, project, folder, issue_type):
        alert_id = _create(client, admin_headers, type_id=issue_type.type_id,
                           project_id=project.project_id, delivery_mode=2, summary_hours="8",
                           public=True)

        listed = client.get(f"{BASE}/public", headers=member_headers).json()
        assert [item["alert_id"] for item in listed] == [alert_id]
        assert client.delete(f"{BASE}/{alert_id}", headers=member_headers).status_code == 403

        set_stamp(db_session, folder, 130)
        assert client.get(f"{BASE}/public/due", headers=member_headers).status_code == 403
        assert client.get(f"{BASE}/public/due", headers=admin_headers).json() == []
        due = client.get(f"{BASE}/public/due", params={"include_summary": True},
                         headers=admin_headers).json()
        assert [item["alert_id"] for item in due] == [alert_id]

        recipients = client.get(f"{BASE}/{alert_id}/recipients", headers=admin_headers).json()
        assert {r["email"] for r in recipients} == {
            "admin@example.com",
            "alice@example.com",
            "bob@example.com",
        }

        assert client.delete(f"{BASE}/{alert_id}", headers=admin_headers).status_code == 200

    def test_recipients_require_public_alert(self, client, admin_headers, member_headers,
                                             folder, issue_type):
        alert_id = _create(client, member_headers, type_id=issue_type.type_id,
                           folder_id=folder.folder_id)

        response = client.get(f"{BASE}/{alert_id}/recipients", headers=admin_headers)
        assert response.status_code == 422
        response = client.get(f"{BASE}/{alert_id}/recipients", headers=member_headers)
        assert response.status_code == 403
