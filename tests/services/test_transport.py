# tests/services/test_transport.py
"""Tests for the webhook notification transport."""

import json

import httpx
import pytest

from tracker_alerts.core.settings import settings
from tracker_alerts.models import UserAccess
from tracker_alerts.services.recipients import Recipient
from tracker_alerts.services.transport import (
    AlertPayload,
    TransportDisabledError,
    WebhookTransport,
    get_transport,
)

RECIPIENT = Recipient(user_id=7, user_name="Alice", email="alice@example.com",
                      user_access=UserAccess.NORMAL)
PAYLOAD = AlertPayload(alert_id=3, type_id=1, view_id=None, project_id=2, folder_id=None,
                       delivery_mode="digest", is_public=True, watermark=120)


def _transport(handler) -> WebhookTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookTransport("http://mail.test/hook", client=client)


def test_successful_delivery_posts_json():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202)

    assert _transport(handler).deliver(RECIPIENT, PAYLOAD) is True

    body = json.loads(seen[0].content)
    assert seen[0].method == "POST"
    assert body["recipient"] == {"user_id": 7, "user_name": "Alice", "email": "alice@example.com"}
    assert body["alert"]["alert_id"] == 3
    assert body["alert"]["delivery_mode"] == "digest"
    assert body["alert"]["watermark"] == 120


def test_rejected_delivery_returns_false():
    transport = _transport(lambda request: httpx.Response(500, text="down"))

    assert transport.deliver(RECIPIENT, PAYLOAD) is False


def test_network_error_returns_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert _transport(handler).deliver(RECIPIENT, PAYLOAD) is False


def test_get_transport_requires_url(monkeypatch):
    monkeypatch.setattr(settings, "notification_webhook_url", None)

    with pytest.raises(TransportDisabledError):
        get_transport()


def test_get_transport_uses_settings(monkeypatch):
    monkeypatch.setattr(settings, "notification_webhook_url", "http://mail.test/hook")

    transport = get_transport()
    try:
        assert transport.url == "http://mail.test/hook"
    finally:
        transport.close()
