"""Outbound notification transport.

The engine only needs to know whether a delivery was accepted; anything
that can report that can act as a transport.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Protocol

import httpx

from tracker_alerts.core.settings import settings
from tracker_alerts.models import Alert, DeliveryMode
from tracker_alerts.services.recipients import Recipient

logger = logging.getLogger(__name__)


class TransportDisabledError(RuntimeError):
    """Raised when a transport is requested but none is configured."""


@dataclass(frozen=True)
class AlertPayload:
    """Description of a due alert handed to the transport."""

    alert_id: int
    type_id: int
    view_id: int | None
    project_id: int | None
    folder_id: int | None
    delivery_mode: str
    is_public: bool
    watermark: int | None

    @classmethod
    def from_alert(cls, alert: Alert) -> AlertPayload:
        return cls(
            alert_id=alert.alert_id,
            type_id=alert.type_id,
            view_id=alert.view_id,
            project_id=alert.project_id,
            folder_id=alert.folder_id,
            delivery_mode=DeliveryMode(alert.delivery_mode).name.lower(),
            is_public=alert.is_public,
            watermark=alert.stamp_id,
        )


class Transport(Protocol):
    """Anything able to deliver a notification to one recipient."""

    def deliver(self, recipient: Recipient, payload: AlertPayload) -> bool:
        """Return True once the notification has been accepted for delivery."""
        ...


class WebhookTransport:
    """Posts notifications as JSON to a mail gateway webhook."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self._client = client or httpx.Client(timeout=timeout)

    def deliver(self, recipient: Recipient, payload: AlertPayload) -> bool:
        body: dict[str, Any] = {
            "recipient": {
                "user_id": recipient.user_id,
                "user_name": recipient.user_name,
                "email": recipient.email,
            },
            "alert": asdict(payload),
        }
        try:
            response = self._client.post(self.url, json=body)
        except httpx.HTTPError as exc:
            logger.warning(
                "Delivery of alert %d to user %d failed: %s",
                payload.alert_id,
                recipient.user_id,
                exc,
            )
            return False

        if not response.is_success:
            logger.warning(
                "Mail gateway rejected alert %d for user %d with status %d",
                payload.alert_id,
                recipient.user_id,
                response.status_code,
            )
            return False
        return True

    def close(self) -> None:
        self._client.close()


def get_transport() -> WebhookTransport:
    """Build the configured transport.

    Raises:
        TransportDisabledError: If no webhook URL is configured.
    """
    if not settings.notification_webhook_url:
        raise TransportDisabledError("NOTIFICATION_WEBHOOK_URL is not configured")
    return WebhookTransport(
        settings.notification_webhook_url,
        timeout=settings.notification_http_timeout_seconds,
    )
