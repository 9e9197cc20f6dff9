"""Business logic services for the alert engine."""

from .access import AccessContext, Principal
from .alert_store import AlertDetails, AlertStore
from .dispatch import DispatchReport, DispatchWorker, NotificationDispatcher
from .recipients import Recipient, get_alert_recipients
from .selector import get_alerts_to_email, get_public_alerts_to_email, is_due
from .watermark import advance_watermark

__all__ = [
    "AccessContext",
    "Principal",
    "AlertDetails",
    "AlertStore",
    "DispatchReport",
    "DispatchWorker",
    "NotificationDispatcher",
    "Recipient",
    "get_alert_recipients",
    "get_alerts_to_email",
    "get_public_alerts_to_email",
    "is_due",
    "advance_watermark",
]
