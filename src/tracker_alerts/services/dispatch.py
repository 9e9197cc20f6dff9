"""Notification dispatch cycle and its background worker.

A cycle selects due alerts, resolves who should receive them, hands each
notification to the transport and advances the watermark only once every
intended recipient accepted it. A failed delivery leaves the watermark in
place so the same change is offered again on the next cycle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import httpx
from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tracker_alerts.core.errors import AlertError
from tracker_alerts.core.settings import settings
from tracker_alerts.db.time import hour_bucket, utcnow
from tracker_alerts.models import EMAIL_PREFERENCE, Alert, Preference, User, UserAccess
from tracker_alerts.services.access import Principal
from tracker_alerts.services.recipients import Recipient, get_alert_recipients
from tracker_alerts.services.schedule import is_summary_scheduled
from tracker_alerts.services.selector import get_alerts_to_email, get_public_alerts_to_email
from tracker_alerts.services.transport import AlertPayload, Transport
from tracker_alerts.services.watermark import advance_watermark

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Counters describing one dispatch cycle."""

    delivered: int = 0
    failed: int = 0
    advanced: int = 0


class NotificationDispatcher:
    """Runs dispatch cycles against a transport."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def run_cycle(
        self,
        db: Session,
        *,
        include_summary: bool,
        now: datetime | None = None,
    ) -> DispatchReport:
        """Deliver every due personal and public alert once.

        Args:
            db: Database session
            include_summary: Also deliver digest alerts scheduled for ``now``
            now: Moment used to match digest schedules (defaults to UTC now)

        Returns:
            Counters for the cycle.
        """
        now = now or utcnow()
        report = DispatchReport()

        for recipient in self._personal_recipients(db):
            principal = Principal(user_id=recipient.user_id, access=recipient.user_access)
            payloads = [
                AlertPayload.from_alert(alert)
                for alert in get_alerts_to_email(db, principal, include_summary=include_summary)
                if self._scheduled(alert, include_summary, now)
            ]
            for payload in payloads:
                self._complete(db, payload, [recipient], report)

        plan = [
            (AlertPayload.from_alert(alert), get_alert_recipients(db, alert))
            for alert in get_public_alerts_to_email(db, include_summary=include_summary)
            if self._scheduled(alert, include_summary, now)
        ]
        for payload, recipients in plan:
            self._complete(db, payload, recipients, report)

        logger.info(
            "Dispatch cycle (summary=%s): %d delivered, %d failed, %d watermark(s) advanced",
            include_summary,
            report.delivered,
            report.failed,
            report.advanced,
        )
        return report

    @staticmethod
    def _scheduled(alert: Alert, include_summary: bool, now: datetime) -> bool:
        if include_summary and alert.mode.is_digest:
            return is_summary_scheduled(alert, now)
        return True

    @staticmethod
    def _personal_recipients(db: Session) -> list[Recipient]:
        """Users who receive their personal alerts by email."""
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
                select(Alert.alert_id).where(Alert.user_id == User.user_id).exists(),
            )
            .order_by(User.user_id)
        )
        return [
            Recipient(user_id=row[0], user_name=row[1], email=row[2], user_access=UserAccess(row[3]))
            for row in db.execute(stmt).all()
        ]

    def _send(self, recipient: Recipient, payload: AlertPayload) -> bool:
        try:
            return bool(self.transport.deliver(recipient, payload))
        except (OSError, httpx.HTTPError) as exc:
            logger.warning(
                "Transport error delivering alert %d to user %d: %s",
                payload.alert_id,
                recipient.user_id,
                exc,
            )
            return False

    def _complete(
        self,
        db: Session,
        payload: AlertPayload,
        recipients: list[Recipient],
        report: DispatchReport,
    ) -> None:
        """Deliver one alert to all its recipients and advance on full success."""
        outcomes = [self._send(recipient, payload) for recipient in recipients]
        delivered = sum(outcomes)
        report.delivered += delivered
        report.failed += len(outcomes) - delivered

        if delivered < len(outcomes):
            logger.warning(
                "Alert %d reached %d of %d recipient(s); watermark kept for retry",
                payload.alert_id,
                delivered,
                len(outcomes),
            )
            return

        if advance_watermark(db, payload.alert_id) is not None:
            report.advanced += 1


class DispatchWorker:
    """Periodically runs dispatch cycles in the background.

    Immediate notifications go out every ``interval`` seconds; a summary
    cycle including digests runs once per wall-clock hour.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        session_factory: Callable[[], Session] | None = None,
        interval: float | None = None,
    ) -> None:
        """Initialize the dispatch worker.

        Args:
            dispatcher: Dispatcher used for every cycle.
            session_factory: Optional session factory. If None, uses SessionLocal.
            interval: Seconds between cycles. If None, read from settings.
        """
        if session_factory is None:
            from tracker_alerts.db.session import SessionLocal

            session_factory = SessionLocal
        self.dispatcher = dispatcher
        self._session_factory = session_factory
        self.interval = settings.dispatch_interval_seconds if interval is None else interval
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._last_summary: datetime | None = None

    async def start(self) -> None:
        """Start the background dispatch loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background dispatch loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    def summary_due(self, now: datetime) -> bool:
        """Return True if no summary cycle has run yet in the hour of ``now``."""
        return self._last_summary != hour_bucket(now)

    def run_once(self, include_summary: bool, now: datetime) -> DispatchReport:
        """Run a single cycle in a fresh session."""
        with self._session_factory() as db:
            return self.dispatcher.run_cycle(db, include_summary=include_summary, now=now)

    async def _run(self) -> None:
        interval = max(0.1, float(self.interval))

        while not self._stopping.is_set():
            now = utcnow()
            include_summary = self.summary_due(now)
            try:
                await asyncio.to_thread(self.run_once, include_summary, now)
            except SQLAlchemyError as e:
                logger.error("DispatchWorker encountered database error: %s", e, exc_info=True)
            except AlertError as e:
                logger.warning("DispatchWorker encountered AlertError: %s", e)
            except (OSError, ConnectionError, TimeoutError, RuntimeError) as e:
                logger.warning("DispatchWorker encountered transport error: %s", e)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(
                    "DispatchWorker encountered data processing error: %s", e, exc_info=True
                )
            else:
                if include_summary:
                    self._last_summary = hour_bucket(now)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except TimeoutError:
                continue
