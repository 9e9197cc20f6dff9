"""Digest schedule parsing and matching.

A digest alert carries two comma separated lists: the days of the week
(0 = Monday) and the hours of the day it is delivered on. An empty day list
means every day.
"""

from __future__ import annotations

from datetime import datetime

from tracker_alerts.core.errors import InvalidArgumentsError
from tracker_alerts.models import Alert, DeliveryMode

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24


def parse_schedule_list(value: str | None, upper: int, label: str) -> list[int]:
    """Parse a comma separated list of integers in ``[0, upper)``.

    Raises:
        InvalidArgumentsError: On non-numeric or out-of-range items.
    """
    if value is None or not value.strip():
        return []
    items: set[int] = set()
    for raw in value.split(","):
        raw = raw.strip()
        if not raw:
            continue
        try:
            item = int(raw)
        except ValueError as err:
            raise InvalidArgumentsError(f"Invalid {label} value: {raw!r}") from err
        if not 0 <= item < upper:
            raise InvalidArgumentsError(f"{label.capitalize()} out of range: {item}")
        items.add(item)
    return sorted(items)


def _format(items: list[int]) -> str | None:
    return ",".join(str(item) for item in items) or None


def normalize_schedule(
    delivery_mode: DeliveryMode,
    summary_days: str | None,
    summary_hours: str | None,
) -> tuple[str | None, str | None]:
    """Return the canonical ``(summary_days, summary_hours)`` for a mode.

    Non-digest modes carry no schedule, whatever the caller passed. Digest
    modes require at least one hour.
    """
    if not delivery_mode.is_digest:
        return None, None

    days = parse_schedule_list(summary_days, DAYS_PER_WEEK, "day")
    hours = parse_schedule_list(summary_hours, HOURS_PER_DAY, "hour")
    if not hours:
        raise InvalidArgumentsError("Digest alerts require at least one delivery hour")
    return _format(days), _format(hours)


def is_summary_scheduled(alert: Alert, when: datetime) -> bool:
    """Return True if a digest alert is scheduled for the hour containing ``when``.

    Non-digest alerts are never scheduled.
    """
    if not alert.mode.is_digest:
        return False
    days = parse_schedule_list(alert.summary_days, DAYS_PER_WEEK, "day")
    hours = parse_schedule_list(alert.summary_hours, HOURS_PER_DAY, "hour")
    if days and when.weekday() not in days:
        return False
    return when.hour in hours
