# src/tracker_alerts/db/time.py
"""Time utilities for scheduling.

Wall-clock time only decides when digests go out; change ordering always
uses stamps.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def hour_bucket(when: datetime) -> datetime:
    """Truncate a datetime to the start of its hour."""
    return when.replace(minute=0, second=0, microsecond=0)
