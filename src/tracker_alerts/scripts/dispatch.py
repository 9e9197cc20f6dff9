# src/tracker_alerts/scripts/dispatch.py
"""
Cron job delivering due alert notifications.

Run every few minutes for immediate alerts, and with ``--summary`` once an
hour so digest alerts go out on their schedule.
"""

from __future__ import annotations

import argparse
import logging
import sys

from tracker_alerts.db.session import SessionLocal
from tracker_alerts.services.dispatch import DispatchReport, NotificationDispatcher
from tracker_alerts.services.transport import TransportDisabledError, get_transport

logger = logging.getLogger(__name__)


def run_dispatch(include_summary: bool) -> DispatchReport:
    """Run one dispatch cycle with the configured transport.

    Args:
        include_summary: Also deliver scheduled digests and reports

    Returns:
        Counters of the cycle
    """
    transport = get_transport()
    db = SessionLocal()
    try:
        return NotificationDispatcher(transport).run_cycle(db, include_summary=include_summary)
    finally:
        db.close()
        transport.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Deliver due alert notifications")
    parser.add_argument(
        "--summary",
        action="store_true",
        help="include digest alerts and periodic reports scheduled for this hour",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        report = run_dispatch(args.summary)
    except TransportDisabledError as exc:
        logger.error("%s", exc)
        return 2

    print(
        f"Dispatched alerts: delivered={report.delivered} "
        f"failed={report.failed} advanced={report.advanced}"
    )
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
