"""Logical clock issuing change stamps."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from tracker_alerts.models import Folder, Project, SystemClock

logger = logging.getLogger(__name__)

CLOCK_ROW_ID = 1


def get_system_clock(db: Session, *, for_update: bool = False) -> SystemClock:
    """Get or create the system clock entry.

    Args:
        db: Database session
        for_update: Lock the row until the caller's transaction ends.

    Returns:
        SystemClock object
    """
    stmt = select(SystemClock).where(SystemClock.id == CLOCK_ROW_ID)
    if for_update:
        stmt = stmt.with_for_update()
    clock = db.execute(stmt).scalar_one_or_none()
    if clock is None:
        clock = SystemClock(id=CLOCK_ROW_ID, stamp_seq=0)
        db.add(clock)
        db.flush()
    return clock


def next_stamp(db: Session) -> int:
    """Return the next strictly increasing stamp.

    The counter row stays locked until the caller commits, so stamps are
    handed out in commit order and never reused. Nothing is committed here:
    the stamp belongs to the caller's mutation.
    """
    clock = get_system_clock(db, for_update=True)
    clock.stamp_seq += 1
    db.flush()
    return clock.stamp_seq


def current_stamp(db: Session) -> int:
    """Return the most recently issued stamp (0 before the first change)."""
    return db.scalar(select(SystemClock.stamp_seq).where(SystemClock.id == CLOCK_ROW_ID)) or 0


def touch_folder(db: Session, folder_id: int) -> int:
    """Record a change in a folder and its project.

    Args:
        db: Database session
        folder_id: Folder whose content changed

    Returns:
        The stamp assigned to the change.

    Raises:
        LookupError: If the folder does not exist.
    """
    folder = db.get(Folder, folder_id)
    if folder is None:
        raise LookupError(f"Unknown folder {folder_id}")

    stamp = next_stamp(db)
    folder.stamp_id = stamp
    db.execute(
        update(Project)
        .where(Project.project_id == folder.project_id)
        .values(stamp_id=stamp)
    )
    db.commit()
    logger.debug("Folder %d changed at stamp %d", folder_id, stamp)
    return stamp
