# src/tracker_alerts/models/system_clock.py
"""System-level bookkeeping models."""


from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from tracker_alerts.db.session import Base


class SystemClock(Base):
    """Monotonic change counter used as the logical clock.

    Every committed mutation of a folder or project takes the next value of
    ``stamp_seq``, giving a total order of changes without wall-clock time.
    """

    __tablename__ = "system_clock"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, default=1)
    stamp_seq: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
