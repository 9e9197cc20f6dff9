# src/tracker_alerts/models/alert.py
"""Model for alert subscriptions."""

from __future__ import annotations

from enum import IntEnum

from sqlalchemy import BigInteger, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from tracker_alerts.db.session import Base, BigIntPK


class DeliveryMode(IntEnum):
    """How (and whether) an alert is emailed.

    DIGEST and REPORT are both digest modes delivered on the alert's
    schedule; REPORT is sent on every scheduled pass even without changes.
    """

    NO_EMAIL = 0
    IMMEDIATE = 1
    DIGEST = 2
    REPORT = 3

    @property
    def is_digest(self) -> bool:
        return self in (DeliveryMode.DIGEST, DeliveryMode.REPORT)


def alert_key(
    user_id: int | None,
    type_id: int,
    view_id: int | None,
    project_id: int | None,
    folder_id: int | None,
) -> str:
    """Return the uniqueness key of an alert.

    NULL columns never collide in a SQL unique index, so the identity of an
    alert is folded into a single non-null string instead.
    """
    owner = "public" if user_id is None else f"u{user_id}"
    rest = ("-" if part is None else str(part) for part in (type_id, view_id, project_id, folder_id))
    return ":".join((owner, *rest))


class Alert(Base):
    """Subscription of a user (or of everyone, when public) to a scope.

    The scope is one of: a whole issue type, the folders of that type in one
    project, or a single folder. ``stamp_id`` is the watermark: the last
    stamp of the scope that has already been notified.
    """

    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_user_id", "user_id"),
        Index("ix_alerts_type_id", "type_id"),
        Index("ix_alerts_project_id", "project_id"),
        Index("ix_alerts_folder_id", "folder_id"),
        Index("ix_alerts_view_id", "view_id"),
    )

    alert_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    alert_key: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)

    # Null owner marks a public alert administered by administrators.
    user_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=True,
    )
    type_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("issue_types.type_id", ondelete="CASCADE"),
        nullable=False,
    )
    view_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("views.view_id", ondelete="CASCADE"),
        nullable=True,
    )
    project_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=True,
    )
    folder_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("folders.folder_id", ondelete="CASCADE"),
        nullable=True,
    )

    delivery_mode: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        default=DeliveryMode.NO_EMAIL,
    )
    # Digest schedule: comma separated days of week (0 = Monday) and hours.
    summary_days: Mapped[str | None] = mapped_column(String(40), nullable=True)
    summary_hours: Mapped[str | None] = mapped_column(String(80), nullable=True)

    stamp_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    @property
    def is_public(self) -> bool:
        return self.user_id is None

    @property
    def mode(self) -> DeliveryMode:
        return DeliveryMode(self.delivery_mode)
