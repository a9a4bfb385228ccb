"""Notification ORM — one deadline alert raised for (matter, recipient, channel, threshold).

Invariants:
    - (matter_id, recipient_id, channel, days_before_deadline) is unique — the dedup tuple.
      Enforced by the database, inserted with ON CONFLICT DO NOTHING before any side effect
    - is_read/read_at mutated only by the owning recipient
    - Never deleted; email failure changes delivery_* columns only

Design Decisions:
    - The row means "alert raised", not "delivered": delivery bookkeeping lives beside it
      so a failed email never rolls the alert back
    - recipient_email snapshotted at creation: the email worker needs no preferences lookup
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from docketwatch.db.base import Base

DEDUP_COLUMNS = ("matter_id", "recipient_id", "channel", "days_before_deadline")


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint(*DEDUP_COLUMNS, name="uq_notifications_dedup_tuple"),
        Index("ix_notifications_recipient_read", "recipient_id", "is_read"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    matter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("matters.id", ondelete="CASCADE"),
        nullable=False,
    )
    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recipient_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    channel: Mapped[str] = mapped_column(String(10), nullable=False)
    days_before_deadline: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Delivery bookkeeping
    delivery_status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="pending",
    )
    delivery_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
