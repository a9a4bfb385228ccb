"""SyncConfig ORM — per-tenant polling schedule and the sync exclusivity lease.

Invariants:
    - Exactly one row per tenant_id (unique)
    - last_sync_at written only after a run completes without a fatal error
    - lock_token/locked_until form a lease: held iff locked_until > now

Design Decisions:
    - Lease columns on the config row, not a separate lock table: one conditional UPDATE
      acquires it (compare-and-set, works across processes on any SQL backend)
    - locked_until expiry: a crashed worker's lease frees itself after sync_lock_ttl_seconds
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from docketwatch.db.base import Base


class SyncConfig(Base):
    __tablename__ = "sync_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    polling_interval_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=30,
    )
    stale_measurement_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=10,
    )
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    lock_token: Mapped[str | None] = mapped_column(String(36), nullable=True)
    locked_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
