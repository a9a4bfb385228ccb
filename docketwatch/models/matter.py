"""Matter ORM — the canonical local copy of a Docketwise matter.

Invariants:
    - (tenant_id, docketwise_id) is unique: a matter is created at most once per upstream id
    - Upstream-owned columns (UPSTREAM_FIELDS in core/field_mapping.py) written ONLY by the Reconciler
    - Override columns (*_override, estimated_deadline, billing_status, notes, ...) written ONLY
      by the override endpoint; the Reconciler never reads them for writing
    - activity_status in {active, stale, archived}; is_stale mirrors activity_status == stale

Design Decisions:
    - Overrides as separate columns (not a JSON blob): queryable, e.g. the deadline scan
      filters on estimated_deadline
    - edited_at is the "local updated_at": bumped only by user edits, so sync refreshes
      do not reset staleness
    - display_* properties resolve override → upstream for the presentation layer
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, Boolean, DateTime, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from docketwatch.db.base import Base


class Matter(Base):
    __tablename__ = "matters"
    __table_args__ = (
        UniqueConstraint("tenant_id", "docketwise_id", name="uq_matters_tenant_docketwise"),
        Index("ix_matters_tenant_activity", "tenant_id", "activity_status"),
        Index("ix_matters_estimated_deadline", "estimated_deadline"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    docketwise_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Upstream-owned
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    matter_type: Mapped[str | None] = mapped_column(String(200), nullable=True)
    matter_type_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    client_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    attorney_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    opened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    docketwise_created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    docketwise_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Local overrides
    title_override: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status_override: Mapped[str | None] = mapped_column(String(200), nullable=True)
    assignee_override: Mapped[str | None] = mapped_column(String(200), nullable=True)
    estimated_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    actual_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    billing_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Sync bookkeeping
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    activity_status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="active",
    )
    is_stale: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    status_history: Mapped[list["MatterStatusHistory"]] = relationship(
        "MatterStatusHistory", back_populates="matter",
        cascade="all, delete-orphan", lazy="raise", passive_deletes=True,
    )

    @property
    def display_title(self) -> str:
        return self.title_override or self.title

    @property
    def display_status(self) -> str | None:
        return self.status_override or self.status
