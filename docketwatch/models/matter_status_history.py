"""MatterStatusHistory ORM — append-only audit of upstream status changes.

Invariants:
    - One row per observed status change; unchanged reconciliations append nothing
    - Rows are never updated or deleted (cascade only with the parent matter)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from docketwatch.db.base import Base


class MatterStatusHistory(Base):
    __tablename__ = "matter_status_history"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    matter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("matters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str | None] = mapped_column(String(200), nullable=True)
    previous_status: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="sync")
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    matter: Mapped["Matter"] = relationship("Matter", back_populates="status_history")
