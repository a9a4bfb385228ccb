"""Matter Schemas — list/summary views and the local override request.

Invariants:
    - MatterOverrideUpdate only carries local override fields; upstream-owned fields
      cannot be set through the API
    - billing_status in {PAID, DEPOSIT_PAID, PAYMENT_PLAN, DUE}
    - Omitted fields are left untouched; explicit null clears an override
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from docketwatch.schemas.camel import CamelModel

BillingStatus = Literal["PAID", "DEPOSIT_PAID", "PAYMENT_PLAN", "DUE"]


class MatterOut(CamelModel):
    id: UUID
    docketwise_id: int
    title: str
    display_title: str
    status: str | None = None
    display_status: str | None = None
    matter_type: str | None = None
    client_name: str | None = None
    activity_status: str
    is_stale: bool
    archived: bool
    opened_at: datetime | None = None
    closed_at: datetime | None = None
    docketwise_updated_at: datetime | None = None
    last_synced_at: datetime | None = None
    title_override: str | None = None
    status_override: str | None = None
    assignee_override: str | None = None
    estimated_deadline: datetime | None = None
    actual_deadline: datetime | None = None
    billing_status: str | None = None
    notes: str | None = None
    is_edited: bool
    edited_by: str | None = None
    edited_at: datetime | None = None


class MatterListResponse(CamelModel):
    matters: list[MatterOut]
    total: int
    limit: int
    offset: int


class UpcomingDeadline(CamelModel):
    id: UUID
    title: str
    estimated_deadline: datetime
    days_remaining: int


class MatterSummary(CamelModel):
    total: int
    active: int
    stale: int
    archived: int
    upcoming_deadlines: list[UpcomingDeadline]


class MatterOverrideUpdate(CamelModel):
    title_override: str | None = Field(None, max_length=500)
    status_override: str | None = Field(None, max_length=200)
    assignee_override: str | None = Field(None, max_length=200)
    estimated_deadline: datetime | None = None
    actual_deadline: datetime | None = None
    billing_status: BillingStatus | None = None
    notes: str | None = Field(None, max_length=10_000)
