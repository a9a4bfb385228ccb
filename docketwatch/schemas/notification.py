"""Notification Schemas — alert payloads for REST and SSE.

Invariants:
    - NotificationOut is the ONE shape for a notification: list endpoint, SSE "created"
      and "read" events all serialize through it
    - limit bounded 1..100
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from docketwatch.schemas.camel import CamelModel


class NotificationOut(CamelModel):
    id: UUID
    matter_id: UUID
    channel: str
    subject: str
    message: str
    days_before_deadline: int
    sent_at: datetime
    is_read: bool
    read_at: datetime | None = None


class NotificationListResponse(CamelModel):
    notifications: list[NotificationOut]
    unread_count: int


class NotificationListQuery(CamelModel):
    is_read: bool | None = None
    limit: int = Field(50, ge=1, le=100)


class ReadAllResponse(CamelModel):
    updated: int
