"""Delivery Dispatcher — turns a created Notification into its channel side effect.

Invariants:
    - Called only for rows already committed (the alert exists before any delivery)
    - email → EmailJob on the EmailQueue; in-app → "created" event on the registry
    - Live publish is best-effort: zero subscribers is fine, the row stays queryable
    - dispatch_read() only lets the owning recipient mark a notification read, then
      publishes "read" so every open session of that recipient stays in sync
    - No ordering across channels

Design Decisions:
    - Registry and queue injected: the dispatcher owns no transport itself
    - Events serialized through NotificationOut: SSE and REST share one shape
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.core.domain_types import Channel, NotificationEventType, OutgoingEmail
from docketwatch.core.errors import ErrorContext, ResourceNotFoundError
from docketwatch.core.notification_content import build_email_html
from docketwatch.models.notification import Notification
from docketwatch.schemas.notification import NotificationOut
from docketwatch.services.email_queue import EmailJob, EmailQueue
from docketwatch.services.notification_registry import NotificationEvent, NotificationRegistry

logger = logging.getLogger(__name__)


def serialize_notification(record: Notification) -> dict:
    return NotificationOut.model_validate(record).to_json_dict()


class DeliveryDispatcher:
    def __init__(self, registry: NotificationRegistry, email_queue: EmailQueue):
        self.registry = registry
        self.email_queue = email_queue

    def dispatch_created(
        self, record: Notification, *, matter_url: str = "", days_remaining: int | None = None,
    ) -> None:
        if record.channel == Channel.EMAIL.value:
            self.dispatch_email(record, matter_url=matter_url, days_remaining=days_remaining)
        else:
            self.dispatch_in_app(record)

    def dispatch_email(
        self, record: Notification, *, matter_url: str = "", days_remaining: int | None = None,
    ) -> None:
        if not record.recipient_email:
            logger.warning(
                "Email notification has no address, not enqueued",
                extra={"notification_id": record.id, "recipient_id": record.recipient_id},
            )
            return
        days = record.days_before_deadline if days_remaining is None else days_remaining
        self.email_queue.enqueue(EmailJob(
            notification_id=record.id,
            message=OutgoingEmail(
                to=record.recipient_email,
                subject=record.subject,
                text=f"{record.message}\n\n{matter_url}".rstrip(),
                html=build_email_html(record.subject, record.message, matter_url, days),
            ),
        ))

    def dispatch_in_app(self, record: Notification) -> int:
        delivered = self.registry.publish(
            record.recipient_id,
            NotificationEvent(NotificationEventType.CREATED, serialize_notification(record)),
        )
        logger.debug(
            f"In-app notification published to {delivered} live sessions",
            extra={"notification_id": record.id, "recipient_id": record.recipient_id},
        )
        return delivered

    async def dispatch_read(
        self, db: AsyncSession, notification_id: uuid.UUID, recipient_id: str,
    ) -> Notification:
        record = (
            await db.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.recipient_id == recipient_id,
                ),
            )
        ).scalar_one_or_none()
        if record is None:
            raise ResourceNotFoundError(
                "Notification", str(notification_id),
                context=ErrorContext(recipient_id=recipient_id),
            )
        if not record.is_read:
            record.is_read = True
            record.read_at = datetime.now(timezone.utc)
            await db.commit()
        self.registry.publish(
            recipient_id,
            NotificationEvent(NotificationEventType.READ, serialize_notification(record)),
        )
        return record

    async def dispatch_read_all(self, db: AsyncSession, recipient_id: str) -> int:
        records = (
            await db.execute(
                select(Notification).where(
                    Notification.recipient_id == recipient_id,
                    Notification.channel == Channel.IN_APP.value,
                    Notification.is_read.is_(False),
                ),
            )
        ).scalars().all()
        now = datetime.now(timezone.utc)
        for record in records:
            record.is_read = True
            record.read_at = now
        await db.commit()
        for record in records:
            self.registry.publish(
                recipient_id,
                NotificationEvent(NotificationEventType.READ, serialize_notification(record)),
            )
        return len(records)
