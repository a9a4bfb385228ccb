"""Notification Queries — a recipient's in-app notification list with unread count.

Only the in-app channel is listed: email rows are delivery records, not inbox items.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.core.domain_types import Channel
from docketwatch.models.notification import Notification
from docketwatch.schemas.notification import NotificationListResponse, NotificationOut


async def list_notifications(
    db: AsyncSession, recipient_id: str, is_read: bool | None = None, limit: int = 50,
) -> dict:
    base = [
        Notification.recipient_id == recipient_id,
        Notification.channel == Channel.IN_APP.value,
    ]
    conditions = list(base)
    if is_read is not None:
        conditions.append(Notification.is_read.is_(is_read))
    rows = (
        await db.execute(
            select(Notification)
            .where(*conditions)
            .order_by(Notification.sent_at.desc())
            .limit(limit),
        )
    ).scalars().all()
    unread = (
        await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(*base, Notification.is_read.is_(False)),
        )
    ).scalar_one()
    return NotificationListResponse(
        notifications=[NotificationOut.model_validate(r) for r in rows],
        unread_count=unread,
    ).to_json_dict()
