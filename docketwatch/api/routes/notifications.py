"""Notification Routes — in-app inbox, read acknowledgements, and the live SSE stream.

Invariants:
    - Every route is scoped to the authenticated recipient (require_identity → 401 otherwise)
    - Marking read publishes a "read" event so the recipient's other sessions stay in sync
    - GET /stream emits "created"/"read" data frames plus keepalive comments; the
      subscription is removed when the client goes away
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.api.dependencies import get_container, get_db, require_identity
from docketwatch.api.sse import SSE_HEADERS, notification_event_stream
from docketwatch.container import ServiceContainer
from docketwatch.core.domain_types import CallerIdentity
from docketwatch.services.delivery_dispatcher import serialize_notification
from docketwatch.services.notification_queries import list_notifications

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("")
async def get_notifications(
    is_read: bool | None = Query(None, alias="isRead"),
    limit: int = Query(50, ge=1, le=100),
    identity: CallerIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    return await list_notifications(db, identity.recipient_id, is_read=is_read, limit=limit)


@router.post("/read-all")
async def mark_all_read(
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
    db: AsyncSession = Depends(get_db),
):
    updated = await container.dispatcher.dispatch_read_all(db, identity.recipient_id)
    return {"updated": updated}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
    db: AsyncSession = Depends(get_db),
):
    record = await container.dispatcher.dispatch_read(db, notification_id, identity.recipient_id)
    return serialize_notification(record)


@router.get("/stream")
async def stream_notifications(
    request: Request,
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
):
    """Long-lived SSE stream of this recipient's notification events."""
    return StreamingResponse(
        notification_event_stream(
            container.registry,
            identity.recipient_id,
            container.settings.sse_keepalive_seconds,
            request.is_disconnected,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
