"""SSE Helpers — frame formatting and the live notification stream generator.

Invariants:
    - Data frames: "data: {json}\\n\\n"; keepalive frames are comments (": keepalive\\n\\n")
    - The subscription is removed in `finally` on every exit path: client disconnect,
      cancellation, server shutdown, or the registry dropping a slow subscriber
    - Each frame the client accepts (data or keepalive) refreshes the subscription's last_seen

Design Decisions:
    - Keepalive doubles as liveness probe: a dead socket fails the write and ends the generator
    - SSE headers prevent proxy/browser buffering of streamed events
"""

import json
from collections.abc import AsyncIterator, Awaitable, Callable

from docketwatch.services.notification_registry import NotificationRegistry

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

KEEPALIVE_FRAME = ": keepalive\n\n"
CONNECTED_FRAME = ": connected\n\n"


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def notification_event_stream(
    registry: NotificationRegistry,
    recipient_id: str,
    keepalive_seconds: float,
    is_disconnected: Callable[[], Awaitable[bool]],
) -> AsyncIterator[str]:
    sub = registry.subscribe(recipient_id)
    try:
        yield CONNECTED_FRAME
        while not sub.closed:
            if await is_disconnected():
                break
            event = await sub.next_event(keepalive_seconds)
            if event is None:
                yield KEEPALIVE_FRAME
            else:
                yield sse_line(event.to_payload())
            sub.touch()
    finally:
        registry.unsubscribe(sub)
