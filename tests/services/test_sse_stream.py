"""SSE Stream — verifies the live notification generator frame by frame.

Tests:
    - First frame is the connected comment; published events arrive as data frames
    - Idle periods produce keepalive comments
    - Closing the generator (client gone) unsubscribes
    - A registry-dropped subscription ends the stream

Design Decisions:
    - Generator driven directly: an infinite StreamingResponse through ASGITransport
      would never complete
"""

import json

from docketwatch.api.sse import CONNECTED_FRAME, KEEPALIVE_FRAME, notification_event_stream
from docketwatch.core.domain_types import NotificationEventType
from docketwatch.services.notification_registry import NotificationEvent, NotificationRegistry


def _connected_flag(state):
    async def is_disconnected():
        return state["gone"]
    return is_disconnected


async def test_stream_emits_connected_data_and_keepalive():
    registry = NotificationRegistry()
    state = {"gone": False}
    stream = notification_event_stream(registry, "user-1", 0.01, _connected_flag(state))

    assert await anext(stream) == CONNECTED_FRAME
    assert registry.subscriber_count("user-1") == 1

    registry.publish(
        "user-1", NotificationEvent(NotificationEventType.CREATED, {"id": "n1"}),
    )
    frame = await anext(stream)
    assert frame.startswith("data: ")
    assert json.loads(frame[len("data: "):]) == {"type": "created", "notification": {"id": "n1"}}

    assert await anext(stream) == KEEPALIVE_FRAME

    await stream.aclose()
    assert registry.subscriber_count() == 0


async def test_client_disconnect_ends_stream():
    registry = NotificationRegistry()
    state = {"gone": False}
    stream = notification_event_stream(registry, "user-1", 0.01, _connected_flag(state))
    await anext(stream)

    state["gone"] = True
    frames = [frame async for frame in stream]

    assert frames == []
    assert registry.subscriber_count() == 0


async def test_dropped_subscription_ends_stream():
    registry = NotificationRegistry()
    stream = notification_event_stream(registry, "user-1", 0.01, _connected_flag({"gone": False}))
    await anext(stream)

    registry.prune_stale(max_idle_seconds=-1)
    frames = [frame async for frame in stream]

    assert frames == []
