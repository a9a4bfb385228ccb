"""Notification Registry — verifies in-process fan-out and subscriber lifecycle.

Tests:
    - Subscriber receives exactly one "created" event; after disconnecting, publishing
      is silent and nothing reaches the dead subscription
    - Every live session of a recipient receives the event, other recipients do not
    - Full queue drops the slow subscriber without blocking the publisher
    - Subscribing, unsubscribing or dropping a subscriber during publish is safe; the
      rest of the snapshot is still served; unsubscribe is idempotent
    - Stale subscriptions pruned by idle time
"""

from docketwatch.core.domain_types import NotificationEventType
from docketwatch.services.notification_registry import NotificationEvent, NotificationRegistry


def _event(notification_id="n1", kind=NotificationEventType.CREATED):
    return NotificationEvent(kind, {"id": notification_id})


async def test_subscriber_gets_event_then_disconnect_is_silent():
    registry = NotificationRegistry()
    sub = registry.subscribe("user-1")

    assert registry.publish("user-1", _event("n1")) == 1
    event = sub.queue.get_nowait()
    assert event.type == NotificationEventType.CREATED
    assert event.notification["id"] == "n1"
    assert sub.queue.empty()

    registry.unsubscribe(sub)
    assert registry.publish("user-1", _event("n2")) == 0
    assert sub.queue.empty()
    assert registry.subscriber_count() == 0


async def test_fan_out_to_every_session_of_one_recipient():
    registry = NotificationRegistry()
    tab_a = registry.subscribe("user-1")
    tab_b = registry.subscribe("user-1")
    other = registry.subscribe("user-2")

    assert registry.publish("user-1", _event()) == 2
    assert tab_a.queue.qsize() == 1
    assert tab_b.queue.qsize() == 1
    assert other.queue.empty()


async def test_no_subscribers_is_not_an_error():
    assert NotificationRegistry().publish("nobody", _event()) == 0


async def test_full_queue_drops_slow_subscriber():
    registry = NotificationRegistry(max_queue_size=2)
    slow = registry.subscribe("user-1")
    fast = registry.subscribe("user-1")

    registry.publish("user-1", _event("1"))
    registry.publish("user-1", _event("2"))
    fast.queue.get_nowait()
    fast.queue.get_nowait()
    delivered = registry.publish("user-1", _event("3"))

    assert delivered == 1
    assert slow.closed
    assert registry.subscriber_count("user-1") == 1


async def test_closed_subscription_removed_on_next_publish():
    registry = NotificationRegistry()
    sub = registry.subscribe("user-1")
    sub.closed = True

    assert registry.publish("user-1", _event()) == 0
    assert registry.subscriber_count("user-1") == 0


async def test_unsubscribe_is_idempotent():
    registry = NotificationRegistry()
    sub = registry.subscribe("user-1")

    registry.unsubscribe(sub)
    registry.unsubscribe(sub)

    assert registry.subscriber_count() == 0


async def test_prune_stale_uses_last_seen():
    clock = {"now": 100.0}
    registry = NotificationRegistry(clock=lambda: clock["now"])
    idle = registry.subscribe("user-1")
    active = registry.subscribe("user-2")

    clock["now"] = 150.0
    active.touch()
    pruned = registry.prune_stale(max_idle_seconds=30)

    assert pruned == 1
    assert idle.closed
    assert not active.closed
    assert registry.subscriber_count() == 1


async def test_next_event_times_out_with_none():
    sub = NotificationRegistry().subscribe("user-1")
    assert await sub.next_event(0.01) is None


async def test_slow_subscriber_dropped_mid_publish_others_still_served():
    registry = NotificationRegistry(max_queue_size=1)
    slow = registry.subscribe("user-1")
    slow.queue.put_nowait(_event("backlog"))
    tab_a = registry.subscribe("user-1")
    tab_b = registry.subscribe("user-1")

    delivered = registry.publish("user-1", _event("n1"))

    assert delivered == 2
    assert slow.closed
    assert tab_a.queue.get_nowait().notification["id"] == "n1"
    assert tab_b.queue.get_nowait().notification["id"] == "n1"
    assert registry.subscriber_count("user-1") == 2


async def test_subscribe_and_unsubscribe_inside_publish():
    """A subscriber list that changes while publish iterates raises nothing."""
    registry = NotificationRegistry()
    churning = registry.subscribe("user-1")
    steady = registry.subscribe("user-1")
    joined = []
    put = churning.queue.put_nowait

    def put_then_churn(event):
        put(event)
        registry.unsubscribe(churning)
        joined.append(registry.subscribe("user-1"))

    churning.queue.put_nowait = put_then_churn

    delivered = registry.publish("user-1", _event("n1"))

    assert delivered == 2
    assert steady.queue.qsize() == 1
    assert joined[0].queue.empty()
    assert registry.subscriber_count("user-1") == 2
