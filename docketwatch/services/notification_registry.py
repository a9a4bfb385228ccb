"""Notification Registry — in-process pub/sub fan-out keyed by recipient id.

Invariants:
    - Each Subscription owns one bounded asyncio.Queue: events arrive FIFO per subscriber
    - publish() iterates a snapshot tuple, so subscribe/unsubscribe during publish is safe
    - publish() never raises and never blocks; no live subscriber is not an error
    - A subscriber whose queue is full is dropped (closed) rather than slowing publishers
    - unsubscribe() is idempotent; an empty recipient key is removed
    - Nothing persisted: the registry starts empty on every process start (clients re-pull)

Design Decisions:
    - Typed registry over an event emitter: explicit add/remove, no dangling callbacks
    - last_seen bumped by the SSE keepalive; prune_stale() drops subscriptions whose
      connection vanished without a clean disconnect
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from docketwatch.core.domain_types import NotificationEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    type: NotificationEventType
    notification: dict

    def to_payload(self) -> dict:
        return {"type": self.type.value, "notification": self.notification}


class Subscription:
    """One live connection's inbox."""

    def __init__(self, recipient_id: str, max_queue_size: int, clock: Callable[[], float]):
        self.recipient_id = recipient_id
        self.queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=max_queue_size)
        self.closed = False
        self._clock = clock
        self.last_seen = clock()

    def touch(self) -> None:
        self.last_seen = self._clock()

    async def next_event(self, timeout: float) -> NotificationEvent | None:
        """Next event, or None if nothing arrived within timeout."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None


class NotificationRegistry:
    def __init__(
        self, max_queue_size: int = 100, clock: Callable[[], float] = time.monotonic,
    ):
        self.max_queue_size = max_queue_size
        self._clock = clock
        self._subscriptions: dict[str, set[Subscription]] = {}

    def subscribe(self, recipient_id: str) -> Subscription:
        sub = Subscription(recipient_id, self.max_queue_size, self._clock)
        self._subscriptions.setdefault(recipient_id, set()).add(sub)
        logger.info(
            "Live subscriber connected", extra={"recipient_id": recipient_id},
        )
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        sub.closed = True
        subs = self._subscriptions.get(sub.recipient_id)
        if subs is None or sub not in subs:
            return
        subs.discard(sub)
        if not subs:
            del self._subscriptions[sub.recipient_id]
        logger.info(
            "Live subscriber disconnected", extra={"recipient_id": sub.recipient_id},
        )

    def publish(self, recipient_id: str, event: NotificationEvent) -> int:
        """Deliver to every live subscriber of recipient_id. Returns delivery count."""
        delivered = 0
        for sub in tuple(self._subscriptions.get(recipient_id, ())):
            if sub.closed:
                self.unsubscribe(sub)
                continue
            try:
                sub.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping slow live subscriber (queue full)",
                    extra={"recipient_id": recipient_id},
                )
                self.unsubscribe(sub)
        return delivered

    def prune_stale(self, max_idle_seconds: float) -> int:
        """Drop subscriptions not touched within max_idle_seconds."""
        cutoff = self._clock() - max_idle_seconds
        stale = [
            sub
            for subs in tuple(self._subscriptions.values())
            for sub in tuple(subs)
            if sub.last_seen < cutoff
        ]
        for sub in stale:
            self.unsubscribe(sub)
        return len(stale)

    async def run_pruner(self, interval_seconds: float, max_idle_seconds: float) -> None:
        """Background loop started by the app lifespan; cancelled on shutdown."""
        while True:
            await asyncio.sleep(interval_seconds)
            pruned = self.prune_stale(max_idle_seconds)
            if pruned:
                logger.info(f"Pruned {pruned} stale live subscribers")

    def subscriber_count(self, recipient_id: str | None = None) -> int:
        if recipient_id is not None:
            return len(self._subscriptions.get(recipient_id, ()))
        return sum(len(s) for s in self._subscriptions.values())
