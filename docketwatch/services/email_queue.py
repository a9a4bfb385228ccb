"""Email Queue — background workers that send deadline emails with bounded retry.

Invariants:
    - Each job is attempted at most max_attempts times, with exponential backoff + ±25% jitter
      between attempts (base_delay_ms, capped at max_delay_ms)
    - Outcome recorded on the Notification row: delivered (delivered_at) or failed (last_error);
      the row itself is never deleted or rolled back
    - Permanent failure logged at ERROR with the notification id; a non-delivery exception
      from the transport is permanent on the spot (no retry, row still marked failed)
    - A worker never dies on a job error (logged, next job picked up)

Design Decisions:
    - asyncio.Queue + N worker tasks over a broker: delivery is best-effort by contract and the
      durable record already exists; a restart leaves 'pending' rows for inspection
    - deliver() is public so the retry policy is testable without running workers
"""

import asyncio
import logging
import random
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docketwatch.core.domain_types import DeliveryStatus, OutgoingEmail
from docketwatch.core.errors import EmailDeliveryError
from docketwatch.core.repository_protocols import EmailTransport
from docketwatch.models.notification import Notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailJob:
    notification_id: uuid.UUID
    message: OutgoingEmail


class EmailQueue:
    def __init__(
        self,
        transport: EmailTransport,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 60_000,
        workers: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.session_factory = session_factory
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.worker_count = workers
        self._sleep = sleep
        self._queue: asyncio.Queue[EmailJob] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []

    def enqueue(self, job: EmailJob) -> None:
        self._queue.put_nowait(job)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._work(), name=f"email-worker-{i}")
            for i in range(self.worker_count)
        ]

    async def stop(self) -> None:
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

    async def join(self) -> None:
        """Wait until every enqueued job has been processed."""
        await self._queue.join()

    async def _work(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.deliver(job)
            except Exception as e:
                logger.error(
                    f"Email worker error: {e}", exc_info=True,
                    extra={"notification_id": job.notification_id},
                )
            finally:
                self._queue.task_done()

    async def deliver(self, job: EmailJob) -> bool:
        """Send with retries. Returns True when delivered, False when permanently failed.

        EmailDeliveryError is retried; any other error from the transport (a message the
        transport cannot build, a bug) fails the row immediately.
        """
        last_error = ""
        attempts = 0
        for attempt in range(1, self.max_attempts + 1):
            attempts = attempt
            try:
                await self.transport.send(job.message)
            except EmailDeliveryError as e:
                last_error = e.message
                if attempt < self.max_attempts:
                    delay = self._backoff(attempt - 1)
                    logger.warning(
                        f"Email send failed, retry after {delay}ms: {e.message}",
                        extra={"notification_id": job.notification_id, "attempt": attempt},
                    )
                    await self._sleep(delay / 1000)
                continue
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.error(
                    f"Email transport raised unexpectedly: {last_error}", exc_info=True,
                    extra={"notification_id": job.notification_id, "attempt": attempt},
                )
                break
            await self._record(job.notification_id, DeliveryStatus.DELIVERED, attempt, None)
            logger.info(
                "Deadline email delivered",
                extra={"notification_id": job.notification_id, "attempt": attempt},
            )
            return True

        await self._record(job.notification_id, DeliveryStatus.FAILED, attempts, last_error)
        logger.error(
            f"Deadline email permanently failed after {attempts} attempt(s): {last_error}",
            extra={"notification_id": job.notification_id, "error_code": "EMAIL_DELIVERY_FAILED"},
        )
        return False

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    async def _record(
        self,
        notification_id: uuid.UUID,
        status: DeliveryStatus,
        attempts: int,
        error: str | None,
    ) -> None:
        values = {
            "delivery_status": status.value,
            "delivery_attempts": attempts,
            "last_error": error,
        }
        if status == DeliveryStatus.DELIVERED:
            values["delivered_at"] = datetime.now(timezone.utc)
        try:
            async with self.session_factory() as db:
                await db.execute(
                    update(Notification)
                    .where(Notification.id == notification_id)
                    .values(**values)
                    .execution_options(synchronize_session=False),
                )
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to record email delivery outcome: {e}",
                extra={"notification_id": notification_id},
            )
