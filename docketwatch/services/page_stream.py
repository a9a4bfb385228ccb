"""Matter Page Stream — lazy, finite iteration over Docketwise pages for one tenant.

Invariants:
    - Pages fetched one at a time, only when the consumer asks for the next (no buffering)
    - Terminates when next_page is None, on a repeated cursor (cycle), or after
      max_consecutive_failures failed pages in a row; the last two record an anomaly
    - A transient or malformed page is yielded as a failed UpstreamPage and the stream
      moves on to page + 1
    - UpstreamAuthError is NOT caught: it aborts the tenant's run

Design Decisions:
    - Pacing delay between requests (Docketwise allows ~100 req/min per token)
    - Page-number cursors: a cycle is any page number seen twice in one run
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from docketwatch.core.domain_types import TenantId, UpstreamPage
from docketwatch.core.errors import MalformedPageError, UpstreamTransientError
from docketwatch.core.repository_protocols import MatterPageSource

logger = logging.getLogger(__name__)


class MatterPageStream:
    """Async-iterable page stream; anomalies collected while iterating."""

    def __init__(
        self,
        source: MatterPageSource,
        tenant_id: TenantId,
        *,
        first_page: int = 1,
        pace_seconds: float = 0.6,
        max_consecutive_failures: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source
        self.tenant_id = tenant_id
        self.first_page = first_page
        self.pace_seconds = pace_seconds
        self.max_consecutive_failures = max_consecutive_failures
        self._sleep = sleep
        self.anomalies: list[str] = []

    def __aiter__(self) -> AsyncIterator[UpstreamPage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[UpstreamPage]:
        page: int | None = self.first_page
        seen: set[int] = set()
        consecutive_failures = 0
        while page is not None:
            if page in seen:
                self._anomaly(f"upstream cursor cycled back to page {page}")
                return
            if seen and self.pace_seconds > 0:
                await self._sleep(self.pace_seconds)
            seen.add(page)
            try:
                result = await self.source.fetch_matters_page(self.tenant_id, page)
            except (UpstreamTransientError, MalformedPageError) as e:
                consecutive_failures += 1
                logger.warning(
                    f"Skipping Docketwise page: {e.message}",
                    extra={"tenant_id": self.tenant_id, "page": page, "error_code": e.code},
                )
                yield UpstreamPage(page=page, error=e.message)
                if consecutive_failures >= self.max_consecutive_failures:
                    self._anomaly(
                        f"stopped after {consecutive_failures} consecutive failed pages",
                    )
                    return
                page += 1
                continue
            consecutive_failures = 0
            yield result
            page = result.next_page

    def _anomaly(self, message: str) -> None:
        logger.warning(message, extra={"tenant_id": self.tenant_id})
        self.anomalies.append(message)
