"""Test Doubles — in-memory stand-ins for Docketwise, SMTP and Redis.

Invariants:
    - FakePageSource serves pre-built pages per tenant; an Exception value is raised instead
    - FakeEmailTransport fails the first `failures` sends, then records deliveries
    - FakeRedis implements only the redis.asyncio calls CacheAside makes
    - UnreachableRedis raises redis ConnectionError on every call (backend outage)

Design Decisions:
    - Flat mock classes (no inheritance): simple, explicit, easy to debug
    - Builders (make_records, paginate) produce realistic Docketwise record shapes
"""

from datetime import datetime, timedelta, timezone

from redis.exceptions import ConnectionError as RedisConnectionError

from docketwatch.core.domain_types import OutgoingEmail, UpstreamPage
from docketwatch.core.errors import EmailDeliveryError

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


# -- Docketwise -----------------------------------------------------------------


def make_record(docketwise_id: int, **overrides) -> dict:
    record = {
        "id": docketwise_id,
        "title": f"Matter {docketwise_id}",
        "description": None,
        "matter_type": {"id": 2, "name": "Family"},
        "status": {"id": 7, "name": "Drafting"},
        "client_id": 1000 + docketwise_id,
        "client": {"first_name": "Ana", "last_name": f"Client{docketwise_id}"},
        "attorney_id": 3,
        "archived": False,
        "created_at": (NOW - timedelta(days=60)).isoformat(),
        "updated_at": (NOW - timedelta(days=2)).isoformat(),
    }
    record.update(overrides)
    return record


def make_records(count: int, start: int = 1) -> list[dict]:
    return [make_record(i) for i in range(start, start + count)]


def paginate(records: list[dict], page_size: int) -> dict[int, UpstreamPage]:
    """Split records into numbered pages; the last page has next_page None."""
    chunks = [records[i:i + page_size] for i in range(0, len(records), page_size)] or [[]]
    return {
        n: UpstreamPage(page=n, records=chunk, next_page=n + 1 if n < len(chunks) else None)
        for n, chunk in enumerate(chunks, start=1)
    }


class FakePageSource:
    """MatterPageSource serving scripted pages per tenant."""

    def __init__(self):
        self.pages: dict[str, dict[int, UpstreamPage | Exception]] = {}
        self.calls: list[tuple[str, int]] = []

    def set_pages(self, tenant_id: str, pages: dict[int, UpstreamPage | Exception]) -> None:
        self.pages[tenant_id] = pages

    def set_records(self, tenant_id: str, records: list[dict], page_size: int = 200) -> None:
        self.pages[tenant_id] = paginate(records, page_size)

    async def fetch_matters_page(self, tenant_id, page):
        self.calls.append((tenant_id, page))
        outcome = self.pages.get(tenant_id, {}).get(page)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return UpstreamPage(page=page)
        return outcome


# -- SMTP -------------------------------------------------------------------------


class FakeEmailTransport:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.attempts = 0
        self.sent: list[OutgoingEmail] = []

    async def send(self, message: OutgoingEmail) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise EmailDeliveryError("421 service not available")
        self.sent.append(message)


# -- Redis ------------------------------------------------------------------------


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.closed = False

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def scan_iter(self, match=None):
        prefix = (match or "").rstrip("*")
        for key in list(self.store):
            if key.startswith(prefix):
                yield key

    async def delete(self, *keys):
        return sum(1 for k in keys if self.store.pop(k, None) is not None)

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


class UnreachableRedis:
    """Every call fails the way redis-py does when the server refuses connections."""

    def _refuse(self):
        return RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def get(self, key):
        raise self._refuse()

    async def setex(self, key, ttl, value):
        raise self._refuse()

    async def scan_iter(self, match=None):
        raise self._refuse()
        yield  # pragma: no cover

    async def delete(self, *keys):
        raise self._refuse()

    async def ping(self):
        raise self._refuse()

    async def aclose(self):
        return None
