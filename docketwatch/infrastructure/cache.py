"""Cache-Aside Layer — read-through Redis cache in front of the canonical store.

Invariants:
    - get_or_compute() ALWAYS returns compute()'s value on any cache failure (never raises
      for cache reasons; compute()'s own exceptions propagate unchanged)
    - Store failures after compute are swallowed (logged at WARNING)
    - invalidate() removes every key under a scope prefix; failures logged, never raised
    - No client configured (redis_url unset) behaves exactly like a permanent miss

Design Decisions:
    - redis.asyncio over a sync client: the event loop never blocks on the cache
    - Values stored as JSON {"v": value}: the cache is disposable, any process version can
      read it, and a computed None is a hit like any other value
    - SCAN + DEL over KEYS: KEYS blocks Redis on large keyspaces
    - Keys namespaced "docketwatch:tenant:{id}:..." so one tenant's sync invalidates only its views
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from docketwatch.core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_PREFIX = "docketwatch"
_INVALIDATE_BATCH = 500
_VALUE_FIELD = "v"
_MISS = object()

# Everything a broken/unreachable backend or a corrupt entry can raise
_CACHE_FAILURES = (RedisError, OSError, asyncio.TimeoutError, ValueError, TypeError)


def tenant_scope(tenant_id: str) -> str:
    """Prefix shared by every cached view of one tenant."""
    return f"tenant:{tenant_id}:"


def create_redis_client(url: str, timeout_seconds: float = 2.0) -> aioredis.Redis:
    return aioredis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )


class CacheAside:
    """Generic get-or-compute cache with best-effort invalidation."""

    def __init__(self, client: aioredis.Redis | None, default_ttl: int = 1800):
        self._client = client
        self._default_ttl = default_ttl

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _key(self, key: str) -> str:
        return f"{KEY_PREFIX}:{key}"

    async def get_or_compute(
        self,
        key: str,
        ttl: int | None,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        cached = await self._read(key)
        if cached is not _MISS:
            return cached
        value = await compute()
        await self._write(key, value, ttl or self._default_ttl)
        return value

    async def _read(self, key: str) -> Any:
        if self._client is None:
            return _MISS
        try:
            raw = await self._client.get(self._key(key))
            if raw is None:
                return _MISS
            entry = json.loads(raw)
            if not isinstance(entry, dict) or _VALUE_FIELD not in entry:
                raise ValueError("entry without a value envelope")
            logger.debug("Cache HIT: %s", key)
            return entry[_VALUE_FIELD]
        except _CACHE_FAILURES as e:
            err = CacheUnavailableError(str(e))
            logger.warning(
                f"Cache read failed, computing: {err.message}",
                extra={"error_code": err.code},
            )
            return _MISS

    async def _write(self, key: str, value: Any, ttl: int) -> None:
        if self._client is None:
            return
        try:
            await self._client.setex(
                self._key(key), ttl, json.dumps({_VALUE_FIELD: value}, default=str),
            )
        except _CACHE_FAILURES as e:
            logger.warning(
                f"Cache write failed for {key}: {e}",
                extra={"error_code": "CACHE_UNAVAILABLE"},
            )

    async def invalidate(self, prefix: str) -> int:
        """Delete every key under prefix. Returns the number of keys removed."""
        if self._client is None:
            return 0
        removed = 0
        try:
            batch: list[str] = []
            async for key in self._client.scan_iter(match=f"{self._key(prefix)}*"):
                batch.append(key)
                if len(batch) >= _INVALIDATE_BATCH:
                    removed += await self._client.delete(*batch)
                    batch = []
            if batch:
                removed += await self._client.delete(*batch)
        except _CACHE_FAILURES as e:
            logger.warning(
                f"Cache invalidation failed for {prefix}: {e}",
                extra={"error_code": "CACHE_UNAVAILABLE"},
            )
        return removed

    async def health_check(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except _CACHE_FAILURES as e:
            logger.warning(f"Cache health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
