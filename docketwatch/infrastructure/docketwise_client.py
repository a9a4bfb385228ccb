"""Resilient Docketwise Client — wraps httpx.AsyncClient with rate-limit retry and error mapping.

Invariants:
    - Rate limits (429, and Docketwise's 419): exponential backoff with jitter, respects
      Retry-After, at most max_retries retries, then UpstreamTransientError
    - Transient errors (5xx, connection, timeout): NO in-run retry — UpstreamTransientError
      immediately; the caller skips the page and the next scheduled run retries
    - Auth errors (401, 403): UpstreamAuthError — fatal for the tenant's run
    - Undecodable or unexpected bodies: MalformedPageError
    - Every successful call returns an UpstreamPage with next_page None on the last page

Design Decisions:
    - Wrapper over raw client: isolates retry logic from the reconciler (ADR: single responsibility)
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - Three pagination shapes accepted: {"data", "pagination": {"next_page"}}, a bare list with
      an X-Pagination header, or a bare list where a short page (< page_size) means "last"
    - Per-tenant tokens with a shared fallback token (single-firm deployments)
"""

import asyncio
import json
import logging
import random
from collections.abc import Awaitable, Callable, Mapping

import httpx

from docketwatch.core.domain_types import TenantId, UpstreamPage
from docketwatch.core.errors import (
    ErrorContext, MalformedPageError, UpstreamAuthError, UpstreamTransientError,
)

logger = logging.getLogger(__name__)

_RATE_LIMIT_STATUSES = frozenset({419, 429})
_AUTH_STATUSES = frozenset({401, 403})
_NO_HEADER = object()


class ResilientDocketwiseClient:
    """Fetches Docketwise pages with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        tenant_tokens: Mapping[str, str] | None = None,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: float = 30.0,
        page_size: int = 200,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
        )
        self.api_token = api_token
        self.tenant_tokens = dict(tenant_tokens or {})
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.page_size = page_size
        self._sleep = sleep

    async def fetch_matters_page(self, tenant_id: TenantId, page: int) -> UpstreamPage:
        """GET /matters?page=N for one tenant."""
        context = ErrorContext(tenant_id=tenant_id, page=page)
        response = await self._get_with_retry(
            "/matters",
            params={"page": page, "per_page": self.page_size},
            token=self._token_for(tenant_id),
            context=context,
        )
        return self._parse_page(response, page, context)

    async def close(self) -> None:
        await self.client.aclose()

    def _token_for(self, tenant_id: TenantId) -> str:
        return self.tenant_tokens.get(tenant_id, self.api_token)

    async def _get_with_retry(
        self, path: str, *, params: dict, token: str, context: ErrorContext,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(path, params=params, headers=headers)
            except httpx.TimeoutException as e:
                raise UpstreamTransientError(f"timeout: {e}", context=context)
            except httpx.TransportError as e:
                raise UpstreamTransientError(f"connection error: {e}", context=context)

            status = response.status_code
            if status in _RATE_LIMIT_STATUSES:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if status in _AUTH_STATUSES:
                raise UpstreamAuthError(status, context=context)
            if status >= 500:
                raise UpstreamTransientError(
                    f"server error {status}", status_code=status, context=context,
                )
            if status >= 400:
                raise UpstreamTransientError(
                    f"client error {status}", status_code=status, context=context,
                )
            logger.debug(
                "Docketwise page fetched",
                extra={"tenant_id": context.tenant_id, "page": context.page, "attempt": attempt + 1},
            )
            return response
        # Unreachable: the last rate-limited attempt raises in _handle_rate_limit
        raise UpstreamTransientError("retries exhausted", context=context)

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        """Sleep before the next attempt, or raise when retries are exhausted."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise UpstreamTransientError(
                "rate limit exceeded after retries",
                status_code=response.status_code,
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Docketwise rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"tenant_id": context.tenant_id, "page": context.page},
        )
        await self._sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** (attempt + 1)) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Retry-After header in milliseconds (seconds form only)."""
        val = response.headers.get("retry-after")
        if val and val.strip().isdigit():
            return int(val) * 1000
        return None

    def _parse_page(
        self, response: httpx.Response, page: int, context: ErrorContext,
    ) -> UpstreamPage:
        try:
            body = response.json()
        except ValueError as e:
            raise MalformedPageError(f"body is not JSON ({e})", context=context)

        if isinstance(body, dict):
            records = body.get("data")
            if not isinstance(records, list):
                raise MalformedPageError("object body without a 'data' list", context=context)
            pagination = body.get("pagination")
            next_page = (
                pagination.get("next_page") if isinstance(pagination, dict)
                else self._guess_next(records, page)
            )
        elif isinstance(body, list):
            records = body
            next_page = self._next_from_header(response, context)
            if next_page is _NO_HEADER:
                next_page = self._guess_next(records, page)
        else:
            raise MalformedPageError("body is neither a list nor an object", context=context)

        if next_page is not None and not isinstance(next_page, int):
            raise MalformedPageError(f"next_page is not an integer: {next_page!r}", context=context)
        return UpstreamPage(page=page, records=records, next_page=next_page)

    def _guess_next(self, records: list, page: int) -> int | None:
        return page + 1 if len(records) >= self.page_size else None

    def _next_from_header(self, response: httpx.Response, context: ErrorContext):
        raw = response.headers.get("x-pagination")
        if not raw:
            return _NO_HEADER
        try:
            return json.loads(raw).get("next_page")
        except (ValueError, AttributeError) as e:
            raise MalformedPageError(f"bad X-Pagination header ({e})", context=context)

