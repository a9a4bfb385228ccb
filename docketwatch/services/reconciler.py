"""Reconciler — merges one tenant's Docketwise page stream into the matters table.

Invariants:
    - Each page is persisted (committed) before the next one is fetched
    - Lookup by (tenant_id, docketwise_id): absent → create, present → field-level diff
    - ONLY upstream-owned fields are ever written; override fields are never touched
    - Unchanged upstream → zero field writes; only last_synced_at and the derived
      activity classification refresh (idempotent)
    - A status change appends one MatterStatusHistory row
    - Mapping failures and failed pages count as `failed` (max 5 samples kept), never abort
    - Total pages capped at max_pages; exceeding it records an anomaly and stops
    - Cache entries under the tenant scope invalidated after every run

Design Decisions:
    - Batch lookup per page (one SELECT ... IN) over per-record queries
    - A DB failure while persisting a page rolls back that page only and counts it failed
      (the next scheduled run retries it)
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.core.domain_types import ActivityStatus, TenantId, UpstreamPage
from docketwatch.core.field_mapping import (
    UPSTREAM_FIELDS, RecordMappingError, diff_upstream_fields, map_upstream_matter,
)
from docketwatch.core.status_classifier import compute_activity_status
from docketwatch.infrastructure.cache import CacheAside, tenant_scope
from docketwatch.models.matter import Matter
from docketwatch.models.matter_status_history import MatterStatusHistory

logger = logging.getLogger(__name__)

MAX_ERROR_SAMPLES = 5


class PageStream(Protocol):
    anomalies: list[str]

    def __aiter__(self) -> AsyncIterator[UpstreamPage]: ...


@dataclass
class ReconcileResult:
    fetched: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    pages: int = 0
    error_samples: list[str] = field(default_factory=list)
    anomalies: list[str] = field(default_factory=list)

    def record_failure(self, message: str) -> None:
        self.failed += 1
        if len(self.error_samples) < MAX_ERROR_SAMPLES:
            self.error_samples.append(message)


class Reconciler:
    """Upserts upstream matters with field-level diffing."""

    def __init__(self, cache: CacheAside, max_pages: int = 50):
        self.cache = cache
        self.max_pages = max_pages

    async def reconcile(
        self,
        db: AsyncSession,
        tenant_id: TenantId,
        pages: PageStream,
        now: datetime,
        stale_days: int,
    ) -> ReconcileResult:
        result = ReconcileResult()
        try:
            stream = aiter(pages)
            async with aclosing(stream):
                async for page in stream:
                    result.pages += 1
                    if page.failed:
                        result.record_failure(f"page {page.page}: {page.error}")
                    else:
                        await self._persist_page(db, tenant_id, page, now, stale_days, result)
                    more = page.failed or page.next_page is not None
                    if result.pages >= self.max_pages and more:
                        result.anomalies.append(
                            f"page cap of {self.max_pages} reached before the last page",
                        )
                        logger.warning(
                            "Sync page cap reached", extra={"tenant_id": tenant_id, "page": page.page},
                        )
                        break
            result.anomalies.extend(pages.anomalies)
        finally:
            await self.cache.invalidate(tenant_scope(tenant_id))
        logger.info(
            f"Reconciled {result.fetched} matters: {result.created} created, "
            f"{result.updated} updated, {result.unchanged} unchanged, {result.failed} failed",
            extra={"tenant_id": tenant_id},
        )
        return result

    async def _persist_page(
        self,
        db: AsyncSession,
        tenant_id: TenantId,
        page: UpstreamPage,
        now: datetime,
        stale_days: int,
        result: ReconcileResult,
    ) -> None:
        mapped: list[dict[str, Any]] = []
        for raw in page.records:
            result.fetched += 1
            try:
                mapped.append(map_upstream_matter(raw))
            except RecordMappingError as e:
                result.record_failure(f"page {page.page}: {e}")

        counts = {"created": 0, "updated": 0, "unchanged": 0}
        try:
            existing = await self._load_existing(db, tenant_id, [m["docketwise_id"] for m in mapped])
            for fields in mapped:
                outcome = self._apply(db, tenant_id, existing, fields, now, stale_days)
                counts[outcome] += 1
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            result.record_failure(f"page {page.page}: persistence failed ({type(e).__name__})")
            logger.error(
                f"Failed to persist page: {e}",
                extra={"tenant_id": tenant_id, "page": page.page},
            )
            return
        result.created += counts["created"]
        result.updated += counts["updated"]
        result.unchanged += counts["unchanged"]

    async def _load_existing(
        self, db: AsyncSession, tenant_id: TenantId, docketwise_ids: list[int],
    ) -> dict[int, Matter]:
        if not docketwise_ids:
            return {}
        rows = await db.execute(
            select(Matter).where(
                Matter.tenant_id == tenant_id,
                Matter.docketwise_id.in_(docketwise_ids),
            ),
        )
        return {m.docketwise_id: m for m in rows.scalars()}

    def _apply(
        self,
        db: AsyncSession,
        tenant_id: TenantId,
        existing: dict[int, Matter],
        fields: dict[str, Any],
        now: datetime,
        stale_days: int,
    ) -> str:
        """Create or diff-update one matter. Returns created | updated | unchanged."""
        upstream = {k: fields[k] for k in UPSTREAM_FIELDS}
        matter = existing.get(fields["docketwise_id"])
        if matter is None:
            matter = Matter(tenant_id=tenant_id, docketwise_id=fields["docketwise_id"], **upstream)
            db.add(matter)
            existing[matter.docketwise_id] = matter
            outcome = "created"
        else:
            current = {k: getattr(matter, k) for k in UPSTREAM_FIELDS}
            changes = diff_upstream_fields(current, upstream)
            if "status" in changes:
                db.add(MatterStatusHistory(
                    matter_id=matter.id,
                    status=changes["status"],
                    previous_status=matter.status,
                    source="sync",
                    recorded_at=now,
                ))
            for key, value in changes.items():
                setattr(matter, key, value)
            outcome = "updated" if changes else "unchanged"

        matter.last_synced_at = now
        activity = compute_activity_status(
            archived=matter.archived,
            closed_at=matter.closed_at,
            status=matter.status,
            docketwise_updated_at=matter.docketwise_updated_at,
            edited_at=matter.edited_at,
            now=now,
            stale_days=stale_days,
        )
        matter.activity_status = activity.value
        matter.is_stale = activity == ActivityStatus.STALE
        return outcome
