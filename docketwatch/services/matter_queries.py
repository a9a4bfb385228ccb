"""Matter Queries — cached list/summary reads and the local override write.

Invariants:
    - Reads go through CacheAside under the tenant scope (cache failures fall through to the DB)
    - Override writes touch ONLY override columns + edit bookkeeping, then invalidate the
      tenant scope so cached views never outlive the write
    - Every query is tenant-scoped: another tenant's matter is "not found"

Design Decisions:
    - Cached values are the JSON-ready dicts returned to clients (what the cache stores is
      exactly what the route returns)
"""

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.core.domain_types import ActivityStatus, TenantId
from docketwatch.core.errors import ErrorContext, ResourceNotFoundError
from docketwatch.core.status_classifier import compute_activity_status
from docketwatch.core.timestamps import whole_days_between
from docketwatch.infrastructure.cache import CacheAside, tenant_scope
from docketwatch.models.matter import Matter
from docketwatch.models.sync_config import SyncConfig
from docketwatch.schemas.matter import (
    MatterListResponse, MatterOut, MatterOverrideUpdate, MatterSummary, UpcomingDeadline,
)

logger = logging.getLogger(__name__)

UPCOMING_WINDOW_DAYS = 14
DEFAULT_STALE_DAYS = 10


def list_cache_key(tenant_id: str, activity: str | None, limit: int, offset: int) -> str:
    return f"{tenant_scope(tenant_id)}matters:list:{activity or 'all'}:{limit}:{offset}"


def summary_cache_key(tenant_id: str) -> str:
    return f"{tenant_scope(tenant_id)}matters:summary"


class MatterQueries:
    def __init__(self, cache: CacheAside, ttl_seconds: int | None = None):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def list_matters(
        self,
        db: AsyncSession,
        tenant_id: TenantId,
        activity: ActivityStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> dict:
        async def compute() -> dict:
            conditions = [Matter.tenant_id == tenant_id]
            if activity is not None:
                conditions.append(Matter.activity_status == activity.value)
            total = (
                await db.execute(select(func.count()).select_from(Matter).where(*conditions))
            ).scalar_one()
            rows = (
                await db.execute(
                    select(Matter)
                    .where(*conditions)
                    .order_by(Matter.docketwise_updated_at.desc().nulls_last(), Matter.docketwise_id)
                    .limit(limit)
                    .offset(offset),
                )
            ).scalars().all()
            return MatterListResponse(
                matters=[MatterOut.model_validate(m) for m in rows],
                total=total, limit=limit, offset=offset,
            ).to_json_dict()

        key = list_cache_key(tenant_id, activity.value if activity else None, limit, offset)
        return await self.cache.get_or_compute(key, self.ttl_seconds, compute)

    async def summary(self, db: AsyncSession, tenant_id: TenantId, now: datetime) -> dict:
        async def compute() -> dict:
            counts = dict(
                (
                    await db.execute(
                        select(Matter.activity_status, func.count())
                        .where(Matter.tenant_id == tenant_id)
                        .group_by(Matter.activity_status),
                    )
                ).all(),
            )
            upcoming = (
                await db.execute(
                    select(Matter)
                    .where(
                        Matter.tenant_id == tenant_id,
                        Matter.activity_status == ActivityStatus.ACTIVE.value,
                        Matter.estimated_deadline.is_not(None),
                        Matter.estimated_deadline >= now,
                        Matter.estimated_deadline <= now + timedelta(days=UPCOMING_WINDOW_DAYS),
                    )
                    .order_by(Matter.estimated_deadline)
                    .limit(20),
                )
            ).scalars().all()
            return MatterSummary(
                total=sum(counts.values()),
                active=counts.get(ActivityStatus.ACTIVE.value, 0),
                stale=counts.get(ActivityStatus.STALE.value, 0),
                archived=counts.get(ActivityStatus.ARCHIVED.value, 0),
                upcoming_deadlines=[
                    UpcomingDeadline(
                        id=m.id,
                        title=m.display_title,
                        estimated_deadline=m.estimated_deadline,
                        days_remaining=whole_days_between(now, m.estimated_deadline),
                    )
                    for m in upcoming
                ],
            ).to_json_dict()

        return await self.cache.get_or_compute(summary_cache_key(tenant_id), self.ttl_seconds, compute)

    async def update_overrides(
        self,
        db: AsyncSession,
        tenant_id: TenantId,
        matter_id: uuid.UUID,
        update: MatterOverrideUpdate,
        editor_id: str,
        now: datetime,
    ) -> dict:
        matter = (
            await db.execute(
                select(Matter).where(Matter.id == matter_id, Matter.tenant_id == tenant_id),
            )
        ).scalar_one_or_none()
        if matter is None:
            raise ResourceNotFoundError(
                "Matter", str(matter_id), context=ErrorContext(tenant_id=tenant_id),
            )
        for key, value in update.model_dump(exclude_unset=True).items():
            setattr(matter, key, value)
        matter.is_edited = True
        matter.edited_by = editor_id
        matter.edited_at = now

        stale_days = (
            await db.execute(
                select(SyncConfig.stale_measurement_days).where(SyncConfig.tenant_id == tenant_id),
            )
        ).scalar_one_or_none() or DEFAULT_STALE_DAYS
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
        await db.commit()
        await self.cache.invalidate(tenant_scope(tenant_id))
        logger.info("Matter overrides updated", extra={"tenant_id": tenant_id, "matter_id": matter.id})
        return MatterOut.model_validate(matter).to_json_dict()
