"""Sync Orchestrator — decides which tenants are due and runs each sync without overlap.

Invariants:
    - due = last_sync_at is None or now - last_sync_at >= polling interval (core/sync_schedule.py)
    - At most one run per tenant at a time, across processes: a lease taken with one
      conditional UPDATE; a tenant whose lease is held is skipped silently (never queued)
    - last_sync_at = now written ONLY when the run finished without a fatal error, in the
      same UPDATE that releases the lease; the lease is released on every path
    - A fatal error for one tenant is logged with tenant context and recorded in its summary;
      the remaining tenants still run

Design Decisions:
    - Lease with expiry (locked_until) over advisory locks: portable to SQLite for tests,
      and a crashed worker cannot wedge a tenant forever
    - Every tenant gets its own session: one tenant's failure cannot poison another's transaction
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docketwatch.core.domain_types import SyncRunStatus, TenantId
from docketwatch.core.errors import (
    ConcurrencyError, DocketWatchError, ErrorContext, ResourceNotFoundError,
    UpstreamAuthError,
)
from docketwatch.core.repository_protocols import MatterPageSource
from docketwatch.core.sync_schedule import is_sync_due
from docketwatch.models.sync_config import SyncConfig
from docketwatch.services.page_stream import MatterPageStream
from docketwatch.services.reconciler import Reconciler, ReconcileResult

logger = logging.getLogger(__name__)


@dataclass
class SyncRunSummary:
    tenant_id: str
    status: SyncRunStatus
    fetched: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    error_samples: list[str] = field(default_factory=list)
    anomalies: list[str] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_result(cls, tenant_id: str, result: ReconcileResult) -> "SyncRunSummary":
        return cls(
            tenant_id=tenant_id,
            status=SyncRunStatus.SUCCESS,
            fetched=result.fetched,
            created=result.created,
            updated=result.updated,
            unchanged=result.unchanged,
            failed=result.failed,
            error_samples=list(result.error_samples),
            anomalies=list(result.anomalies),
        )

    def to_dict(self) -> dict:
        return {
            "tenantId": self.tenant_id,
            "status": self.status.value,
            "fetched": self.fetched,
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "errorSamples": self.error_samples,
            "anomalies": self.anomalies,
            "error": self.error,
        }


class SyncOrchestrator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        source: MatterPageSource,
        reconciler: Reconciler,
        *,
        lock_ttl_seconds: int = 900,
        page_pace_seconds: float = 0.6,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session_factory = session_factory
        self.source = source
        self.reconciler = reconciler
        self.lock_ttl = timedelta(seconds=lock_ttl_seconds)
        self.page_pace_seconds = page_pace_seconds
        self._sleep = sleep

    async def run_due_syncs(self, now: datetime) -> list[SyncRunSummary]:
        """Run every enabled, due tenant once. Tenants already running are skipped."""
        async with self.session_factory() as db:
            configs = (
                await db.execute(select(SyncConfig).where(SyncConfig.is_enabled.is_(True)))
            ).scalars().all()
            due = [
                (c.tenant_id, c.stale_measurement_days)
                for c in configs
                if is_sync_due(c.last_sync_at, c.polling_interval_minutes, now)
            ]

        summaries = []
        for tenant_id, stale_days in due:
            summary = await self._run_exclusive(TenantId(tenant_id), stale_days, now)
            if summary is None:
                logger.info("Sync already running, skipped", extra={"tenant_id": tenant_id})
                continue
            summaries.append(summary)
        return summaries

    async def run_tenant_sync(self, tenant_id: TenantId, now: datetime) -> SyncRunSummary:
        """Manual trigger: ignores due-ness, still honours the lease."""
        async with self.session_factory() as db:
            config = (
                await db.execute(select(SyncConfig).where(SyncConfig.tenant_id == tenant_id))
            ).scalar_one_or_none()
            if config is None:
                raise ResourceNotFoundError("SyncConfig", tenant_id)
            stale_days = config.stale_measurement_days
        summary = await self._run_exclusive(tenant_id, stale_days, now)
        if summary is None:
            raise ConcurrencyError(
                "A sync is already running for this tenant",
                context=ErrorContext(tenant_id=tenant_id),
            )
        return summary

    async def _run_exclusive(
        self, tenant_id: TenantId, stale_days: int, now: datetime,
    ) -> SyncRunSummary | None:
        token = str(uuid.uuid4())
        if not await self._acquire_lease(tenant_id, token, now):
            return None
        summary: SyncRunSummary | None = None
        try:
            summary = await self._sync_tenant(tenant_id, stale_days, now)
            return summary
        finally:
            succeeded = summary is not None and summary.status == SyncRunStatus.SUCCESS
            await self._release_lease(tenant_id, token, now if succeeded else None)

    async def _sync_tenant(
        self, tenant_id: TenantId, stale_days: int, now: datetime,
    ) -> SyncRunSummary:
        pages = MatterPageStream(
            self.source, tenant_id, pace_seconds=self.page_pace_seconds, sleep=self._sleep,
        )
        try:
            async with self.session_factory() as db:
                result = await self.reconciler.reconcile(db, tenant_id, pages, now, stale_days)
        except UpstreamAuthError as e:
            logger.error(
                f"Sync aborted, Docketwise rejected credentials: {e.message}",
                extra={"tenant_id": tenant_id, "error_code": e.code},
            )
            return SyncRunSummary(tenant_id, SyncRunStatus.ERROR, error=e.message)
        except DocketWatchError as e:
            logger.error(
                f"Sync failed: {e.message}",
                extra={"tenant_id": tenant_id, "error_code": e.code},
            )
            return SyncRunSummary(tenant_id, SyncRunStatus.ERROR, error=e.message)
        except Exception as e:
            logger.error(f"Sync failed unexpectedly: {e}", exc_info=True, extra={"tenant_id": tenant_id})
            return SyncRunSummary(tenant_id, SyncRunStatus.ERROR, error="Internal sync error")
        return SyncRunSummary.from_result(tenant_id, result)

    async def _acquire_lease(self, tenant_id: TenantId, token: str, now: datetime) -> bool:
        async with self.session_factory() as db:
            res = await db.execute(
                update(SyncConfig)
                .where(
                    SyncConfig.tenant_id == tenant_id,
                    or_(SyncConfig.locked_until.is_(None), SyncConfig.locked_until < now),
                )
                .values(lock_token=token, locked_until=now + self.lock_ttl)
                .execution_options(synchronize_session=False),
            )
            await db.commit()
            return res.rowcount == 1

    async def _release_lease(
        self, tenant_id: TenantId, token: str, completed_at: datetime | None,
    ) -> None:
        values: dict = {"lock_token": None, "locked_until": None}
        if completed_at is not None:
            values["last_sync_at"] = completed_at
        async with self.session_factory() as db:
            await db.execute(
                update(SyncConfig)
                .where(SyncConfig.tenant_id == tenant_id, SyncConfig.lock_token == token)
                .values(**values)
                .execution_options(synchronize_session=False),
            )
            await db.commit()
