"""Sync Orchestrator — verifies due-ness, the per-tenant lease and failure isolation.

Tests:
    - Only enabled, due tenants run; last_sync_at written on success
    - A held lease skips the tenant silently (cron) or raises 409 (manual trigger)
    - An expired lease is taken over
    - One tenant's auth failure neither blocks others nor advances its last_sync_at
    - The lease is released on every path
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from docketwatch.core.domain_types import SyncRunStatus
from docketwatch.core.errors import ConcurrencyError, ResourceNotFoundError, UpstreamAuthError
from docketwatch.core.timestamps import as_utc
from docketwatch.models.sync_config import SyncConfig
from tests.services.fakes import NOW, make_records
from tests.services.seed import TENANT, seed_sync_config


async def _config(container, tenant_id):
    async with container.db.session_factory() as db:
        return (
            await db.execute(select(SyncConfig).where(SyncConfig.tenant_id == tenant_id))
        ).scalar_one()


async def test_runs_only_due_tenants(container, page_source, test_db):
    await seed_sync_config(test_db, TENANT)
    await seed_sync_config(test_db, "tenant-b", last_sync_at=NOW - timedelta(minutes=5))
    await seed_sync_config(test_db, "tenant-c", is_enabled=False)
    page_source.set_records(TENANT, make_records(3))

    summaries = await container.orchestrator.run_due_syncs(NOW)

    assert [s.tenant_id for s in summaries] == [TENANT]
    assert summaries[0].status == SyncRunStatus.SUCCESS
    assert summaries[0].created == 3
    assert {t for t, _ in page_source.calls} == {TENANT}

    config = await _config(container, TENANT)
    assert as_utc(config.last_sync_at) == NOW
    assert config.lock_token is None
    assert config.locked_until is None


async def test_interval_elapsed_makes_tenant_due_again(container, page_source, test_db):
    await seed_sync_config(test_db, TENANT, last_sync_at=NOW - timedelta(minutes=30))

    summaries = await container.orchestrator.run_due_syncs(NOW)

    assert len(summaries) == 1


async def test_held_lease_is_skipped(container, page_source, test_db):
    await seed_sync_config(
        test_db, TENANT, lock_token="other-worker", locked_until=NOW + timedelta(minutes=10),
    )

    summaries = await container.orchestrator.run_due_syncs(NOW)

    assert summaries == []
    assert page_source.calls == []
    config = await _config(container, TENANT)
    assert config.lock_token == "other-worker"
    assert config.last_sync_at is None


async def test_manual_run_with_held_lease_conflicts(container, test_db):
    await seed_sync_config(
        test_db, TENANT, lock_token="other-worker", locked_until=NOW + timedelta(minutes=10),
    )

    with pytest.raises(ConcurrencyError):
        await container.orchestrator.run_tenant_sync(TENANT, NOW)


async def test_expired_lease_is_taken_over(container, page_source, test_db):
    await seed_sync_config(
        test_db, TENANT, lock_token="crashed-worker", locked_until=NOW - timedelta(minutes=1),
    )
    page_source.set_records(TENANT, make_records(1))

    summary = await container.orchestrator.run_tenant_sync(TENANT, NOW)

    assert summary.status == SyncRunStatus.SUCCESS
    assert (await _config(container, TENANT)).lock_token is None


async def test_manual_run_unknown_tenant(container):
    with pytest.raises(ResourceNotFoundError):
        await container.orchestrator.run_tenant_sync("nobody", NOW)


async def test_auth_failure_isolated_to_its_tenant(container, page_source, test_db):
    await seed_sync_config(test_db, TENANT)
    await seed_sync_config(test_db, "tenant-b")
    page_source.set_pages(TENANT, {1: UpstreamAuthError(401)})
    page_source.set_records("tenant-b", make_records(2))

    summaries = {s.tenant_id: s for s in await container.orchestrator.run_due_syncs(NOW)}

    assert summaries[TENANT].status == SyncRunStatus.ERROR
    assert "rejected credentials" in summaries[TENANT].error
    assert summaries["tenant-b"].status == SyncRunStatus.SUCCESS
    assert summaries["tenant-b"].created == 2

    failed = await _config(container, TENANT)
    assert failed.last_sync_at is None
    assert failed.lock_token is None
    assert as_utc((await _config(container, "tenant-b")).last_sync_at) == NOW


async def test_summary_serializes_camel_case(container, page_source, test_db):
    await seed_sync_config(test_db, TENANT)
    page_source.set_records(TENANT, [{"id": "bad"}])

    summary = (await container.orchestrator.run_due_syncs(NOW))[0].to_dict()

    assert summary["tenantId"] == TENANT
    assert summary["failed"] == 1
    assert summary["errorSamples"]
    assert summary["status"] == "success"
