"""Sync Settings Routes — the tenant's polling configuration and a manual sync trigger.

Invariants:
    - polling interval validated 5..1440 minutes at the boundary (400 otherwise)
    - POST /run honours the per-tenant lease: 409 when a sync is already running
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.api.dependencies import get_container, get_db, require_identity
from docketwatch.container import ServiceContainer
from docketwatch.core.domain_types import CallerIdentity
from docketwatch.core.timestamps import utc_now
from docketwatch.schemas.sync import SyncSettingsUpdate
from docketwatch.services.sync_settings import (
    get_or_create_config, read_settings, update_settings,
)

router = APIRouter(prefix="/api/v1/sync-settings", tags=["sync"])


@router.get("")
async def get_sync_settings(
    identity: CallerIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    return await read_settings(db, identity.tenant_id)


@router.put("")
async def put_sync_settings(
    body: SyncSettingsUpdate,
    identity: CallerIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    return await update_settings(db, identity.tenant_id, body)


@router.post("/run")
async def run_sync_now(
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
    db: AsyncSession = Depends(get_db),
):
    await get_or_create_config(db, identity.tenant_id)
    summary = await container.orchestrator.run_tenant_sync(identity.tenant_id, utc_now())
    return summary.to_dict()
