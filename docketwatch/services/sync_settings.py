"""Sync Settings — read/update one tenant's SyncConfig (created with defaults on first access)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.core.domain_types import TenantId
from docketwatch.core.sync_schedule import DEFAULT_POLLING_MINUTES
from docketwatch.models.sync_config import SyncConfig
from docketwatch.schemas.sync import SyncSettingsOut, SyncSettingsUpdate

DEFAULT_STALE_DAYS = 10


async def get_or_create_config(db: AsyncSession, tenant_id: TenantId) -> SyncConfig:
    config = (
        await db.execute(select(SyncConfig).where(SyncConfig.tenant_id == tenant_id))
    ).scalar_one_or_none()
    if config is None:
        config = SyncConfig(
            tenant_id=tenant_id,
            polling_interval_minutes=DEFAULT_POLLING_MINUTES,
            stale_measurement_days=DEFAULT_STALE_DAYS,
            is_enabled=True,
            last_sync_at=None,
        )
        db.add(config)
        await db.commit()
    return config


async def read_settings(db: AsyncSession, tenant_id: TenantId) -> dict:
    config = await get_or_create_config(db, tenant_id)
    return SyncSettingsOut.model_validate(config).to_json_dict()


async def update_settings(
    db: AsyncSession, tenant_id: TenantId, update: SyncSettingsUpdate,
) -> dict:
    config = await get_or_create_config(db, tenant_id)
    for key, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(config, key, value)
    await db.commit()
    return SyncSettingsOut.model_validate(config).to_json_dict()
