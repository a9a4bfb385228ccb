"""Sync Schemas — per-tenant sync settings and manual run responses.

Invariants:
    - polling_interval_minutes bounded 5..1440
    - stale_measurement_days bounded 1..365
"""

from datetime import datetime

from pydantic import Field

from docketwatch.schemas.camel import CamelModel


class SyncSettingsOut(CamelModel):
    tenant_id: str
    polling_interval_minutes: int
    stale_measurement_days: int
    is_enabled: bool
    last_sync_at: datetime | None = None


class SyncSettingsUpdate(CamelModel):
    polling_interval_minutes: int | None = Field(None, ge=5, le=1440)
    stale_measurement_days: int | None = Field(None, ge=1, le=365)
    is_enabled: bool | None = None
