"""Matter Routes — cached tenant views and local override edits.

Invariants:
    - Tenant taken from the caller identity, never from the request body
    - PATCH accepts override fields only (schemas/matter.py) and invalidates the tenant's
      cached views before returning
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.api.dependencies import get_container, get_db, require_identity
from docketwatch.container import ServiceContainer
from docketwatch.core.domain_types import ActivityStatus, CallerIdentity
from docketwatch.core.timestamps import utc_now
from docketwatch.schemas.matter import MatterOverrideUpdate

router = APIRouter(prefix="/api/v1/matters", tags=["matters"])


@router.get("")
async def list_matters(
    activity: ActivityStatus | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
    db: AsyncSession = Depends(get_db),
):
    return await container.matters.list_matters(
        db, identity.tenant_id, activity=activity, limit=limit, offset=offset,
    )


@router.get("/summary")
async def matters_summary(
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
    db: AsyncSession = Depends(get_db),
):
    return await container.matters.summary(db, identity.tenant_id, utc_now())


@router.patch("/{matter_id}")
async def update_matter_overrides(
    matter_id: UUID,
    body: MatterOverrideUpdate,
    identity: CallerIdentity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
    db: AsyncSession = Depends(get_db),
):
    return await container.matters.update_overrides(
        db, identity.tenant_id, matter_id, body, identity.recipient_id, utc_now(),
    )
