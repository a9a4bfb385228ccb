"""Cron Triggers — HTTP entry points for the external scheduler.

Invariants:
    - Every route requires Authorization: Bearer <CRON_SECRET>; a rejected call returns 401
      before any service runs (no side effects)
    - GET and POST behave identically (hosted cron services differ in which they send)
    - Response: {success, processed, results[], timestamp}

Design Decisions:
    - Routes only supply `now` and shape the response; due-ness, locking and dedup live in
      the services so they are testable without HTTP
    - success reflects the invocation, not each tenant: per-tenant failures are in results[]
"""

import logging

from fastapi import APIRouter, Depends

from docketwatch.api.dependencies import get_container, verify_cron_secret
from docketwatch.container import ServiceContainer
from docketwatch.core.timestamps import utc_now

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)],
)


@router.api_route("/sync", methods=["GET", "POST"])
async def run_sync(container: ServiceContainer = Depends(get_container)):
    """Sync every enabled tenant whose polling interval has elapsed."""
    now = utc_now()
    summaries = await container.orchestrator.run_due_syncs(now)
    logger.info(f"Cron sync processed {len(summaries)} tenants")
    return {
        "success": True,
        "processed": len(summaries),
        "results": [s.to_dict() for s in summaries],
        "timestamp": now.isoformat(),
    }


@router.api_route("/check-deadlines", methods=["GET", "POST"])
async def check_deadlines(container: ServiceContainer = Depends(get_container)):
    """Raise due deadline alerts and hand them to delivery."""
    now = utc_now()
    scan = await container.scheduler.evaluate_due(now)
    return {
        "success": True,
        "processed": scan.created,
        "results": [{"notificationId": str(n)} for n in scan.notification_ids],
        "summary": scan.to_dict(),
        "timestamp": now.isoformat(),
    }
