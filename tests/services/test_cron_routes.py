"""Cron Routes — verifies the shared-secret gate and the trigger responses.

Tests:
    - Missing / wrong bearer secret → 401 with no side effects
    - GET and POST both run the due syncs and report per-tenant results
    - check-deadlines reports created notification ids
"""

from datetime import timedelta

from sqlalchemy import func, select

from docketwatch.core.timestamps import utc_now
from docketwatch.models.matter import Matter
from tests.services.fakes import make_records
from tests.services.seed import CRON_HEADERS, TENANT, seed_matter, seed_recipient, seed_sync_config


async def test_sync_requires_secret(client, page_source, test_db):
    await seed_sync_config(test_db)
    page_source.set_records(TENANT, make_records(2))

    missing = await client.get("/api/cron/sync")
    wrong = await client.post("/api/cron/sync", headers={"Authorization": "Bearer nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert missing.json()["error"]["code"] == "UNAUTHORIZED"
    assert missing.headers["www-authenticate"] == "Bearer"
    assert page_source.calls == []
    assert (await test_db.execute(select(func.count()).select_from(Matter))).scalar_one() == 0


async def test_check_deadlines_requires_secret(client, test_db):
    response = await client.post("/api/cron/check-deadlines")
    assert response.status_code == 401


async def test_empty_secret_rejects_everything(client, container):
    container.settings.cron_secret = ""
    response = await client.get("/api/cron/sync", headers={"Authorization": "Bearer "})
    assert response.status_code == 401


async def test_sync_runs_due_tenants(client, page_source, test_db):
    await seed_sync_config(test_db)
    page_source.set_records(TENANT, make_records(3))

    response = await client.post("/api/cron/sync", headers=CRON_HEADERS)

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["processed"] == 1
    assert body["results"][0]["tenantId"] == TENANT
    assert body["results"][0]["created"] == 3
    assert "timestamp" in body


async def test_sync_via_get_skips_recently_synced(client, page_source, test_db):
    await seed_sync_config(test_db, last_sync_at=utc_now() - timedelta(minutes=1))

    response = await client.get("/api/cron/sync", headers=CRON_HEADERS)

    assert response.json()["processed"] == 0
    assert page_source.calls == []


async def test_check_deadlines_reports_created(client, test_db):
    await seed_matter(test_db, estimated_deadline=utc_now() + timedelta(days=6, hours=1))
    await seed_recipient(test_db, "user-1")

    first = (await client.get("/api/cron/check-deadlines", headers=CRON_HEADERS)).json()
    second = (await client.get("/api/cron/check-deadlines", headers=CRON_HEADERS)).json()

    assert first["processed"] == 1
    assert len(first["results"]) == 1
    assert first["summary"]["byChannel"] == {"in-app": 1}
    assert second["processed"] == 0
