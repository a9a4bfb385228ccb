"""Deadline Scheduler — verifies exactly-once threshold alerts and their delivery hand-off.

Tests:
    - Deadline six days out → one alert per (recipient, channel) at threshold 7; an immediate
      re-run raises nothing; five days later exactly one more at threshold 3
    - Disabled channels and recipients without an email skip silently
    - Archived / far-off / undated matters are not candidates
    - An extended deadline alerts again at its new thresholds
    - A concurrent run's row (unique-constraint conflict) counts as a duplicate, no side effects
    - In-app alerts published to live subscribers; email alerts enqueued with the matter link
"""

from datetime import timedelta

from sqlalchemy import select

from docketwatch.core.domain_types import NotificationEventType
from docketwatch.models.notification import Notification
from tests.services.fakes import NOW
from tests.services.seed import TENANT, seed_matter, seed_recipient


async def _notifications(container):
    async with container.db.session_factory() as db:
        return (
            await db.execute(select(Notification).order_by(Notification.days_before_deadline))
        ).scalars().all()


async def test_threshold_fires_once_then_steps_down(container, test_db):
    """Deadline at now+6d: 7 now, nothing on re-run, 3 at now+5d."""
    await seed_matter(test_db, estimated_deadline=NOW + timedelta(days=6))
    await seed_recipient(test_db, "user-1", in_app_enabled=True, email_enabled=False)

    first = await container.scheduler.evaluate_due(NOW)
    again = await container.scheduler.evaluate_due(NOW)
    later = await container.scheduler.evaluate_due(NOW + timedelta(days=5))

    assert first.created == 1
    assert again.created == 0
    assert later.created == 1
    rows = await _notifications(container)
    assert sorted(r.days_before_deadline for r in rows) == [3, 7]


async def test_one_alert_per_enabled_channel(container, test_db):
    await seed_matter(test_db, estimated_deadline=NOW + timedelta(days=6))
    await seed_recipient(test_db, "user-1", email="user-1@firm.test")
    await seed_recipient(test_db, "user-2", email="user-2@firm.test", email_enabled=False)
    await seed_recipient(test_db, "user-3", email=None)

    result = await container.scheduler.evaluate_due(NOW)

    assert result.created == 4
    assert dict(result.by_channel) == {"email": 1, "in-app": 3}
    rows = await _notifications(container)
    email = [r for r in rows if r.channel == "email"]
    assert [r.recipient_id for r in email] == ["user-1"]
    assert email[0].delivery_status == "pending"
    assert all(r.delivery_status == "delivered" for r in rows if r.channel == "in-app")


async def test_recipient_with_everything_disabled_gets_nothing(container, test_db):
    await seed_matter(test_db, estimated_deadline=NOW + timedelta(days=2))
    await seed_recipient(
        test_db, "user-1", email="user-1@firm.test", email_enabled=False, in_app_enabled=False,
    )

    result = await container.scheduler.evaluate_due(NOW)

    assert result.matters_scanned == 1
    assert result.created == 0


async def test_only_active_matters_in_window_are_candidates(container, test_db):
    await seed_matter(test_db, 1, estimated_deadline=NOW + timedelta(days=3))
    await seed_matter(
        test_db, 2, estimated_deadline=NOW + timedelta(days=3), activity_status="archived",
    )
    await seed_matter(test_db, 3, estimated_deadline=NOW + timedelta(days=60))
    await seed_matter(test_db, 4, estimated_deadline=None)
    await seed_matter(test_db, 5, estimated_deadline=NOW - timedelta(days=5))
    await seed_recipient(test_db, "user-1")

    result = await container.scheduler.evaluate_due(NOW)

    assert result.matters_scanned == 1
    assert result.created == 1


async def test_other_tenants_recipients_not_notified(container, test_db):
    await seed_matter(test_db, 1, estimated_deadline=NOW + timedelta(days=1))
    await seed_recipient(test_db, "outsider", tenant_id="tenant-b")

    result = await container.scheduler.evaluate_due(NOW)

    assert result.created == 0


async def test_concurrent_insert_counted_as_duplicate(container, test_db, monkeypatch):
    """Second run that missed the first run's rows still creates nothing."""
    await seed_matter(test_db, estimated_deadline=NOW + timedelta(days=6))
    await seed_recipient(test_db, "user-1")
    await container.scheduler.evaluate_due(NOW)
    events = container.registry.subscribe("user-1")

    async def nothing_sent(db, matter_id):
        return {}

    monkeypatch.setattr(container.scheduler, "_sent_thresholds", nothing_sent)
    result = await container.scheduler.evaluate_due(NOW)

    assert result.created == 0
    assert result.duplicates == 1
    assert len(await _notifications(container)) == 1
    assert events.queue.empty()


async def test_in_app_alert_published_to_subscriber(container, test_db):
    matter = await seed_matter(
        test_db, title="Silva I-130", estimated_deadline=NOW + timedelta(days=1),
    )
    await seed_recipient(test_db, "user-1")
    sub = container.registry.subscribe("user-1")

    result = await container.scheduler.evaluate_due(NOW)

    event = sub.queue.get_nowait()
    assert event.type == NotificationEventType.CREATED
    assert event.notification["id"] == str(result.notification_ids[0])
    assert event.notification["matterId"] == str(matter.id)
    assert event.notification["subject"] == "URGENT: Deadline in 1 day - Silva I-130"


async def test_email_alert_enqueued_with_matter_link(container, test_db):
    matter = await seed_matter(
        test_db, title="Silva I-130", title_override="Silva family",
        estimated_deadline=NOW + timedelta(days=10),
    )
    await seed_recipient(test_db, "user-1", email="user-1@firm.test", in_app_enabled=False)

    await container.scheduler.evaluate_due(NOW)

    assert container.email_queue.pending == 1
    job = container.email_queue._queue.get_nowait()
    assert job.message.to == "user-1@firm.test"
    assert job.message.subject == "Reminder: Deadline in 10 days - Silva family"
    assert f"https://app.test/dashboard/matters/{matter.id}" in job.message.text
    assert job.message.html is not None


async def test_extended_deadline_alerts_again(container, test_db):
    """3-day alert sent; deadline moved to now+20d fires 30, and 14 six days later."""
    matter = await seed_matter(test_db, estimated_deadline=NOW + timedelta(days=2))
    await seed_recipient(test_db, "user-1", in_app_enabled=True, email_enabled=False)

    first = await container.scheduler.evaluate_due(NOW)
    matter.estimated_deadline = NOW + timedelta(days=20)
    await test_db.commit()
    extended = await container.scheduler.evaluate_due(NOW)
    later = await container.scheduler.evaluate_due(NOW + timedelta(days=6, hours=1))

    assert (first.created, extended.created, later.created) == (1, 1, 1)
    rows = await _notifications(container)
    assert sorted(r.days_before_deadline for r in rows) == [3, 14, 30]
