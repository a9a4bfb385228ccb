"""Deadline Scheduler — scans active matters and raises threshold alerts exactly once.

Invariants:
    - Candidates: activity_status == active, estimated_deadline set and within
      [now - 1 day, now + (largest threshold + 1) days]
    - days_remaining = floor((deadline - now) / 1 day)
    - Per (matter, recipient, enabled channel) at most ONE threshold per pass
      (core/thresholds.py select_threshold)
    - Creation is INSERT ... ON CONFLICT DO NOTHING on the dedup tuple: a conflict means a
      concurrent run already raised it and is counted as a duplicate, not an error
    - Side effects (publish, email enqueue) ONLY for rows this run inserted, AFTER commit
    - Channels the recipient disabled are skipped silently

Design Decisions:
    - Commit per matter: a crash mid-scan keeps what was already raised, and the next pass
      picks up the rest without duplicates
    - Already-sent thresholds read once per matter (one query), not per tuple
    - Preferences fetched once per tenant per pass
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docketwatch.core.domain_types import (
    ActivityStatus, Channel, DeliveryStatus, NotificationCategory, RecipientPreference,
    TenantId,
)
from docketwatch.core.notification_content import build_message, build_subject
from docketwatch.core.repository_protocols import PreferencesProvider
from docketwatch.core.thresholds import max_threshold, select_threshold
from docketwatch.core.timestamps import ONE_DAY, whole_days_between
from docketwatch.db.insert_if_absent import insert_if_absent
from docketwatch.models.matter import Matter
from docketwatch.models.notification import DEDUP_COLUMNS, Notification
from docketwatch.services.delivery_dispatcher import DeliveryDispatcher

logger = logging.getLogger(__name__)


@dataclass
class DeadlineScanResult:
    matters_scanned: int = 0
    created: int = 0
    duplicates: int = 0
    by_channel: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    notification_ids: list[uuid.UUID] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mattersScanned": self.matters_scanned,
            "created": self.created,
            "duplicates": self.duplicates,
            "byChannel": dict(self.by_channel),
        }


class DeadlineScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        preferences: PreferencesProvider,
        dispatcher: DeliveryDispatcher,
        thresholds: list[int],
        app_base_url: str = "",
    ):
        self.session_factory = session_factory
        self.preferences = preferences
        self.dispatcher = dispatcher
        self.thresholds = sorted(set(thresholds), reverse=True)
        self.app_base_url = app_base_url.rstrip("/")

    async def evaluate_due(self, now: datetime) -> DeadlineScanResult:
        result = DeadlineScanResult()
        recipients_by_tenant: dict[str, list[RecipientPreference]] = {}
        async with self.session_factory() as db:
            matters = await self._candidates(db, now)
            result.matters_scanned = len(matters)
            for matter in matters:
                if matter.tenant_id not in recipients_by_tenant:
                    recipients_by_tenant[matter.tenant_id] = await self.preferences.recipients_for(
                        TenantId(matter.tenant_id), NotificationCategory.DEADLINE,
                    )
                recipients = recipients_by_tenant[matter.tenant_id]
                if recipients:
                    await self._evaluate_matter(db, matter, recipients, now, result)
        logger.info(
            f"Deadline scan: {result.matters_scanned} matters, "
            f"{result.created} alerts raised, {result.duplicates} already raised",
        )
        return result

    async def _candidates(self, db: AsyncSession, now: datetime) -> list[Matter]:
        horizon = now + ONE_DAY * (max_threshold(self.thresholds) + 1)
        rows = await db.execute(
            select(Matter)
            .where(
                Matter.activity_status == ActivityStatus.ACTIVE.value,
                Matter.estimated_deadline.is_not(None),
                Matter.estimated_deadline >= now - ONE_DAY,
                Matter.estimated_deadline <= horizon,
            )
            .order_by(Matter.estimated_deadline),
        )
        return list(rows.scalars().all())

    async def _sent_thresholds(
        self, db: AsyncSession, matter_id: uuid.UUID,
    ) -> dict[tuple[str, str], set[int]]:
        rows = await db.execute(
            select(
                Notification.recipient_id,
                Notification.channel,
                Notification.days_before_deadline,
            ).where(Notification.matter_id == matter_id),
        )
        sent: dict[tuple[str, str], set[int]] = defaultdict(set)
        for recipient_id, channel, days in rows:
            sent[(recipient_id, channel)].add(days)
        return sent

    async def _evaluate_matter(
        self,
        db: AsyncSession,
        matter: Matter,
        recipients: list[RecipientPreference],
        now: datetime,
        result: DeadlineScanResult,
    ) -> None:
        days_remaining = whole_days_between(now, matter.estimated_deadline)
        sent = await self._sent_thresholds(db, matter.id)
        title = matter.display_title
        inserted: list[uuid.UUID] = []

        for pref in recipients:
            for channel in pref.enabled_channels():
                threshold = select_threshold(
                    days_remaining, self.thresholds, sent.get((pref.recipient_id, channel.value), ()),
                )
                if threshold is None:
                    continue
                new_id = await insert_if_absent(
                    db,
                    Notification,
                    {
                        "id": uuid.uuid4(),
                        "tenant_id": matter.tenant_id,
                        "matter_id": matter.id,
                        "recipient_id": pref.recipient_id,
                        "recipient_email": pref.email,
                        "channel": channel.value,
                        "days_before_deadline": threshold,
                        "subject": build_subject(title, days_remaining),
                        "message": build_message(
                            title, matter.client_name, matter.estimated_deadline, days_remaining,
                        ),
                        "sent_at": now,
                        "delivery_status": (
                            DeliveryStatus.DELIVERED.value if channel == Channel.IN_APP
                            else DeliveryStatus.PENDING.value
                        ),
                    },
                    DEDUP_COLUMNS,
                )
                if new_id is None:
                    result.duplicates += 1
                    logger.info(
                        "Alert already raised by a concurrent run",
                        extra={"matter_id": matter.id, "recipient_id": pref.recipient_id,
                               "channel": channel.value, "threshold": threshold},
                    )
                    continue
                inserted.append(new_id)
        if not inserted:
            return
        await db.commit()

        records = (
            await db.execute(select(Notification).where(Notification.id.in_(inserted)))
        ).scalars().all()
        matter_url = f"{self.app_base_url}/dashboard/matters/{matter.id}"
        for record in records:
            result.created += 1
            result.by_channel[record.channel] += 1
            result.notification_ids.append(record.id)
            self.dispatcher.dispatch_created(
                record, matter_url=matter_url, days_remaining=days_remaining,
            )
