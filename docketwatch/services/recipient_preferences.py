"""Recipient Preferences — database-backed PreferencesProvider.

Reads notification_recipients rows for one tenant and category; a recipient with both
channels disabled is returned anyway (the scheduler skips it channel by channel).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docketwatch.core.domain_types import (
    NotificationCategory, RecipientId, RecipientPreference, TenantId,
)
from docketwatch.models.notification_recipient import NotificationRecipient


class DatabasePreferencesProvider:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def recipients_for(
        self, tenant_id: TenantId, category: NotificationCategory,
    ) -> list[RecipientPreference]:
        async with self.session_factory() as db:
            rows = (
                await db.execute(
                    select(NotificationRecipient)
                    .where(
                        NotificationRecipient.tenant_id == tenant_id,
                        NotificationRecipient.category == category.value,
                    )
                    .order_by(NotificationRecipient.recipient_id),
                )
            ).scalars().all()
        return [
            RecipientPreference(
                recipient_id=RecipientId(r.recipient_id),
                email=r.email,
                email_enabled=r.email_enabled,
                in_app_enabled=r.in_app_enabled,
            )
            for r in rows
        ]
