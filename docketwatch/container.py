"""Service Container — builds every long-lived handle once and wires the services.

Invariants:
    - Built by the FastAPI lifespan (production) or by test fixtures; never at import time
    - Every handle (DB manager, Redis client, registry, email queue, Docketwise client)
      has exactly one owner: the container, which start()s and close()s them
    - Routes reach services only through request.app.state.container (api/dependencies.py)

Design Decisions:
    - Explicit constructor injection over module singletons: tests swap any collaborator
      (fake Redis, fake SMTP, httpx.MockTransport) by passing it to build()
    - Redis optional: no redis_url means CacheAside runs as a permanent miss
"""

import asyncio
import logging
from dataclasses import dataclass, field

from docketwatch.config import Settings
from docketwatch.core.repository_protocols import (
    EmailTransport, IdentityProvider, MatterPageSource, PreferencesProvider,
)
from docketwatch.infrastructure.cache import CacheAside, create_redis_client
from docketwatch.infrastructure.database import DatabaseSessionManager
from docketwatch.infrastructure.docketwise_client import ResilientDocketwiseClient
from docketwatch.infrastructure.email_transport import SmtpEmailTransport
from docketwatch.infrastructure.header_identity import HeaderIdentityProvider
from docketwatch.services.deadline_scheduler import DeadlineScheduler
from docketwatch.services.delivery_dispatcher import DeliveryDispatcher
from docketwatch.services.email_queue import EmailQueue
from docketwatch.services.matter_queries import MatterQueries
from docketwatch.services.notification_registry import NotificationRegistry
from docketwatch.services.reconciler import Reconciler
from docketwatch.services.recipient_preferences import DatabasePreferencesProvider
from docketwatch.services.sync_orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

# Subscriptions idle for this many keepalive periods are pruned
_PRUNE_AFTER_KEEPALIVES = 3


@dataclass
class ServiceContainer:
    settings: Settings
    db: DatabaseSessionManager
    cache: CacheAside
    registry: NotificationRegistry
    email_queue: EmailQueue
    page_source: MatterPageSource
    identity: IdentityProvider
    preferences: PreferencesProvider
    dispatcher: DeliveryDispatcher
    reconciler: Reconciler
    orchestrator: SyncOrchestrator
    scheduler: DeadlineScheduler
    matters: MatterQueries
    _background: list[asyncio.Task] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        db: DatabaseSessionManager | None = None,
        cache: CacheAside | None = None,
        page_source: MatterPageSource | None = None,
        email_transport: EmailTransport | None = None,
        identity: IdentityProvider | None = None,
        preferences: PreferencesProvider | None = None,
        registry: NotificationRegistry | None = None,
    ) -> "ServiceContainer":
        db = db or DatabaseSessionManager(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        if cache is None:
            client = (
                create_redis_client(settings.redis_url, settings.cache_socket_timeout_seconds)
                if settings.redis_url else None
            )
            cache = CacheAside(client, default_ttl=settings.cache_default_ttl_seconds)
        page_source = page_source or ResilientDocketwiseClient(
            settings.docketwise_api_url,
            api_token=settings.docketwise_api_token,
            tenant_tokens=settings.docketwise_tenant_tokens,
            max_retries=settings.docketwise_max_retries,
            base_delay_ms=settings.docketwise_base_delay_ms,
            max_delay_ms=settings.docketwise_max_delay_ms,
            timeout_seconds=settings.docketwise_timeout_seconds,
            page_size=settings.docketwise_page_size,
        )
        email_transport = email_transport or SmtpEmailTransport(
            settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from,
        )
        registry = registry or NotificationRegistry()
        email_queue = EmailQueue(
            email_transport,
            db.session_factory,
            max_attempts=settings.email_max_attempts,
            base_delay_ms=settings.email_base_delay_ms,
            max_delay_ms=settings.email_max_delay_ms,
            workers=settings.email_workers,
        )
        dispatcher = DeliveryDispatcher(registry, email_queue)
        reconciler = Reconciler(cache, max_pages=settings.sync_max_pages)
        preferences = preferences or DatabasePreferencesProvider(db.session_factory)
        return cls(
            settings=settings,
            db=db,
            cache=cache,
            registry=registry,
            email_queue=email_queue,
            page_source=page_source,
            identity=identity or HeaderIdentityProvider(
                settings.identity_recipient_header, settings.identity_tenant_header,
            ),
            preferences=preferences,
            dispatcher=dispatcher,
            reconciler=reconciler,
            orchestrator=SyncOrchestrator(
                db.session_factory,
                page_source,
                reconciler,
                lock_ttl_seconds=settings.sync_lock_ttl_seconds,
                page_pace_seconds=settings.docketwise_rate_limit_delay_ms / 1000,
            ),
            scheduler=DeadlineScheduler(
                db.session_factory,
                preferences,
                dispatcher,
                settings.deadline_thresholds_days,
                app_base_url=settings.app_base_url,
            ),
            matters=MatterQueries(cache, ttl_seconds=settings.cache_default_ttl_seconds),
        )

    def start(self) -> None:
        """Start background workers (email senders, subscription pruner)."""
        self.email_queue.start()
        keepalive = self.settings.sse_keepalive_seconds
        self._background.append(asyncio.create_task(
            self.registry.run_pruner(keepalive, keepalive * _PRUNE_AFTER_KEEPALIVES),
            name="subscription-pruner",
        ))

    async def close(self) -> None:
        for task in self._background:
            task.cancel()
        await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()
        await self.email_queue.stop()
        await self.cache.close()
        close_source = getattr(self.page_source, "close", None)
        if close_source is not None:
            await close_source()
        await self.db.dispose()
