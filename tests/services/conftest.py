"""Service test fixtures — async DB, wired ServiceContainer and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - The container is built exactly as in production, with fakes only at the edges
      (Docketwise page source, SMTP transport); Redis disabled unless a test passes one
    - The client fixture attaches the container to app.state (ASGITransport skips lifespan)

Design Decisions:
    - SQLite in-memory: fast, no external dependency; ON CONFLICT DO NOTHING and the
      conditional lease UPDATE both run on SQLite
    - Background workers NOT started: tests drive EmailQueue.deliver() directly
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from docketwatch.config import Settings
from docketwatch.container import ServiceContainer
from docketwatch.db.base import Base
from docketwatch.infrastructure.cache import CacheAside
from docketwatch.infrastructure.database import DatabaseSessionManager
from docketwatch.main import app
from tests.services.fakes import FakeEmailTransport, FakePageSource
from tests.services.seed import CRON_SECRET


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        cron_secret=CRON_SECRET,
        redis_url=None,
        deadline_thresholds_days=[30, 14, 7, 3, 1, 0],
        docketwise_rate_limit_delay_ms=0,
        email_base_delay_ms=0,
        sse_keepalive_seconds=0.05,
        app_base_url="https://app.test",
    )


@pytest.fixture
def page_source():
    return FakePageSource()


@pytest.fixture
def email_transport():
    return FakeEmailTransport()


@pytest.fixture
async def container(test_engine, test_settings, page_source, email_transport):
    c = ServiceContainer.build(
        test_settings,
        db=DatabaseSessionManager.from_engine(test_engine),
        cache=CacheAside(None),
        page_source=page_source,
        email_transport=email_transport,
    )
    yield c
    await c.email_queue.stop()


@pytest.fixture
async def client(container):
    """FastAPI test client wired to the test container."""
    app.state.container = container
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.state.container = None
