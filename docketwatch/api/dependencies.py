"""API Dependencies — container access, DB sessions, caller identity, cron secret.

Invariants:
    - Routes never touch app.state directly; they depend on these functions
    - require_identity raises UnauthorizedError (401) before any handler body runs
    - verify_cron_secret compares in constant time and rejects everything when no
      secret is configured (fail closed)
"""

import hmac
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docketwatch.container import ServiceContainer
from docketwatch.core.domain_types import CallerIdentity
from docketwatch.core.errors import UnauthorizedError


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container not initialized")
    return container


async def get_db(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with container.db.session() as session:
        yield session


async def require_identity(
    request: Request, container: ServiceContainer = Depends(get_container),
) -> CallerIdentity:
    identity = await container.identity.resolve(request.headers)
    if identity is None:
        raise UnauthorizedError()
    return identity


def verify_cron_secret(
    request: Request, container: ServiceContainer = Depends(get_container),
) -> None:
    secret = container.settings.cron_secret
    header = request.headers.get("authorization", "")
    expected = f"Bearer {secret}"
    if not secret or not hmac.compare_digest(header.encode(), expected.encode()):
        raise UnauthorizedError()
