"""Boundary Protocols — contracts between core services and their collaborators.

Invariants:
    - Services depend on these Protocols, never on concrete transports
    - All IO operations accessed through Protocol types
    - Implementations provided by the container (container.py) via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
      (ADR: flat mock classes in tests/)
    - Identity and Preferences are external collaborators: auth policy and settings
      screens live outside this service
"""

from collections.abc import Mapping
from typing import Protocol

from docketwatch.core.domain_types import (
    CallerIdentity, NotificationCategory, OutgoingEmail, RecipientPreference,
    TenantId, UpstreamPage,
)


class IdentityProvider(Protocol):
    """Resolves the authenticated caller from request headers (None = anonymous)."""
    async def resolve(self, headers: Mapping[str, str]) -> CallerIdentity | None: ...


class PreferencesProvider(Protocol):
    """Per-recipient channel opt-in flags for one category."""
    async def recipients_for(
        self, tenant_id: TenantId, category: NotificationCategory,
    ) -> list[RecipientPreference]: ...


class EmailTransport(Protocol):
    """Hands one message to the mail system. Raises EmailDeliveryError on failure."""
    async def send(self, message: OutgoingEmail) -> None: ...


class MatterPageSource(Protocol):
    """Fetches one page of upstream matters for a tenant."""
    async def fetch_matters_page(self, tenant_id: TenantId, page: int) -> UpstreamPage: ...
