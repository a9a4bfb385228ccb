"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - TenantId, RecipientId, ExternalId wrap primitives — never use bare str/int in domain logic
    - All valid states encoded as Enums — no raw string matching
    - Channel values are the persisted column values ("email", "in-app")

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (SSE payloads are JSON)
    - frozen dataclasses for values crossing the core/shell boundary
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

TenantId = NewType("TenantId", str)
RecipientId = NewType("RecipientId", str)
ExternalId = NewType("ExternalId", int)     # Docketwise matter id (natural key)


# ─── Enums ───────────────────────────────────────────────────────

class Channel(str, Enum):
    """Delivery channels for a deadline alert."""
    EMAIL = "email"
    IN_APP = "in-app"


class ActivityStatus(str, Enum):
    """Derived matter activity — archived takes precedence over stale."""
    ACTIVE = "active"
    STALE = "stale"
    ARCHIVED = "archived"


class NotificationEventType(str, Enum):
    """Live-update event kinds published to subscribers."""
    CREATED = "created"
    READ = "read"


class NotificationCategory(str, Enum):
    """Preference categories a recipient can opt in/out of per channel."""
    DEADLINE = "deadline"
    STATUS_CHANGE = "statusChange"


class DeliveryStatus(str, Enum):
    """Channel delivery bookkeeping — independent of the alert having been raised."""
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class SyncRunStatus(str, Enum):
    """Outcome of one tenant's sync within a cron invocation."""
    SUCCESS = "success"
    ERROR = "error"


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling, as vouched for by the identity collaborator."""
    recipient_id: RecipientId
    tenant_id: TenantId


@dataclass(frozen=True)
class RecipientPreference:
    """Per-recipient channel opt-in for one notification category."""
    recipient_id: RecipientId
    email: str | None
    email_enabled: bool
    in_app_enabled: bool

    def enabled_channels(self) -> list[Channel]:
        channels = []
        if self.email_enabled and self.email:
            channels.append(Channel.EMAIL)
        if self.in_app_enabled:
            channels.append(Channel.IN_APP)
        return channels


@dataclass(frozen=True)
class UpstreamPage:
    """One page pulled from Docketwise — or a failed attempt at it (error set, no records)."""
    page: int
    records: list[dict] = field(default_factory=list)
    next_page: int | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    text: str
    html: str | None = None
