"""Status Classifier — keyword classification of Docketwise status names + activity derivation.

Invariants:
    - classify_status() is total: None/empty → category "unknown", not completed
    - Completed states (closed, filed, approved, denied, RFE response filed) are terminal work
    - compute_activity_status(): archived > stale > active (archived always wins)
    - Staleness measured from the most recent of upstream updated_at and local edited_at

Design Decisions:
    - Keyword containment over exact match: Docketwise tenants name workflow stages freely
      ("I-130 Case Filed", "RFE Received - Drafting Response")
    - Later rule groups refine category of earlier ones, mirroring how paralegals read the
      status strings (e.g. "RFE received" is active work even after "filed")
    - A matter with no update timestamp is never stale (no evidence of inactivity)
"""

from dataclasses import dataclass
from datetime import datetime

from docketwatch.core.domain_types import ActivityStatus
from docketwatch.core.timestamps import latest, whole_days_between

_CLOSED_KEYWORDS = ("closed", "card received", "beneficiary arrived")
_FILED_KEYWORDS = ("filed", "submitted", "request has been submitted")
_APPROVED_KEYWORDS = ("approved", "granted", "visa granted", "certificate received")
_DENIED_KEYWORDS = ("denied", "rejected")
_DRAFTING_KEYWORDS = (
    "drafting", "preparing", "prepare", "document collection", "case evaluation",
)
_PENDING_KEYWORDS = ("pending", "waiting", "scheduled")
_PROCESSING_KEYWORDS = ("nvc processing", "interview", "hearing", "processing")


@dataclass(frozen=True)
class StatusClassification:
    category: str = "unknown"
    is_completed: bool = False
    is_active: bool = False


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def classify_status(status_name: str | None) -> StatusClassification:
    """Classify a free-text status name into a category.

    Categories: closed, completed (filed), approved, denied, drafting, rfe,
    pending, unknown.
    """
    normalized = (status_name or "").lower().strip()
    if not normalized:
        return StatusClassification()

    category = "unknown"
    completed = False
    active = False

    # "Open" on its own is what Docketwise shows for untouched, inactive matters
    if _contains_any(normalized, _CLOSED_KEYWORDS) or normalized == "open":
        category, completed = "closed", True
    if _contains_any(normalized, _FILED_KEYWORDS):
        category, completed = "completed", True
    if _contains_any(normalized, _APPROVED_KEYWORDS):
        category, completed = "approved", True
    if _contains_any(normalized, _DENIED_KEYWORDS):
        category, completed = "denied", True

    if _contains_any(normalized, _DRAFTING_KEYWORDS):
        category, active = "drafting", True

    rfe_received = "received" in normalized and (
        "request for evidence" in normalized or "rfe" in normalized
    )
    if rfe_received:
        category, active = "rfe", True
        if "filed" in normalized and "response" in normalized:
            completed, active = True, False

    waiting = _contains_any(normalized, _PENDING_KEYWORDS) or _contains_any(
        normalized, _PROCESSING_KEYWORDS,
    )
    if waiting and not completed:
        if category == "unknown":
            category = "pending"
        active = True

    return StatusClassification(
        category=category, is_completed=completed, is_active=active,
    )


def compute_activity_status(
    *,
    archived: bool,
    closed_at: datetime | None,
    status: str | None,
    docketwise_updated_at: datetime | None,
    edited_at: datetime | None,
    now: datetime,
    stale_days: int,
) -> ActivityStatus:
    """Derive active | stale | archived for one matter."""
    if archived or closed_at is not None or classify_status(status).is_completed:
        return ActivityStatus.ARCHIVED
    last_touched = latest(docketwise_updated_at, edited_at)
    if last_touched is not None and whole_days_between(last_touched, now) > stale_days:
        return ActivityStatus.STALE
    return ActivityStatus.ACTIVE
