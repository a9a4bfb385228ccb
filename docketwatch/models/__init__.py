"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every row is scoped by tenant_id (directly or through its matter)

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from docketwatch.models.sync_config import SyncConfig  # noqa: F401
from docketwatch.models.matter import Matter  # noqa: F401
from docketwatch.models.matter_status_history import MatterStatusHistory  # noqa: F401
from docketwatch.models.notification import Notification  # noqa: F401
from docketwatch.models.notification_recipient import NotificationRecipient  # noqa: F401
