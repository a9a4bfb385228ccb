"""Initial schema — sync_configs, matters, matter_status_history, notifications, notification_recipients.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sync_configs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("polling_interval_minutes", sa.Integer, nullable=False, server_default="30"),
        sa.Column("stale_measurement_days", sa.Integer, nullable=False, server_default="10"),
        sa.Column("is_enabled", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lock_token", sa.String(36), nullable=True),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("tenant_id", name="uq_sync_configs_tenant_id"),
    )

    op.create_table(
        "matters",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("docketwise_id", sa.Integer, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("matter_type", sa.String(200), nullable=True),
        sa.Column("matter_type_id", sa.Integer, nullable=True),
        sa.Column("status", sa.String(200), nullable=True),
        sa.Column("status_id", sa.Integer, nullable=True),
        sa.Column("client_id", sa.Integer, nullable=True),
        sa.Column("client_name", sa.String(300), nullable=True),
        sa.Column("attorney_id", sa.Integer, nullable=True),
        sa.Column("archived", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("docketwise_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("docketwise_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("title_override", sa.String(500), nullable=True),
        sa.Column("status_override", sa.String(200), nullable=True),
        sa.Column("assignee_override", sa.String(200), nullable=True),
        sa.Column("estimated_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("billing_status", sa.String(20), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("is_edited", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("edited_by", sa.String(64), nullable=True),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("activity_status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("is_stale", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("tenant_id", "docketwise_id", name="uq_matters_tenant_docketwise"),
    )
    op.create_index("ix_matters_tenant_activity", "matters", ["tenant_id", "activity_status"])
    op.create_index("ix_matters_estimated_deadline", "matters", ["estimated_deadline"])

    op.create_table(
        "matter_status_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "matter_id", UUID(as_uuid=True),
            sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(200), nullable=True),
        sa.Column("previous_status", sa.String(200), nullable=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="sync"),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_matter_status_history_matter_id", "matter_status_history", ["matter_id"],
    )

    op.create_table(
        "notifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column(
            "matter_id", UUID(as_uuid=True),
            sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("recipient_id", sa.String(64), nullable=False),
        sa.Column("recipient_email", sa.String(320), nullable=True),
        sa.Column("channel", sa.String(10), nullable=False),
        sa.Column("days_before_deadline", sa.Integer, nullable=False),
        sa.Column("subject", sa.String(500), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivery_status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column("delivery_attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "matter_id", "recipient_id", "channel", "days_before_deadline",
            name="uq_notifications_dedup_tuple",
        ),
    )
    op.create_index(
        "ix_notifications_recipient_read", "notifications", ["recipient_id", "is_read"],
    )

    op.create_table(
        "notification_recipients",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("recipient_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default="deadline"),
        sa.Column("email_enabled", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("in_app_enabled", sa.Boolean, nullable=False, server_default="true"),
        sa.UniqueConstraint(
            "tenant_id", "recipient_id", "category",
            name="uq_notification_recipients_category",
        ),
    )


def downgrade() -> None:
    op.drop_table("notification_recipients")
    op.drop_index("ix_notifications_recipient_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_matter_status_history_matter_id", table_name="matter_status_history")
    op.drop_table("matter_status_history")
    op.drop_index("ix_matters_estimated_deadline", table_name="matters")
    op.drop_index("ix_matters_tenant_activity", table_name="matters")
    op.drop_table("matters")
    op.drop_table("sync_configs")
