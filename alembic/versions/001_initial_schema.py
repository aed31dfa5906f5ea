"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-03-01

Creates all initial tables for the BeautyBook platform:
- Users, notification preferences and device tokens
- Bookings
- Conversations and messages
- Notifications
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create all database tables."""

    # ==================== USERS ====================
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, index=True),
        sa.Column("phone", sa.String(20), unique=True, index=True),
        sa.Column("name", sa.String(100)),
        sa.Column("profile_image_url", sa.Text),
        sa.Column("roles", postgresql.JSONB, nullable=False, server_default=sa.text("'[\"customer\"]'::jsonb")),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("preferred_language", sa.String(10), server_default="ko"),
        *_timestamps(),
    )

    op.create_table(
        "notification_preferences",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
            index=True,
        ),
        sa.Column("booking_created", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("booking_confirmed", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("booking_declined", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("booking_cancelled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("booking_in_progress", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("booking_completed", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("new_message", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("marketing", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "device_tokens",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("token", sa.String(512), nullable=False, unique=True, index=True),
        sa.Column("platform", sa.String(10), nullable=False),
        sa.Column("device_id", sa.String(255)),
        sa.Column("app_version", sa.String(50)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_used_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint("platform IN ('ios', 'android', 'web')", name="device_tokens_platform_check"),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_number", sa.String(50), unique=True, nullable=False, index=True),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("service_type", sa.String(20), nullable=False),
        sa.Column("occasion", sa.String(50), nullable=False),
        sa.Column("services", postgresql.JSONB, nullable=False),
        sa.Column("total_duration_minutes", sa.Integer, nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("scheduled_start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scheduled_end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(50), server_default="Asia/Seoul"),
        sa.Column("service_location", postgresql.JSONB, nullable=False),
        sa.Column("special_requests", sa.Text),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending", index=True),
        sa.Column("status_history", postgresql.JSONB, nullable=False),
        sa.Column("payment_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("payment_authorization_id", sa.String(100)),
        sa.Column("total_amount", sa.Integer, nullable=False),
        sa.Column("breakdown", postgresql.JSONB, nullable=False),
        sa.Column("decline_reason", sa.Text),
        sa.Column("cancelled_by", sa.String(20)),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("completed_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id")),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'declined', 'paid', 'in_progress', 'completed', 'cancelled')",
            name="bookings_status_check",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refunded')",
            name="bookings_payment_status_check",
        ),
        sa.CheckConstraint("customer_id <> artist_id", name="bookings_distinct_parties"),
        sa.CheckConstraint(
            "(status = 'completed') = (completed_at IS NOT NULL AND completed_by IS NOT NULL)",
            name="bookings_completion_check",
        ),
    )

    # ==================== MESSAGING ====================
    op.create_table(
        "conversations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id")),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("status", sa.String(20), server_default="active", index=True),
        sa.Column("unread_count_customer", sa.Integer, server_default="0"),
        sa.Column("unread_count_artist", sa.Integer, server_default="0"),
        sa.Column("last_message_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column("archived_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint(
            "customer_id", "artist_id", "status", name="conversations_customer_artist_active_unique"
        ),
    )

    op.create_table(
        "messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id")),
        sa.Column("sender_role", sa.String(20), nullable=False),
        sa.Column("message_type", sa.String(20), server_default="text"),
        sa.Column("content", sa.Text),
        sa.Column("images", postgresql.JSONB),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id")),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column("read_at", sa.DateTime(timezone=True)),
    )

    # ==================== NOTIFICATIONS ====================
    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("data", postgresql.JSONB),
        sa.Column("read_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )
    op.create_index(
        "ix_notifications_user_unread",
        "notifications",
        ["user_id"],
        postgresql_where=sa.text("read_at IS NULL"),
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_index("ix_notifications_user_unread", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("bookings")
    op.drop_table("device_tokens")
    op.drop_table("notification_preferences")
    op.drop_table("users")
