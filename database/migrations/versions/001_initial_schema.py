"""Initial schema: creations, usage, analytics, notifications, generation tasks.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # ========================================
    # Creations
    # ========================================

    op.create_table(
        "creations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("style", sa.String(100), nullable=True),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("quality", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), server_default="generating", nullable=False),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("generation_time", sa.Float(), nullable=True),
        sa.Column("model", sa.String(100), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), server_default="{}", nullable=False),
        sa.Column("is_public", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("download_count", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_creations_user_id", "creations", ["user_id"])
    op.create_index("ix_creations_type", "creations", ["type"])
    op.create_index("ix_creations_status", "creations", ["status"])
    op.create_index("ix_creations_is_public", "creations", ["is_public"])
    op.create_index("ix_creations_created_at", "creations", ["created_at"])
    op.create_index("idx_creations_user_status", "creations", ["user_id", "status"])
    op.create_index("idx_creations_public_status", "creations", ["is_public", "status"])
    op.create_index(
        "idx_creations_created_at", "creations", [sa.text("created_at DESC")]
    )

    op.create_table(
        "creation_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("creation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tag", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["creation_id"], ["creations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("creation_id", "tag", name="uq_creation_tag"),
    )
    op.create_index("ix_creation_tags_creation_id", "creation_tags", ["creation_id"])
    op.create_index("ix_creation_tags_tag", "creation_tags", ["tag"])

    # ========================================
    # Usage periods
    # ========================================

    op.create_table(
        "usage_periods",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("images_used", sa.Integer(), server_default="0", nullable=False),
        sa.Column("images_limit", sa.Integer(), server_default="10", nullable=False),
        sa.Column("videos_used", sa.Integer(), server_default="0", nullable=False),
        sa.Column("videos_limit", sa.Integer(), server_default="3", nullable=False),
        sa.Column("posts_used", sa.Integer(), server_default="0", nullable=False),
        sa.Column("posts_limit", sa.Integer(), server_default="20", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_usage_periods_user_id", "usage_periods", ["user_id"])
    op.create_index("ix_usage_periods_created_at", "usage_periods", ["created_at"])
    op.create_index(
        "idx_usage_user_period", "usage_periods", ["user_id", "period_start", "period_end"]
    )

    # ========================================
    # Analytics events
    # ========================================

    op.create_table(
        "analytics_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("generation_time", sa.Float(), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("metrics", postgresql.JSONB(), server_default="{}", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_events_user_id", "analytics_events", ["user_id"])
    op.create_index("ix_analytics_events_type", "analytics_events", ["type"])
    op.create_index("ix_analytics_events_action", "analytics_events", ["action"])
    op.create_index("ix_analytics_events_entity_id", "analytics_events", ["entity_id"])
    op.create_index("ix_analytics_events_created_at", "analytics_events", ["created_at"])
    op.create_index(
        "idx_analytics_user_type_created",
        "analytics_events",
        ["user_id", "type", "created_at"],
    )
    op.create_index(
        "idx_analytics_entity_action", "analytics_events", ["entity_id", "action"]
    )

    # ========================================
    # Notifications
    # ========================================

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("data", postgresql.JSONB(), server_default="{}", nullable=False),
        sa.Column("priority", sa.String(20), server_default="medium", nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])
    op.create_index("idx_notifications_user_unread", "notifications", ["user_id", "is_read"])

    # ========================================
    # Generation tasks
    # ========================================

    op.create_table(
        "generation_tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("creation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("state", sa.String(20), server_default="pending", nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("max_attempts", sa.Integer(), server_default="1", nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["creation_id"], ["creations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("creation_id"),
    )
    op.create_index("ix_generation_tasks_user_id", "generation_tasks", ["user_id"])
    op.create_index("ix_generation_tasks_state", "generation_tasks", ["state"])
    op.create_index("ix_generation_tasks_scheduled_at", "generation_tasks", ["scheduled_at"])
    op.create_index("idx_generation_tasks_due", "generation_tasks", ["state", "scheduled_at"])


def downgrade() -> None:
    op.drop_table("generation_tasks")
    op.drop_table("notifications")
    op.drop_table("analytics_events")
    op.drop_table("usage_periods")
    op.drop_table("creation_tags")
    op.drop_table("creations")
