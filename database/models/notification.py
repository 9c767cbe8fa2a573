"""
Notification model for in-app notifications.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class NotificationPriority(StrEnum):
    """How prominently a notification should be surfaced."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Notification(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Notification model for in-app notifications.

    Supports various notification types with optional data payload.
    """

    __tablename__ = "notifications"

    # Recipient
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    # Notification type (system, generation_complete, quota_warning, etc.)
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    # Title and message
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Additional data (creation id, links, etc.)
    data: Mapped[dict] = mapped_column(
        JSONType,
        default=dict,
        nullable=False,
    )

    priority: Mapped[str] = mapped_column(
        String(20),
        default=NotificationPriority.MEDIUM.value,
        nullable=False,
    )

    # Read status
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )

    # When the notification was read
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, is_read={self.is_read})>"


# Composite index for common query: unread notifications for user
Index("idx_notifications_user_unread", Notification.user_id, Notification.is_read)
