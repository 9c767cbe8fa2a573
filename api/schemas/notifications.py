"""
Pydantic schemas for notifications API.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import Field

from database.models import NotificationPriority

from .common import CamelModel, Pagination


class NotificationType(StrEnum):
    """Types of notifications."""

    SYSTEM = "system"
    GENERATION_COMPLETE = "generation_complete"
    QUOTA_WARNING = "quota_warning"
    ANNOUNCEMENT = "announcement"


class NotificationInfo(CamelModel):
    """Notification information."""

    id: UUID = Field(..., description="Notification ID")
    type: str = Field(..., description="Notification type")
    title: str = Field(..., description="Notification title")
    message: str | None = Field(None, description="Notification message")
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional data (creation id, links, etc.)",
    )
    priority: NotificationPriority = Field(default=NotificationPriority.MEDIUM)
    is_read: bool = Field(default=False, description="Whether notification is read")
    read_at: datetime | None = Field(None, description="When notification was read")
    created_at: datetime = Field(..., description="Creation timestamp")


# ============ Request/Response Schemas ============


class NotificationListData(CamelModel):
    """Payload for listing notifications."""

    notifications: list[NotificationInfo] = Field(default_factory=list)
    unread_count: int = Field(..., description="Number of unread notifications")
    pagination: Pagination


class NotificationData(CamelModel):
    notification: NotificationInfo


class UnreadCountData(CamelModel):
    """Payload for the unread count."""

    unread_count: int = Field(..., description="Number of unread notifications")


class MarkReadRequest(CamelModel):
    """Request for marking notifications as read."""

    notification_ids: list[UUID] = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Notification IDs to mark as read",
    )


class MarkReadData(CamelModel):
    marked_count: int = Field(..., description="Number of notifications marked as read")
