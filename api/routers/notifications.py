"""
Notifications router for managing in-app notifications.

Endpoints:
- GET /api/notifications - List notifications
- GET /api/notifications/unread-count - Get unread count
- GET /api/notifications/{id} - Get notification
- POST /api/notifications/mark-read - Mark notifications as read
- POST /api/notifications/mark-all-read - Mark all as read
- DELETE /api/notifications/{id} - Delete notification
"""

import logging
import math
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_notification_repository
from api.schemas.common import APIResponse, MessageResponse, Pagination
from api.schemas.notifications import (
    MarkReadData,
    MarkReadRequest,
    NotificationData,
    NotificationInfo,
    NotificationListData,
    NotificationType,
    UnreadCountData,
)
from core.auth import AppUser, require_current_user
from core.exceptions import NotFoundError
from database.repositories import NotificationRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=APIResponse[NotificationListData])
async def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    is_read: bool | None = Query(default=None, alias="isRead"),
    type: NotificationType | None = Query(default=None),
    user: AppUser = Depends(require_current_user),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
):
    """List notifications for the current user, newest first."""
    notifications = await notification_repo.list_by_user(
        user_id=user.id,
        is_read=is_read,
        type=type,
        limit=limit,
        offset=(page - 1) * limit,
    )
    total = await notification_repo.count_by_user(user.id, is_read=is_read, type=type)
    unread_count = await notification_repo.count_unread(user.id)

    return APIResponse.ok(
        NotificationListData(
            notifications=[NotificationInfo.model_validate(n) for n in notifications],
            unread_count=unread_count,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
            ),
        )
    )


@router.get("/unread-count", response_model=APIResponse[UnreadCountData])
async def get_unread_count(
    user: AppUser = Depends(require_current_user),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
):
    """Get the count of unread notifications."""
    count = await notification_repo.count_unread(user.id)
    return APIResponse.ok(UnreadCountData(unread_count=count))


@router.get("/{notification_id}", response_model=APIResponse[NotificationData])
async def get_notification(
    notification_id: UUID,
    user: AppUser = Depends(require_current_user),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
):
    """Get a specific notification."""
    notification = await notification_repo.get_by_id(notification_id)
    if not notification or notification.user_id != user.id:
        raise NotFoundError(message="Notification not found")

    return APIResponse.ok(
        NotificationData(notification=NotificationInfo.model_validate(notification))
    )


@router.post("/mark-read", response_model=APIResponse[MarkReadData])
async def mark_read(
    request: MarkReadRequest,
    user: AppUser = Depends(require_current_user),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
):
    """Mark specific notifications as read."""
    marked = await notification_repo.mark_multiple_read(user.id, request.notification_ids)
    return APIResponse.ok(MarkReadData(marked_count=marked))


@router.post("/mark-all-read", response_model=APIResponse[MarkReadData])
async def mark_all_read(
    user: AppUser = Depends(require_current_user),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
):
    """Mark all notifications as read."""
    marked = await notification_repo.mark_all_read(user.id)
    return APIResponse.ok(MarkReadData(marked_count=marked))


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    user: AppUser = Depends(require_current_user),
    notification_repo: NotificationRepository = Depends(get_notification_repository),
):
    """Delete a notification."""
    deleted = await notification_repo.delete_by_user(user.id, notification_id)
    if not deleted:
        raise NotFoundError(message="Notification not found")

    return MessageResponse(message="Notification deleted successfully")
