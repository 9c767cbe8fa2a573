"""
Notification repository.

Notifications are always scoped to their owner; every mutating query carries
the ``user_id`` so one user can never touch another user's rows.
"""

from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Notification, NotificationPriority, utcnow


def _scoped(query: Select, user_id: UUID, is_read: bool | None, type: str | None) -> Select:
    query = query.where(Notification.user_id == user_id)
    if is_read is not None:
        query = query.where(Notification.is_read.is_(is_read))
    if type:
        query = query.where(Notification.type == type)
    return query


class NotificationRepository:
    """Persistence for user notifications."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, notification_id: UUID) -> Notification | None:
        return await self.session.get(Notification, notification_id, populate_existing=True)

    async def create_notification(
        self,
        user_id: UUID,
        type: str,
        title: str,
        message: str | None = None,
        data: dict | None = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> Notification:
        """Insert an unread notification for ``user_id``."""
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data or {},
            priority=priority.value,
            is_read=False,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def list_by_user(
        self,
        user_id: UUID,
        is_read: bool | None = None,
        type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        """Newest first, optionally filtered by read state and type."""
        query = _scoped(select(Notification), user_id, is_read, type)
        query = (
            query.order_by(Notification.created_at.desc(), Notification.id)
            .limit(limit)
            .offset(offset)
        )
        return list((await self.session.scalars(query)).all())

    async def count_by_user(
        self,
        user_id: UUID,
        is_read: bool | None = None,
        type: str | None = None,
    ) -> int:
        query = _scoped(select(func.count(Notification.id)), user_id, is_read, type)
        return (await self.session.execute(query)).scalar_one()

    async def count_unread(self, user_id: UUID) -> int:
        return await self.count_by_user(user_id, is_read=False)

    async def _mark_read(self, user_id: UUID, *conditions) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
                *conditions,
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount

    async def mark_multiple_read(self, user_id: UUID, notification_ids: list[UUID]) -> int:
        """Mark the listed notifications read; ids owned by others are ignored."""
        if not notification_ids:
            return 0
        return await self._mark_read(user_id, Notification.id.in_(notification_ids))

    async def mark_all_read(self, user_id: UUID) -> int:
        return await self._mark_read(user_id)

    async def delete_by_user(self, user_id: UUID, notification_id: UUID) -> bool:
        """Delete one notification; False when it is missing or not owned."""
        result = await self.session.execute(
            delete(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1
