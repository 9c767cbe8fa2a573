"""
Creation repository for creation CRUD and query operations.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Creation, CreationStatus, CreationTag


class CreationRepository:
    """Repository for Creation model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, creation_id: UUID) -> Creation | None:
        """Get creation by ID."""
        result = await self.session.execute(
            select(Creation)
            .where(Creation.id == creation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: UUID,
        type: str,
        title: str,
        prompt: str,
        description: str | None = None,
        style: str | None = None,
        size: str | None = None,
        duration: int | None = None,
        quality: str | None = None,
        model: str | None = None,
        tags: list[str] | None = None,
    ) -> Creation:
        """Create a new creation in the generating state."""
        creation = Creation(
            user_id=user_id,
            type=type,
            title=title,
            prompt=prompt,
            description=description,
            style=style,
            size=size,
            duration=duration,
            quality=quality,
            model=model,
            status=CreationStatus.GENERATING.value,
            metadata_={},
        )
        creation.tags = tags or []
        self.session.add(creation)
        await self.session.flush()
        return creation

    # ============ Queries ============

    def _owned_filter(
        self,
        user_id: UUID,
        type: str | None,
        status: str | None,
    ) -> ColumnElement[bool]:
        conditions = [Creation.user_id == user_id]
        if type:
            conditions.append(Creation.type == type)
        if status:
            conditions.append(Creation.status == status)
        else:
            conditions.append(Creation.status != CreationStatus.DELETED.value)
        return and_(*conditions)

    def _public_filter(self, type: str | None, tags: list[str] | None) -> ColumnElement[bool]:
        conditions = [
            Creation.is_public.is_(True),
            Creation.status == CreationStatus.COMPLETED.value,
        ]
        if type:
            conditions.append(Creation.type == type)
        if tags:
            tagged = select(CreationTag.creation_id).where(CreationTag.tag.in_(tags))
            conditions.append(Creation.id.in_(tagged))
        return and_(*conditions)

    async def list_by_user(
        self,
        user_id: UUID,
        type: str | None = None,
        status: str | None = None,
        order_by: list[Any] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Creation]:
        """
        List a user's creations.

        Deleted creations are excluded unless ``status`` asks for them.
        """
        query = select(Creation).where(self._owned_filter(user_id, type, status))
        query = query.order_by(*(order_by or [Creation.created_at.desc()]), Creation.id)
        query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_user(
        self,
        user_id: UUID,
        type: str | None = None,
        status: str | None = None,
    ) -> int:
        """Count a user's creations with the same filtering as list_by_user."""
        query = (
            select(func.count())
            .select_from(Creation)
            .where(self._owned_filter(user_id, type, status))
        )
        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_public(
        self,
        type: str | None = None,
        tags: list[str] | None = None,
        order_by: list[Any] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Creation]:
        """List public, completed creations, optionally matching any of ``tags``."""
        query = select(Creation).where(self._public_filter(type, tags))
        query = query.order_by(*(order_by or [Creation.created_at.desc()]), Creation.id)
        query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_public(
        self,
        type: str | None = None,
        tags: list[str] | None = None,
    ) -> int:
        """Count public, completed creations."""
        query = select(func.count()).select_from(Creation).where(self._public_filter(type, tags))
        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_recent(self, user_id: UUID, limit: int = 5) -> list[Creation]:
        """Newest non-deleted creations of a user."""
        return await self.list_by_user(user_id, limit=limit)

    # ============ Mutations ============

    async def apply_updates(self, creation: Creation, fields: dict[str, Any]) -> Creation:
        """Set already-filtered attributes on a creation."""
        for key, value in fields.items():
            setattr(creation, key, value)
        await self.session.flush()
        return creation

    async def mark_deleted(self, creation: Creation) -> Creation:
        """Soft delete: keep the row, flag the status."""
        creation.status = CreationStatus.DELETED.value
        await self.session.flush()
        return creation

    async def finish_generation(
        self,
        creation_id: UUID,
        status: CreationStatus,
        file_url: str | None = None,
        thumbnail_url: str | None = None,
        file_size: int | None = None,
        generation_time: float | None = None,
        model: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """
        Move a generating creation to a terminal status.

        Conditional on the row still being ``generating``, so a creation that
        was deleted or already finished is left untouched.

        Returns:
            True if the row transitioned
        """
        values: dict[Any, Any] = {Creation.status: status.value}
        if file_url is not None:
            values[Creation.file_url] = file_url
        if thumbnail_url is not None:
            values[Creation.thumbnail_url] = thumbnail_url
        if file_size is not None:
            values[Creation.file_size] = file_size
        if generation_time is not None:
            values[Creation.generation_time] = generation_time
        if model is not None:
            values[Creation.model] = model
        if metadata is not None:
            values[Creation.metadata_] = metadata

        result = await self.session.execute(
            update(Creation)
            .where(
                Creation.id == creation_id,
                Creation.status == CreationStatus.GENERATING.value,
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1

    async def increment_download_count(self, creation_id: UUID) -> None:
        """Atomically bump the download counter."""
        await self.session.execute(
            update(Creation)
            .where(Creation.id == creation_id)
            .values(download_count=Creation.download_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    # ============ Statistics ============

    async def get_stats_by_user(self, user_id: UUID) -> dict:
        """
        Get creation statistics for a user (deleted creations excluded).

        Returns:
            Dict with total, by_type, by_status, downloads, public count and
            generation time figures
        """
        not_deleted = and_(
            Creation.user_id == user_id,
            Creation.status != CreationStatus.DELETED.value,
        )

        totals_query = select(
            func.count().label("total"),
            func.coalesce(func.sum(Creation.download_count), 0).label("downloads"),
            func.coalesce(func.sum(Creation.file_size), 0).label("file_size"),
            func.avg(Creation.generation_time).label("avg_generation_time"),
        ).where(not_deleted)
        totals = (await self.session.execute(totals_query)).one()

        public_query = (
            select(
                func.count().label("count"),
                func.coalesce(func.sum(Creation.download_count), 0).label("downloads"),
            )
            .where(not_deleted, Creation.is_public.is_(True))
        )
        public = (await self.session.execute(public_query)).one()

        type_query = (
            select(Creation.type, func.count().label("count"))
            .where(not_deleted)
            .group_by(Creation.type)
        )
        by_type = {row.type: row.count for row in await self.session.execute(type_query)}

        status_query = (
            select(Creation.status, func.count().label("count"))
            .where(not_deleted)
            .group_by(Creation.status)
        )
        by_status = {row.status: row.count for row in await self.session.execute(status_query)}

        return {
            "total": totals.total,
            "by_type": by_type,
            "by_status": by_status,
            "total_downloads": int(totals.downloads),
            "total_file_size": int(totals.file_size),
            "average_generation_time": float(totals.avg_generation_time or 0),
            "public_count": public.count,
            "public_downloads": int(public.downloads),
        }
