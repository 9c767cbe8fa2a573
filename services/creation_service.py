"""
Creation orchestration: quota-gated creation, ownership checks, downloads,
soft deletion and statistics.

The service works on one request-scoped session. It only raises typed
application errors; the API layer turns them into responses.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.exceptions import (
    AuthorizationError,
    BadRequestError,
    CreationNotFoundError,
    TaskNotFoundError,
    UsageLimitExceededError,
    UsageNotFoundError,
)
from core.security import sign_download_url
from database.models import (
    REQUIRED_FIELDS,
    UPDATABLE_FIELDS,
    USAGE_KIND_BY_TYPE,
    AnalyticsAction,
    Creation,
    CreationStatus,
    CreationType,
    GenerationTask,
    TaskState,
    utcnow,
)
from database.repositories import (
    AnalyticsRepository,
    CreationRepository,
    TaskRepository,
    UsageRepository,
)

from .file_storage import FileStorage, get_file_storage, storage_id_from_url

logger = logging.getLogger(__name__)

ANALYTICS_TYPE = "creation"
ENTITY_TYPE = "Creation"

# API sort keys -> model attributes
SORT_FIELDS = {
    "createdAt": Creation.created_at,
    "updatedAt": Creation.updated_at,
    "title": Creation.title,
    "downloadCount": Creation.download_count,
    "type": Creation.type,
    "status": Creation.status,
}
DEFAULT_SORT = "-createdAt"


def parse_sort(sort: str | None) -> list[Any]:
    """
    Translate a sort string like ``-createdAt,title`` into ORDER BY clauses.

    Raises:
        BadRequestError: If a field is not sortable
    """
    clauses = []
    for token in (sort or DEFAULT_SORT).split(","):
        token = token.strip()
        if not token:
            continue
        descending = token.startswith("-")
        name = token.lstrip("-+")
        column = SORT_FIELDS.get(name)
        if column is None:
            raise BadRequestError(
                message=f"Cannot sort by '{name}'",
                details={"allowed": sorted(SORT_FIELDS)},
            )
        clauses.append(column.desc() if descending else column.asc())
    return clauses or [Creation.created_at.desc()]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class CreationService:
    """Orchestrates the creation lifecycle for API requests."""

    def __init__(self, session: AsyncSession, file_storage: FileStorage | None = None):
        self.session = session
        self.settings = get_settings()
        self.creations = CreationRepository(session)
        self.usage = UsageRepository(session)
        self.analytics = AnalyticsRepository(session)
        self.tasks = TaskRepository(session)
        self.file_storage = file_storage or get_file_storage()

    # ============ Create ============

    async def create_creation(
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
        tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> Creation:
        """
        Accept a generation request.

        Consumes one unit of the user's quota, stores the creation in the
        generating state, records the start event and schedules completion.
        All writes share the caller's transaction.

        Raises:
            UsageNotFoundError: No usage period covers ``now``
            UsageLimitExceededError: The kind's counter is at its limit
        """
        now = now or utcnow()
        kind = USAGE_KIND_BY_TYPE[CreationType(type)]

        usage = await self.usage.find_current(user_id, now)
        if usage is None:
            raise UsageNotFoundError()

        if not await self.usage.try_increment(usage.id, kind):
            raise UsageLimitExceededError(
                message=f"You have reached your {kind} generation limit for this period",
                details={"kind": kind, "limit": usage.limit(kind)},
            )

        model = self.settings.creation_model
        creation = await self.creations.create(
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
            tags=tags,
        )

        await self.analytics.record(
            user_id=user_id,
            type=ANALYTICS_TYPE,
            action=AnalyticsAction.GENERATION_STARTED,
            entity_id=creation.id,
            entity_type=ENTITY_TYPE,
            status=CreationStatus.GENERATING.value,
            metrics={
                "generationTime": 0,
                "fileSize": 0,
                "status": CreationStatus.GENERATING.value,
                "model": model,
                "style": style,
                "quality": quality,
            },
        )

        await self.tasks.schedule(
            creation_id=creation.id,
            user_id=user_id,
            scheduled_at=now + timedelta(seconds=self.settings.generation_delay_seconds),
            max_attempts=self.settings.generation_max_attempts,
        )

        logger.info(f"Creation {creation.id} accepted: user={user_id}, type={type}")
        return creation

    # ============ Read ============

    async def _get_live(self, creation_id: UUID) -> Creation:
        creation = await self.creations.get_by_id(creation_id)
        if creation is None or creation.status == CreationStatus.DELETED:
            raise CreationNotFoundError()
        return creation

    async def _get_owned(self, creation_id: UUID, user_id: UUID, action: str) -> Creation:
        creation = await self._get_live(creation_id)
        if not creation.is_owned_by(user_id):
            raise AuthorizationError(
                message=f"You do not have permission to {action} this creation"
            )
        return creation

    async def get_creation(self, creation_id: UUID, requester_id: UUID) -> Creation:
        """Get a creation visible to the requester (owner, or public)."""
        creation = await self._get_live(creation_id)
        if not creation.is_visible_to(requester_id):
            raise AuthorizationError(message="You do not have permission to view this creation")
        return creation

    async def get_creations(
        self,
        user_id: UUID,
        type: str | None = None,
        status: str | None = None,
        sort: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """
        List a user's own creations.

        Returns:
            Dict with ``items``, ``total``, ``page``, ``limit`` and ``pages``
        """
        order_by = parse_sort(sort)
        offset = (page - 1) * limit

        items = await self.creations.list_by_user(
            user_id, type=type, status=status, order_by=order_by, limit=limit, offset=offset
        )
        total = await self.creations.count_by_user(user_id, type=type, status=status)

        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": page_count(total, limit),
        }

    async def get_public_creations(
        self,
        type: str | None = None,
        tags: str | list[str] | None = None,
        sort: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """List public, completed creations; ``tags`` may be comma-separated."""
        if isinstance(tags, str):
            tags = [tag.strip() for tag in tags.split(",") if tag.strip()]

        order_by = parse_sort(sort)
        offset = (page - 1) * limit

        items = await self.creations.list_public(
            type=type, tags=tags or None, order_by=order_by, limit=limit, offset=offset
        )
        total = await self.creations.count_public(type=type, tags=tags or None)

        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": page_count(total, limit),
        }

    # ============ Update / Delete ============

    async def update_creation(
        self,
        creation_id: UUID,
        requester_id: UUID,
        patch: dict[str, Any],
    ) -> Creation:
        """
        Apply owner edits; keys outside the allow-list are ignored.

        ``None`` clears ``description`` and ``tags`` but is dropped for
        ``title`` and ``is_public``, which cannot be empty.
        """
        creation = await self._get_owned(creation_id, requester_id, "update")

        fields = {
            key: value
            for key, value in patch.items()
            if key in UPDATABLE_FIELDS and not (value is None and key in REQUIRED_FIELDS)
        }
        if not fields:
            return creation

        return await self.creations.apply_updates(creation, fields)

    async def delete_creation(self, creation_id: UUID, requester_id: UUID) -> None:
        """
        Soft delete an owned creation.

        The stored file is removed best-effort and a pending generation
        task is cancelled so it never completes.
        """
        creation = await self._get_owned(creation_id, requester_id, "delete")

        if creation.file_url:
            await self._delete_file(creation.file_url)

        if await self.tasks.cancel_pending(creation.id):
            logger.info(f"Cancelled pending generation for deleted creation {creation.id}")

        await self.creations.mark_deleted(creation)

    async def _delete_file(self, file_url: str) -> None:
        storage_id = storage_id_from_url(file_url)
        if not storage_id:
            return
        try:
            await self.file_storage.delete(storage_id)
        except Exception as e:
            logger.warning(f"Error deleting file {storage_id} from {self.file_storage.name}: {e}")

    # ============ Download ============

    async def download_creation(self, creation_id: UUID, requester_id: UUID) -> dict[str, str]:
        """
        Count a download and hand out a signed URL.

        Raises:
            BadRequestError: If the creation has not completed
        """
        creation = await self._get_live(creation_id)
        if not creation.is_visible_to(requester_id):
            raise AuthorizationError(
                message="You do not have permission to download this creation"
            )

        if creation.status != CreationStatus.COMPLETED or not creation.file_url:
            raise BadRequestError(message="Creation is not ready for download")

        # Capture before the UPDATE below
        file_url = creation.file_url
        filename = f"{creation.title}.{creation.file_format or 'jpg'}"

        await self.creations.increment_download_count(creation.id)
        await self.analytics.record(
            user_id=requester_id,
            type=ANALYTICS_TYPE,
            action=AnalyticsAction.DOWNLOAD,
            entity_id=creation.id,
            entity_type=ENTITY_TYPE,
            metrics={
                "action": "download",
                "timestamp": utcnow().isoformat(),
                "success": True,
            },
        )

        return {
            "download_url": sign_download_url(file_url),
            "filename": filename,
        }

    # ============ Generation task ============

    async def get_generation_task(self, creation_id: UUID, requester_id: UUID) -> GenerationTask:
        """Get the generation task of an owned creation."""
        await self._get_owned(creation_id, requester_id, "view")
        task = await self.tasks.get_by_creation(creation_id)
        if task is None:
            raise TaskNotFoundError()
        return task

    async def cancel_creation(self, creation_id: UUID, requester_id: UUID) -> Creation:
        """
        Cancel a generation that has not started yet.

        Raises:
            BadRequestError: If the task already ran or is running
        """
        creation = await self._get_owned(creation_id, requester_id, "cancel")

        if not await self.tasks.cancel_pending(creation.id):
            raise BadRequestError(message="Generation can no longer be cancelled")

        await self.creations.finish_generation(creation.id, CreationStatus.FAILED)
        await self.analytics.record(
            user_id=creation.user_id,
            type=ANALYTICS_TYPE,
            action=AnalyticsAction.GENERATION_FAILED,
            entity_id=creation.id,
            entity_type=ENTITY_TYPE,
            status=CreationStatus.FAILED.value,
            metrics={"status": CreationStatus.FAILED.value, "reason": "cancelled"},
        )
        logger.info(f"Creation {creation.id} cancelled by owner")
        return await self._get_live(creation.id)

    # ============ Statistics ============

    async def get_creation_stats(
        self,
        user_id: UUID,
        period: str = "monthly",
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict:
        """Per-user creation counts plus period analytics."""
        try:
            analytics = await self.analytics.get_aggregated(
                user_id, ANALYTICS_TYPE, period=period, start=start, end=end
            )
        except ValueError as e:
            raise BadRequestError(message=str(e))

        stats = await self.creations.get_stats_by_user(user_id)
        return {"stats": stats, "analytics": analytics}
