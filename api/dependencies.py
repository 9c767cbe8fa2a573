"""
FastAPI dependency injection for database sessions, repositories and services.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import AppUser, require_current_user
from core.config import get_settings
from core.exceptions import ServiceUnavailableError
from core.redis import get_redis_or_none
from database import get_session, is_database_available
from database.repositories import NotificationRepository
from services.creation_service import CreationService
from services.dashboard_service import DashboardService
from services.file_storage import FileStorage, get_file_storage
from services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


async def get_db_session() -> AsyncGenerator[AsyncSession | None, None]:
    """
    Get database session dependency.

    Returns None if database is not configured/available.
    """
    if not is_database_available():
        yield None
        return

    async for session in get_session():
        yield session


async def require_db_session(
    session: AsyncSession | None = Depends(get_db_session),
) -> AsyncSession:
    """Get a database session, failing with 503 when the database is down."""
    if session is None:
        raise ServiceUnavailableError(message="Database not configured")
    return session


async def get_notification_repository(
    session: AsyncSession = Depends(require_db_session),
) -> NotificationRepository:
    """Get NotificationRepository dependency."""
    return NotificationRepository(session)


def get_storage() -> FileStorage:
    """Get the file storage backend."""
    return get_file_storage()


async def get_creation_service(
    session: AsyncSession = Depends(require_db_session),
    storage: FileStorage = Depends(get_storage),
) -> CreationService:
    """Get CreationService dependency."""
    return CreationService(session, file_storage=storage)


async def get_dashboard_service(
    session: AsyncSession = Depends(require_db_session),
) -> DashboardService:
    """Get DashboardService dependency."""
    return DashboardService(session)


async def get_creation_rate_limiter() -> RateLimiter:
    """Rate limiter for creation requests (inactive without Redis)."""
    return RateLimiter(await get_redis_or_none(), scope="creations")


async def enforce_creation_rate_limit(
    user: AppUser = Depends(require_current_user),
    limiter: RateLimiter = Depends(get_creation_rate_limiter),
) -> AppUser:
    """
    Count a creation request against the user's window.

    Raises RateLimitError (429) when the window is full.
    """
    if get_settings().rate_limit_enabled:
        await limiter.hit(str(user.id))
    return user
