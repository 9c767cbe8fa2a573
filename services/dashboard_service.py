"""
Dashboard aggregation: one summary built from creations and usage.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.dashboard import (
    DashboardData,
    DashboardStats,
    DashboardUsage,
    RecentCreation,
)
from database.models import USAGE_KINDS
from database.repositories import CreationRepository, UsageRepository

RECENT_CREATIONS_LIMIT = 5


class DashboardService:
    """Builds the dashboard summary for a user."""

    def __init__(self, session: AsyncSession):
        self.creations = CreationRepository(session)
        self.usage = UsageRepository(session)

    async def get_dashboard(self, user_id: UUID) -> DashboardData:
        """
        Aggregate stats, recent creations and current usage.

        Users without a current usage period get zeroed usage counters.
        Posts are not produced by this service, so ``recentPosts`` is empty.
        """
        stats = await self.creations.get_stats_by_user(user_id)
        recent = await self.creations.list_recent(user_id, limit=RECENT_CREATIONS_LIMIT)
        usage = await self.usage.find_current(user_id)

        usage_summary = usage.to_summary() if usage else {kind: {} for kind in USAGE_KINDS}

        return DashboardData(
            stats=DashboardStats(
                total_creations=stats["total"],
                total_posts=usage.used("posts") if usage else 0,
                total_views=stats["total_downloads"],
                total_engagement=stats["public_downloads"],
            ),
            recent_creations=[
                RecentCreation(
                    id=str(creation.id),
                    type=creation.type,
                    title=creation.title,
                    status=creation.status,
                    thumbnail_url=creation.thumbnail_url,
                    created_at=creation.created_at,
                )
                for creation in recent
            ],
            recent_posts=[],
            usage=DashboardUsage.model_validate(usage_summary),
        )
