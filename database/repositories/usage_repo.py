"""
Usage repository for per-period quota counters.
"""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import USAGE_KINDS, Usage, utcnow


class UsageRepository:
    """Repository for Usage model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, usage_id: UUID) -> Usage | None:
        """Get usage record by ID."""
        result = await self.session.execute(
            select(Usage).where(Usage.id == usage_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_current(self, user_id: UUID, now: datetime | None = None) -> Usage | None:
        """Get the usage record whose period contains ``now``."""
        now = now or utcnow()
        result = await self.session.execute(
            select(Usage)
            .where(
                Usage.user_id == user_id,
                Usage.period_start <= now,
                Usage.period_end > now,
            )
            .order_by(desc(Usage.period_start))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def try_increment(self, usage_id: UUID, kind: str, amount: int = 1) -> bool:
        """
        Increment a counter only if it stays within its limit.

        Single conditional UPDATE, so concurrent requests cannot both slip
        past the limit.

        Returns:
            True if the counter was incremented
        """
        if kind not in USAGE_KINDS:
            raise ValueError(f"Unknown usage kind: {kind}")

        used = getattr(Usage, f"{kind}_used")
        limit = getattr(Usage, f"{kind}_limit")

        result = await self.session.execute(
            update(Usage)
            .where(Usage.id == usage_id, used + amount <= limit)
            .values({used: used + amount})
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1

    async def create(
        self,
        user_id: UUID,
        period_start: datetime | None = None,
        period_days: int = 30,
        images_limit: int = 10,
        videos_limit: int = 3,
        posts_limit: int = 20,
    ) -> Usage:
        """Provision a usage period for a user."""
        start = period_start or utcnow()
        usage = Usage(
            user_id=user_id,
            period_start=start,
            period_end=start + timedelta(days=period_days),
            images_used=0,
            images_limit=images_limit,
            videos_used=0,
            videos_limit=videos_limit,
            posts_used=0,
            posts_limit=posts_limit,
        )
        self.session.add(usage)
        await self.session.flush()
        return usage
