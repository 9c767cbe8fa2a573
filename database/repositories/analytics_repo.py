"""
Analytics repository for recording and aggregating metric events.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import AnalyticsAction, AnalyticsEvent, utcnow

# Default look-back window per aggregation period
PERIOD_WINDOWS = {
    "daily": timedelta(days=30),
    "weekly": timedelta(weeks=12),
    "monthly": timedelta(days=365),
    "yearly": timedelta(days=365 * 5),
}


def period_bucket(moment: datetime, period: str) -> str:
    """Label of the aggregation bucket ``moment`` falls into."""
    if period == "daily":
        return moment.date().isoformat()
    if period == "weekly":
        year, week, _ = moment.isocalendar()
        return f"{year}-W{week:02d}"
    if period == "monthly":
        return f"{moment.year}-{moment.month:02d}"
    if period == "yearly":
        return str(moment.year)
    raise ValueError(f"Unknown period: {period}")


def _empty_bucket() -> dict[str, Any]:
    return {
        "started": 0,
        "completed": 0,
        "failed": 0,
        "downloads": 0,
        "total_generation_time": 0.0,
        "total_file_size": 0,
    }


class AnalyticsRepository:
    """Repository for AnalyticsEvent model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        user_id: UUID,
        type: str,
        action: AnalyticsAction,
        entity_id: UUID,
        entity_type: str,
        status: str | None = None,
        generation_time: float | None = None,
        file_size: int | None = None,
        metrics: dict[str, Any] | None = None,
    ) -> AnalyticsEvent:
        """Append an event. Events are never updated afterwards."""
        event = AnalyticsEvent(
            user_id=user_id,
            type=type,
            action=action.value,
            entity_id=entity_id,
            entity_type=entity_type,
            status=status,
            generation_time=generation_time,
            file_size=file_size,
            metrics=metrics or {},
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_by_entity(self, entity_id: UUID) -> list[AnalyticsEvent]:
        """All events about one entity, oldest first."""
        result = await self.session.execute(
            select(AnalyticsEvent)
            .where(AnalyticsEvent.entity_id == entity_id)
            .order_by(AnalyticsEvent.created_at, AnalyticsEvent.id)
        )
        return list(result.scalars().all())

    async def get_aggregated(
        self,
        user_id: UUID,
        type: str,
        period: str = "monthly",
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict:
        """
        Aggregate a user's events into period buckets.

        Terminal generation events are matched to their start events by
        entity_id; entities started in the window with no terminal event
        count as pending.

        Args:
            user_id: Event owner
            type: Event type (e.g. "creation")
            period: daily, weekly, monthly or yearly
            start: Window start (defaults to the period's look-back window)
            end: Window end (defaults to now)

        Returns:
            Dict with the window, overall totals and per-bucket figures
        """
        if period not in PERIOD_WINDOWS:
            raise ValueError(f"Unknown period: {period}")

        end = end or utcnow()
        start = start or end - PERIOD_WINDOWS[period]

        query = (
            select(
                AnalyticsEvent.action,
                AnalyticsEvent.entity_id,
                AnalyticsEvent.generation_time,
                AnalyticsEvent.file_size,
                AnalyticsEvent.created_at,
            )
            .where(
                and_(
                    AnalyticsEvent.user_id == user_id,
                    AnalyticsEvent.type == type,
                    AnalyticsEvent.created_at >= start,
                    AnalyticsEvent.created_at <= end,
                )
            )
            .order_by(AnalyticsEvent.created_at)
        )
        rows = (await self.session.execute(query)).all()

        buckets: dict[str, dict[str, Any]] = defaultdict(_empty_bucket)
        started: set[UUID] = set()
        finished: set[UUID] = set()

        for row in rows:
            bucket = buckets[period_bucket(row.created_at, period)]
            if row.action == AnalyticsAction.GENERATION_STARTED:
                bucket["started"] += 1
                started.add(row.entity_id)
            elif row.action == AnalyticsAction.GENERATION_COMPLETED:
                bucket["completed"] += 1
                bucket["total_generation_time"] += row.generation_time or 0.0
                bucket["total_file_size"] += row.file_size or 0
                finished.add(row.entity_id)
            elif row.action == AnalyticsAction.GENERATION_FAILED:
                bucket["failed"] += 1
                finished.add(row.entity_id)
            elif row.action == AnalyticsAction.DOWNLOAD:
                bucket["downloads"] += 1

        totals = _empty_bucket()
        bucket_list = []
        for label in sorted(buckets):
            bucket = buckets[label]
            for key in totals:
                totals[key] += bucket[key]
            bucket_list.append(
                {
                    "period": label,
                    **bucket,
                    "average_generation_time": _average(
                        bucket["total_generation_time"], bucket["completed"]
                    ),
                }
            )

        totals["average_generation_time"] = _average(
            totals["total_generation_time"], totals["completed"]
        )
        totals["pending"] = len(started - finished)
        terminal = totals["completed"] + totals["failed"]
        totals["success_rate"] = round(totals["completed"] / terminal * 100, 1) if terminal else None

        return {
            "period": period,
            "start": start,
            "end": end,
            "totals": totals,
            "buckets": bucket_list,
        }


def _average(total: float, count: int) -> float:
    return round(total / count, 3) if count else 0.0
