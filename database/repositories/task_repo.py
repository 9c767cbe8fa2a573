"""
Generation task repository: scheduling, claiming and finishing tasks.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import GenerationTask, TaskState, utcnow


class TaskRepository:
    """Repository for GenerationTask model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, task_id: UUID) -> GenerationTask | None:
        """Get task by ID."""
        result = await self.session.execute(
            select(GenerationTask)
            .where(GenerationTask.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_creation(self, creation_id: UUID) -> GenerationTask | None:
        """Get the task finalizing a creation."""
        result = await self.session.execute(
            select(GenerationTask)
            .where(GenerationTask.creation_id == creation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def schedule(
        self,
        creation_id: UUID,
        user_id: UUID,
        scheduled_at: datetime,
        max_attempts: int = 1,
    ) -> GenerationTask:
        """Persist a pending task due at ``scheduled_at``."""
        task = GenerationTask(
            creation_id=creation_id,
            user_id=user_id,
            state=TaskState.PENDING.value,
            scheduled_at=scheduled_at,
            attempts=0,
            max_attempts=max(1, max_attempts),
        )
        self.session.add(task)
        await self.session.flush()
        return task

    async def list_due_ids(self, now: datetime, limit: int = 20) -> list[UUID]:
        """IDs of pending tasks whose scheduled time has passed, oldest first."""
        result = await self.session.execute(
            select(GenerationTask.id)
            .where(
                GenerationTask.state == TaskState.PENDING.value,
                GenerationTask.scheduled_at <= now,
            )
            .order_by(GenerationTask.scheduled_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def claim(self, task_id: UUID, now: datetime | None = None) -> bool:
        """
        Atomically move a pending task to running and count the attempt.

        Returns:
            True if this caller owns the task now
        """
        result = await self.session.execute(
            update(GenerationTask)
            .where(
                GenerationTask.id == task_id,
                GenerationTask.state == TaskState.PENDING.value,
            )
            .values(
                state=TaskState.RUNNING.value,
                attempts=GenerationTask.attempts + 1,
                started_at=now or utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1

    async def finish(
        self,
        task_id: UUID,
        state: TaskState,
        error: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Record a terminal state."""
        await self.session.execute(
            update(GenerationTask)
            .where(GenerationTask.id == task_id)
            .values(state=state.value, last_error=error, completed_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    async def reschedule(self, task_id: UUID, scheduled_at: datetime, error: str | None) -> None:
        """Put a failed attempt back in the queue."""
        await self.session.execute(
            update(GenerationTask)
            .where(GenerationTask.id == task_id)
            .values(
                state=TaskState.PENDING.value,
                scheduled_at=scheduled_at,
                last_error=error,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    async def cancel_pending(self, creation_id: UUID, now: datetime | None = None) -> bool:
        """
        Cancel the creation's task if nobody has picked it up yet.

        Returns:
            True if a pending task was cancelled
        """
        result = await self.session.execute(
            update(GenerationTask)
            .where(
                GenerationTask.creation_id == creation_id,
                GenerationTask.state == TaskState.PENDING.value,
            )
            .values(state=TaskState.CANCELLED.value, completed_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1

    async def requeue_stale(self, started_before: datetime) -> int:
        """
        Return tasks stuck in running (worker died mid-task) to pending.

        Returns:
            Number of tasks requeued
        """
        result = await self.session.execute(
            update(GenerationTask)
            .where(
                GenerationTask.state == TaskState.RUNNING.value,
                GenerationTask.started_at < started_before,
            )
            .values(state=TaskState.PENDING.value)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount
