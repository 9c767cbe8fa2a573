"""
Generation worker: turns due generation tasks into finished creations.

Each task is claimed with a conditional update, so running the worker in
several processes (inline in the API and as an ARQ job) never processes a
task twice. The simulated generation itself runs outside any database
session; its result is applied in one transaction together with the
analytics event, the notification and the task state.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from database import session_scope
from database.models import (
    AnalyticsAction,
    CreationStatus,
    NotificationPriority,
    TaskState,
    utcnow,
)
from database.repositories import (
    AnalyticsRepository,
    CreationRepository,
    NotificationRepository,
    TaskRepository,
)

from .creation_service import ANALYTICS_TYPE, ENTITY_TYPE
from .generator import GenerationOutcome, SimulatedGenerator

logger = logging.getLogger(__name__)


@dataclass
class ClaimedTask:
    """Snapshot of a claimed task and its creation, detached from any session."""

    task_id: UUID
    creation_id: UUID
    user_id: UUID
    type: str
    title: str
    size: str | None
    attempts: int
    max_attempts: int


class GenerationWorker:
    """Processes due generation tasks."""

    def __init__(self, generator: SimulatedGenerator | None = None):
        self.settings = get_settings()
        self.generator = generator or SimulatedGenerator()
        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    # ============ Batch processing ============

    async def run_once(self, now: datetime | None = None) -> int:
        """
        Process every task that is due at ``now``.

        Returns:
            Number of tasks this call claimed
        """
        now = now or utcnow()
        async with session_scope() as session:
            task_ids = await TaskRepository(session).list_due_ids(
                now, limit=self.settings.worker_batch_size
            )

        processed = 0
        for task_id in task_ids:
            if await self.process_task(task_id, now=now):
                processed += 1
        return processed

    async def recover_stale(self, now: datetime | None = None) -> int:
        """Requeue tasks left running by a worker that died."""
        now = now or utcnow()
        cutoff = now - timedelta(seconds=self.settings.worker_stale_after_seconds)
        async with session_scope() as session:
            count = await TaskRepository(session).requeue_stale(cutoff)
        if count:
            logger.warning(f"Requeued {count} stale generation task(s)")
        return count

    # ============ Single task ============

    async def process_task(self, task_id: UUID, now: datetime | None = None) -> bool:
        """
        Claim and run one task.

        Returns:
            False if the task was not pending (someone else owns it)
        """
        now = now or utcnow()
        claimed = await self._claim(task_id, now)
        if claimed is None:
            return False

        try:
            outcome = await self.generator.generate(claimed.type, claimed.size)
            async with session_scope() as session:
                await self._complete(session, claimed, outcome, now)
        except Exception as e:
            logger.exception(f"Generation failed for creation {claimed.creation_id}")
            try:
                await self._handle_failure(claimed, str(e) or type(e).__name__, now)
            except Exception:
                logger.exception(f"Failed to record generation failure for task {task_id}")
        return True

    async def _claim(self, task_id: UUID, now: datetime) -> ClaimedTask | None:
        async with session_scope() as session:
            tasks = TaskRepository(session)
            if not await tasks.claim(task_id, now):
                return None

            task = await tasks.get_by_id(task_id)
            creation = await CreationRepository(session).get_by_id(task.creation_id)

            if creation is None or creation.status != CreationStatus.GENERATING:
                await tasks.finish(task_id, TaskState.CANCELLED, now=now)
                logger.info(f"Skipping task {task_id}: creation is no longer generating")
                return None

            return ClaimedTask(
                task_id=task.id,
                creation_id=creation.id,
                user_id=creation.user_id,
                type=creation.type,
                title=creation.title,
                size=creation.size,
                attempts=task.attempts,
                max_attempts=task.max_attempts,
            )

    async def _complete(
        self,
        session: AsyncSession,
        claimed: ClaimedTask,
        outcome: GenerationOutcome,
        now: datetime,
    ) -> None:
        tasks = TaskRepository(session)

        finished = await CreationRepository(session).finish_generation(
            claimed.creation_id,
            CreationStatus.COMPLETED,
            file_url=outcome.file_url,
            thumbnail_url=outcome.thumbnail_url,
            file_size=outcome.file_size,
            generation_time=outcome.generation_time,
            model=outcome.model,
            metadata=outcome.metadata,
        )
        if not finished:
            # Deleted or cancelled while generating
            await tasks.finish(claimed.task_id, TaskState.CANCELLED, now=now)
            logger.info(f"Discarded result for creation {claimed.creation_id}")
            return

        await AnalyticsRepository(session).record(
            user_id=claimed.user_id,
            type=ANALYTICS_TYPE,
            action=AnalyticsAction.GENERATION_COMPLETED,
            entity_id=claimed.creation_id,
            entity_type=ENTITY_TYPE,
            status=CreationStatus.COMPLETED.value,
            generation_time=outcome.generation_time,
            file_size=outcome.file_size,
            metrics={
                "generationTime": outcome.generation_time,
                "fileSize": outcome.file_size,
                "status": CreationStatus.COMPLETED.value,
                "model": outcome.model,
            },
        )

        label = "Image" if claimed.type == "image" else "Video"
        await NotificationRepository(session).create_notification(
            user_id=claimed.user_id,
            type="generation_complete",
            title=f"{label} Generation Complete",
            message=f'Your {claimed.type} "{claimed.title}" has been generated successfully!',
            data=_notification_data(claimed),
            priority=NotificationPriority.MEDIUM,
        )

        await tasks.finish(claimed.task_id, TaskState.COMPLETED, now=now)
        logger.info(f"Creation {claimed.creation_id} completed")

    async def _handle_failure(self, claimed: ClaimedTask, error: str, now: datetime) -> None:
        async with session_scope() as session:
            tasks = TaskRepository(session)

            if claimed.attempts < claimed.max_attempts:
                delay = self.settings.generation_retry_backoff_seconds * claimed.attempts
                await tasks.reschedule(claimed.task_id, now + timedelta(seconds=delay), error)
                logger.info(
                    f"Retrying creation {claimed.creation_id} in {delay:.1f}s "
                    f"(attempt {claimed.attempts}/{claimed.max_attempts})"
                )
                return

            failed = await CreationRepository(session).finish_generation(
                claimed.creation_id, CreationStatus.FAILED
            )
            if not failed:
                await tasks.finish(claimed.task_id, TaskState.CANCELLED, error=error, now=now)
                return

            await AnalyticsRepository(session).record(
                user_id=claimed.user_id,
                type=ANALYTICS_TYPE,
                action=AnalyticsAction.GENERATION_FAILED,
                entity_id=claimed.creation_id,
                entity_type=ENTITY_TYPE,
                status=CreationStatus.FAILED.value,
                metrics={"status": CreationStatus.FAILED.value, "error": error},
            )

            await NotificationRepository(session).create_notification(
                user_id=claimed.user_id,
                type="system",
                title="Generation Failed",
                message=f"Failed to generate your {claimed.type}. Please try again.",
                data=_notification_data(claimed),
                priority=NotificationPriority.HIGH,
            )

            await tasks.finish(claimed.task_id, TaskState.FAILED, error=error, now=now)

    # ============ Background loop ============

    async def run(self) -> None:
        """
        Poll for due tasks until stopped.

        Stale task recovery runs on the first iteration and then every
        ``worker_stale_check_interval_seconds``.
        """
        interval = self.settings.worker_poll_interval_seconds
        stale_check_every = self.settings.worker_stale_check_interval_seconds
        last_stale_check: float | None = None

        while not self._stopping.is_set():
            if last_stale_check is None or time.monotonic() - last_stale_check >= stale_check_every:
                last_stale_check = time.monotonic()
                try:
                    await self.recover_stale()
                except Exception:
                    logger.exception("Failed to recover stale generation tasks")

            try:
                await self.run_once()
            except Exception:
                logger.exception("Generation worker iteration failed")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    def start(self) -> None:
        """Run the polling loop as a background asyncio task."""
        if self._task is not None and not self._task.done():
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self.run(), name="generation-worker")
        logger.info("Generation worker started")

    async def stop(self) -> None:
        """Stop the polling loop and wait for the current iteration."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Generation worker stopped")


def _notification_data(claimed: ClaimedTask) -> dict:
    return {
        "creationId": str(claimed.creation_id),
        "type": claimed.type,
        "title": claimed.title,
    }


# Global worker instance
_generation_worker: GenerationWorker | None = None


def get_generation_worker() -> GenerationWorker:
    """Get the global generation worker instance."""
    global _generation_worker
    if _generation_worker is None:
        _generation_worker = GenerationWorker()
    return _generation_worker
