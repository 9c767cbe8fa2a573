"""
Unit tests for the generation worker.
"""

import random
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from core.config import get_settings
from core.exceptions import GenerationError
from database import session_scope
from database.models import AnalyticsAction, CreationStatus, TaskState, utcnow
from database.repositories import (
    AnalyticsRepository,
    CreationRepository,
    NotificationRepository,
    TaskRepository,
)
from services.creation_service import CreationService
from services.generation_worker import GenerationWorker
from services.generator import SimulatedGenerator


class FailingGenerator:
    """Generator whose backend is always down."""

    def __init__(self):
        self.calls = 0

    async def generate(self, creation_type, size=None):
        self.calls += 1
        raise GenerationError("Backend unavailable")


@pytest.fixture
def worker():
    return GenerationWorker(
        generator=SimulatedGenerator(
            base_url="https://picsum.photos", failure_rate=0.0, rng=random.Random(7)
        )
    )


async def _create(user_id, **kwargs):
    fields = {"type": "image", "title": "Dunes", "prompt": "Sand dunes at noon"}
    fields.update(kwargs)
    async with session_scope() as session:
        return await CreationService(session).create_creation(user_id, **fields)


async def _load(creation_id):
    async with session_scope() as session:
        creation = await CreationRepository(session).get_by_id(creation_id)
        task = await TaskRepository(session).get_by_creation(creation_id)
        events = await AnalyticsRepository(session).list_by_entity(creation_id)
        notifications = await NotificationRepository(session).list_by_user(creation.user_id)
    return creation, task, events, notifications


def _later(seconds=60):
    return utcnow() + timedelta(seconds=seconds)


class TestSuccessfulGeneration:
    """Tests for the happy path."""

    async def test_nothing_due_before_delay(self, worker, usage, user_id):
        await _create(user_id)

        assert await worker.run_once(now=utcnow()) == 0

    async def test_completes_creation(self, worker, usage, user_id):
        created = await _create(user_id, size="512x512")

        assert await worker.run_once(now=_later()) == 1

        creation, task, events, notifications = await _load(created.id)
        assert creation.status == CreationStatus.COMPLETED
        assert creation.file_url.startswith("https://picsum.photos/512/512?random=")
        assert creation.thumbnail_url == creation.file_url
        assert 1_000_000 <= creation.file_size < 6_000_000
        assert 1.0 <= creation.generation_time <= 6.0
        assert creation.model == "VisionCast AI Pro"
        assert creation.metadata_ == {"format": "jpg", "width": 512, "height": 512}

        assert task.state == TaskState.COMPLETED
        assert task.attempts == 1

        assert [e.action for e in events] == [
            AnalyticsAction.GENERATION_STARTED,
            AnalyticsAction.GENERATION_COMPLETED,
        ]
        assert events[1].user_id == user_id
        assert events[1].file_size == creation.file_size

        assert len(notifications) == 1
        notification = notifications[0]
        assert notification.type == "generation_complete"
        assert notification.title == "Image Generation Complete"
        assert notification.priority == "medium"
        assert notification.data == {
            "creationId": str(created.id),
            "type": "image",
            "title": "Dunes",
        }

    async def test_default_size(self, worker, usage, user_id):
        created = await _create(user_id, type="video", duration=5)

        await worker.run_once(now=_later())

        creation, _, _, notifications = await _load(created.id)
        assert "/1024/1024?random=" in creation.file_url
        assert creation.metadata_["format"] == "mp4"
        assert notifications[0].title == "Video Generation Complete"

    async def test_runs_once(self, worker, usage, user_id):
        created = await _create(user_id)

        assert await worker.run_once(now=_later()) == 1
        assert await worker.run_once(now=_later()) == 0

        async with session_scope() as session:
            task = await TaskRepository(session).get_by_creation(created.id)
        assert await worker.process_task(task.id, now=_later()) is False

        _, _, events, notifications = await _load(created.id)
        assert len(events) == 2
        assert len(notifications) == 1


class TestFailedGeneration:
    """Tests for generation failures and retries."""

    async def test_marks_failed(self, usage, user_id):
        generator = FailingGenerator()
        worker = GenerationWorker(generator=generator)
        created = await _create(user_id)

        assert await worker.run_once(now=_later()) == 1

        creation, task, events, notifications = await _load(created.id)
        assert creation.status == CreationStatus.FAILED
        assert creation.file_url is None
        assert task.state == TaskState.FAILED
        assert task.last_error == "Backend unavailable"
        assert events[-1].action == AnalyticsAction.GENERATION_FAILED
        assert len(notifications) == 1
        assert notifications[0].type == "system"
        assert notifications[0].priority == "high"
        assert notifications[0].data["creationId"] == str(created.id)

    async def test_retries_before_failing(self, monkeypatch, usage, user_id):
        monkeypatch.setattr(get_settings(), "generation_max_attempts", 2)
        generator = FailingGenerator()
        worker = GenerationWorker(generator=generator)
        created = await _create(user_id)
        now = _later()

        await worker.run_once(now=now)

        creation, task, events, notifications = await _load(created.id)
        assert creation.status == CreationStatus.GENERATING
        assert task.state == TaskState.PENDING
        assert task.attempts == 1
        assert task.last_error == "Backend unavailable"
        assert notifications == []

        # Backoff not elapsed yet
        assert await worker.run_once(now=now) == 0

        await worker.run_once(now=now + timedelta(minutes=5))

        creation, task, events, notifications = await _load(created.id)
        assert generator.calls == 2
        assert creation.status == CreationStatus.FAILED
        assert task.state == TaskState.FAILED
        assert task.attempts == 2
        assert len(notifications) == 1

    async def test_recovers_after_retry(self, monkeypatch, usage, user_id):
        monkeypatch.setattr(get_settings(), "generation_max_attempts", 2)
        worker = GenerationWorker(generator=FailingGenerator())
        created = await _create(user_id)
        now = _later()

        await worker.run_once(now=now)
        worker.generator = SimulatedGenerator(failure_rate=0.0)
        await worker.run_once(now=now + timedelta(minutes=5))

        creation, task, _, notifications = await _load(created.id)
        assert creation.status == CreationStatus.COMPLETED
        assert task.state == TaskState.COMPLETED
        assert task.attempts == 2
        assert [n.type for n in notifications] == ["generation_complete"]


class TestSkippedGeneration:
    """Tests for creations that left the generating state."""

    async def test_deleted_before_due(self, worker, usage, user_id):
        created = await _create(user_id)
        async with session_scope() as session:
            await CreationService(session).delete_creation(created.id, user_id)

        assert await worker.run_once(now=_later()) == 0

        creation, task, events, notifications = await _load(created.id)
        assert creation.status == CreationStatus.DELETED
        assert task.state == TaskState.CANCELLED
        assert notifications == []
        assert len(events) == 1

    async def test_deleted_while_queued(self, worker, usage, user_id):
        created = await _create(user_id)
        async with session_scope() as session:
            creation = await CreationRepository(session).get_by_id(created.id)
            await CreationRepository(session).mark_deleted(creation)

        assert await worker.run_once(now=_later()) == 0

        creation, task, _, notifications = await _load(created.id)
        assert creation.status == CreationStatus.DELETED
        assert creation.file_url is None
        assert task.state == TaskState.CANCELLED
        assert notifications == []


class TestStaleRecovery:
    """Tests for tasks abandoned by a dead worker."""

    async def test_requeues_and_finishes(self, worker, usage, user_id):
        created = await _create(user_id)
        started = utcnow() - timedelta(hours=1)
        async with session_scope() as session:
            tasks = TaskRepository(session)
            task = await tasks.get_by_creation(created.id)
            await tasks.claim(task.id, started)

        assert await worker.recover_stale() == 1
        assert await worker.run_once(now=_later()) == 1

        creation, task, _, _ = await _load(created.id)
        assert creation.status == CreationStatus.COMPLETED
        assert task.attempts == 2

    @pytest.mark.parametrize("check_interval, expected_checks", [(0.0, 3), (3600.0, 1)])
    async def test_loop_rechecks_stale_tasks(
        self, monkeypatch, worker, check_interval, expected_checks
    ):
        settings = get_settings()
        monkeypatch.setattr(settings, "worker_poll_interval_seconds", 0.0)
        monkeypatch.setattr(settings, "worker_stale_check_interval_seconds", check_interval)

        iterations = 0

        async def run_once(now=None):
            nonlocal iterations
            iterations += 1
            if iterations == 3:
                worker._stopping.set()
            return 0

        recover = AsyncMock(return_value=0)
        monkeypatch.setattr(worker, "run_once", run_once)
        monkeypatch.setattr(worker, "recover_stale", recover)

        await worker.run()

        assert iterations == 3
        assert recover.await_count == expected_checks
