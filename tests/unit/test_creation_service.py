"""
Unit tests for the creation service.
"""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest

from core.exceptions import (
    AuthorizationError,
    BadRequestError,
    CreationNotFoundError,
    TaskNotFoundError,
    UsageLimitExceededError,
    UsageNotFoundError,
)
from database import session_scope
from database.models import AnalyticsAction, CreationStatus, TaskState
from database.repositories import (
    AnalyticsRepository,
    CreationRepository,
    TaskRepository,
    UsageRepository,
)
from services.creation_service import CreationService, parse_sort


@pytest.fixture
def file_storage():
    storage = MagicMock()
    storage.name = "mock"
    storage.delete = AsyncMock(return_value=True)
    return storage


async def _create(user_id, file_storage=None, **kwargs):
    fields = {"type": "image", "title": "Lighthouse", "prompt": "A lighthouse at night"}
    fields.update(kwargs)
    async with session_scope() as session:
        return await CreationService(session, file_storage=file_storage).create_creation(
            user_id, **fields
        )


async def _complete(creation_id, file_url="https://cdn.example.com/files/abc123.jpg"):
    async with session_scope() as session:
        await CreationRepository(session).finish_generation(
            creation_id,
            CreationStatus.COMPLETED,
            file_url=file_url,
            thumbnail_url=file_url,
            file_size=1234,
            generation_time=2.5,
            metadata={"format": "jpg"},
        )


class TestParseSort:
    """Tests for sort string parsing."""

    def test_default(self):
        assert len(parse_sort(None)) == 1

    def test_multiple_fields(self):
        assert len(parse_sort("-createdAt, title")) == 2

    def test_unknown_field(self):
        with pytest.raises(BadRequestError) as exc_info:
            parse_sort("password")

        assert "createdAt" in exc_info.value.details["allowed"]


class TestCreateCreation:
    """Tests for quota-gated creation."""

    async def test_creates_generating_creation(self, usage, user_id):
        creation = await _create(user_id, tags=["night"], size="512x512")

        assert creation.status == CreationStatus.GENERATING
        assert creation.user_id == user_id
        assert creation.tags == ["night"]

        async with session_scope() as session:
            refreshed_usage = await UsageRepository(session).get_by_id(usage.id)
            task = await TaskRepository(session).get_by_creation(creation.id)
            events = await AnalyticsRepository(session).list_by_entity(creation.id)

        assert refreshed_usage.images_used == 1
        assert refreshed_usage.videos_used == 0
        assert task.state == TaskState.PENDING
        assert [e.action for e in events] == [AnalyticsAction.GENERATION_STARTED]
        assert events[0].user_id == user_id
        assert events[0].metrics["status"] == "generating"

    async def test_video_counts_against_videos(self, usage, user_id):
        await _create(user_id, type="video", duration=10)

        async with session_scope() as session:
            refreshed_usage = await UsageRepository(session).get_by_id(usage.id)

        assert refreshed_usage.videos_used == 1
        assert refreshed_usage.images_used == 0

    async def test_without_usage_period(self, db_engine, user_id):
        with pytest.raises(UsageNotFoundError):
            await _create(user_id)

    async def test_limit_reached(self, make_usage, user_id):
        await make_usage(user_id, images_limit=1)
        await _create(user_id)

        with pytest.raises(UsageLimitExceededError) as exc_info:
            await _create(user_id)

        assert exc_info.value.details == {"kind": "images", "limit": 1}
        assert exc_info.value.status_code == 403

    async def test_rejected_request_leaves_no_trace(self, make_usage, user_id):
        await make_usage(user_id, videos_limit=0)

        with pytest.raises(UsageLimitExceededError):
            await _create(user_id, type="video")

        async with session_scope() as session:
            assert await CreationRepository(session).count_by_user(user_id) == 0


class TestAccessControl:
    """Tests for ownership and visibility."""

    async def test_owner_can_read(self, usage, user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            found = await CreationService(session).get_creation(creation.id, user_id)

        assert found.id == creation.id

    async def test_private_creation_hidden_from_others(self, usage, user_id, other_user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            with pytest.raises(AuthorizationError):
                await CreationService(session).get_creation(creation.id, other_user_id)

    async def test_public_creation_visible_to_others(self, usage, user_id, other_user_id):
        creation = await _create(user_id)
        async with session_scope() as session:
            await CreationService(session).update_creation(
                creation.id, user_id, {"is_public": True}
            )

        async with session_scope() as session:
            found = await CreationService(session).get_creation(creation.id, other_user_id)

        assert found.is_public is True

    async def test_others_cannot_update(self, usage, user_id, other_user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            with pytest.raises(AuthorizationError):
                await CreationService(session).update_creation(
                    creation.id, other_user_id, {"title": "Mine now"}
                )

    async def test_update_ignores_unknown_fields(self, usage, user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            updated = await CreationService(session).update_creation(
                creation.id,
                user_id,
                {"title": "Renamed", "status": "completed", "download_count": 99},
            )

        assert updated.title == "Renamed"
        assert updated.status == CreationStatus.GENERATING
        assert updated.download_count == 0

    async def test_update_keeps_required_fields(self, usage, user_id):
        creation = await _create(user_id, description="Old", tags=["sea"])

        async with session_scope() as session:
            updated = await CreationService(session).update_creation(
                creation.id,
                user_id,
                {"title": None, "is_public": None, "description": None, "tags": None},
            )

        assert updated.title == "Lighthouse"
        assert updated.is_public is False
        assert updated.description is None
        assert updated.tags == []


class TestDeleteCreation:
    """Tests for soft deletion."""

    async def test_soft_delete_cancels_task(self, usage, user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            await CreationService(session).delete_creation(creation.id, user_id)

        async with session_scope() as session:
            stored = await CreationRepository(session).get_by_id(creation.id)
            task = await TaskRepository(session).get_by_creation(creation.id)
            with pytest.raises(CreationNotFoundError):
                await CreationService(session).get_creation(creation.id, user_id)

        assert stored.status == CreationStatus.DELETED
        assert task.state == TaskState.CANCELLED

    async def test_delete_removes_stored_file(self, usage, user_id, file_storage):
        creation = await _create(user_id)
        await _complete(creation.id)

        async with session_scope() as session:
            await CreationService(session, file_storage=file_storage).delete_creation(
                creation.id, user_id
            )

        file_storage.delete.assert_awaited_once_with("abc123")

    async def test_delete_survives_storage_error(self, usage, user_id, file_storage):
        file_storage.delete.side_effect = OSError("disk gone")
        creation = await _create(user_id)
        await _complete(creation.id)

        async with session_scope() as session:
            await CreationService(session, file_storage=file_storage).delete_creation(
                creation.id, user_id
            )

        async with session_scope() as session:
            stored = await CreationRepository(session).get_by_id(creation.id)
        assert stored.status == CreationStatus.DELETED

    async def test_others_cannot_delete(self, usage, user_id, other_user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            with pytest.raises(AuthorizationError):
                await CreationService(session).delete_creation(creation.id, other_user_id)


class TestDownloadCreation:
    """Tests for downloads."""

    async def test_not_ready(self, usage, user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            with pytest.raises(BadRequestError):
                await CreationService(session).download_creation(creation.id, user_id)

        async with session_scope() as session:
            assert (await CreationRepository(session).get_by_id(creation.id)).download_count == 0

    async def test_failed_is_not_downloadable(self, usage, user_id):
        creation = await _create(user_id)
        async with session_scope() as session:
            await CreationRepository(session).finish_generation(creation.id, CreationStatus.FAILED)

        async with session_scope() as session:
            with pytest.raises(BadRequestError):
                await CreationService(session).download_creation(creation.id, user_id)

        async with session_scope() as session:
            stored = await CreationRepository(session).get_by_id(creation.id)
            events = await AnalyticsRepository(session).list_by_entity(creation.id)
        assert stored.status == CreationStatus.FAILED
        assert stored.download_count == 0
        assert AnalyticsAction.DOWNLOAD.value not in [event.action for event in events]

    async def test_signed_url_and_counter(self, usage, user_id):
        creation = await _create(user_id, title="Harbor")
        await _complete(creation.id, file_url="https://cdn.example.com/files/abc123.jpg?v=2")

        async with session_scope() as session:
            result = await CreationService(session).download_creation(creation.id, user_id)

        parts = urlsplit(result["download_url"])
        query = parse_qs(parts.query)
        assert parts.path == "/files/abc123.jpg"
        assert query["v"] == ["2"]
        assert "signature" in query and "expires" in query
        assert result["filename"] == "Harbor.jpg"

        async with session_scope() as session:
            stored = await CreationRepository(session).get_by_id(creation.id)
            events = await AnalyticsRepository(session).list_by_entity(creation.id)
        assert stored.download_count == 1
        assert events[-1].action == AnalyticsAction.DOWNLOAD


class TestCancelCreation:
    """Tests for cancelling pending generations."""

    async def test_cancel_pending(self, usage, user_id):
        creation = await _create(user_id)

        async with session_scope() as session:
            cancelled = await CreationService(session).cancel_creation(creation.id, user_id)

        assert cancelled.status == CreationStatus.FAILED

        async with session_scope() as session:
            task = await CreationService(session).get_generation_task(creation.id, user_id)
            events = await AnalyticsRepository(session).list_by_entity(creation.id)
        assert task.state == TaskState.CANCELLED
        assert events[-1].action == AnalyticsAction.GENERATION_FAILED
        assert events[-1].metrics["reason"] == "cancelled"

    async def test_cancel_twice(self, usage, user_id):
        creation = await _create(user_id)
        async with session_scope() as session:
            await CreationService(session).cancel_creation(creation.id, user_id)

        async with session_scope() as session:
            with pytest.raises(BadRequestError):
                await CreationService(session).cancel_creation(creation.id, user_id)

    async def test_task_missing(self, session, user_id):
        creation = await CreationRepository(session).create(
            user_id=user_id, type="image", title="Orphan", prompt="a"
        )

        with pytest.raises(TaskNotFoundError):
            await CreationService(session).get_generation_task(creation.id, user_id)


class TestCreationStats:
    """Tests for statistics."""

    async def test_stats_and_analytics(self, usage, user_id):
        first = await _create(user_id)
        await _create(user_id, type="video")
        await _complete(first.id)

        async with session_scope() as session:
            result = await CreationService(session).get_creation_stats(user_id, period="monthly")

        assert result["stats"]["total"] == 2
        assert result["stats"]["by_status"] == {"completed": 1, "generating": 1}
        assert result["analytics"]["totals"]["started"] == 2
        assert result["analytics"]["totals"]["pending"] == 2

    async def test_unknown_period(self, session, user_id):
        with pytest.raises(BadRequestError):
            await CreationService(session).get_creation_stats(user_id, period="hourly")
