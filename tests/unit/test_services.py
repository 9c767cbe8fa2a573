"""
Unit tests for the generator, file storage and rate limiter.
"""

import random
from pathlib import Path

import pytest

from core.exceptions import GenerationError, RateLimitError
from services.file_storage import LocalFileStorage, storage_id_from_url
from services.generator import SimulatedGenerator, normalize_size
from services.rate_limiter import RateLimiter


class TestNormalizeSize:
    """Tests for size normalisation."""

    def test_x_separator(self):
        assert normalize_size("512x768") == "512/768"

    def test_uppercase(self):
        assert normalize_size(" 640X480 ") == "640/480"

    def test_slash_kept(self):
        assert normalize_size("256/256") == "256/256"

    def test_default(self):
        assert normalize_size(None) == "1024/1024"
        assert normalize_size("") == "1024/1024"


class TestSimulatedGenerator:
    """Tests for the placeholder generator."""

    async def test_image_outcome(self):
        generator = SimulatedGenerator(
            base_url="https://img.example.com/", failure_rate=0.0, rng=random.Random(1)
        )

        outcome = await generator.generate("image", "300x200")

        assert outcome.file_url.startswith("https://img.example.com/300/200?random=")
        assert outcome.thumbnail_url == outcome.file_url
        assert outcome.metadata == {"format": "jpg", "width": 300, "height": 200}
        assert 1_000_000 <= outcome.file_size < 6_000_000
        assert 1.0 <= outcome.generation_time <= 6.0

    async def test_video_format(self):
        outcome = await SimulatedGenerator(failure_rate=0.0).generate("video")

        assert outcome.metadata["format"] == "mp4"

    async def test_unparseable_size_has_no_dimensions(self):
        outcome = await SimulatedGenerator(failure_rate=0.0).generate("image", "square")

        assert "width" not in outcome.metadata

    async def test_failure(self):
        generator = SimulatedGenerator(failure_rate=1.0)

        with pytest.raises(GenerationError):
            await generator.generate("image")


class TestFileStorage:
    """Tests for local file storage."""

    def test_storage_id_from_url(self):
        assert storage_id_from_url("https://cdn.example.com/a/b/abc123.jpg?x=1") == "abc123"
        assert storage_id_from_url("https://cdn.example.com/files/clip.v2.mp4") == "clip"
        assert storage_id_from_url("https://cdn.example.com/") is None

    async def test_delete_matching_files(self, tmp_path: Path):
        (tmp_path / "abc123.jpg").write_bytes(b"x")
        (tmp_path / "abc123.webp").write_bytes(b"x")
        (tmp_path / "other.jpg").write_bytes(b"x")
        storage = LocalFileStorage(base_path=str(tmp_path))

        assert await storage.delete("abc123") is True

        assert sorted(p.name for p in tmp_path.iterdir()) == ["other.jpg"]

    async def test_delete_missing(self, tmp_path: Path):
        storage = LocalFileStorage(base_path=str(tmp_path / "missing"))

        assert await storage.delete("abc123") is False


class TestRateLimiter:
    """Tests for the fixed-window rate limiter."""

    async def test_allows_up_to_limit(self, mock_redis):
        limiter = RateLimiter(mock_redis, scope="creations", limit=2, window=60)

        assert await limiter.hit("user-1", now=1000.0) == 1
        assert await limiter.hit("user-1", now=1001.0) == 2

        with pytest.raises(RateLimitError) as exc_info:
            await limiter.hit("user-1", now=1002.0)

        assert exc_info.value.details["limit"] == 2
        assert 0 < exc_info.value.details["retryAfter"] <= 60

    async def test_window_rolls_over(self, mock_redis):
        limiter = RateLimiter(mock_redis, scope="creations", limit=1, window=60)

        await limiter.hit("user-1", now=1000.0)

        assert await limiter.hit("user-1", now=1080.0) == 1

    async def test_users_are_independent(self, mock_redis):
        limiter = RateLimiter(mock_redis, scope="creations", limit=1, window=60)

        await limiter.hit("user-1", now=1000.0)

        assert await limiter.hit("user-2", now=1000.0) == 1

    async def test_without_redis(self):
        limiter = RateLimiter(None, scope="creations", limit=0)

        assert await limiter.hit("user-1") == 0
