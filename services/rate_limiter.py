"""
Fixed-window request rate limiting backed by Redis.
"""

import logging
import time

from redis.asyncio import Redis

from core.config import get_settings
from core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Counts requests per user in fixed time windows."""

    KEY_PREFIX = "ratelimit"

    def __init__(
        self,
        redis: Redis | None,
        scope: str,
        limit: int | None = None,
        window: int | None = None,
    ):
        settings = get_settings()
        self._redis = redis
        self.scope = scope
        self.limit = limit if limit is not None else settings.rate_limit_requests
        self.window = window if window is not None else settings.rate_limit_window

    def _get_key(self, user_id: str, now: float) -> str:
        bucket = int(now // self.window)
        return f"{self.KEY_PREFIX}:{self.scope}:{user_id}:{bucket}"

    async def hit(self, user_id: str, now: float | None = None) -> int:
        """
        Count a request and enforce the limit.

        Returns:
            Number of requests in the current window

        Raises:
            RateLimitError: If the window is already full
        """
        if not self._redis:
            return 0

        now = time.time() if now is None else now
        key = self._get_key(user_id, now)

        async with self._redis.pipeline() as pipe:
            pipe.incrby(key, 1)
            pipe.expire(key, self.window)
            count, _ = await pipe.execute()

        count = int(count)
        if count > self.limit:
            retry_after = self.window - int(now % self.window)
            logger.info(f"Rate limit hit: scope={self.scope}, user={user_id}, count={count}")
            raise RateLimitError(retry_after=retry_after, details={"limit": self.limit})
        return count
