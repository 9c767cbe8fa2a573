"""Provision usage periods for users.

A user can only create content while a usage period covers the current time.
This script opens a new period for each given user unless one is already
active.

Usage:
    python scripts/provision_usage.py <user-uuid> [<user-uuid> ...]
    python scripts/provision_usage.py <user-uuid> --images 50 --videos 10 --days 30
    python scripts/provision_usage.py <user-uuid> --force   # open a new period anyway
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from uuid import UUID  # noqa: E402

from core.config import get_settings  # noqa: E402
from database import close_database, init_database, session_scope  # noqa: E402
from database.repositories import UsageRepository  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def provision(
    user_ids: list[UUID],
    days: int,
    images: int,
    videos: int,
    posts: int,
    force: bool,
) -> int:
    """Open usage periods; returns how many were created."""
    created = 0
    async with session_scope() as session:
        repo = UsageRepository(session)
        for user_id in user_ids:
            current = await repo.find_current(user_id)
            if current and not force:
                logger.info(
                    "User %s already has an active period until %s, skipping",
                    user_id,
                    current.period_end.isoformat(),
                )
                continue

            usage = await repo.create(
                user_id,
                period_days=days,
                images_limit=images,
                videos_limit=videos,
                posts_limit=posts,
            )
            logger.info(
                "Provisioned %s: images=%d videos=%d posts=%d until %s",
                user_id,
                images,
                videos,
                posts,
                usage.period_end.isoformat(),
            )
            created += 1
    return created


async def main(args) -> None:
    await init_database()
    try:
        created = await provision(
            user_ids=args.user_ids,
            days=args.days,
            images=args.images,
            videos=args.videos,
            posts=args.posts,
            force=args.force,
        )
        logger.info("Done: %d period(s) created", created)
    finally:
        await close_database()


if __name__ == "__main__":
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Provision usage periods")
    parser.add_argument("user_ids", nargs="+", type=UUID, help="User UUIDs")
    parser.add_argument("--days", type=int, default=settings.default_period_days)
    parser.add_argument("--images", type=int, default=settings.default_images_limit)
    parser.add_argument("--videos", type=int, default=settings.default_videos_limit)
    parser.add_argument("--posts", type=int, default=settings.default_posts_limit)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Create a new period even if one is active",
    )
    args = parser.parse_args()

    if not settings.is_database_configured:
        parser.error("DATABASE_URL is not configured")

    asyncio.run(main(args))
