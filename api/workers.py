"""
ARQ background worker for VisionCast API.

Run with:
    arq api.workers.WorkerSettings

Set ``GENERATION_WORKER_MODE=arq`` on the API so it does not also run the
inline worker (running both is safe, tasks are claimed atomically).

Tasks:
    - process_generation_tasks: Complete due generation tasks.
      Runs every few seconds as a cron job.
    - recover_stale_tasks: Requeue tasks stuck in running. Runs every minute.
"""

import logging
from urllib.parse import urlparse

from arq import cron
from arq.connections import RedisSettings

from core.config import get_settings
from database import close_database, init_database
from services.generation_worker import GenerationWorker

logger = logging.getLogger(__name__)

# Configure logging for the worker process
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format=get_settings().log_format,
)


# ── Lifecycle hooks ──────────────────────────────────────────────────────────


async def startup(ctx: dict) -> None:
    """Initialise the database and requeue tasks orphaned by a crash."""
    logger.info("ARQ worker starting up...")

    await init_database()
    logger.info("Database initialized")

    # Reused across invocations
    ctx["generation_worker"] = GenerationWorker()
    requeued = await ctx["generation_worker"].recover_stale()
    logger.info("GenerationWorker ready (%d stale task(s) requeued)", requeued)


async def shutdown(ctx: dict) -> None:
    """Clean up resources on worker shutdown."""
    logger.info("ARQ worker shutting down...")
    await close_database()
    logger.info("Database connection closed")


# ── Tasks ────────────────────────────────────────────────────────────────────


async def process_generation_tasks(ctx: dict) -> dict:
    """Complete every generation task that is due.

    Args:
        ctx: ARQ context (contains generation_worker from startup).

    Returns:
        Dict with the number of processed tasks.
    """
    worker: GenerationWorker = ctx["generation_worker"]
    processed = await worker.run_once()
    if processed:
        logger.info("Processed %d generation task(s)", processed)
    return {"processed": processed}


async def recover_stale_tasks(ctx: dict) -> dict:
    """Requeue tasks left running by a worker that died mid-generation."""
    worker: GenerationWorker = ctx["generation_worker"]
    requeued = await worker.recover_stale()
    return {"requeued": requeued}


# ── ARQ configuration ───────────────────────────────────────────────────────


def _parse_redis_settings() -> RedisSettings:
    """Parse REDIS_URL into arq RedisSettings."""
    url = get_settings().redis_url
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or 0),
        password=parsed.password,
    )


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [process_generation_tasks, recover_stale_tasks]

    cron_jobs = [
        cron(
            process_generation_tasks,
            second=set(range(0, 60, 2)),
            run_at_startup=True,
            unique=True,
        ),
        cron(recover_stale_tasks, second={30}, unique=True),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = _parse_redis_settings()

    max_jobs = 4
    job_timeout = 300
