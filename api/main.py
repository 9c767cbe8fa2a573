"""
FastAPI application entry point for the VisionCast API.

Startup order: Redis (optional), database, then the inline generation
worker when it is enabled and the database is up. Shutdown runs in reverse.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import setup_exception_handlers
from api.routers import (
    creations_router,
    dashboard_router,
    health_router,
    notifications_router,
)
from core.config import Settings, get_settings
from core.redis import close_redis, init_redis
from database import close_database, init_database, is_database_available
from services.generation_worker import GenerationWorker, get_generation_worker

_settings = get_settings()
logging.basicConfig(
    level=_settings.log_level.upper(),
    format=_settings.log_format,
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"
ROUTERS = (health_router, creations_router, dashboard_router, notifications_router)


async def _start_redis(settings: Settings) -> None:
    try:
        await init_redis()
    except Exception as e:
        if settings.redis_required:
            raise
        logger.warning(f"Redis unavailable, creation rate limiting disabled: {e}")


async def _start_database(settings: Settings) -> None:
    if not settings.is_database_configured:
        logger.warning("Database not configured, creation endpoints will return 503")
        return
    try:
        await init_database()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")


def _start_worker(settings: Settings) -> GenerationWorker | None:
    if not settings.runs_inline_worker:
        logger.info(f"Inline generation worker off (mode={settings.generation_worker_mode})")
        return None
    if not is_database_available():
        logger.warning("Inline generation worker not started: database unavailable")
        return None
    worker = get_generation_worker()
    worker.start()
    return worker


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Bring backing services up before serving and down afterwards."""
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})"
    )

    await _start_redis(settings)
    await _start_database(settings)
    worker = _start_worker(settings)

    logger.info("Application startup complete")
    yield

    logger.info("Shutting down application...")
    if worker is not None:
        await worker.stop()
    await close_redis()
    await close_database()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    docs_enabled = not settings.is_production

    app = FastAPI(
        title=settings.app_name,
        description="AI image and video creation API with usage quotas and analytics",
        version=settings.app_version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    setup_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if docs_enabled else None,
            "health": f"{API_PREFIX}/health",
        }

    return app


app = create_app()


def run():
    """Run the application with uvicorn (for development)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
