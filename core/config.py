"""
Application configuration using Pydantic Settings.

Supports loading from environment variables and .env files.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============ Application ============
    app_name: str = "VisionCast API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # ============ Server ============
    host: str = "0.0.0.0"
    port: int = 8000

    # ============ Security ============
    secret_key: str = "change-me-in-production-use-a-long-random-string"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7

    # ============ CORS ============
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # ============ Redis ============
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 10
    redis_required: bool = False

    # ============ Database ============
    database_enabled: bool = True
    database_url: Optional[str] = None
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_echo: bool = False

    # ============ Generation ============
    creation_model: str = "VisionCast AI"
    generation_delay_seconds: float = 3.0
    generation_max_attempts: int = 1
    generation_retry_backoff_seconds: float = 5.0
    generation_failure_rate: float = 0.0  # probability of a simulated failure
    placeholder_image_base_url: str = "https://picsum.photos"

    # ============ Generation Worker ============
    generation_worker_mode: str = "inline"  # inline, arq, disabled
    worker_poll_interval_seconds: float = 1.0
    worker_batch_size: int = 20
    worker_stale_after_seconds: int = 300
    worker_stale_check_interval_seconds: float = 60.0

    # ============ Downloads & Storage ============
    download_url_ttl_seconds: int = 3600
    storage_local_path: str = "outputs/creations"

    # ============ Usage Provisioning ============
    default_period_days: int = 30
    default_images_limit: int = 10
    default_videos_limit: int = 3
    default_posts_limit: int = 20

    # ============ Logging ============
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ============ Rate Limiting ============
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 30  # creation requests per window
    rate_limit_window: int = 60  # seconds

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_database_configured(self) -> bool:
        """Check if the database is enabled and has a URL."""
        return bool(self.database_enabled and self.database_url)

    @property
    def runs_inline_worker(self) -> bool:
        """Check if the API process should run the generation worker itself."""
        return self.generation_worker_mode == "inline"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
