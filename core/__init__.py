"""
Core modules for VisionCast API.

This package contains fundamental utilities used across the application:
- config: Application settings and configuration
- auth: Bearer-token principal resolution
- security: JWT handling and signed download URLs
- redis: Redis connection management
- exceptions: Custom exception classes
"""

from .config import Settings, get_settings
from .exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    CreationNotFoundError,
    NotFoundError,
    RateLimitError,
    UsageLimitExceededError,
    UsageNotFoundError,
    ValidationError,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Exceptions
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "CreationNotFoundError",
    "NotFoundError",
    "RateLimitError",
    "UsageLimitExceededError",
    "UsageNotFoundError",
    "ValidationError",
]
