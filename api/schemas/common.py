"""
Common Pydantic schemas used across the API.

JSON bodies use camelCase; requests accept snake_case as well.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorDetail(CamelModel):
    """Error detail for API responses."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details",
    )


class APIResponse(CamelModel, Generic[T]):
    """
    Standard success envelope.

    All API endpoints return ``{"status": "success", "data": ...}``.
    """

    status: Literal["success"] = "success"
    data: T | None = Field(default=None, description="Response data")

    @classmethod
    def ok(cls, data: T) -> "APIResponse[T]":
        """Create a successful response."""
        return cls(data=data)


class ErrorResponse(CamelModel):
    """Error envelope produced by the exception handlers."""

    status: Literal["error"] = "error"
    message: str
    error: ErrorDetail

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "ErrorResponse":
        """Create a failed response."""
        return cls(
            message=message,
            error=ErrorDetail(code=code, message=message, details=details),
        )


class MessageResponse(CamelModel):
    """Success envelope carrying only a message."""

    status: Literal["success"] = "success"
    message: str


class Pagination(CamelModel):
    """Page metadata on list responses."""

    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Items per page")
    total: int = Field(..., description="Total number of items")
    pages: int = Field(..., description="Total number of pages")


class HealthStatus(str, Enum):
    """Health check status enum."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(CamelModel):
    """Health status of a single component."""

    status: HealthStatus
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] | None = None


class HealthCheckResponse(CamelModel):
    """Basic health check response."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DetailedHealthCheckResponse(CamelModel):
    """Detailed health check response with component status."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: str
    environment: str
    uptime_seconds: float
    components: dict[str, ComponentHealth] = Field(
        default_factory=dict,
        description="Health status of each component",
    )
