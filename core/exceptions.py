"""
Application exceptions.

Each subclass pins an HTTP status and a machine-readable ``error_code`` at
class level; the error handler middleware turns any ``AppException`` into the
standard error envelope.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors."""

    error_code: str = "internal_error"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        if message is not None:
            self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details = dict(details) if details else {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Error body for the response envelope; ``details`` only when set."""
        body: dict[str, Any] = {"code": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


# 4xx


class BadRequestError(AppException):
    """The request is valid but not allowed in the resource's current state."""

    error_code = "bad_request"
    message = "Bad request"
    status_code = 400


class AuthenticationError(AppException):
    error_code = "authentication_failed"
    message = "Authentication failed"
    status_code = 401


class AuthorizationError(AppException):
    error_code = "authorization_failed"
    message = "You do not have permission to perform this action"
    status_code = 403


class UsageLimitExceededError(AuthorizationError):
    """No room left in the current usage period for the requested kind."""

    error_code = "usage_limit_exceeded"
    message = "You have reached your generation limit for this period"


class NotFoundError(AppException):
    error_code = "not_found"
    message = "Resource not found"
    status_code = 404


class CreationNotFoundError(NotFoundError):
    error_code = "creation_not_found"
    message = "Creation not found"


class UsageNotFoundError(NotFoundError):
    """The user has no usage record covering the current time."""

    error_code = "usage_not_found"
    message = "Usage record not found"


class TaskNotFoundError(NotFoundError):
    error_code = "task_not_found"
    message = "Task not found"


class ValidationError(AppException):
    error_code = "validation_error"
    message = "Invalid input"
    status_code = 422


class RateLimitError(AppException):
    """
    Too many requests in the current window.

    ``retry_after`` (seconds) is echoed in ``details`` and sent as the
    ``Retry-After`` header.
    """

    error_code = "rate_limit_exceeded"
    message = "Too many requests, please try again later"
    status_code = 429

    def __init__(
        self,
        message: str | None = None,
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, details=details)
        self.retry_after = retry_after
        if retry_after is not None:
            self.details["retryAfter"] = retry_after


# 5xx


class GenerationError(AppException):
    error_code = "generation_failed"
    message = "Generation failed"
    status_code = 500


class ServiceUnavailableError(AppException):
    """A backing service (database, cache) is not available."""

    error_code = "service_unavailable"
    message = "Service temporarily unavailable"
    status_code = 503
