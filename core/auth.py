"""
Central authentication module.

Resolves the request principal from a bearer JWT issued by the identity
provider. The ``sub`` claim carries the user's UUID.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from fastapi import Header

from .exceptions import AuthenticationError
from .security import extract_token_from_header, verify_token

logger = logging.getLogger(__name__)


@dataclass
class AppUser:
    """Application user, constructed from a verified JWT payload."""

    id: UUID
    email: str | None = None
    name: str | None = None
    scopes: list[str] = field(default_factory=list)
    raw_payload: dict = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Get the best display name for the user."""
        return self.name or self.email or str(self.id)

    @property
    def is_admin(self) -> bool:
        """Check if the user has admin privileges."""
        return "admin" in self.scopes


def _to_app_user(payload: dict) -> AppUser:
    """Convert a decoded JWT payload to AppUser."""
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError(message="Token subject is not a valid user id")

    scopes = payload.get("scopes") or []
    if isinstance(scopes, str):
        scopes = scopes.split()

    return AppUser(
        id=user_id,
        email=payload.get("email"),
        name=payload.get("name"),
        scopes=list(scopes),
        raw_payload=payload,
    )


# ============ FastAPI Dependencies ============


async def get_current_user(authorization: str | None = Header(None)) -> AppUser | None:
    """
    Get current user from JWT token in Authorization header.

    Returns None if not authenticated (allows unauthenticated access).
    """
    token = extract_token_from_header(authorization)
    if not token:
        return None

    try:
        return _to_app_user(verify_token(token))
    except AuthenticationError as e:
        logger.warning("JWT verification failed: %s", e.message)
        return None


async def require_current_user(authorization: str | None = Header(None)) -> AppUser:
    """
    Require authenticated user.

    Raises 401 if not authenticated.
    """
    user = await get_current_user(authorization)
    if not user:
        raise AuthenticationError(message="Authentication required")
    return user
