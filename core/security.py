"""
Token and link signing.

Access tokens are HS256 JWTs keyed with ``secret_key``. Download links are
the stored file URL plus ``expires`` and an HMAC-SHA256 ``signature`` over
``url|expires`` with the same key.
"""

import hashlib
import hmac
import time
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from jose import jwt, JWTError

from .config import get_settings
from .exceptions import AuthenticationError

BEARER_SCHEME = "bearer"


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Encode ``data`` as a signed JWT with ``iat`` and ``exp`` claims.

    Args:
        data: Claims to include, usually ``sub`` plus profile fields
        expires_delta: Lifetime, ``jwt_expire_days`` when omitted
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(days=settings.jwt_expire_days)

    claims = {**data, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Decode a JWT and return its claims.

    Raises:
        AuthenticationError: Bad signature, malformed token or expired
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError(
            message="Invalid or expired token",
            details={"error": str(e)},
        ) from e


def extract_token_from_header(authorization: str | None) -> str | None:
    """Token from ``Authorization: Bearer <token>``, else None."""
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token or " " in token:
        return None
    return token


def compute_download_signature(url: str, expires: int) -> str:
    """HMAC-SHA256 of ``url|expires`` keyed with the application secret."""
    key = get_settings().secret_key.encode()
    return hmac.new(key, f"{url}|{expires}".encode(), hashlib.sha256).hexdigest()


def sign_download_url(url: str, expires_in: int | None = None) -> str:
    """
    Derive a time-limited download URL from a stored file URL.

    Appends ``expires`` (unix seconds) and ``signature`` query parameters,
    preserving any query string already present on the URL.

    Args:
        url: Stored file URL
        expires_in: Lifetime in seconds (defaults to download_url_ttl_seconds)

    Returns:
        Signed URL
    """
    if expires_in is None:
        expires_in = get_settings().download_url_ttl_seconds
    expires = int(time.time()) + expires_in

    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query += [("expires", str(expires)), ("signature", compute_download_signature(url, expires))]
    return urlunsplit(parts._replace(query=urlencode(query)))


def verify_download_signature(signed_url: str, now: float | None = None) -> bool:
    """Check a URL produced by ``sign_download_url``; False when tampered or expired."""
    parts = urlsplit(signed_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    params = dict(query)
    try:
        expires = int(params["expires"])
        signature = params["signature"]
    except (KeyError, ValueError):
        return False

    if expires < (now if now is not None else time.time()):
        return False

    original = [(k, v) for k, v in query if k not in ("expires", "signature")]
    url = urlunsplit(parts._replace(query=urlencode(original)))
    return hmac.compare_digest(signature, compute_download_signature(url, expires))
