"""
Dashboard client.

Loads the dashboard summary over HTTP and keeps a renderable state: a
loading placeholder until the first load finishes, the parsed payload on
success, and the zeroed default dashboard plus an error on failure.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from api.schemas.dashboard import DEFAULT_DASHBOARD, DashboardData

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/api/dashboard"


def _default_dashboard() -> DashboardData:
    return DEFAULT_DASHBOARD.model_copy(deep=True)


def parse_dashboard(payload: Any) -> DashboardData:
    """
    Parse a ``{"status": "success", "data": {...}}`` body.

    Missing fields take their defaults; a body without a ``data`` object
    is rejected.

    Raises:
        ValueError: If the payload is not a dashboard envelope
    """
    if not isinstance(payload, dict):
        raise ValueError("Dashboard response is not a JSON object")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise ValueError("Dashboard response has no data")

    return DashboardData.model_validate(data)


@dataclass
class DashboardState:
    """What a dashboard view should render."""

    data: DashboardData = field(default_factory=_default_dashboard)
    loading: bool = True
    error: str | None = None

    @property
    def can_retry(self) -> bool:
        return self.error is not None


class DashboardLoader:
    """Fetches the dashboard for the signed-in user."""

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str | None],
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._client = client
        self._timeout = timeout
        self.state = DashboardState()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._client

    async def load(self) -> DashboardState:
        """
        Load the dashboard.

        Without a token nothing is requested and the state stays in the
        loading placeholder.
        """
        token = self._token_provider()
        if not token:
            return self.state

        self.state = DashboardState(data=self.state.data, loading=True)

        try:
            client = await self._get_client()
            response = await client.get(
                DASHBOARD_PATH,
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
            data = parse_dashboard(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to load dashboard: {e}")
            self.state = DashboardState(
                data=_default_dashboard(),
                loading=False,
                error="Failed to load dashboard data",
            )
            return self.state

        self.state = DashboardState(data=data, loading=False)
        return self.state

    async def retry(self) -> DashboardState:
        """Re-issue the request after a failure."""
        return await self.load()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
