"""
Pydantic schemas for the dashboard summary.

The same models parse the payload on the client side, so every field has a
default and a partial payload still yields a complete dashboard.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .common import CamelModel


class DashboardStats(CamelModel):
    total_creations: int = 0
    total_posts: int = 0
    total_views: int = 0
    total_engagement: int = 0


class UsageCounter(CamelModel):
    used: int = 0
    limit: int = 0


class DashboardUsage(CamelModel):
    images: UsageCounter = Field(default_factory=UsageCounter)
    videos: UsageCounter = Field(default_factory=UsageCounter)
    posts: UsageCounter = Field(default_factory=UsageCounter)


class RecentCreation(CamelModel):
    """Compact creation entry for the dashboard list."""

    id: str
    type: str = "image"
    title: str = ""
    status: str = "generating"
    thumbnail_url: str | None = None
    created_at: datetime | None = None


class DashboardData(CamelModel):
    """Aggregated dashboard payload."""

    stats: DashboardStats = Field(default_factory=DashboardStats)
    recent_creations: list[RecentCreation] = Field(default_factory=list)
    recent_posts: list[dict[str, Any]] = Field(default_factory=list)
    usage: DashboardUsage = Field(default_factory=DashboardUsage)


# Zeroed dashboard shown while loading and whenever loading fails
DEFAULT_DASHBOARD = DashboardData()
