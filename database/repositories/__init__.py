"""
Repository layer for database access.

Provides async CRUD operations for all models.
"""

from .analytics_repo import AnalyticsRepository
from .creation_repo import CreationRepository
from .notification_repo import NotificationRepository
from .task_repo import TaskRepository
from .usage_repo import UsageRepository

__all__ = [
    "AnalyticsRepository",
    "CreationRepository",
    "NotificationRepository",
    "TaskRepository",
    "UsageRepository",
]
