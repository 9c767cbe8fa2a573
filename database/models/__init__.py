"""
SQLAlchemy models for VisionCast API.
"""

from .analytics import AnalyticsAction, AnalyticsEvent
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from .creation import (
    REQUIRED_FIELDS,
    UPDATABLE_FIELDS,
    USAGE_KIND_BY_TYPE,
    Creation,
    CreationStatus,
    CreationTag,
    CreationType,
)
from .generation_task import TERMINAL_TASK_STATES, GenerationTask, TaskState
from .notification import Notification, NotificationPriority
from .usage import USAGE_KINDS, Usage

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "utcnow",
    # Models
    "Creation",
    "CreationTag",
    "Usage",
    "AnalyticsEvent",
    "Notification",
    "GenerationTask",
    # Enums & constants
    "CreationType",
    "CreationStatus",
    "AnalyticsAction",
    "NotificationPriority",
    "TaskState",
    "TERMINAL_TASK_STATES",
    "REQUIRED_FIELDS",
    "UPDATABLE_FIELDS",
    "USAGE_KIND_BY_TYPE",
    "USAGE_KINDS",
]
