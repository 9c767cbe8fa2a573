"""
Pydantic schemas for API request/response models.
"""

from .common import (
    APIResponse,
    CamelModel,
    ComponentHealth,
    DetailedHealthCheckResponse,
    ErrorDetail,
    ErrorResponse,
    HealthCheckResponse,
    HealthStatus,
    MessageResponse,
    Pagination,
)
from .creations import (
    CreationCreate,
    CreationData,
    CreationInfo,
    CreationListData,
    CreationStatsData,
    CreationUpdate,
    DownloadData,
    GenerationTaskData,
)
from .dashboard import DEFAULT_DASHBOARD, DashboardData
from .notifications import (
    MarkReadData,
    MarkReadRequest,
    NotificationData,
    NotificationInfo,
    NotificationListData,
    UnreadCountData,
)

__all__ = [
    # Common
    "APIResponse",
    "CamelModel",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "Pagination",
    "HealthStatus",
    "HealthCheckResponse",
    "DetailedHealthCheckResponse",
    "ComponentHealth",
    # Creations
    "CreationCreate",
    "CreationUpdate",
    "CreationInfo",
    "CreationData",
    "CreationListData",
    "CreationStatsData",
    "DownloadData",
    "GenerationTaskData",
    # Dashboard
    "DashboardData",
    "DEFAULT_DASHBOARD",
    # Notifications
    "NotificationInfo",
    "NotificationData",
    "NotificationListData",
    "UnreadCountData",
    "MarkReadRequest",
    "MarkReadData",
]
