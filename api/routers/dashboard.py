"""
Dashboard router.

Endpoints:
- GET /api/dashboard - Aggregated stats, recent creations and usage
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_dashboard_service
from api.schemas.common import APIResponse
from api.schemas.dashboard import DashboardData
from core.auth import AppUser, require_current_user
from services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=APIResponse[DashboardData])
async def get_dashboard(
    user: AppUser = Depends(require_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Get the dashboard summary for the current user."""
    return APIResponse.ok(await service.get_dashboard(user.id))
