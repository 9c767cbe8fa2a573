"""
Creations router.

Endpoints:
- POST /api/creations - Request a new generation
- GET /api/creations - List own creations
- GET /api/creations/public - List public creations (anonymous)
- GET /api/creations/stats - Creation statistics and analytics
- GET /api/creations/{id} - Get a creation
- PATCH /api/creations/{id} - Update title, description, tags, visibility
- DELETE /api/creations/{id} - Soft delete
- GET /api/creations/{id}/download - Signed download link
- GET /api/creations/{id}/task - Generation task state
- POST /api/creations/{id}/cancel - Cancel a pending generation
"""

import logging
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import enforce_creation_rate_limit, get_creation_service
from api.schemas.common import APIResponse, MessageResponse, Pagination
from api.schemas.creations import (
    CreationCreate,
    CreationData,
    CreationInfo,
    CreationListData,
    CreationStatsData,
    CreationUpdate,
    DownloadData,
    GenerationTaskData,
    GenerationTaskInfo,
)
from core.auth import AppUser, require_current_user
from database.models import CreationStatus, CreationType
from services.creation_service import CreationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/creations", tags=["creations"])


def _list_data(result: dict) -> CreationListData:
    return CreationListData(
        creations=[CreationInfo.model_validate(c) for c in result["items"]],
        pagination=Pagination(
            page=result["page"],
            limit=result["limit"],
            total=result["total"],
            pages=result["pages"],
        ),
    )


# ============ Collection ============


@router.post(
    "",
    response_model=APIResponse[CreationData],
    status_code=201,
)
async def create_creation(
    request: CreationCreate,
    user: AppUser = Depends(enforce_creation_rate_limit),
    service: CreationService = Depends(get_creation_service),
):
    """
    Request a new image or video.

    Returns immediately with the creation in the ``generating`` state;
    generation completes in the background.
    """
    creation = await service.create_creation(
        user_id=user.id,
        type=request.type,
        title=request.title,
        prompt=request.prompt,
        description=request.description,
        style=request.style,
        size=request.size,
        duration=request.duration,
        quality=request.quality,
        tags=request.tags,
    )
    return APIResponse.ok(CreationData(creation=CreationInfo.model_validate(creation)))


@router.get("", response_model=APIResponse[CreationListData])
async def list_creations(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    type: CreationType | None = Query(default=None),
    status: CreationStatus | None = Query(default=None),
    sort: str = Query(default="-createdAt"),
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """List the current user's creations."""
    result = await service.get_creations(
        user.id,
        type=type,
        status=status,
        sort=sort,
        page=page,
        limit=limit,
    )
    return APIResponse.ok(_list_data(result))


@router.get("/public", response_model=APIResponse[CreationListData])
async def list_public_creations(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    type: CreationType | None = Query(default=None),
    tags: str | None = Query(default=None, description="Comma-separated, matches any"),
    sort: str = Query(default="-createdAt"),
    service: CreationService = Depends(get_creation_service),
):
    """List public, completed creations. No authentication required."""
    result = await service.get_public_creations(
        type=type,
        tags=tags,
        sort=sort,
        page=page,
        limit=limit,
    )
    return APIResponse.ok(_list_data(result))


@router.get("/stats", response_model=APIResponse[CreationStatsData])
async def get_creation_stats(
    period: Literal["daily", "weekly", "monthly", "yearly"] = Query(default="monthly"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Creation counts and generation analytics for the current user."""
    result = await service.get_creation_stats(
        user.id,
        period=period,
        start=start_date,
        end=end_date,
    )
    return APIResponse.ok(CreationStatsData.model_validate(result))


# ============ Single creation ============


@router.get("/{creation_id}", response_model=APIResponse[CreationData])
async def get_creation(
    creation_id: UUID,
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Get a creation owned by the user or shared publicly."""
    creation = await service.get_creation(creation_id, user.id)
    return APIResponse.ok(CreationData(creation=CreationInfo.model_validate(creation)))


@router.patch("/{creation_id}", response_model=APIResponse[CreationData])
async def update_creation(
    creation_id: UUID,
    request: CreationUpdate,
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Update title, description, tags or visibility."""
    creation = await service.update_creation(
        creation_id,
        user.id,
        request.model_dump(exclude_unset=True),
    )
    return APIResponse.ok(CreationData(creation=CreationInfo.model_validate(creation)))


@router.delete("/{creation_id}", response_model=MessageResponse)
async def delete_creation(
    creation_id: UUID,
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Soft delete a creation."""
    await service.delete_creation(creation_id, user.id)
    return MessageResponse(message="Creation deleted successfully")


@router.get("/{creation_id}/download", response_model=APIResponse[DownloadData])
async def download_creation(
    creation_id: UUID,
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Get a signed, time-limited download link."""
    result = await service.download_creation(creation_id, user.id)
    return APIResponse.ok(DownloadData.model_validate(result))


# ============ Generation task ============


@router.get("/{creation_id}/task", response_model=APIResponse[GenerationTaskData])
async def get_generation_task(
    creation_id: UUID,
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Get the state of the creation's background generation."""
    task = await service.get_generation_task(creation_id, user.id)
    return APIResponse.ok(GenerationTaskData(task=GenerationTaskInfo.model_validate(task)))


@router.post("/{creation_id}/cancel", response_model=APIResponse[CreationData])
async def cancel_creation(
    creation_id: UUID,
    user: AppUser = Depends(require_current_user),
    service: CreationService = Depends(get_creation_service),
):
    """Cancel a generation that has not started yet."""
    creation = await service.cancel_creation(creation_id, user.id)
    return APIResponse.ok(CreationData(creation=CreationInfo.model_validate(creation)))
