"""
Pydantic schemas for the creations API.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from database.models import CreationStatus, CreationType

from .common import CamelModel, Pagination


def _clean_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    return [tag.strip() for tag in tags if tag and tag.strip()]


# ============ Requests ============


class CreationCreate(CamelModel):
    """Request body for a new generation."""

    type: CreationType = Field(..., description="image or video")
    title: str = Field(..., min_length=1, max_length=200)
    prompt: str = Field(..., min_length=1, max_length=2000)
    description: str | None = Field(None, max_length=1000)
    style: str | None = Field(None, max_length=100)
    size: str | None = Field(None, max_length=50, description="e.g. 512x512 or 512/512")
    duration: int | None = Field(None, ge=1, le=300, description="Video length in seconds")
    quality: str | None = Field(None, max_length=50)
    tags: list[str] | None = Field(None, max_length=20)

    @field_validator("title", "prompt")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject whitespace-only values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        """Strip whitespace and drop empty tags."""
        return _clean_tags(v)


class CreationUpdate(CamelModel):
    """
    Owner edits.

    Only title, description, tags and isPublic are accepted; anything else
    in the body is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    tags: list[str] | None = Field(None, max_length=20)
    is_public: bool | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        """Strip whitespace and drop empty tags."""
        return _clean_tags(v)

    @field_validator("title", "is_public")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Title and visibility can be changed but never cleared."""
        if v is None:
            raise ValueError("must not be null")
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("must not be blank")
        return v


# ============ Responses ============


class CreationInfo(CamelModel):
    """A creation as returned by the API."""

    id: UUID
    user_id: UUID
    type: CreationType
    title: str
    description: str | None = None
    prompt: str
    style: str | None = None
    size: str | None = None
    duration: int | None = None
    quality: str | None = None
    status: CreationStatus
    file_url: str | None = None
    thumbnail_url: str | None = None
    file_size: int | None = None
    generation_time: float | None = None
    model: str | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_", "metadata"),
    )
    is_public: bool = False
    tags: list[str] = Field(default_factory=list)
    download_count: int = 0
    created_at: datetime
    updated_at: datetime


class CreationData(CamelModel):
    creation: CreationInfo


class CreationListData(CamelModel):
    creations: list[CreationInfo]
    pagination: Pagination


class DownloadData(CamelModel):
    download_url: str
    filename: str


class CreationStats(CamelModel):
    """Counts over a user's non-deleted creations."""

    total: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    total_downloads: int = 0
    total_file_size: int = 0
    average_generation_time: float = 0.0
    public_count: int = 0
    public_downloads: int = 0


class AnalyticsBucket(CamelModel):
    period: str
    started: int = 0
    completed: int = 0
    failed: int = 0
    downloads: int = 0
    total_generation_time: float = 0.0
    average_generation_time: float = 0.0
    total_file_size: int = 0


class AnalyticsTotals(CamelModel):
    started: int = 0
    completed: int = 0
    failed: int = 0
    pending: int = 0
    downloads: int = 0
    total_generation_time: float = 0.0
    average_generation_time: float = 0.0
    total_file_size: int = 0
    success_rate: float | None = None


class AnalyticsSummary(CamelModel):
    period: str
    start: datetime
    end: datetime
    totals: AnalyticsTotals
    buckets: list[AnalyticsBucket] = Field(default_factory=list)


class CreationStatsData(CamelModel):
    stats: CreationStats
    analytics: AnalyticsSummary


class GenerationTaskInfo(CamelModel):
    """State of the deferred generation for a creation."""

    id: UUID
    creation_id: UUID
    state: str
    attempts: int
    max_attempts: int
    scheduled_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_error: str | None = None


class GenerationTaskData(CamelModel):
    task: GenerationTaskInfo
