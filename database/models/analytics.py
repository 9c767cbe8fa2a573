"""
Analytics event model.

Events are append-only. A generation produces a ``generation_started`` event
when requested and exactly one terminal event (``generation_completed`` or
``generation_failed``) later; aggregation joins them by ``entity_id``.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, Float, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType, UUIDPrimaryKeyMixin, utcnow


class AnalyticsAction(StrEnum):
    """What happened to the entity."""

    GENERATION_STARTED = "generation_started"
    GENERATION_COMPLETED = "generation_completed"
    GENERATION_FAILED = "generation_failed"
    DOWNLOAD = "download"


class AnalyticsEvent(Base, UUIDPrimaryKeyMixin):
    """Immutable metric event tied to an entity."""

    __tablename__ = "analytics_events"

    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    # Event classification (type: creation, post, ...)
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    # Subject of the event
    entity_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Aggregatable metrics
    status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    generation_time: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )
    file_size: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )

    # Free-form metrics bag
    metrics: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        default=dict,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AnalyticsEvent(id={self.id}, action={self.action}, entity_id={self.entity_id})>"


Index("idx_analytics_user_type_created", AnalyticsEvent.user_id, AnalyticsEvent.type, AnalyticsEvent.created_at)
Index("idx_analytics_entity_action", AnalyticsEvent.entity_id, AnalyticsEvent.action)
