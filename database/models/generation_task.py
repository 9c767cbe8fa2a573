"""
Persisted deferred-completion task for a creation.

Replaces a fire-and-forget timer: the task row survives restarts, can be
observed through the API and cancelled while still pending.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utcnow


class TaskState(StrEnum):
    """Generation task states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_TASK_STATES = {TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED}


class GenerationTask(Base, UUIDPrimaryKeyMixin):
    """Work item processed by the generation worker."""

    __tablename__ = "generation_tasks"

    creation_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("creations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    state: Mapped[str] = mapped_column(
        String(20),
        default=TaskState.PENDING.value,
        nullable=False,
        index=True,
    )
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    attempts: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    max_attempts: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    last_error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<GenerationTask(id={self.id}, creation_id={self.creation_id}, state={self.state})>"

    @property
    def attempts_left(self) -> int:
        return max(0, self.max_attempts - self.attempts)


Index("idx_generation_tasks_due", GenerationTask.state, GenerationTask.scheduled_at)
