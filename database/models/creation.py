"""
Creation model for user-requested generated images and videos.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class CreationType(StrEnum):
    """Kinds of generated artifacts."""

    IMAGE = "image"
    VIDEO = "video"


class CreationStatus(StrEnum):
    """Lifecycle states of a creation."""

    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"
    DELETED = "deleted"


# Usage counter backing each creation type
USAGE_KIND_BY_TYPE = {
    CreationType.IMAGE: "images",
    CreationType.VIDEO: "videos",
}

# Fields an owner may change after creation
UPDATABLE_FIELDS = ("title", "description", "tags", "is_public")

# Updatable fields backed by NOT NULL columns
REQUIRED_FIELDS = ("title", "is_public")


class Creation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    A generated artifact and its lifecycle metadata.

    Status only moves generating -> completed | failed, and any state may
    move to deleted (soft delete, the row is kept).
    """

    __tablename__ = "creations"

    # Owner (resolved by the identity provider, no local users table)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    # Request
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    prompt: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    style: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    size: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    duration: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    quality: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CreationStatus.GENERATING.value,
        index=True,
    )

    # Output
    file_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    thumbnail_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    file_size: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    generation_time: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )
    model: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        default=dict,
        nullable=False,
    )

    # Sharing
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    download_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    tag_rows: Mapped[list["CreationTag"]] = relationship(
        "CreationTag",
        back_populates="creation",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CreationTag.tag",
    )

    def __repr__(self) -> str:
        return f"<Creation(id={self.id}, type={self.type}, status={self.status})>"

    @property
    def tags(self) -> list[str]:
        """Tag names attached to this creation."""
        return [row.tag for row in self.tag_rows]

    @tags.setter
    def tags(self, values: list[str] | None) -> None:
        """Replace tags, dropping blanks and duplicates."""
        wanted: list[str] = []
        for value in values or []:
            tag = value.strip()
            if tag and tag not in wanted:
                wanted.append(tag)

        existing = {row.tag: row for row in self.tag_rows}
        self.tag_rows = [existing.get(tag) or CreationTag(tag=tag) for tag in wanted]

    def is_owned_by(self, user_id: UUID) -> bool:
        """Check whether ``user_id`` owns this creation."""
        return self.user_id == user_id

    def is_visible_to(self, user_id: UUID | None) -> bool:
        """Owners always see their creations; others only public ones."""
        return self.is_public or (user_id is not None and self.is_owned_by(user_id))

    @property
    def file_format(self) -> str | None:
        """File extension recorded in metadata, if any."""
        return (self.metadata_ or {}).get("format")


class CreationTag(Base):
    """A single tag on a creation."""

    __tablename__ = "creation_tags"
    __table_args__ = (UniqueConstraint("creation_id", "tag", name="uq_creation_tag"),)

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    creation_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("creations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    creation: Mapped[Creation] = relationship(
        "Creation",
        back_populates="tag_rows",
    )

    def __repr__(self) -> str:
        return f"<CreationTag(creation_id={self.creation_id}, tag={self.tag})>"


# Indexes for common queries
Index("idx_creations_user_status", Creation.user_id, Creation.status)
Index("idx_creations_public_status", Creation.is_public, Creation.status)
Index("idx_creations_created_at", Creation.created_at.desc())
