"""
Usage model holding per-period generation counters and limits.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# Resource kinds tracked per period
USAGE_KINDS = ("images", "videos", "posts")


class Usage(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    One record per user per billing period.

    Counters only ever grow; they are reset by provisioning a new period.
    """

    __tablename__ = "usage_periods"

    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    # Period window [period_start, period_end)
    period_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    period_end: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    images_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    images_limit: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    videos_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    videos_limit: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    posts_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    posts_limit: Mapped[int] = mapped_column(Integer, default=20, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Usage(user_id={self.user_id}, images={self.images_used}/{self.images_limit}, "
            f"videos={self.videos_used}/{self.videos_limit})>"
        )

    def used(self, kind: str) -> int:
        return getattr(self, f"{_check_kind(kind)}_used")

    def limit(self, kind: str) -> int:
        return getattr(self, f"{_check_kind(kind)}_limit")

    def is_limit_exceeded(self, kind: str) -> bool:
        """True when the counter for ``kind`` is at or over its limit."""
        return self.used(kind) >= self.limit(kind)

    def to_summary(self) -> dict[str, dict[str, int]]:
        """Used/limit pairs keyed by resource kind."""
        return {kind: {"used": self.used(kind), "limit": self.limit(kind)} for kind in USAGE_KINDS}


def _check_kind(kind: str) -> str:
    if kind not in USAGE_KINDS:
        raise ValueError(f"Unknown usage kind: {kind}")
    return kind


Index("idx_usage_user_period", Usage.user_id, Usage.period_start, Usage.period_end)
