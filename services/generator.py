"""
Simulated content generator.

Stands in for a real inference backend: it produces a placeholder file URL
and plausible metadata instead of calling a model.
"""

import random
import time
from dataclasses import dataclass, field
from typing import Any

from core.config import get_settings
from core.exceptions import GenerationError
from database.models import CreationType

GENERATED_MODEL = "VisionCast AI Pro"
DEFAULT_SIZE = "1024/1024"

FILE_FORMATS = {
    CreationType.IMAGE: "jpg",
    CreationType.VIDEO: "mp4",
}


@dataclass
class GenerationOutcome:
    """Result of a single generation attempt."""

    file_url: str
    thumbnail_url: str
    file_size: int
    generation_time: float
    model: str = GENERATED_MODEL
    metadata: dict[str, Any] = field(default_factory=dict)


def normalize_size(size: str | None) -> str:
    """Turn "512x512" style sizes into the "512/512" path form."""
    if not size:
        return DEFAULT_SIZE
    return size.strip().lower().replace("x", "/")


class SimulatedGenerator:
    """Fake generator producing placeholder images."""

    def __init__(
        self,
        base_url: str | None = None,
        failure_rate: float | None = None,
        rng: random.Random | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.placeholder_image_base_url).rstrip("/")
        self.failure_rate = (
            settings.generation_failure_rate if failure_rate is None else failure_rate
        )
        self._rng = rng or random.Random()

    async def generate(self, creation_type: str, size: str | None = None) -> GenerationOutcome:
        """
        Produce an outcome for a creation.

        Args:
            creation_type: "image" or "video"
            size: Requested size such as "512x512"

        Returns:
            GenerationOutcome with URLs and file metadata

        Raises:
            GenerationError: When the simulated backend fails
        """
        if self.failure_rate and self._rng.random() < self.failure_rate:
            raise GenerationError("Simulated generation failure")

        path = normalize_size(size)
        url = f"{self.base_url}/{path}?random={int(time.time() * 1000)}"

        metadata: dict[str, Any] = {
            "format": FILE_FORMATS.get(CreationType(creation_type), "jpg"),
        }
        width, _, height = path.partition("/")
        if width.isdigit() and height.isdigit():
            metadata["width"] = int(width)
            metadata["height"] = int(height)

        return GenerationOutcome(
            file_url=url,
            thumbnail_url=url,
            file_size=self._rng.randrange(1_000_000, 6_000_000),
            generation_time=round(self._rng.uniform(1.0, 6.0), 3),
            model=GENERATED_MODEL,
            metadata=metadata,
        )
