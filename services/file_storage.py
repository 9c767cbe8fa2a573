"""
File storage collaborator for generated artifacts.

Only deletion is needed by the creation lifecycle; uploads happen in the
generation backend.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse

import aiofiles.os

from core.config import get_settings

logger = logging.getLogger(__name__)


def storage_id_from_url(url: str) -> str | None:
    """
    Derive the storage id from a file URL.

    The id is the last path segment without its extension, e.g.
    ``https://cdn/x/abc123.jpg`` -> ``abc123``.
    """
    path = urlparse(url).path.rstrip("/")
    if not path:
        return None
    segment = path.rsplit("/", 1)[-1]
    stem = segment.split(".", 1)[0]
    return stem or None


class FileStorage(ABC):
    """Abstract storage backend."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name."""
        pass

    @abstractmethod
    async def delete(self, storage_id: str) -> bool:
        """
        Delete a stored artifact.

        Args:
            storage_id: Identifier derived from the file URL

        Returns:
            True if something was deleted
        """
        pass


class LocalFileStorage(FileStorage):
    """Artifacts kept on the local file system as ``<storage_id>.<ext>``."""

    def __init__(self, base_path: str | None = None):
        self.base_path = Path(base_path or get_settings().storage_local_path)

    @property
    def name(self) -> str:
        return "local"

    async def delete(self, storage_id: str) -> bool:
        if not await aiofiles.os.path.isdir(self.base_path):
            return False

        deleted = False
        for file_path in self.base_path.glob(f"{storage_id}.*"):
            await aiofiles.os.remove(file_path)
            logger.debug(f"Deleted file from local storage: {file_path.name}")
            deleted = True
        return deleted


_file_storage: FileStorage | None = None


def get_file_storage() -> FileStorage:
    """Get the process-wide storage backend."""
    global _file_storage
    if _file_storage is None:
        _file_storage = LocalFileStorage()
    return _file_storage
