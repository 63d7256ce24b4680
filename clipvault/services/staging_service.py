"""Filesystem staging for media assets.

Owns the on-disk layout under the storage root: unique file naming,
moves out of the transient upload area, best-effort removal of orphaned
files, and temporary manifest files. All blocking filesystem calls are
pushed to a worker thread so the event loop never stalls on disk I/O.
"""

import asyncio
import errno
import logging
import mimetypes
import os
import re
import secrets
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from clipvault.enums import StorageArea
from clipvault.errors import StorageFailureError

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "video/mp4"


@dataclass(frozen=True)
class FileStat:
    """Result of checking a staged file.

    Attributes:
        path: Absolute path that was checked.
        size_bytes: Size on disk.
    """

    path: Path
    size_bytes: int


class StagingService:
    """Generates unique names, moves files atomically, removes orphans."""

    def __init__(self, storage_root: str | Path) -> None:
        """Initialize staging under a storage root.

        Creates one subdirectory per StorageArea.

        Args:
            storage_root: Base directory for all media files.
        """
        self._root = Path(storage_root).expanduser().resolve()
        for area in StorageArea:
            (self._root / area.value).mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def area_dir(self, area: StorageArea) -> Path:
        """Absolute directory for a storage area."""
        return self._root / area.value

    @staticmethod
    def safe_extension(original_name: str) -> str:
        """Extract a filesystem-safe, lower-cased extension from a client name.

        Only the extension is ever taken from user input; anything that is not
        a short alphanumeric suffix is dropped.
        """
        suffix = Path(original_name.replace("\x00", "")).suffix.lower()
        if re.fullmatch(r"\.[a-z0-9]{1,10}", suffix):
            return suffix
        return ""

    def unique_path(self, area: StorageArea, extension: str = "") -> Path:
        """Return a fresh path in `area` named by 128 random bits.

        The name is never derived from user content, so collisions are
        cryptographically negligible.
        """
        return self.area_dir(area) / f"{secrets.token_hex(16)}{extension}"

    @staticmethod
    def media_type_for(path: str | Path) -> str:
        """Guess the MIME type served for a stored file."""
        guessed, _ = mimetypes.guess_type(str(path))
        if guessed and guessed.startswith(("video/", "audio/")):
            return guessed
        return DEFAULT_MEDIA_TYPE

    async def move_into(self, source: Path, destination: Path) -> Path:
        """Move a file to its permanent location.

        Uses an atomic rename when source and destination share a filesystem,
        falling back to copy-and-delete otherwise. Refuses to overwrite.

        Raises:
            StorageFailureError: If the move fails or the destination exists.
        """
        try:
            await asyncio.to_thread(self._move_sync, source, destination)
        except OSError as e:
            raise StorageFailureError(
                f"Failed to move {source.name} into storage: {e}"
            ) from e

        logger.debug("Moved %s -> %s", source, destination)
        return destination

    @staticmethod
    def _move_sync(source: Path, destination: Path) -> None:
        if destination.exists():
            raise FileExistsError(f"Destination already exists: {destination}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            os.rename(source, destination)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            shutil.move(str(source), str(destination))

    async def stat_readable(self, path: Path) -> FileStat:
        """Confirm a file is a readable regular file and return its size.

        Raises:
            StorageFailureError: If the file is missing, not a regular file,
                or not readable.
        """
        try:
            size = await asyncio.to_thread(self._stat_readable_sync, path)
        except OSError as e:
            raise StorageFailureError(f"Stored file is not readable: {e}") from e
        return FileStat(path=path, size_bytes=size)

    @staticmethod
    def _stat_readable_sync(path: Path) -> int:
        st = path.stat()
        if not path.is_file():
            raise IsADirectoryError(f"Not a regular file: {path}")
        if not os.access(path, os.R_OK):
            raise PermissionError(f"File is not readable: {path}")
        return st.st_size

    async def write_text(self, path: Path, content: str) -> None:
        """Write a small text file (e.g. a concat manifest).

        Raises:
            StorageFailureError: If the write fails.
        """
        try:
            await asyncio.to_thread(path.write_text, content, "utf-8")
        except OSError as e:
            raise StorageFailureError(f"Failed to write {path.name}: {e}") from e

    async def remove_quietly(self, path: Path | None) -> bool:
        """Best-effort delete used for compensating cleanup.

        Awaited to completion before the caller reports failure, but never
        raises: cleanup errors are logged so they cannot mask the original
        error.

        Returns:
            True if a file was removed.
        """
        if path is None:
            return False
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Cleanup failed for %s: %s", path, e)
            return False

        logger.info("Removed orphaned file %s", path)
        return True

    async def cleanup_stale_incoming(self, max_age_hours: int) -> int:
        """Delete transient upload files older than max_age_hours.

        Files land in the incoming area while the HTTP layer spools an
        upload; anything left there for long was abandoned mid-request.

        Returns:
            Count of deleted files.
        """
        return await asyncio.to_thread(
            self._cleanup_stale_sync, self.area_dir(StorageArea.INCOMING), max_age_hours
        )

    @staticmethod
    def _cleanup_stale_sync(directory: Path, max_age_hours: int) -> int:
        deleted_count = 0
        max_age_seconds = max_age_hours * 3600
        current_time = time.time()

        for file_path in directory.iterdir():
            if not file_path.is_file():
                continue
            try:
                age = current_time - file_path.stat().st_mtime
                if age > max_age_seconds:
                    file_path.unlink()
                    deleted_count += 1
            except OSError as e:
                logger.warning("Could not clean up %s: %s", file_path, e)

        logger.info(
            "Incoming cleanup: deleted %d files older than %d hours",
            deleted_count,
            max_age_hours,
        )
        return deleted_count
