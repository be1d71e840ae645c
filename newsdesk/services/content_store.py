"""
Newsdesk Backend — Content Store
==================================

What:  Key-value file storage for images served under /uploads.
Why:   The HTTP file-serving path needs plain files; the database keeps the
       durable copy inside each entity document. This store is the cache.
How:   Filenames are opaque keys mapped to files in a single directory.
       Writes are first-writer-wins: a filename that already exists is never
       overwritten.
Who:   MediaService (rehydration), UploadService (direct uploads) and the
       image backfill command.

Backends:
    LocalContentStore   files under settings.uploads_dir (default)
    MemoryContentStore  process-local dict, used by tests

Concurrency:
    Two requests may try to materialize the same file at the same moment.
    LocalContentStore writes to a private temp file and publishes it with a
    hard link, which fails atomically if the target already exists, so the
    loser of the race becomes a no-op and readers never see a partial file.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional, Protocol

import aiofiles
import aiofiles.os

from newsdesk.config import Settings, settings
from newsdesk.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    async def exists(self, filename: str) -> bool:
        ...

    async def write(self, filename: str, data: bytes) -> bool:
        """Store data under filename unless it already exists. Returns True if written."""
        ...

    async def read(self, filename: str) -> bytes:
        """Return the stored bytes or raise NotFoundError."""
        ...


def validate_filename(filename: str) -> str:
    """
    Reject keys that are not a single, visible path segment.

    Filenames are generated by the server, but the serving route accepts
    them from the URL, so anything that could escape the store root is a
    client error.
    """
    if (
        not filename
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
        or filename.startswith(".")
    ):
        raise ValidationError(
            message="Invalid file name",
            field="filename",
            context={"filename": filename},
        )
    return filename


class LocalContentStore:
    """Disk-backed store rooted at one directory, created lazily on first write."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.uploads_dir).resolve()

    def path_for(self, filename: str) -> Path:
        return self.root / validate_filename(filename)

    async def exists(self, filename: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(filename))

    async def write(self, filename: str, data: bytes) -> bool:
        target = self.path_for(filename)
        if await aiofiles.os.path.exists(target):
            return False

        temp_path = self.root / f".{uuid.uuid4().hex}.part"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            try:
                os.link(temp_path, target)
            except FileExistsError:
                logger.debug("Content store: %s already written by another request", filename)
                return False
            logger.info("Content store: wrote %s (%d bytes)", filename, len(data))
            return True
        except OSError as e:
            logger.error("Failed to write %s to content store: %s", target, str(e))
            raise FileStorageError(
                message="Failed to save image. Please try again.",
                context={"path": str(target), "os_error": str(e)},
            )
        finally:
            temp_path.unlink(missing_ok=True)

    async def read(self, filename: str) -> bytes:
        path = self.path_for(filename)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(resource="image", resource_id=filename)
        except OSError as e:
            logger.error("Failed to read %s from content store: %s", path, str(e))
            raise FileStorageError(
                message="Failed to read image.",
                context={"path": str(path), "os_error": str(e)},
            )


class MemoryContentStore:
    """Dict-backed store with the same first-writer-wins contract."""

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}

    async def exists(self, filename: str) -> bool:
        return validate_filename(filename) in self.files

    async def write(self, filename: str, data: bytes) -> bool:
        if validate_filename(filename) in self.files:
            return False
        self.files[filename] = bytes(data)
        return True

    async def read(self, filename: str) -> bytes:
        try:
            return self.files[validate_filename(filename)]
        except KeyError:
            raise NotFoundError(resource="image", resource_id=filename)


def build_content_store(config: Settings = settings) -> ContentStore:
    """Pick the content store backend from configuration."""
    if config.content_store_backend == "memory":
        return MemoryContentStore()
    return LocalContentStore(config.uploads_dir)
