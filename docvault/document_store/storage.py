"""Byte storage for document files under a single storage root.

Writes are staged into ``<root>/.staging`` and promoted with an atomic
rename, so a file only appears at its final path once its row is committed.
"""

import asyncio
import hashlib
import logging
import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from docvault.exceptions import StorageError

logger = logging.getLogger("docvault.storage")

STAGING_DIR = ".staging"
CHUNK_SIZE = 1024 * 1024


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def file_hash(path: str | Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


async def hash_bytes(content: bytes) -> str:
    """SHA-256 of ``content``, computed in a worker thread."""
    return await asyncio.to_thread(content_hash, content)


async def hash_file(path: str | Path) -> str:
    return await asyncio.to_thread(file_hash, path)


def generate_file_name(original_name: str, type_name: str) -> str:
    """Collision-resistant storage name that keeps the original extension."""
    ext = os.path.splitext(original_name or "")[1].lower()
    return f"{type_name}_{uuid.uuid4()}{ext}"


def partitioned_path(entity_type: str, external_entity_id: int, file_name: str) -> str:
    """Relative path of a document file: ``<entity_type>/<external_id>/<file_name>``."""
    return Path(entity_type, str(external_entity_id), file_name).as_posix()


class FileStorage:
    """Hierarchical file store addressed by paths relative to ``root``."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for ``relative_path``; refuses paths that escape the root."""
        path = (self.root / relative_path).resolve()
        if path != self.root and self.root not in path.parents:
            raise StorageError(f"Path escapes storage root: {relative_path}")
        return path

    async def _staging_path(self) -> Path:
        staging = self.root / STAGING_DIR
        await aiofiles.os.makedirs(staging, exist_ok=True)
        return staging / f"{uuid.uuid4()}.part"

    async def stage(self, content: bytes) -> Path:
        """Write ``content`` to a temporary file and return its path."""
        staged = await self._staging_path()
        try:
            async with aiofiles.open(staged, "wb") as f:
                await f.write(content)
        except OSError as e:
            await self.discard(staged)
            raise StorageError(f"Failed to stage upload: {e}") from e
        return staged

    async def stage_copy(self, source: str | Path) -> Path:
        """Stream a copy of ``source`` into a temporary file."""
        staged = await self._staging_path()
        try:
            async with aiofiles.open(source, "rb") as src, aiofiles.open(staged, "wb") as dst:
                while chunk := await src.read(CHUNK_SIZE):
                    await dst.write(chunk)
        except OSError as e:
            await self.discard(staged)
            raise StorageError(f"Failed to copy {source}: {e}") from e
        return staged

    async def promote(self, staged: Path, relative_path: str) -> Path:
        """Atomically move a staged file to its final location."""
        destination = self.resolve(relative_path)
        try:
            await aiofiles.os.makedirs(destination.parent, exist_ok=True)
            await aiofiles.os.replace(staged, destination)
        except OSError as e:
            raise StorageError(f"Failed to move file into {relative_path}: {e}") from e
        return destination

    async def discard(self, staged: Path) -> None:
        try:
            await aiofiles.os.remove(staged)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Could not remove staged file %s", staged, exc_info=True)

    async def exists(self, relative_path: str) -> bool:
        return await aiofiles.os.path.isfile(self.resolve(relative_path))

    async def remove(self, relative_path: str) -> bool:
        """Delete a stored file. Returns False when it was already gone."""
        try:
            await aiofiles.os.remove(self.resolve(relative_path))
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {relative_path}: {e}") from e
        return True
