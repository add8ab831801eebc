"""
Filesystem provider.

Async wrappers around the local filesystem. Blocking calls are pushed to a
worker thread with asyncio.to_thread so the event loop stays responsive while
large files are hashed or written.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class FileSystemProvider(Protocol):
    """Protocol for filesystem access used by the launch pipeline."""

    async def dir_exists(self, path: str) -> bool: ...

    async def file_exists(self, path: str) -> bool: ...

    async def hash_file(self, path: str) -> str: ...

    async def make_dir(self, path: str) -> None: ...

    async def read_dir(self, path: str) -> list[str]: ...

    async def read_file(self, filename: str, encoding: str = "utf-8") -> str: ...

    async def unlink_file(self, filename: str) -> None: ...

    async def write_file(self, filename: str, data: str | bytes) -> None: ...


class LocalFileSystemProvider:
    """FileSystemProvider backed by the local disk."""

    async def dir_exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.isdir, path)

    async def file_exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.isfile, path)

    async def hash_file(self, path: str) -> str:
        """
        Compute the SHA-256 digest of a file.

        Args:
            path: File to hash

        Returns:
            Lowercase hex digest
        """

        def _hash() -> str:
            digest = hashlib.sha256()
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(65536), b""):
                    digest.update(chunk)
            return digest.hexdigest()

        return await asyncio.to_thread(_hash)

    async def make_dir(self, path: str) -> None:
        logger.debug(f"Creating directory {path}")
        await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)

    async def read_dir(self, path: str) -> list[str]:
        return await asyncio.to_thread(os.listdir, path)

    async def read_file(self, filename: str, encoding: str = "utf-8") -> str:
        return await asyncio.to_thread(Path(filename).read_text, encoding=encoding)

    async def unlink_file(self, filename: str) -> None:
        await asyncio.to_thread(os.unlink, filename)

    async def write_file(self, filename: str, data: str | bytes) -> None:
        if isinstance(data, bytes):
            await asyncio.to_thread(Path(filename).write_bytes, data)
        else:
            await asyncio.to_thread(Path(filename).write_text, data, encoding="utf-8")
