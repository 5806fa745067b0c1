"""
dashboard/domain/sources.py

Byte sources for uploaded files and the batch that groups them.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


class FileSource(ABC):
    """
    A named file whose bytes are read asynchronously.
    """

    name: str

    @property
    @abstractmethod
    def byte_size(self) -> int | None:
        """Size in bytes when known before reading, otherwise ``None``."""

    @abstractmethod
    async def read_bytes(self) -> bytes:
        """Return the full file content."""


class InMemorySource(FileSource):
    """
    File content already held in memory.
    """

    def __init__(self, name: str, content: bytes) -> None:
        self.name = name
        self._content = content

    @property
    def byte_size(self) -> int:
        return len(self._content)

    async def read_bytes(self) -> bytes:
        return self._content


class PathSource(FileSource):
    """
    File on local disk; the blocking read runs in a worker thread.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.name = self.path.name

    @property
    def byte_size(self) -> int | None:
        try:
            return self.path.stat().st_size
        except OSError:
            return None

    async def read_bytes(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


@dataclass
class UploadBatch:
    """
    Primary files in upload order plus optional auxiliary files keyed by role.
    """

    primary: list[FileSource]
    auxiliary: dict[str, FileSource] = field(default_factory=dict)
