"""Reliable channel backends: local filesystem and in-memory."""

from __future__ import annotations

import asyncio
from pathlib import Path

from ..errors import ChannelFailure, EntryNotFound
from .base import Channel


class LocalFileChannel(Channel):
    """Stores each key as a file under a root directory.

    Attributes:
        root: Directory that keys are resolved against
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        """Resolve ``key`` to a path, rejecting keys that escape the root."""
        root = self.root.resolve()
        path = (root / key).resolve()
        if path != root and root not in path.parents:
            raise ValueError(f"Key escapes channel root: {key}")
        return path

    async def read(self, key: str) -> bytes:
        path = self.path_for(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise EntryNotFound(key) from exc
        except OSError as exc:
            raise ChannelFailure(f"Read failed for {key}: {exc}") from exc

    async def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(_write_bytes, path, data)
        except OSError as exc:
            raise ChannelFailure(f"Write failed for {key}: {exc}") from exc


class MemoryChannel(Channel):
    """Dict-backed channel, handy for tests and dry runs."""

    def __init__(self, entries: dict[str, bytes] | None = None):
        self.entries: dict[str, bytes] = dict(entries or {})

    async def read(self, key: str) -> bytes:
        try:
            return self.entries[key]
        except KeyError as exc:
            raise EntryNotFound(key) from exc

    async def write(self, key: str, data: bytes) -> None:
        self.entries[key] = bytes(data)


def _write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
