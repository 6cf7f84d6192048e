"""Abstract interface for byte-level document storage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Channel(ABC):
    """Key/value byte storage with a single logical endpoint.

    Keys are opaque strings. There is no versioning; the latest write wins.
    """

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Return the bytes stored under ``key``.

        Raises:
            EntryNotFound: If nothing was ever written under ``key``
            ChannelFailure: On any other storage failure
        """
        raise NotImplementedError

    @abstractmethod
    async def write(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""
        raise NotImplementedError
