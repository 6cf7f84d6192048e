"""Storage channels: the byte-level contract, reliable backends and fault injection."""

from .base import Channel
from .local import LocalFileChannel, MemoryChannel
from .unreliable import (
    FailureMode,
    FailureModeSource,
    RandomFailureSource,
    ScriptedFailureSource,
    UnreliableChannel,
)

__all__ = [
    "Channel",
    "LocalFileChannel",
    "MemoryChannel",
    "FailureMode",
    "FailureModeSource",
    "RandomFailureSource",
    "ScriptedFailureSource",
    "UnreliableChannel",
]
