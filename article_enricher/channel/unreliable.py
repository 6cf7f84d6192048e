"""
Fault-injecting channel wrapper.

``UnreliableChannel`` models a storage backend that, on every call,
independently either fails, stalls, silently truncates, or succeeds. The
outcome comes from a pluggable ``FailureModeSource`` so tests can force each
case; ``RandomFailureSource`` reproduces the production distribution.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections import deque
from enum import Enum
import logging
import random
from typing import Awaitable, Callable, Iterable

from ..errors import ChannelFailure
from .base import Channel

logger = logging.getLogger(__name__)


class FailureMode(str, Enum):
    FAIL = "fail"
    STALL = "stall"
    TRUNCATE = "truncate"
    SUCCEED = "succeed"


class FailureModeSource(ABC):
    """Decides the outcome of each channel call."""

    @abstractmethod
    def next_mode(self, operation: str, key: str) -> FailureMode:
        """Return the outcome for one ``read`` or ``write`` call."""
        raise NotImplementedError

    @abstractmethod
    def truncation_fraction(self) -> float:
        """Return the fraction of bytes kept by a truncated call."""
        raise NotImplementedError


class RandomFailureSource(FailureModeSource):
    """Banded random outcomes: fail, then stall, then truncate, else succeed.

    With the defaults each call has a 10% chance of each failure mode and a
    70% chance of success.
    """

    def __init__(
        self,
        fail_rate: float = 0.1,
        stall_rate: float = 0.1,
        truncate_rate: float = 0.1,
        truncate_min: float = 0.5,
        truncate_max: float = 0.9,
        rng: random.Random | None = None,
    ):
        rates = (fail_rate, stall_rate, truncate_rate)
        if any(rate < 0 for rate in rates) or sum(rates) > 1:
            raise ValueError("Failure rates must be non-negative and sum to at most 1")
        if not 0 <= truncate_min <= truncate_max < 1:
            raise ValueError("Truncation bounds must satisfy 0 <= min <= max < 1")
        self.fail_rate = fail_rate
        self.stall_rate = stall_rate
        self.truncate_rate = truncate_rate
        self.truncate_min = truncate_min
        self.truncate_max = truncate_max
        self.rng = rng or random.Random()

    def next_mode(self, operation: str, key: str) -> FailureMode:
        dice = self.rng.random()
        if dice < self.fail_rate:
            return FailureMode.FAIL
        if dice < self.fail_rate + self.stall_rate:
            return FailureMode.STALL
        if dice < self.fail_rate + self.stall_rate + self.truncate_rate:
            return FailureMode.TRUNCATE
        return FailureMode.SUCCEED

    def truncation_fraction(self) -> float:
        return self.truncate_min + self.rng.random() * (self.truncate_max - self.truncate_min)


class ScriptedFailureSource(FailureModeSource):
    """Replays a fixed sequence of outcomes, then always succeeds."""

    def __init__(self, modes: Iterable[FailureMode], fraction: float = 0.5):
        self.modes = deque(modes)
        self.fraction = fraction
        self.calls: list[tuple[str, str, FailureMode]] = []

    def next_mode(self, operation: str, key: str) -> FailureMode:
        mode = self.modes.popleft() if self.modes else FailureMode.SUCCEED
        self.calls.append((operation, key, mode))
        return mode

    def truncation_fraction(self) -> float:
        return self.fraction


class UnreliableChannel(Channel):
    """Wraps a reliable channel and injects failures per call.

    Attributes:
        inner: The channel that actually stores bytes
        source: Decides each call's outcome
        stall_seconds: How long a stalled call waits before completing
    """

    def __init__(
        self,
        inner: Channel,
        source: FailureModeSource,
        stall_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.inner = inner
        self.source = source
        self.stall_seconds = stall_seconds
        self._sleep = sleep

    async def read(self, key: str) -> bytes:
        mode = self.source.next_mode("read", key)
        logger.debug(f"read {key}: {mode.value}")
        if mode is FailureMode.FAIL:
            raise ChannelFailure("Read failed: storage error")
        if mode is FailureMode.STALL:
            await self._sleep(self.stall_seconds)

        data = await self.inner.read(key)
        if mode is FailureMode.TRUNCATE:
            return data[: _cut_at(data, self.source.truncation_fraction())]
        return data

    async def write(self, key: str, data: bytes) -> None:
        mode = self.source.next_mode("write", key)
        logger.debug(f"write {key}: {mode.value}")
        if mode is FailureMode.FAIL:
            raise ChannelFailure("Write failed: storage error")
        if mode is FailureMode.STALL:
            await self._sleep(self.stall_seconds)

        if mode is FailureMode.TRUNCATE:
            data = data[: _cut_at(data, self.source.truncation_fraction())]
        await self.inner.write(key, data)


def _cut_at(data: bytes, fraction: float) -> int:
    return int(len(data) * fraction)
