"""
Reliable JSON document storage over an unreliable channel.

``DocumentStore`` composes the three layers of the resilience core:
the channel moves bytes, the codec turns bytes into documents (and rejects
truncated ones), and ``retry_with_backoff`` absorbs transient failures.
"""

from __future__ import annotations

import random
from typing import Any, Awaitable, Callable, TypeVar

from .channel import Channel
from .codec import decode_document, encode_document
from .config import RetryConfig
from .errors import DocumentSchemaError, EntryNotFound
from .reporting import RunReporter
from .retry import retry_with_backoff

T = TypeVar("T")


def _identity(value: Any) -> Any:
    return value


class DocumentStore:
    """Reads and writes JSON documents with retries.

    Attributes:
        channel: Byte-level storage backend
        retry_cfg: Attempt budget and backoff settings
        reporter: Receives retry notifications
        verify_writes: Read every write back and retry on mismatch
    """

    def __init__(
        self,
        channel: Channel,
        retry_cfg: RetryConfig | None = None,
        reporter: RunReporter | None = None,
        verify_writes: bool = True,
        sleep: Callable[[float], Awaitable[object]] | None = None,
        rng: Callable[[], float] = random.random,
    ):
        self.channel = channel
        self.retry_cfg = retry_cfg or RetryConfig()
        self.reporter = reporter
        self.verify_writes = verify_writes
        self._sleep = sleep
        self._rng = rng

    async def read(self, key: str, parse: Callable[[Any], T] = _identity) -> T:
        """Read, decode and parse the document stored under ``key``.

        Decoding happens inside the retried attempt so a truncated payload
        surfaces as a retryable ``MalformedDocument``. ``parse`` converts the
        decoded JSON into a domain value. A missing key or a
        ``DocumentSchemaError`` ends the loop after one attempt, since no
        retry can fix either; the cause is kept as ``last_error``.

        Raises:
            RetryExhausted: If every attempt failed, the key does not exist,
                or the document has the wrong shape
        """

        async def attempt() -> T:
            raw = await self.channel.read(key)
            return parse(decode_document(raw))

        return await self._retry(
            attempt,
            label=f"read {key}",
            give_up_on=(EntryNotFound, DocumentSchemaError),
        )

    async def write(self, key: str, document: Any) -> None:
        """Encode ``document`` and write it under ``key``.

        With ``verify_writes`` each attempt reads the key back and the
        attempt only counts as successful when the stored bytes equal the
        encoded payload, which catches truncated writes.

        Raises:
            RetryExhausted: If every attempt failed
        """
        payload = encode_document(document)

        async def attempt() -> bytes:
            await self.channel.write(key, payload)
            if not self.verify_writes:
                return payload
            return await self.channel.read(key)

        await self._retry(
            attempt,
            label=f"write {key}",
            validator=lambda stored: stored == payload,
        )

    async def _retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        label: str,
        validator: Callable[[T], bool] | None = None,
        give_up_on: tuple[type[BaseException], ...] = (),
    ) -> T:
        cfg = self.retry_cfg
        kwargs: dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return await retry_with_backoff(
            operation,
            max_attempts=cfg.max_attempts,
            base_delay=cfg.base_delay_seconds,
            max_jitter=cfg.max_jitter_seconds,
            validator=validator,
            attempt_timeout=cfg.attempt_timeout_seconds,
            give_up_on=give_up_on,
            label=label,
            reporter=self.reporter,
            rng=self._rng,
            **kwargs,
        )
