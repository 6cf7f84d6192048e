"""
Retry with exponential backoff, jitter and result validation.

Every channel operation in the workflow goes through ``retry_with_backoff``.
Transient failures (channel errors, stalls past the attempt timeout,
truncated payloads that fail to parse or validate) are absorbed up to the
attempt budget. Errors listed in ``give_up_on`` stop the loop early; either
way the caller only ever sees ``RetryExhausted``, chained from the cause.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

from .errors import AttemptTimeout, RetryExhausted, ValidationFailure
from .reporting import RunReporter

T = TypeVar("T")


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 5,
    base_delay: float = 1.0,
    max_jitter: float = 1.0,
    validator: Callable[[T], bool] | None = None,
    attempt_timeout: float | None = None,
    give_up_on: tuple[type[BaseException], ...] = (),
    label: str = "operation",
    reporter: RunReporter | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
) -> T:
    """Run ``operation`` until it succeeds or the attempt budget is spent.

    The delay before attempt ``n + 1`` (zero-based ``n``) is
    ``base_delay * 2**n + rng() * max_jitter`` seconds.

    Args:
        operation: Zero-argument callable returning an awaitable result
        max_attempts: Total number of attempts, including the first
        base_delay: Backoff base in seconds
        max_jitter: Upper bound (exclusive) of the random jitter in seconds
        validator: Optional predicate; a false result fails the attempt
        attempt_timeout: Seconds allowed per attempt, or None to wait it out
        give_up_on: Exception types that end the loop without further attempts
        label: Operation name used in reports and the final error
        reporter: Notified of each failed attempt that will be retried
        sleep: Awaitable sleep, injectable for tests
        rng: Source of uniform floats in [0, 1) for jitter

    Returns:
        The first result that did not raise and passed the validator

    Raises:
        RetryExhausted: After ``max_attempts`` failed attempts, or at once when
            the operation raises one of ``give_up_on``
        ValueError: If ``max_attempts`` is less than 1
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Exception | None = None

    for attempt in range(max_attempts):
        try:
            if attempt_timeout is None:
                result = await operation()
            else:
                result = await _with_timeout(operation, attempt_timeout)

            if validator is not None and not validator(result):
                raise ValidationFailure("Invalid or partial data received")

            return result
        except give_up_on as exc:
            raise RetryExhausted(label, attempt + 1, exc) from exc
        except Exception as exc:  # noqa: BLE001
            last_error = exc
            if attempt == max_attempts - 1:
                break

            delay = base_delay * (2**attempt) + rng() * max_jitter
            if reporter is not None:
                reporter.on_retry(label, attempt + 1, exc, delay)
            await sleep(delay)

    raise RetryExhausted(label, max_attempts, last_error) from last_error


async def _with_timeout(operation: Callable[[], Awaitable[T]], timeout: float) -> T:
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise AttemptTimeout(f"Attempt timed out after {timeout:g}s") from exc
