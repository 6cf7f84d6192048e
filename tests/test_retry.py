"""Tests for retry_with_backoff."""

from __future__ import annotations

import asyncio

import pytest

from article_enricher.errors import (
    AttemptTimeout,
    ChannelFailure,
    EntryNotFound,
    RetryExhausted,
    ValidationFailure,
)
from article_enricher.reporting import NullReporter
from article_enricher.retry import retry_with_backoff


class _RecordingReporter(NullReporter):
    def __init__(self):
        self.retries = []

    def on_retry(self, label, attempt, error, delay):
        self.retries.append((label, attempt, type(error).__name__, delay))


def _flaky(failures: int, value="ok"):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise ChannelFailure(f"boom {calls['count']}")
        return value

    return operation, calls


def _sleeper():
    delays: list[float] = []

    async def fake_sleep(delay):
        delays.append(delay)

    return fake_sleep, delays


def test_succeeds_after_k_failures():
    operation, calls = _flaky(3, value={"a": 1})
    fake_sleep, delays = _sleeper()

    result = asyncio.run(
        retry_with_backoff(operation, max_attempts=5, sleep=fake_sleep, rng=lambda: 0.0)
    )

    assert result == {"a": 1}
    assert calls["count"] == 4
    assert len(delays) == 3


def test_always_failing_operation_names_attempt_count():
    operation, calls = _flaky(100)
    fake_sleep, delays = _sleeper()

    with pytest.raises(RetryExhausted) as excinfo:
        asyncio.run(
            retry_with_backoff(
                operation, max_attempts=4, label="read x", sleep=fake_sleep, rng=lambda: 0.0
            )
        )

    assert calls["count"] == 4
    assert excinfo.value.attempts == 4
    assert "after 4 attempts" in str(excinfo.value)
    assert "boom 4" in str(excinfo.value)
    assert isinstance(excinfo.value.last_error, ChannelFailure)
    # No sleep after the final attempt
    assert len(delays) == 3


def test_backoff_doubles_and_adds_jitter():
    operation, _ = _flaky(100)
    fake_sleep, delays = _sleeper()

    with pytest.raises(RetryExhausted):
        asyncio.run(
            retry_with_backoff(
                operation,
                max_attempts=4,
                base_delay=1.0,
                max_jitter=1.0,
                sleep=fake_sleep,
                rng=lambda: 0.25,
            )
        )

    assert delays == [1.25, 2.25, 4.25]


def test_validator_rejection_is_retried():
    results = iter(["partial", "partial", "complete"])

    async def operation():
        return next(results)

    fake_sleep, delays = _sleeper()
    result = asyncio.run(
        retry_with_backoff(
            operation,
            validator=lambda value: value == "complete",
            sleep=fake_sleep,
            rng=lambda: 0.0,
        )
    )

    assert result == "complete"
    assert len(delays) == 2


def test_validator_exhaustion_reports_validation_failure():
    async def operation():
        return "partial"

    fake_sleep, _ = _sleeper()
    with pytest.raises(RetryExhausted) as excinfo:
        asyncio.run(
            retry_with_backoff(
                operation, max_attempts=2, validator=lambda _: False, sleep=fake_sleep
            )
        )

    assert isinstance(excinfo.value.last_error, ValidationFailure)
    assert "Invalid or partial data received" in str(excinfo.value)


def test_give_up_on_stops_after_one_attempt():
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        raise EntryNotFound("missing.json")

    fake_sleep, delays = _sleeper()
    with pytest.raises(RetryExhausted) as excinfo:
        asyncio.run(
            retry_with_backoff(
                operation, give_up_on=(EntryNotFound,), label="read missing.json", sleep=fake_sleep
            )
        )

    assert calls["count"] == 1
    assert delays == []
    assert excinfo.value.attempts == 1
    assert isinstance(excinfo.value.last_error, EntryNotFound)
    assert isinstance(excinfo.value.__cause__, EntryNotFound)
    assert "read missing.json failed after 1 attempts" in str(excinfo.value)
    assert "No entry stored under key: missing.json" in str(excinfo.value)


def test_attempt_timeout_turns_stall_into_retryable_failure():
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] == 1:
            await asyncio.sleep(10)
        return "done"

    fake_sleep, _ = _sleeper()
    reporter = _RecordingReporter()
    result = asyncio.run(
        retry_with_backoff(
            operation,
            attempt_timeout=0.01,
            sleep=fake_sleep,
            reporter=reporter,
            label="slow op",
        )
    )

    assert result == "done"
    assert calls["count"] == 2
    assert reporter.retries[0][:3] == ("slow op", 1, AttemptTimeout.__name__)


def test_reporter_sees_each_retry():
    operation, _ = _flaky(2)
    fake_sleep, _ = _sleeper()
    reporter = _RecordingReporter()

    asyncio.run(
        retry_with_backoff(
            operation, label="op", reporter=reporter, sleep=fake_sleep, rng=lambda: 0.0
        )
    )

    assert [(label, attempt) for label, attempt, _, _ in reporter.retries] == [("op", 1), ("op", 2)]


def test_rejects_non_positive_attempts():
    async def operation():
        return 1

    with pytest.raises(ValueError):
        asyncio.run(retry_with_backoff(operation, max_attempts=0))
