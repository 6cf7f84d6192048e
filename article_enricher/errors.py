"""Exception hierarchy for the enrichment workflow.

Failures are grouped so the runner can tell transient storage problems
(retried by ``retry_with_backoff``) from terminal ones (schema mismatches,
exhausted retries, provider errors) and from the one non-error signal,
``PriorOutputAbsent``.
"""

from __future__ import annotations

__all__ = [
    "EnricherError",
    "ChannelFailure",
    "EntryNotFound",
    "AttemptTimeout",
    "MalformedDocument",
    "DocumentSchemaError",
    "ValidationFailure",
    "RetryExhausted",
    "SimilarityServiceError",
    "PriorOutputAbsent",
    "WritesFailed",
]


class EnricherError(RuntimeError):
    """Base exception for every failure raised by this package."""


class ChannelFailure(EnricherError):
    """Raised when a storage channel operation fails outright."""


class EntryNotFound(ChannelFailure):
    """Raised when a key has never been written to the channel."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No entry stored under key: {key}")
        self.key = key


class AttemptTimeout(ChannelFailure):
    """Raised when a single attempt exceeds the caller's per-attempt timeout."""


class MalformedDocument(EnricherError):
    """Raised when channel bytes do not parse as a JSON document."""


class DocumentSchemaError(EnricherError):
    """Raised when a parsed document does not have the expected shape."""


class ValidationFailure(EnricherError):
    """Raised when a validator rejects the result of a successful call."""


class RetryExhausted(EnricherError):
    """Raised after every attempt of a retried operation has failed."""

    def __init__(self, label: str, attempts: int, last_error: BaseException | None) -> None:
        detail = str(last_error) if last_error is not None else "unknown error"
        super().__init__(f"{label} failed after {attempts} attempts: {detail}")
        self.label = label
        self.attempts = attempts
        self.last_error = last_error


class SimilarityServiceError(EnricherError):
    """Raised when the reasoning service returns nothing usable."""


class PriorOutputAbsent(EnricherError):
    """Signals a first run: there is no readable previous output to diff against."""


class WritesFailed(EnricherError):
    """Raised when one or both of the final concurrent writes failed."""

    def __init__(self, failures: dict[str, BaseException]) -> None:
        parts = "; ".join(f"{key}: {exc}" for key, exc in failures.items())
        super().__init__(f"{len(failures)} write(s) failed: {parts}")
        self.failures = dict(failures)
