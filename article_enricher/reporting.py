"""Observer interface for retry attempts and run progress.

The resilience core never writes to a console directly; it calls a
``RunReporter`` and the CLI decides how that is presented.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import TYPE_CHECKING, Any

from .logging_utils import log_event

if TYPE_CHECKING:
    from .runner import EnrichmentResult, RunState


class RunReporter(ABC):
    """Receives progress notifications from the retry layer and the runner."""

    @abstractmethod
    def on_retry(self, label: str, attempt: int, error: BaseException, delay: float) -> None:
        """Called after a failed attempt, before sleeping ``delay`` seconds."""
        raise NotImplementedError

    @abstractmethod
    def on_state(self, state: "RunState", **details: Any) -> None:
        """Called when the runner enters a new state."""
        raise NotImplementedError

    @abstractmethod
    def on_complete(self, result: "EnrichmentResult") -> None:
        """Called once after both final writes succeeded."""
        raise NotImplementedError


class NullReporter(RunReporter):
    def on_retry(self, label: str, attempt: int, error: BaseException, delay: float) -> None:
        return None

    def on_state(self, state: "RunState", **details: Any) -> None:
        return None

    def on_complete(self, result: "EnrichmentResult") -> None:
        return None


class LoggingReporter(RunReporter):
    """Reporter that emits structured records on a standard logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("article_enricher")

    def on_retry(self, label: str, attempt: int, error: BaseException, delay: float) -> None:
        self.logger.warning(
            f"Attempt {attempt} of {label} failed: {error}. Retrying in {round(delay * 1000)}ms...",
            extra={
                "event": "retry",
                "operation": label,
                "attempt": attempt,
                "error_type": type(error).__name__,
                "delay_seconds": round(delay, 3),
            },
        )

    def on_state(self, state: "RunState", **details: Any) -> None:
        log_event(self.logger, f"State: {state.value}", event="state", state=state.value, **details)

    def on_complete(self, result: "EnrichmentResult") -> None:
        log_event(
            self.logger,
            "Files written successfully",
            event="run_complete",
            first_run=result.first_run,
            changed_fields=sorted(result.diff.changed),
        )
