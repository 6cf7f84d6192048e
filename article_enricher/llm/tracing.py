"""
Optional Langfuse span around the similarity call.

Tracing is off unless ``langfuse.enabled`` is set, both keys resolve (from
config or ``LANGFUSE_*`` env vars) and the SDK imports. Otherwise every
helper here does nothing and spans are ``None``.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import logging
import os
from typing import Any, Iterator

from ..config import LangfuseConfig
from ..logging_utils import truncate_text

logger = logging.getLogger(__name__)

_TRACER = None
_MAX_CHARS: int | None = None


def setup_langfuse(cfg: LangfuseConfig) -> None:
    global _TRACER, _MAX_CHARS  # noqa: PLW0603
    _TRACER = None
    _MAX_CHARS = cfg.max_text_chars
    if not cfg.enabled:
        return

    settings = {
        "public_key": cfg.public_key or os.getenv("LANGFUSE_PUBLIC_KEY"),
        "secret_key": cfg.secret_key or os.getenv("LANGFUSE_SECRET_KEY"),
        "host": cfg.host or os.getenv("LANGFUSE_HOST"),
        "environment": cfg.environment or os.getenv("LANGFUSE_ENVIRONMENT"),
        "release": cfg.release or os.getenv("LANGFUSE_RELEASE"),
    }
    if not (settings["public_key"] and settings["secret_key"]):
        logger.info("Langfuse enabled but keys are missing; tracing stays off")
        return
    try:
        from langfuse import Langfuse  # type: ignore
    except ImportError:
        logger.info("langfuse is not installed; tracing stays off")
        return
    _TRACER = Langfuse(**settings)


def get_tracer():
    return _TRACER


@contextmanager
def start_span(
    name: str,
    kind: str,
    input_value: Any | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Any | None]:
    """Yield a Langfuse span for the enclosed block, or None when tracing is off."""
    if _TRACER is None:
        yield None
        return
    metadata = {"span.kind": kind, **(attributes or {})}
    with _TRACER.start_as_current_span(name=name, input=_clip(input_value), metadata=metadata) as span:
        yield span


def set_span_output(span: Any | None, output_value: Any) -> None:
    if span is not None and output_value is not None:
        _update(span, output=_clip(output_value))


def record_span_error(span: Any | None, exc: Exception) -> None:
    if span is not None:
        _update(span, level="ERROR", status_message=str(exc))


def flush() -> None:
    """Send buffered spans; call once before the process exits."""
    if _TRACER is None:
        return
    try:
        _TRACER.flush()
    except Exception as exc:  # noqa: BLE001
        logger.debug(f"Langfuse flush failed: {exc}")


def _clip(value: Any) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return truncate_text(text, _MAX_CHARS) if _MAX_CHARS else text


def _update(span: Any, **fields: Any) -> None:
    try:
        span.update(**fields)
    except Exception as exc:  # noqa: BLE001
        logger.debug(f"Langfuse span update failed: {exc}")
