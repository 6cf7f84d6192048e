"""Abstract interface and shared plumbing for similarity providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
import json
import logging
from typing import Any, Sequence

import httpx

from ...config import LoggingConfig, ProviderConfig
from ...errors import SimilarityServiceError
from ...logging_utils import log_event, redact_text, truncate_text
from ...types import Article, SimilarTo
from ..prompts import build_similarity_prompt
from ..tracing import record_span_error, set_span_output, start_span

logger = logging.getLogger(__name__)


class SimilarityProvider(ABC):
    """Finds the prior article most similar to a new one.

    Subclasses only implement ``_complete``: send one prompt, return the raw
    text content. Prompting, tracing, logging and response validation live
    here so every backend reports failures the same way.
    """

    name = "base"
    default_model: str | None = None
    default_base_url: str | None = None
    default_api_key_env: str | None = None

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        log_cfg: LoggingConfig | None = None,
        llm_logger: logging.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        cfg = self.resolve_config(cfg)
        if not api_key:
            raise ValueError(f"Missing API key for provider '{cfg.name}' (set {cfg.api_key_env})")
        self.cfg = cfg
        self.api_key = api_key
        self.log_cfg = log_cfg or LoggingConfig()
        self.llm_logger = llm_logger
        self.transport = transport

    @classmethod
    def resolve_config(cls, cfg: ProviderConfig) -> ProviderConfig:
        """Fill unset model, base URL and key variable with this provider's defaults."""
        return replace(
            cfg,
            model=cfg.model or cls.default_model,
            base_url=cfg.base_url or cls.default_base_url,
            api_key_env=cfg.api_key_env or cls.default_api_key_env,
        )

    @abstractmethod
    def _complete(self, prompt: str) -> str:
        """Send ``prompt`` and return the model's text content."""
        raise NotImplementedError

    def find_similar(self, article: Article, previous_articles: Sequence[Article]) -> SimilarTo:
        """Ask the model which prior article is most similar to ``article``.

        Raises:
            SimilarityServiceError: On transport errors, empty content, or a
                response that is not ``{"title": str | null, "reason": str}``
        """
        prompt = build_similarity_prompt(article, previous_articles)
        with start_span(
            f"{self.name}.find_similar",
            kind="llm",
            input_value=prompt,
            attributes={
                "llm.model": self.cfg.model,
                "llm.provider": self.name,
                "article.title": article.title,
                "corpus.size": len(previous_articles),
            },
        ) as span:
            content = ""
            try:
                content = self._complete(prompt)
                set_span_output(span, content)
                result = parse_similarity_response(content)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                record_span_error(span, exc)
                self._log_llm_response(article, "provider_error", str(exc), prompt)
                raise SimilarityServiceError(f"{self.name} request failed: {exc}") from exc
            except SimilarityServiceError as exc:
                record_span_error(span, exc)
                self._log_llm_response(article, "parse_error", content, prompt)
                raise

        self._log_llm_response(article, "ok", content, prompt)
        known_titles = {prev.title for prev in previous_articles}
        if result.title is not None and result.title not in known_titles:
            logger.warning(f"Similar title is not in the prior corpus: {result.title!r}")
        return result

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.cfg.timeout_seconds,
            trust_env=self.cfg.trust_env,
            transport=self.transport,
        )

    def _log_llm_response(self, article: Article, status: str, content: str, prompt: str) -> None:
        if self.llm_logger is None:
            return
        redaction = self.log_cfg.llm_log_redaction
        payload: dict[str, Any] = {
            "event": "llm_similarity_response",
            "status": status,
            "provider": self.name,
            "model": self.cfg.model,
            "article_title": article.title,
            "raw_response": truncate_text(redact_text(content, redaction)),
        }
        if self.log_cfg.llm_log_detail == "prompt_response":
            payload["raw_prompt"] = truncate_text(redact_text(prompt, redaction))
        log_event(self.llm_logger, "LLM response", **payload)


def parse_similarity_response(content: str) -> SimilarTo:
    """Validate model output into a SimilarTo.

    Tolerates fenced JSON and surrounding prose. A ``"null"`` or empty string
    title is read as no match.
    """
    if not content or not content.strip():
        raise SimilarityServiceError("No response content from similarity service")
    try:
        obj = _parse_json_response(content)
    except json.JSONDecodeError as exc:
        raise SimilarityServiceError(f"Similarity response is not valid JSON: {exc.msg}") from exc
    if not isinstance(obj, dict):
        raise SimilarityServiceError("Similarity response must be a JSON object")

    title = obj.get("title")
    if isinstance(title, str) and title.strip().lower() in ("", "null", "none"):
        title = None
    if title is not None and not isinstance(title, str):
        raise SimilarityServiceError("Similarity response 'title' must be a string or null")

    reason = obj.get("reason")
    if not isinstance(reason, str):
        raise SimilarityServiceError("Similarity response 'reason' must be a string")

    try:
        return SimilarTo(title=title, reason=reason.strip())
    except ValueError as exc:
        raise SimilarityServiceError(str(exc)) from exc


def _parse_json_response(content: str) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        extracted = _extract_json_snippet(content)
        return json.loads(extracted)


def _extract_json_snippet(content: str) -> str:
    fence = _extract_fenced_json(content)
    if fence:
        return fence
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise json.JSONDecodeError("No JSON object found", content, 0)
    return content[start : end + 1]


def _extract_fenced_json(content: str) -> str | None:
    lines = content.splitlines()
    start_idx = None
    for idx, line in enumerate(lines):
        if line.strip().startswith("```") and "json" in line.lower():
            start_idx = idx + 1
            break
    if start_idx is None:
        return None
    for idx in range(start_idx, len(lines)):
        if lines[idx].strip().startswith("```"):
            snippet = "\n".join(lines[start_idx:idx]).strip()
            return snippet or None
    return None
