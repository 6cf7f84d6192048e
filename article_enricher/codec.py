"""JSON codec for documents moved across the storage channel.

Encoding is deterministic: key order follows the ``*_to_dict`` helpers and no
trailing newline is written, so an unchanged value always produces identical
bytes. Decoding is the truncation detector: a cut-off JSON object or array
never parses, and a cut inside a multi-byte character never decodes.
"""

from __future__ import annotations

import json
from typing import Any

from .errors import DocumentSchemaError, MalformedDocument
from .types import Article, Diff, EnrichedArticle, FieldChange, SimilarTo


def encode_document(value: Any) -> bytes:
    """Serialize a JSON-compatible value to UTF-8 bytes."""
    return json.dumps(value, indent=2, ensure_ascii=False).encode("utf-8")


def decode_document(data: bytes) -> Any:
    """Parse UTF-8 JSON bytes.

    Raises:
        MalformedDocument: If the bytes are not valid UTF-8 or valid JSON
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"Document is not valid UTF-8: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedDocument(f"Document is not valid JSON: {exc.msg} at char {exc.pos}") from exc


def article_to_dict(article: Article) -> dict[str, Any]:
    return {
        "title": article.title,
        "summary": article.summary,
        "category": article.category,
        "takeaways": list(article.takeaways),
    }


def article_from_dict(data: Any) -> Article:
    """Build an Article from a decoded document.

    Raises:
        DocumentSchemaError: If a field is missing or has the wrong type
    """
    obj = _require_object(data, "article")
    return Article(
        title=_require_str(obj, "title"),
        summary=_require_str(obj, "summary"),
        category=_require_str(obj, "category"),
        takeaways=_require_str_list(obj, "takeaways"),
    )


def enriched_to_dict(article: EnrichedArticle) -> dict[str, Any]:
    payload = article_to_dict(article)
    payload["similarTo"] = {
        "title": article.similar_to.title,
        "reason": article.similar_to.reason,
    }
    return payload


def enriched_from_dict(data: Any) -> EnrichedArticle:
    obj = _require_object(data, "enriched article")
    base = article_from_dict(obj)
    return base.enrich(similar_to_from_dict(obj.get("similarTo")))


def similar_to_from_dict(data: Any) -> SimilarTo:
    obj = _require_object(data, "similarTo")
    title = obj.get("title")
    if title is not None and not isinstance(title, str):
        raise DocumentSchemaError("Field 'similarTo.title' must be a string or null")
    reason = _require_str(obj, "reason")
    try:
        return SimilarTo(title=title, reason=reason)
    except ValueError as exc:
        raise DocumentSchemaError(str(exc)) from exc


def corpus_from_document(data: Any) -> tuple[Article, ...]:
    """Build the ordered prior corpus from a decoded JSON array."""
    if not isinstance(data, list):
        raise DocumentSchemaError("Prior corpus must be a JSON array of articles")
    return tuple(article_from_dict(item) for item in data)


def diff_to_dict(diff: Diff) -> dict[str, Any]:
    changed: dict[str, Any] = {}
    for name, entry in diff.changed.items():
        if isinstance(entry, FieldChange):
            changed[name] = _change_to_dict(entry)
        else:
            changed[name] = {sub: _change_to_dict(change) for sub, change in entry.items()}
    return {"changed": changed}


def _change_to_dict(change: FieldChange) -> dict[str, Any]:
    return {"before": _jsonable(change.before), "after": _jsonable(change.after)}


def _jsonable(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DocumentSchemaError(f"Expected {what} to be a JSON object, got {type(data).__name__}")
    return data


def _require_str(obj: dict[str, Any], name: str) -> str:
    value = obj.get(name)
    if not isinstance(value, str):
        raise DocumentSchemaError(f"Field '{name}' must be a string")
    return value


def _require_str_list(obj: dict[str, Any], name: str) -> tuple[str, ...]:
    value = obj.get(name)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise DocumentSchemaError(f"Field '{name}' must be an array of strings")
    return tuple(value)
