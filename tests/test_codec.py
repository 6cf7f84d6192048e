"""Tests for the JSON document codec."""

from __future__ import annotations

import pytest

from article_enricher.codec import (
    article_from_dict,
    corpus_from_document,
    decode_document,
    encode_document,
    enriched_from_dict,
    enriched_to_dict,
)
from article_enricher.errors import DocumentSchemaError, MalformedDocument
from article_enricher.types import Article, SimilarTo


def _enriched():
    article = Article(
        title="Ünïcode titles",
        summary="Summary with emoji 🚀",
        category="Misc",
        takeaways=("one", "two", "three"),
    )
    return article.enrich(SimilarTo(title=None, reason="no match"))


def test_encode_is_deterministic():
    first = encode_document(enriched_to_dict(_enriched()))
    second = encode_document(enriched_to_dict(_enriched()))
    assert first == second
    assert not first.endswith(b"\n")


def test_encode_keeps_field_order():
    text = encode_document(enriched_to_dict(_enriched())).decode("utf-8")
    positions = [text.index(f'"{name}"') for name in ("title", "summary", "category", "takeaways", "similarTo")]
    assert positions == sorted(positions)


def test_decode_roundtrip_of_enriched_article():
    article = _enriched()
    assert enriched_from_dict(decode_document(encode_document(enriched_to_dict(article)))) == article


@pytest.mark.parametrize("fraction", [0.5, 0.55, 0.6, 0.65, 0.7, 0.75, 0.8, 0.85, 0.89])
def test_truncated_payload_fails_to_decode(fraction):
    data = encode_document(enriched_to_dict(_enriched()))
    truncated = data[: int(len(data) * fraction)]

    with pytest.raises(MalformedDocument):
        decode_document(truncated)


def test_every_proper_prefix_of_an_object_fails_to_decode():
    data = encode_document({"title": "A", "takeaways": ["t1"]})
    for cut in range(1, len(data)):
        with pytest.raises(MalformedDocument):
            decode_document(data[:cut])


def test_decode_rejects_split_multibyte_character():
    data = "{\"title\": \"é\"}".encode("utf-8")
    cut = data.index("é".encode("utf-8")) + 1
    with pytest.raises(MalformedDocument, match="UTF-8"):
        decode_document(data[:cut])


def test_article_from_dict_rejects_wrong_types():
    with pytest.raises(DocumentSchemaError, match="takeaways"):
        article_from_dict({"title": "A", "summary": "S", "category": "C", "takeaways": "t1"})
    with pytest.raises(DocumentSchemaError):
        article_from_dict(["not", "an", "object"])


def test_enriched_from_dict_enforces_reason_when_title_present():
    payload = {
        "title": "A",
        "summary": "S",
        "category": "C",
        "takeaways": [],
        "similarTo": {"title": "B", "reason": ""},
    }
    with pytest.raises(DocumentSchemaError):
        enriched_from_dict(payload)


def test_corpus_requires_array():
    with pytest.raises(DocumentSchemaError):
        corpus_from_document({"articles": []})
    assert corpus_from_document([]) == ()
