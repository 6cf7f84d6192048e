"""
Core data types for the Article Enricher.

This module defines the immutable values passed through the workflow:
- Article: The source record read from storage
- SimilarTo: The similarity annotation returned by the reasoning service
- EnrichedArticle: Article plus its similarity annotation (the output document)
- FieldChange / Diff: Sparse before/after description between two outputs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union


@dataclass(frozen=True)
class Article:
    """A structured article record.

    Attributes:
        title: The article headline
        summary: Short prose summary of the article
        category: Editorial category the article is filed under
        takeaways: Ordered key takeaways; order is significant
    """
    title: str
    summary: str
    category: str
    takeaways: tuple[str, ...]

    def enrich(self, similar_to: "SimilarTo") -> "EnrichedArticle":
        """Return a new EnrichedArticle carrying this article's fields."""
        return EnrichedArticle(
            title=self.title,
            summary=self.summary,
            category=self.category,
            takeaways=self.takeaways,
            similar_to=similar_to,
        )


@dataclass(frozen=True)
class SimilarTo:
    """Similarity annotation.

    A ``title`` of None means no sufficiently similar prior article was found.
    A non-null title always comes with a non-empty reason.
    """
    title: str | None
    reason: str

    def __post_init__(self) -> None:
        if self.title is not None and not self.reason:
            raise ValueError("A similar article title requires a non-empty reason")


@dataclass(frozen=True)
class EnrichedArticle(Article):
    """Article enriched with a similarity annotation."""
    similar_to: SimilarTo


@dataclass(frozen=True)
class FieldChange:
    before: Any
    after: Any


ChangeEntry = Union[FieldChange, Mapping[str, FieldChange]]


@dataclass(frozen=True)
class Diff:
    """Field-level delta between two EnrichedArticle versions.

    ``changed`` only holds fields whose values differ. Nested fields
    (``similarTo``) map to a mapping of subfield name to FieldChange.
    """
    changed: Mapping[str, ChangeEntry] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changed", MappingProxyType(dict(self.changed)))

    @property
    def is_empty(self) -> bool:
        return not self.changed


EMPTY_DIFF = Diff()
