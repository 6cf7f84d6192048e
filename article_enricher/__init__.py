"""
Article Enricher - similarity annotation over unreliable storage.

This package reads an article and a corpus of earlier articles from a
storage channel, asks an LLM which earlier article is most similar, and
writes the enriched article plus a field-level diff against the previous
run. Storage access is wrapped in retries with backoff and validation so
the workflow survives failing, stalling and truncating backends.

Main entry point is the CLI via `article-enricher run` command.

Example:
    $ article-enricher run --root data/ --no-simulate-faults
"""

__all__ = [
    "__version__",
    "Article",
    "EnrichedArticle",
    "SimilarTo",
    "Diff",
    "FieldChange",
    "generate_diff",
    "retry_with_backoff",
    "DocumentStore",
    "enrich",
]
__version__ = "0.1.0"

from .diff import generate_diff
from .retry import retry_with_backoff
from .runner import enrich
from .storage import DocumentStore
from .types import Article, Diff, EnrichedArticle, FieldChange, SimilarTo
