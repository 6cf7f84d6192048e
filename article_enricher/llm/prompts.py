"""Prompt builders for the similarity lookup."""

from __future__ import annotations

from typing import Sequence

from ..types import Article

SYSTEM_PROMPT = "You are a semantic analysis expert. Respond only with valid JSON."

SIMILARITY_THRESHOLD_PERCENT = 40


def build_similarity_prompt(article: Article, previous_articles: Sequence[Article]) -> str:
    """Render the user prompt comparing ``article`` against the prior corpus."""
    previous_block = "\n".join(
        _format_previous(idx, prev) for idx, prev in enumerate(previous_articles, start=1)
    )
    if not previous_block:
        previous_block = "(no previous articles)"

    return (
        "You are an expert at analyzing semantic similarity between articles.\n\n"
        "Given this NEW article:\n"
        f'Title: "{article.title}"\n'
        f"Summary: {article.summary}\n"
        f"Category: {article.category}\n"
        f"Takeaways: {', '.join(article.takeaways)}\n\n"
        "And these PREVIOUS articles:\n"
        f"{previous_block}\n\n"
        "Analyze the semantic similarity between the new article and each previous article. "
        "Consider:\n"
        "- Core topics and themes\n"
        "- Target audience and use cases\n"
        "- Technical concepts and domains\n"
        "- Practical applications\n\n"
        "Find the MOST semantically similar article. If none match well "
        f"(similarity < {SIMILARITY_THRESHOLD_PERCENT}%), return null for the title.\n\n"
        "Respond in JSON format with:\n"
        "{\n"
        '  "title": "exact title of most similar article or null",\n'
        '  "reason": "detailed explanation of why they are similar, or why none match"\n'
        "}"
    )


def _format_previous(idx: int, prev: Article) -> str:
    return (
        f'{idx}. Title: "{prev.title}"\n'
        f"   Summary: {prev.summary}\n"
        f"   Category: {prev.category}\n"
        f"   Takeaways: {', '.join(prev.takeaways)}"
    )
