"""
Structural diff between two versions of an enriched article.

The diff is sparse: only fields whose values differ are reported, so an
empty ``changed`` mapping means the two versions are identical.
"""

from __future__ import annotations

from types import MappingProxyType

from .types import ChangeEntry, Diff, EnrichedArticle, FieldChange

SCALAR_FIELDS = ("title", "summary", "category")


def generate_diff(previous: EnrichedArticle, current: EnrichedArticle) -> Diff:
    """Compute the field-level delta from ``previous`` to ``current``.

    Comparison rules:
    1. ``title``, ``summary`` and ``category`` by exact equality
    2. ``takeaways`` as one ordered field; a reorder counts as a change
    3. ``similarTo`` per subfield (``title``, ``reason``), nested under
       ``similarTo`` and omitted entirely when both subfields match

    Args:
        previous: Output of the earlier run
        current: Output of this run

    Returns:
        Diff holding only the changed fields
    """
    changed: dict[str, ChangeEntry] = {}

    for name in SCALAR_FIELDS:
        before = getattr(previous, name)
        after = getattr(current, name)
        if before != after:
            changed[name] = FieldChange(before=before, after=after)

    if not _same_sequence(previous.takeaways, current.takeaways):
        changed["takeaways"] = FieldChange(before=previous.takeaways, after=current.takeaways)

    similar_changes: dict[str, FieldChange] = {}
    if previous.similar_to.title != current.similar_to.title:
        similar_changes["title"] = FieldChange(
            before=previous.similar_to.title,
            after=current.similar_to.title,
        )
    if previous.similar_to.reason != current.similar_to.reason:
        similar_changes["reason"] = FieldChange(
            before=previous.similar_to.reason,
            after=current.similar_to.reason,
        )
    if similar_changes:
        changed["similarTo"] = MappingProxyType(similar_changes)

    return Diff(changed=changed)


def _same_sequence(left: tuple[str, ...], right: tuple[str, ...]) -> bool:
    if len(left) != len(right):
        return False
    return all(a == b for a, b in zip(left, right))
