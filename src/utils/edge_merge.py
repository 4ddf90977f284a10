"""Conflict policy for repeated observations of the same influence edge.

An edge is keyed on (source, target, kind).  When the same triple is seen
again the stored values only ever move toward the strongest evidence:

- **weight** becomes ``max(stored, observed)``; a weaker observation never
  lowers it.
- **context** is replaced only when the new observation supplies one, so
  the last non-null context wins and a bare observation keeps the old text.

Kept free of I/O so the provider can apply it inside its own transaction.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MergedEdge:
    weight: float
    context: str | None


def merge_edge(
    stored_weight: float | None,
    stored_context: str | None,
    observed_weight: float,
    observed_context: str | None,
) -> MergedEdge:
    """Combine a stored edge with a new observation.

    Args:
        stored_weight: Current weight, or ``None`` if the edge does not exist yet.
        stored_context: Current context (ignored when ``stored_weight`` is None).
        observed_weight: Weight carried by the new observation.
        observed_context: Context carried by the new observation, if any.

    Returns:
        The weight and context to persist.
    """
    if stored_weight is None:
        return MergedEdge(weight=observed_weight, context=observed_context)

    weight = max(stored_weight, observed_weight)
    context = observed_context if observed_context is not None else stored_context
    return MergedEdge(weight=weight, context=context)
