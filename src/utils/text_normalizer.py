"""Name normalization utilities for artist identity resolution.

Two concerns live here:

1. **Lookup keys** -- the deterministic key an artist identity is stored
   under.  Only case and surrounding whitespace are folded, so
   "Kraftwerk", "kraftwerk" and "  Kraftwerk  " share one key while
   "DJ Shadow" and "Shadow" stay distinct (that is what aliases are for).

2. **Suggestions** -- rapidfuzz ``token_sort_ratio`` near-miss matching used
   to suggest stored names when a read-only lookup finds nothing.
"""

from rapidfuzz import fuzz, process


def lookup_key(name: str) -> str:
    """Return the case-folded, trimmed lookup key for an artist name.

    Args:
        name: Raw artist name as observed.

    Returns:
        Lowercased name with leading/trailing whitespace removed.
    """
    return name.strip().lower()


def display_name(name: str) -> str:
    """Return the name as it should be stored for presentation (trimmed only)."""
    return name.strip()


def fuzzy_suggestions(
    query: str,
    candidates: list[str],
    threshold: float = 0.8,
    limit: int = 5,
) -> list[str]:
    """Return up to ``limit`` candidates similar to ``query``, best first.

    Comparison is case-insensitive; the returned strings are the original
    candidates.
    """
    if not candidates:
        return []

    folded = [c.lower() for c in candidates]
    matches = process.extract(
        query.strip().lower(),
        folded,
        scorer=fuzz.token_sort_ratio,
        score_cutoff=threshold * 100,
        limit=limit,
    )
    return [candidates[index] for _, _, index in matches]
