"""Utility modules for the influence graph cache.

- **edge_merge** -- the max-weight / last-non-null-context merge policy
  applied when the same edge is observed again.
- **errors** -- exception hierarchy rooted at CrateError.
- **graph_search** -- undirected adjacency index and bounded BFS.
- **logging** -- structlog setup (console in development, JSON in production).
- **text_normalizer** -- artist lookup keys and rapidfuzz name suggestions.
"""

from src.utils.edge_merge import MergedEdge, merge_edge
from src.utils.errors import ConfigurationError, CrateError, InvalidInputError, StorageError
from src.utils.graph_search import (
    GraphEdge,
    InfluenceAdjacency,
    bounded_bfs,
    build_adjacency,
    hop_evidence,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.text_normalizer import display_name, fuzzy_suggestions, lookup_key

__all__ = [
    "ConfigurationError",
    "CrateError",
    "GraphEdge",
    "InfluenceAdjacency",
    "InvalidInputError",
    "MergedEdge",
    "StorageError",
    "bounded_bfs",
    "build_adjacency",
    "configure_logging",
    "display_name",
    "fuzzy_suggestions",
    "get_logger",
    "hop_evidence",
    "lookup_key",
    "merge_edge",
]
