"""Abstract base class for influence graph persistence providers.

Defines the contract tool handlers use to record and query "artist A
relates to artist B" facts.  Implementations own their store exclusively;
the adapter pattern lets the backend be swapped without touching the
handlers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from src.models.influence import (
    AliasResult,
    BatchEdgeResult,
    DeleteEdgeResult,
    EdgeObservation,
    EdgeSource,
    GraphStats,
    IdentitySearchHit,
    LookupResult,
    PathResult,
    RecordResult,
)


# Concrete implementation: SQLiteInfluenceGraphProvider (src/providers/influence_graph/)
# Stores artists, aliases, edges and edge sources in data/influence.db.
class IInfluenceGraphProvider(ABC):
    """Contract for influence graph caches.

    Writes are atomic; reads never create identities.  Not-found and alias
    conflicts come back as structured results, not exceptions.
    """

    @abstractmethod
    async def record_influence(
        self,
        from_artist: str,
        to_artist: str,
        relationship: str = "influenced",
        weight: float = 0.5,
        context: str | None = None,
        from_genres: str | list[str] | None = None,
        to_genres: str | list[str] | None = None,
        source_type: str | None = None,
        source_url: str | None = None,
        source_name: str | None = None,
        snippet: str | None = None,
    ) -> RecordResult:
        """Upsert one edge, resolving both artists, in a single transaction.

        Parameters
        ----------
        from_artist:
            Source of the relationship (e.g. the influencer).
        to_artist:
            Target of the relationship.
        relationship:
            One of the ``RelationshipKind`` values.
        weight:
            Strength in [0, 1].  The stored weight becomes the max of the
            stored and observed values.
        context:
            Free-text context; replaces the stored context when given.
        from_genres, to_genres:
            Genre tags, stored only when the artist is created.
        source_type, source_url, source_name, snippet:
            Provenance.  A citation row is appended when ``source_type`` is set.

        Returns
        -------
        RecordResult
            Edge id, both identity ids, and the stored weight.

        Raises
        ------
        InvalidInputError
            Unknown relationship, weight outside [0, 1], or blank names.
        """

    @abstractmethod
    async def record_influences_batch(
        self,
        observations: Sequence[EdgeObservation | Mapping[str, Any]],
    ) -> list[BatchEdgeResult]:
        """Upsert many edges as one all-or-nothing transaction.

        Returns one entry per observation, in input order.
        """

    @abstractmethod
    async def lookup(
        self,
        artist: str,
        direction: str = "both",
        relationship: str | None = None,
        min_weight: float | None = None,
        limit: int = 50,
    ) -> LookupResult:
        """Return edges touching ``artist``, strongest first."""

    @abstractmethod
    async def find_path(
        self,
        from_artist: str,
        to_artist: str,
        max_depth: int = 5,
    ) -> PathResult:
        """Shortest connecting path within ``max_depth`` hops, edges walked either way."""

    @abstractmethod
    async def search_identities(self, query: str, limit: int = 20) -> list[IdentitySearchHit]:
        """Case-insensitive substring search over artist names."""

    @abstractmethod
    async def register_alias(self, alias: str, canonical_name: str) -> AliasResult:
        """Bind ``alias`` to the identity of ``canonical_name``, creating it if unseen."""

    @abstractmethod
    async def delete_edge(self, edge_id: int) -> DeleteEdgeResult:
        """Remove an edge and all of its provenance rows."""

    @abstractmethod
    async def list_edge_sources(self, edge_id: int) -> list[EdgeSource]:
        """Return every provenance citation recorded for an edge, oldest first."""

    @abstractmethod
    async def graph_stats(self, top_n: int = 10) -> GraphStats:
        """Aggregate counts, groupings, and the most-connected artists."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Safe to call repeatedly."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
