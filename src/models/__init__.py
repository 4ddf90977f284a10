"""Influence graph domain models: re-exports all public model classes.

Import from ``src.models`` rather than ``src.models.influence``.  If you add
a new model class, add it to ``__all__`` below too.
"""

from __future__ import annotations

from src.models.influence import (
    AliasResult,
    AliasStatus,
    BatchEdgeResult,
    ConnectedArtist,
    Connection,
    DeleteEdgeResult,
    DeleteStatus,
    EdgeDirection,
    EdgeObservation,
    EdgeSource,
    GraphStats,
    IdentitySearchHit,
    LookupResult,
    PathResult,
    PathStatus,
    PathStep,
    RecordResult,
    RelationshipKind,
)

__all__ = [
    # vocabulary
    "AliasStatus",
    "DeleteStatus",
    "EdgeDirection",
    "PathStatus",
    "RelationshipKind",
    # input
    "EdgeObservation",
    # results
    "AliasResult",
    "BatchEdgeResult",
    "ConnectedArtist",
    "Connection",
    "DeleteEdgeResult",
    "EdgeSource",
    "GraphStats",
    "IdentitySearchHit",
    "LookupResult",
    "PathResult",
    "PathStep",
    "RecordResult",
]
