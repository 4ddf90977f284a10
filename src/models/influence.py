"""Domain models for the influence graph cache.

Defines the fixed relationship vocabulary, the validated input shape for a
single edge observation, and the structured results returned by every
graph operation.  Result models are frozen (immutable) so callers can pass
them around freely; input validation happens here, before the provider
opens a write transaction, so rejected input never leaves partial state.

Key relationships:
    - EdgeObservation is the write input for record_influence and the batch variant
    - Connection / LookupResult come back from adjacency lookups
    - PathStep / PathResult come back from bounded shortest-path search
    - AliasResult, DeleteEdgeResult, IdentitySearchHit, GraphStats cover maintenance
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_NAME_LENGTH = 200
MAX_CONTEXT_LENGTH = 500
MAX_BATCH_SIZE = 100
MAX_PATH_DEPTH = 10


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RelationshipKind(str, Enum):  # noqa: UP042  StrEnum requires Python 3.11+
    """Fixed vocabulary tag carried by every influence edge."""

    INFLUENCED = "influenced"        # A shaped B's sound
    CO_MENTION = "co_mention"        # named together in a review or article
    COLLABORATION = "collaboration"  # worked together on a release
    SAMPLE = "sample"                # A's recording sampled by B
    SIMILAR = "similar"              # similarity score from a catalog (Last.fm etc.)
    BRIDGE = "bridge"                # links two otherwise separate scenes


class EdgeDirection(str, Enum):  # noqa: UP042
    """Which way an edge points relative to the queried artist."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"
    BOTH = "both"


class PathStatus(str, Enum):  # noqa: UP042
    FOUND = "found"
    NOT_FOUND = "not_found"  # one of the endpoints is not in the cache
    NO_PATH = "no_path"      # both known, nothing connects them within max_depth


class AliasStatus(str, Enum):  # noqa: UP042
    ADDED = "added"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"


class DeleteStatus(str, Enum):  # noqa: UP042
    REMOVED = "removed"
    NOT_FOUND = "not_found"


# ---------------------------------------------------------------------------
# Write input
# ---------------------------------------------------------------------------

def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class EdgeObservation(BaseModel):
    """One observed "artist A relates to artist B" fact plus its citation.

    Genres may be passed as a free-text string or a list of tags; lists are
    stored comma-joined.  Provenance is appended only when ``source_type``
    is supplied.
    """

    model_config = ConfigDict(frozen=True)

    from_artist: str = Field(max_length=MAX_NAME_LENGTH)
    to_artist: str = Field(max_length=MAX_NAME_LENGTH)
    relationship: RelationshipKind = RelationshipKind.INFLUENCED
    weight: float = Field(default=0.5, ge=0.0, le=1.0)
    context: str | None = Field(default=None, max_length=MAX_CONTEXT_LENGTH)
    from_genres: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    to_genres: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    source_type: str | None = Field(default=None, max_length=50)
    source_url: str | None = Field(default=None, max_length=MAX_CONTEXT_LENGTH)
    source_name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    snippet: str | None = Field(default=None, max_length=MAX_CONTEXT_LENGTH)

    @field_validator("from_artist", "to_artist")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("artist name must not be blank")
        return value

    @field_validator("from_genres", "to_genres", mode="before")
    @classmethod
    def _join_genre_list(cls, value: object) -> object:
        if isinstance(value, (list, tuple)):
            tags = [str(tag).strip() for tag in value if str(tag).strip()]
            return ", ".join(tags) if tags else None
        return _blank_to_none(value)

    @field_validator("context", "source_type", "source_url", "source_name", "snippet", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> object:
        return _blank_to_none(value)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class RecordResult(BaseModel):
    """Outcome of a single edge upsert.  ``weight`` is the stored, merged value."""

    model_config = ConfigDict(frozen=True)

    edge_id: int
    from_id: int
    to_id: int
    from_artist: str
    to_artist: str
    relationship: RelationshipKind
    weight: float
    created: bool


class BatchEdgeResult(BaseModel):
    """One entry of a batch upsert, in input order."""

    model_config = ConfigDict(frozen=True)

    from_artist: str
    to_artist: str
    edge_id: int
    from_id: int
    to_id: int


class Connection(BaseModel):
    """An edge touching the queried artist, annotated with its direction."""

    model_config = ConfigDict(frozen=True)

    edge_id: int
    from_artist: str
    to_artist: str
    relationship: RelationshipKind
    weight: float
    context: str | None = None
    direction: EdgeDirection


class LookupResult(BaseModel):
    """Adjacency lookup outcome.  ``found`` is False when the name is unresolved."""

    model_config = ConfigDict(frozen=True)

    artist: str
    found: bool
    artist_id: int | None = None
    connections: list[Connection] = Field(default_factory=list)
    count: int = 0
    suggestions: list[str] = Field(default_factory=list)
    message: str | None = None


class PathStep(BaseModel):
    """One artist on a path.  All but the last step carry the hop's label."""

    model_config = ConfigDict(frozen=True)

    artist: str
    connection: RelationshipKind | None = None
    evidence: str | None = None


class PathResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_artist: str
    to_artist: str
    status: PathStatus
    steps: list[PathStep] = Field(default_factory=list)
    hops: int = 0
    max_depth: int
    message: str | None = None

    @property
    def inline(self) -> str:
        """The path as a compact ``A -> B -> C`` chain."""
        return " -> ".join(step.artist for step in self.steps)


class IdentitySearchHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    genres: str | None = None
    first_seen: str
    outgoing: int
    incoming: int
    total: int


class AliasResult(BaseModel):
    """Outcome of alias registration.

    On conflict ``artist_id`` is the identity the alias is already bound to,
    which is left unchanged.
    """

    model_config = ConfigDict(frozen=True)

    alias: str
    artist: str
    status: AliasStatus
    artist_id: int | None = None
    message: str | None = None


class DeleteEdgeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    edge_id: int
    status: DeleteStatus
    from_artist: str | None = None
    to_artist: str | None = None
    relationship: RelationshipKind | None = None
    sources_removed: int = 0


class EdgeSource(BaseModel):
    """An append-only provenance citation attached to one edge."""

    model_config = ConfigDict(frozen=True)

    id: int
    edge_id: int
    source_type: str
    source_url: str | None = None
    source_name: str | None = None
    snippet: str | None = None
    discovered_at: str


class ConnectedArtist(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    total: int


class GraphStats(BaseModel):
    """Aggregate counts.  Groupings are ordered by count, highest first."""

    model_config = ConfigDict(frozen=True)

    total_artists: int
    total_edges: int
    total_sources: int
    total_aliases: int
    by_relationship: dict[str, int] = Field(default_factory=dict)
    by_source_type: dict[str, int] = Field(default_factory=dict)
    most_connected: list[ConnectedArtist] = Field(default_factory=list)
    avg_weight: float | None = None
