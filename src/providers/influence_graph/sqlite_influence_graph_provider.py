"""SQLite-backed influence graph cache.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IInfluenceGraphProvider).
# Database: ``data/influence.db``: a deduplicated, directed graph of
#           "artist A relates to artist B" facts accumulated from reviews,
#           similarity scores and co-mentions.
#
# Four relations:
#   - artists          canonical identities keyed by a lowercased, trimmed name
#   - artist_aliases   alternate keys bound to exactly one identity
#   - influence_edges  one row per (from, to, relationship) triple
#   - edge_sources     append-only provenance, one row per observation
#
# Every operation opens its own ``aiosqlite`` connection.  Writes run in an
# explicit ``BEGIN IMMEDIATE`` transaction behind an in-process lock (one
# writer per process); reads use a separate connection and so only ever see
# committed state.  ``PRAGMA journal_mode=WAL`` lets readers run alongside
# the writer.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite
import structlog
from pydantic import ValidationError

from src.interfaces.influence_graph_provider import IInfluenceGraphProvider
from src.models.influence import (
    MAX_BATCH_SIZE,
    MAX_PATH_DEPTH,
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
from src.utils.edge_merge import merge_edge
from src.utils.errors import ConfigurationError, InvalidInputError, StorageError
from src.utils.graph_search import GraphEdge, bounded_bfs, build_adjacency, hop_evidence
from src.utils.text_normalizer import display_name, fuzzy_suggestions, lookup_key

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/influence.db")
_PROVIDER_NAME = "sqlite_influence_graph"
_MAX_LOOKUP_LIMIT = 200
_MAX_SEARCH_LIMIT = 100
_SUGGESTION_LIMIT = 5

# ── Schema DDL ────────────────────────────────────────────────────────

_NOW = "(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"

_CREATE_ARTISTS_TABLE_SQL = f"""\
CREATE TABLE IF NOT EXISTS artists (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT    NOT NULL,
    name_lower  TEXT    NOT NULL UNIQUE,
    genres      TEXT,
    first_seen  TEXT    NOT NULL DEFAULT {_NOW},
    updated_at  TEXT    NOT NULL DEFAULT {_NOW}
);
"""

_CREATE_ALIASES_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS artist_aliases (
    alias_lower TEXT    PRIMARY KEY,
    artist_id   INTEGER NOT NULL REFERENCES artists(id) ON DELETE CASCADE
);
"""

_CREATE_EDGES_TABLE_SQL = f"""\
CREATE TABLE IF NOT EXISTS influence_edges (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    from_artist_id  INTEGER NOT NULL REFERENCES artists(id) ON DELETE CASCADE,
    to_artist_id    INTEGER NOT NULL REFERENCES artists(id) ON DELETE CASCADE,
    relationship    TEXT    NOT NULL DEFAULT 'influenced',
    weight          REAL    NOT NULL DEFAULT 0.5,
    context         TEXT,
    first_seen      TEXT    NOT NULL DEFAULT {_NOW},
    updated_at      TEXT    NOT NULL DEFAULT {_NOW},
    UNIQUE(from_artist_id, to_artist_id, relationship)
);
"""

_CREATE_EDGE_SOURCES_TABLE_SQL = f"""\
CREATE TABLE IF NOT EXISTS edge_sources (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    edge_id        INTEGER NOT NULL REFERENCES influence_edges(id) ON DELETE CASCADE,
    source_type    TEXT    NOT NULL,
    source_url     TEXT,
    source_name    TEXT,
    snippet        TEXT,
    discovered_at  TEXT    NOT NULL DEFAULT {_NOW}
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_artists_name_lower ON artists(name_lower);",
    "CREATE INDEX IF NOT EXISTS idx_aliases_artist ON artist_aliases(artist_id);",
    "CREATE INDEX IF NOT EXISTS idx_edges_from ON influence_edges(from_artist_id);",
    "CREATE INDEX IF NOT EXISTS idx_edges_to ON influence_edges(to_artist_id);",
    "CREATE INDEX IF NOT EXISTS idx_edges_relationship ON influence_edges(relationship);",
    "CREATE INDEX IF NOT EXISTS idx_edge_sources_edge ON edge_sources(edge_id);",
]

# ── Identity resolution ───────────────────────────────────────────────

_SELECT_ARTIST_BY_KEY_SQL = "SELECT id, name FROM artists WHERE name_lower = ?;"

_SELECT_ARTIST_BY_ALIAS_SQL = """\
SELECT a.id, a.name
FROM artist_aliases al
JOIN artists a ON a.id = al.artist_id
WHERE al.alias_lower = ?;
"""

_INSERT_ARTIST_SQL = "INSERT INTO artists (name, name_lower, genres) VALUES (?, ?, ?);"

_TOUCH_ARTIST_SQL = f"UPDATE artists SET updated_at = {_NOW} WHERE id = ?;"

_INSERT_ALIAS_SQL = "INSERT INTO artist_aliases (alias_lower, artist_id) VALUES (?, ?);"

# ── Edges and provenance ──────────────────────────────────────────────

_SELECT_EDGE_BY_TRIPLE_SQL = """\
SELECT id, weight, context
FROM influence_edges
WHERE from_artist_id = ? AND to_artist_id = ? AND relationship = ?;
"""

_INSERT_EDGE_SQL = """\
INSERT INTO influence_edges (from_artist_id, to_artist_id, relationship, weight, context)
VALUES (?, ?, ?, ?, ?);
"""

_UPDATE_EDGE_SQL = f"""\
UPDATE influence_edges
SET weight = ?, context = ?, updated_at = {_NOW}
WHERE id = ?;
"""

_INSERT_EDGE_SOURCE_SQL = """\
INSERT INTO edge_sources (edge_id, source_type, source_url, source_name, snippet)
VALUES (?, ?, ?, ?, ?);
"""

_SELECT_EDGE_DETAIL_SQL = """\
SELECT e.id, e.relationship, fa.name AS from_name, ta.name AS to_name
FROM influence_edges e
JOIN artists fa ON fa.id = e.from_artist_id
JOIN artists ta ON ta.id = e.to_artist_id
WHERE e.id = ?;
"""

_DELETE_EDGE_SOURCES_SQL = "DELETE FROM edge_sources WHERE edge_id = ?;"
_DELETE_EDGE_SQL = "DELETE FROM influence_edges WHERE id = ?;"

_SELECT_EDGE_SOURCES_SQL = """\
SELECT id, edge_id, source_type, source_url, source_name, snippet, discovered_at
FROM edge_sources
WHERE edge_id = ?
ORDER BY id ASC;
"""

_LOOKUP_SQL = """\
SELECT e.id AS edge_id, e.relationship, e.weight, e.context,
       fa.name AS from_name, ta.name AS to_name,
       e.from_artist_id, e.to_artist_id
FROM influence_edges e
JOIN artists fa ON fa.id = e.from_artist_id
JOIN artists ta ON ta.id = e.to_artist_id
WHERE {conditions}
ORDER BY e.weight DESC, e.id ASC
LIMIT ?;
"""

_SELECT_ALL_EDGES_SQL = """\
SELECT id, from_artist_id, to_artist_id, relationship, weight, context
FROM influence_edges;
"""

_SELECT_ALL_ARTIST_NAMES_SQL = "SELECT name FROM artists;"

_SEARCH_ARTISTS_SQL = """\
SELECT id, name, genres, first_seen, outgoing, incoming
FROM (
    SELECT a.id, a.name, a.name_lower, a.genres, a.first_seen,
           (SELECT COUNT(*) FROM influence_edges WHERE from_artist_id = a.id) AS outgoing,
           (SELECT COUNT(*) FROM influence_edges WHERE to_artist_id = a.id) AS incoming
    FROM artists a
    WHERE a.name_lower LIKE ? ESCAPE '\\'
)
ORDER BY (outgoing + incoming) DESC, name_lower ASC
LIMIT ?;
"""

# ── Statistics ────────────────────────────────────────────────────────

_COUNT_SQL = {
    "total_artists": "SELECT COUNT(*) FROM artists;",
    "total_edges": "SELECT COUNT(*) FROM influence_edges;",
    "total_sources": "SELECT COUNT(*) FROM edge_sources;",
    "total_aliases": "SELECT COUNT(*) FROM artist_aliases;",
}

_BY_RELATIONSHIP_SQL = """\
SELECT relationship, COUNT(*) AS count
FROM influence_edges
GROUP BY relationship
ORDER BY count DESC, relationship ASC;
"""

_BY_SOURCE_TYPE_SQL = """\
SELECT source_type, COUNT(*) AS count
FROM edge_sources
GROUP BY source_type
ORDER BY count DESC, source_type ASC;
"""

_MOST_CONNECTED_SQL = """\
SELECT name, total
FROM (
    SELECT a.name, a.name_lower,
           (SELECT COUNT(*) FROM influence_edges WHERE from_artist_id = a.id) +
           (SELECT COUNT(*) FROM influence_edges WHERE to_artist_id = a.id) AS total
    FROM artists a
)
WHERE total > 0
ORDER BY total DESC, name_lower ASC
LIMIT ?;
"""

_AVG_WEIGHT_SQL = "SELECT AVG(weight) FROM influence_edges;"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "invalid value")


class SQLiteInfluenceGraphProvider(IInfluenceGraphProvider):
    """SQLite-backed influence graph cache.

    Obtain a ready handle with :meth:`open` (or ``async with``); both run
    the idempotent schema bootstrap before any operation is allowed.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._write_lock = asyncio.Lock()
        self._initialized = False

    @classmethod
    async def open(cls, db_path: str | Path = _DEFAULT_DB_PATH) -> SQLiteInfluenceGraphProvider:
        """Construct a provider and bootstrap its schema."""
        provider = cls(db_path=db_path)
        await provider.initialize()
        return provider

    async def __aenter__(self) -> SQLiteInfluenceGraphProvider:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Create the four relations and their indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("PRAGMA journal_mode=WAL;")
                await db.execute(_CREATE_ARTISTS_TABLE_SQL)
                await db.execute(_CREATE_ALIASES_TABLE_SQL)
                await db.execute(_CREATE_EDGES_TABLE_SQL)
                await db.execute(_CREATE_EDGE_SOURCES_TABLE_SQL)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(
                f"Could not initialize {self._db_path}: {exc}", provider_name=_PROVIDER_NAME
            ) from exc
        self._initialized = True
        logger.info("influence_graph_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    # ── Connections and transactions ───────────────────────────────────

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise ConfigurationError(
                "Influence graph store used before initialize(); obtain it via open()",
                provider_name=_PROVIDER_NAME,
            )

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Read-only connection; sees committed state only."""
        self._require_initialized()
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as exc:
            logger.error("influence_graph_read_failed", error=str(exc))
            raise StorageError(f"Read failed: {exc}", provider_name=_PROVIDER_NAME) from exc

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Single atomic write transaction; rolled back on any exception."""
        self._require_initialized()
        async with self._write_lock:
            try:
                async with aiosqlite.connect(str(self._db_path), isolation_level=None) as db:
                    db.row_factory = aiosqlite.Row
                    await db.execute("PRAGMA foreign_keys=ON;")
                    await db.execute("BEGIN IMMEDIATE;")
                    try:
                        yield db
                    except Exception:
                        await db.execute("ROLLBACK;")
                        raise
                    await db.execute("COMMIT;")
            except aiosqlite.Error as exc:
                logger.error("influence_graph_write_failed", error=str(exc))
                raise StorageError(f"Write failed: {exc}", provider_name=_PROVIDER_NAME) from exc

    # ── Identity resolution ────────────────────────────────────────────

    @staticmethod
    async def _find_identity(db: aiosqlite.Connection, key: str) -> aiosqlite.Row | None:
        """Lookup-only resolution: identity table first, then aliases."""
        cursor = await db.execute(_SELECT_ARTIST_BY_KEY_SQL, (key,))
        row = await cursor.fetchone()
        if row is not None:
            return row
        cursor = await db.execute(_SELECT_ARTIST_BY_ALIAS_SQL, (key,))
        return await cursor.fetchone()

    @staticmethod
    async def _create_identity(db: aiosqlite.Connection, name: str, genres: str | None) -> int:
        cursor = await db.execute(
            _INSERT_ARTIST_SQL,
            (display_name(name), lookup_key(name), genres),
        )
        artist_id = cursor.lastrowid
        logger.debug("artist_identity_created", artist_id=artist_id, name=display_name(name))
        return artist_id

    async def _resolve_identity(
        self,
        db: aiosqlite.Connection,
        name: str,
        genres: str | None = None,
    ) -> int:
        """Return the identity id for ``name``, creating it if unseen.

        Genres are stored only when the identity is created here.
        """
        row = await self._find_identity(db, lookup_key(name))
        if row is not None:
            return row["id"]
        return await self._create_identity(db, name, genres)

    # ── Edge upsert ────────────────────────────────────────────────────

    @staticmethod
    def _validate_observation(data: EdgeObservation | Mapping[str, Any]) -> EdgeObservation:
        if isinstance(data, EdgeObservation):
            return data
        try:
            return EdgeObservation.model_validate(data)
        except ValidationError as exc:
            raise InvalidInputError(_validation_message(exc), provider_name=_PROVIDER_NAME) from exc

    async def _upsert_edge(self, db: aiosqlite.Connection, obs: EdgeObservation) -> RecordResult:
        from_id = await self._resolve_identity(db, obs.from_artist, obs.from_genres)
        to_id = await self._resolve_identity(db, obs.to_artist, obs.to_genres)
        relationship = obs.relationship.value

        cursor = await db.execute(_SELECT_EDGE_BY_TRIPLE_SQL, (from_id, to_id, relationship))
        existing = await cursor.fetchone()

        merged = merge_edge(
            existing["weight"] if existing is not None else None,
            existing["context"] if existing is not None else None,
            obs.weight,
            obs.context,
        )

        if existing is None:
            cursor = await db.execute(
                _INSERT_EDGE_SQL,
                (from_id, to_id, relationship, merged.weight, merged.context),
            )
            edge_id = cursor.lastrowid
        else:
            edge_id = existing["id"]
            await db.execute(_UPDATE_EDGE_SQL, (merged.weight, merged.context, edge_id))

        if obs.source_type:
            await db.execute(
                _INSERT_EDGE_SOURCE_SQL,
                (edge_id, obs.source_type, obs.source_url, obs.source_name, obs.snippet),
            )

        return RecordResult(
            edge_id=edge_id,
            from_id=from_id,
            to_id=to_id,
            from_artist=obs.from_artist,
            to_artist=obs.to_artist,
            relationship=obs.relationship,
            weight=merged.weight,
            created=existing is None,
        )

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
        """Upsert one edge and append its provenance in a single transaction."""
        obs = self._validate_observation({
            "from_artist": from_artist,
            "to_artist": to_artist,
            "relationship": relationship,
            "weight": weight,
            "context": context,
            "from_genres": from_genres,
            "to_genres": to_genres,
            "source_type": source_type,
            "source_url": source_url,
            "source_name": source_name,
            "snippet": snippet,
        })

        async with self._transaction() as db:
            result = await self._upsert_edge(db, obs)

        logger.info(
            "influence_recorded",
            edge_id=result.edge_id,
            from_artist=from_artist,
            to_artist=to_artist,
            relationship=result.relationship.value,
            weight=result.weight,
            created=result.created,
            source_type=obs.source_type,
        )
        return result

    async def record_influences_batch(
        self,
        observations: Sequence[EdgeObservation | Mapping[str, Any]],
    ) -> list[BatchEdgeResult]:
        """Upsert every observation in one transaction; any failure aborts all."""
        if not observations:
            raise InvalidInputError("Batch must contain at least one edge", provider_name=_PROVIDER_NAME)
        if len(observations) > MAX_BATCH_SIZE:
            raise InvalidInputError(
                f"Batch may contain at most {MAX_BATCH_SIZE} edges, got {len(observations)}",
                provider_name=_PROVIDER_NAME,
            )

        # Validate everything up front so a bad entry never opens a transaction.
        validated = [self._validate_observation(item) for item in observations]

        saved: list[BatchEdgeResult] = []
        async with self._transaction() as db:
            for obs in validated:
                result = await self._upsert_edge(db, obs)
                saved.append(BatchEdgeResult(
                    from_artist=obs.from_artist,
                    to_artist=obs.to_artist,
                    edge_id=result.edge_id,
                    from_id=result.from_id,
                    to_id=result.to_id,
                ))

        logger.info("influence_batch_recorded", count=len(saved))
        return saved

    # ── Adjacency lookup ───────────────────────────────────────────────

    async def lookup(
        self,
        artist: str,
        direction: str = "both",
        relationship: str | None = None,
        min_weight: float | None = None,
        limit: int = 50,
    ) -> LookupResult:
        """Return edges touching ``artist``, strongest first.  Never creates identities."""
        try:
            edge_direction = EdgeDirection(direction)
            kind = RelationshipKind(relationship) if relationship is not None else None
        except ValueError as exc:
            raise InvalidInputError(str(exc), provider_name=_PROVIDER_NAME) from exc
        if min_weight is not None and not 0.0 <= min_weight <= 1.0:
            raise InvalidInputError("min_weight must be within [0, 1]", provider_name=_PROVIDER_NAME)
        if not 1 <= limit <= _MAX_LOOKUP_LIMIT:
            raise InvalidInputError(
                f"limit must be between 1 and {_MAX_LOOKUP_LIMIT}", provider_name=_PROVIDER_NAME
            )

        async with self._read() as db:
            identity = await self._find_identity(db, lookup_key(artist))
            if identity is None:
                cursor = await db.execute(_SELECT_ALL_ARTIST_NAMES_SQL)
                names = [row["name"] for row in await cursor.fetchall()]
                return LookupResult(
                    artist=artist,
                    found=False,
                    suggestions=fuzzy_suggestions(artist, names, limit=_SUGGESTION_LIMIT),
                    message="Artist not found in cache",
                )

            artist_id = identity["id"]
            conditions: list[str] = []
            params: list[Any] = []

            if edge_direction is EdgeDirection.OUTGOING:
                conditions.append("e.from_artist_id = ?")
                params.append(artist_id)
            elif edge_direction is EdgeDirection.INCOMING:
                conditions.append("e.to_artist_id = ?")
                params.append(artist_id)
            else:
                conditions.append("(e.from_artist_id = ? OR e.to_artist_id = ?)")
                params.extend([artist_id, artist_id])

            if kind is not None:
                conditions.append("e.relationship = ?")
                params.append(kind.value)
            if min_weight is not None:
                conditions.append("e.weight >= ?")
                params.append(min_weight)
            params.append(limit)

            query = _LOOKUP_SQL.format(conditions=" AND ".join(conditions))
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()

        connections = [
            Connection(
                edge_id=row["edge_id"],
                from_artist=row["from_name"],
                to_artist=row["to_name"],
                relationship=row["relationship"],
                weight=row["weight"],
                context=row["context"],
                direction=(
                    EdgeDirection.OUTGOING
                    if row["from_artist_id"] == artist_id
                    else EdgeDirection.INCOMING
                ),
            )
            for row in rows
        ]
        return LookupResult(
            artist=artist,
            found=True,
            artist_id=artist_id,
            connections=connections,
            count=len(connections),
        )

    # ── Bounded shortest path ──────────────────────────────────────────

    async def find_path(
        self,
        from_artist: str,
        to_artist: str,
        max_depth: int = 5,
    ) -> PathResult:
        """Breadth-first search for the shortest path, edges walked either way."""
        if not 1 <= max_depth <= MAX_PATH_DEPTH:
            raise InvalidInputError(
                f"max_depth must be between 1 and {MAX_PATH_DEPTH}", provider_name=_PROVIDER_NAME
            )

        async with self._read() as db:
            source = await self._find_identity(db, lookup_key(from_artist))
            target = await self._find_identity(db, lookup_key(to_artist))

            missing = from_artist if source is None else to_artist if target is None else None
            if missing is not None:
                logger.debug("influence_path_not_found", missing=missing)
                return PathResult(
                    from_artist=from_artist,
                    to_artist=to_artist,
                    status=PathStatus.NOT_FOUND,
                    max_depth=max_depth,
                    message=f'"{missing}" not found in cache',
                )

            if source["id"] == target["id"]:
                return PathResult(
                    from_artist=from_artist,
                    to_artist=to_artist,
                    status=PathStatus.FOUND,
                    steps=[PathStep(artist=source["name"])],
                    hops=0,
                    max_depth=max_depth,
                )

            cursor = await db.execute(_SELECT_ALL_EDGES_SQL)
            edges = [
                GraphEdge(
                    id=row["id"],
                    from_id=row["from_artist_id"],
                    to_id=row["to_artist_id"],
                    relationship=row["relationship"],
                    weight=row["weight"],
                    context=row["context"],
                )
                for row in await cursor.fetchall()
            ]
            adjacency = build_adjacency(edges)
            id_path = bounded_bfs(adjacency, source["id"], target["id"], max_depth)

            if id_path is None:
                logger.debug(
                    "influence_path_not_found",
                    from_artist=from_artist,
                    to_artist=to_artist,
                    max_depth=max_depth,
                )
                return PathResult(
                    from_artist=from_artist,
                    to_artist=to_artist,
                    status=PathStatus.NO_PATH,
                    max_depth=max_depth,
                    message=(
                        f'No cached path found between "{from_artist}" and "{to_artist}" '
                        f"within depth {max_depth}."
                    ),
                )

            placeholders = ", ".join("?" for _ in id_path)
            cursor = await db.execute(
                f"SELECT id, name FROM artists WHERE id IN ({placeholders});", id_path
            )
            names = {row["id"]: row["name"] for row in await cursor.fetchall()}

        steps: list[PathStep] = []
        for position, artist_id in enumerate(id_path):
            if position == len(id_path) - 1:
                steps.append(PathStep(artist=names[artist_id]))
                continue
            edge = adjacency.best_edge(artist_id, id_path[position + 1])
            steps.append(PathStep(
                artist=names[artist_id],
                connection=edge.relationship,
                evidence=hop_evidence(edge),
            ))

        result = PathResult(
            from_artist=from_artist,
            to_artist=to_artist,
            status=PathStatus.FOUND,
            steps=steps,
            hops=len(id_path) - 1,
            max_depth=max_depth,
        )
        logger.info("influence_path_found", path=result.inline, hops=result.hops)
        return result

    # ── Maintenance ────────────────────────────────────────────────────

    async def search_identities(self, query: str, limit: int = 20) -> list[IdentitySearchHit]:
        """Case-insensitive substring match, most-connected first."""
        if not query.strip():
            raise InvalidInputError("query must not be blank", provider_name=_PROVIDER_NAME)
        if not 1 <= limit <= _MAX_SEARCH_LIMIT:
            raise InvalidInputError(
                f"limit must be between 1 and {_MAX_SEARCH_LIMIT}", provider_name=_PROVIDER_NAME
            )

        pattern = f"%{_escape_like(lookup_key(query))}%"
        async with self._read() as db:
            cursor = await db.execute(_SEARCH_ARTISTS_SQL, (pattern, limit))
            rows = await cursor.fetchall()

        return [
            IdentitySearchHit(
                id=row["id"],
                name=row["name"],
                genres=row["genres"],
                first_seen=row["first_seen"],
                outgoing=row["outgoing"],
                incoming=row["incoming"],
                total=row["outgoing"] + row["incoming"],
            )
            for row in rows
        ]

    async def register_alias(self, alias: str, canonical_name: str) -> AliasResult:
        """Bind an alternate name to a canonical identity.

        An alias that already resolves to the same identity is a no-op
        success; one that resolves to a different identity is a conflict and
        nothing is written.
        """
        if not alias.strip() or not canonical_name.strip():
            raise InvalidInputError(
                "alias and canonical name must not be blank", provider_name=_PROVIDER_NAME
            )

        alias_key = lookup_key(alias)
        async with self._transaction() as db:
            bound = await self._find_identity(db, alias_key)
            canonical = await self._find_identity(db, lookup_key(canonical_name))

            if bound is not None:
                if canonical is not None and canonical["id"] == bound["id"]:
                    return AliasResult(
                        alias=alias,
                        artist=canonical_name,
                        status=AliasStatus.ALREADY_EXISTS,
                        artist_id=bound["id"],
                    )
                logger.warning(
                    "alias_conflict",
                    alias=alias,
                    requested=canonical_name,
                    bound_to=bound["name"],
                )
                return AliasResult(
                    alias=alias,
                    artist=canonical_name,
                    status=AliasStatus.CONFLICT,
                    artist_id=bound["id"],
                    message=f'Alias "{alias}" already maps to "{bound["name"]}"',
                )

            artist_id = (
                canonical["id"]
                if canonical is not None
                else await self._create_identity(db, canonical_name, None)
            )
            await db.execute(_INSERT_ALIAS_SQL, (alias_key, artist_id))
            await db.execute(_TOUCH_ARTIST_SQL, (artist_id,))

        logger.info("alias_registered", alias=alias, artist=canonical_name, artist_id=artist_id)
        return AliasResult(
            alias=alias,
            artist=canonical_name,
            status=AliasStatus.ADDED,
            artist_id=artist_id,
        )

    async def delete_edge(self, edge_id: int) -> DeleteEdgeResult:
        """Remove an edge and its provenance rows together."""
        async with self._transaction() as db:
            cursor = await db.execute(_SELECT_EDGE_DETAIL_SQL, (edge_id,))
            edge = await cursor.fetchone()
            if edge is None:
                logger.info("edge_remove_not_found", edge_id=edge_id)
                return DeleteEdgeResult(edge_id=edge_id, status=DeleteStatus.NOT_FOUND)

            cursor = await db.execute(_DELETE_EDGE_SOURCES_SQL, (edge_id,))
            sources_removed = cursor.rowcount
            await db.execute(_DELETE_EDGE_SQL, (edge_id,))

        logger.info(
            "edge_removed",
            edge_id=edge_id,
            from_artist=edge["from_name"],
            to_artist=edge["to_name"],
            relationship=edge["relationship"],
            sources_removed=sources_removed,
        )
        return DeleteEdgeResult(
            edge_id=edge_id,
            status=DeleteStatus.REMOVED,
            from_artist=edge["from_name"],
            to_artist=edge["to_name"],
            relationship=edge["relationship"],
            sources_removed=sources_removed,
        )

    async def list_edge_sources(self, edge_id: int) -> list[EdgeSource]:
        async with self._read() as db:
            cursor = await db.execute(_SELECT_EDGE_SOURCES_SQL, (edge_id,))
            rows = await cursor.fetchall()
        return [EdgeSource(**dict(row)) for row in rows]

    async def graph_stats(self, top_n: int = 10) -> GraphStats:
        """Aggregate counts, groupings, most-connected artists and mean weight."""
        if top_n < 1:
            raise InvalidInputError("top_n must be positive", provider_name=_PROVIDER_NAME)

        async with self._read() as db:
            totals: dict[str, int] = {}
            for key, sql in _COUNT_SQL.items():
                cursor = await db.execute(sql)
                row = await cursor.fetchone()
                totals[key] = row[0] if row else 0

            cursor = await db.execute(_BY_RELATIONSHIP_SQL)
            by_relationship = {row["relationship"]: row["count"] for row in await cursor.fetchall()}

            cursor = await db.execute(_BY_SOURCE_TYPE_SQL)
            by_source_type = {row["source_type"]: row["count"] for row in await cursor.fetchall()}

            cursor = await db.execute(_MOST_CONNECTED_SQL, (top_n,))
            most_connected = [
                ConnectedArtist(name=row["name"], total=row["total"])
                for row in await cursor.fetchall()
            ]

            cursor = await db.execute(_AVG_WEIGHT_SQL)
            avg_row = await cursor.fetchone()

        avg_weight = avg_row[0] if avg_row else None
        return GraphStats(
            **totals,
            by_relationship=by_relationship,
            by_source_type=by_source_type,
            most_connected=most_connected,
            avg_weight=round(avg_weight, 2) if avg_weight is not None else None,
        )
