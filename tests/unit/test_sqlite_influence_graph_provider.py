"""Unit tests for SQLiteInfluenceGraphProvider writes, lookups and maintenance.

Tests cover: schema bootstrap, identity resolution, edge upsert merge
policy, provenance accumulation, batch atomicity, adjacency lookup,
aliases, edge deletion, identity search and graph statistics.

Each test uses a temporary SQLite database to ensure isolation.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from src.models.influence import (
    AliasStatus,
    DeleteStatus,
    EdgeDirection,
    EdgeObservation,
    RelationshipKind,
)
from src.providers.influence_graph.sqlite_influence_graph_provider import (
    SQLiteInfluenceGraphProvider,
)
from src.utils.errors import ConfigurationError, InvalidInputError, StorageError


# ═══════════════════════════════════════════════════════════════════════
# Store handle / bootstrap
# ═══════════════════════════════════════════════════════════════════════


class TestStoreHandle:

    @pytest.mark.asyncio
    async def test_open_creates_database_file(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "influence.db"
        provider = await SQLiteInfluenceGraphProvider.open(db_path)
        assert db_path.exists()
        assert provider.get_provider_name() == "sqlite_influence_graph"

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, provider):
        await provider.record_influence("Kraftwerk", "Neu!")
        await provider.initialize()
        await provider.initialize()
        stats = await provider.graph_stats()
        assert stats.total_edges == 1

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, db_path: Path):
        first = await SQLiteInfluenceGraphProvider.open(db_path)
        await first.record_influence("Kraftwerk", "Afrika Bambaataa", weight=0.9)

        second = await SQLiteInfluenceGraphProvider.open(db_path)
        result = await second.lookup("kraftwerk")
        assert result.found is True
        assert result.connections[0].to_artist == "Afrika Bambaataa"

    @pytest.mark.asyncio
    async def test_async_context_manager_bootstraps(self, db_path: Path):
        async with SQLiteInfluenceGraphProvider(db_path) as provider:
            stats = await provider.graph_stats()
        assert stats.total_artists == 0

    @pytest.mark.asyncio
    async def test_use_before_initialize_raises(self, db_path: Path):
        provider = SQLiteInfluenceGraphProvider(db_path)
        with pytest.raises(ConfigurationError):
            await provider.lookup("Kraftwerk")

    @pytest.mark.asyncio
    async def test_unopenable_path_raises_storage_error(self, tmp_path: Path):
        # A directory cannot be opened as a database file.
        with pytest.raises(StorageError):
            await SQLiteInfluenceGraphProvider.open(tmp_path)


# ═══════════════════════════════════════════════════════════════════════
# Identity resolution
# ═══════════════════════════════════════════════════════════════════════


class TestIdentityResolution:

    @pytest.mark.asyncio
    async def test_case_and_whitespace_variants_share_identity(self, provider):
        r1 = await provider.record_influence("Kraftwerk", "Neu!")
        r2 = await provider.record_influence("kraftwerk", "Cluster")
        r3 = await provider.record_influence("  Kraftwerk  ", "Harmonia")

        assert r1.from_id == r2.from_id == r3.from_id
        stats = await provider.graph_stats()
        assert stats.total_artists == 4

    @pytest.mark.asyncio
    async def test_display_name_is_first_observed(self, provider):
        await provider.record_influence("  Kraftwerk ", "Neu!")
        await provider.record_influence("KRAFTWERK", "Cluster")

        hits = await provider.search_identities("kraftwerk")
        assert [h.name for h in hits] == ["Kraftwerk"]

    @pytest.mark.asyncio
    async def test_genres_stored_only_on_creation(self, provider):
        await provider.record_influence("Can", "Stereolab", from_genres="krautrock")
        await provider.record_influence("Can", "Radiohead", from_genres="pop")

        hits = await provider.search_identities("can")
        assert hits[0].genres == "krautrock"

    @pytest.mark.asyncio
    async def test_genre_list_is_joined(self, provider):
        await provider.record_influence("Stereolab", "Broadcast", from_genres=["post-rock", "krautrock"])

        hits = await provider.search_identities("stereolab")
        assert hits[0].genres == "post-rock, krautrock"


# ═══════════════════════════════════════════════════════════════════════
# Edge upsert
# ═══════════════════════════════════════════════════════════════════════


class TestRecordInfluence:

    @pytest.mark.asyncio
    async def test_defaults(self, provider):
        result = await provider.record_influence("Kraftwerk", "Depeche Mode")
        assert result.relationship is RelationshipKind.INFLUENCED
        assert result.weight == 0.5
        assert result.created is True
        assert result.edge_id is not None

    @pytest.mark.asyncio
    async def test_weight_never_decreases(self, provider):
        first = await provider.record_influence("A", "B", weight=0.5)
        second = await provider.record_influence("A", "B", weight=0.9)
        third = await provider.record_influence("A", "B", weight=0.3)

        assert first.edge_id == second.edge_id == third.edge_id
        assert second.created is False
        assert third.weight == 0.9

        lookup = await provider.lookup("A")
        assert lookup.count == 1
        assert lookup.connections[0].weight == 0.9

    @pytest.mark.asyncio
    async def test_last_non_null_context_wins(self, provider):
        await provider.record_influence("A", "B", context="cited in interview")
        await provider.record_influence("A", "B")
        lookup = await provider.lookup("A")
        assert lookup.connections[0].context == "cited in interview"

        await provider.record_influence("A", "B", context="sampled on debut")
        lookup = await provider.lookup("A")
        assert lookup.connections[0].context == "sampled on debut"

    @pytest.mark.asyncio
    async def test_kinds_are_separate_edges(self, provider):
        r1 = await provider.record_influence("A", "B", relationship="influenced")
        r2 = await provider.record_influence("A", "B", relationship="sample")
        assert r1.edge_id != r2.edge_id

        stats = await provider.graph_stats()
        assert stats.total_edges == 2

    @pytest.mark.asyncio
    async def test_direction_matters_for_identity_of_edge(self, provider):
        r1 = await provider.record_influence("A", "B")
        r2 = await provider.record_influence("B", "A")
        assert r1.edge_id != r2.edge_id

    @pytest.mark.asyncio
    async def test_provenance_accumulates(self, provider):
        r1 = await provider.record_influence(
            "Kraftwerk", "Afrika Bambaataa",
            source_type="review", source_name="Pitchfork", snippet="Trans-Europe Express",
        )
        await provider.record_influence(
            "Kraftwerk", "Afrika Bambaataa",
            source_type="lastfm",
        )

        sources = await provider.list_edge_sources(r1.edge_id)
        assert [s.source_type for s in sources] == ["review", "lastfm"]
        assert sources[0].source_name == "Pitchfork"
        assert sources[0].snippet == "Trans-Europe Express"

    @pytest.mark.asyncio
    async def test_duplicate_provenance_is_kept(self, provider):
        r1 = await provider.record_influence("A", "B", source_type="review", source_url="https://x.test/1")
        await provider.record_influence("A", "B", source_type="review", source_url="https://x.test/1")

        sources = await provider.list_edge_sources(r1.edge_id)
        assert len(sources) == 2
        assert sources[0].id != sources[1].id

    @pytest.mark.asyncio
    async def test_no_source_type_no_provenance(self, provider):
        r1 = await provider.record_influence("A", "B", source_url="https://x.test/1")
        assert await provider.list_edge_sources(r1.edge_id) == []

    @pytest.mark.asyncio
    async def test_unknown_relationship_rejected(self, provider):
        with pytest.raises(InvalidInputError):
            await provider.record_influence("A", "B", relationship="hates")
        stats = await provider.graph_stats()
        assert stats.total_artists == 0
        assert stats.total_edges == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("weight", [-0.1, 1.5])
    async def test_weight_out_of_range_rejected(self, provider, weight):
        with pytest.raises(InvalidInputError, match="weight"):
            await provider.record_influence("A", "B", weight=weight)
        stats = await provider.graph_stats()
        assert stats.total_artists == 0

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, provider):
        with pytest.raises(InvalidInputError):
            await provider.record_influence("   ", "B")

    @pytest.mark.asyncio
    async def test_concurrent_upserts_of_same_triple(self, provider):
        weights = [0.1, 0.7, 0.3, 0.95, 0.2, 0.6]
        await asyncio.gather(*(provider.record_influence("A", "B", weight=w) for w in weights))

        lookup = await provider.lookup("A")
        assert lookup.count == 1
        assert lookup.connections[0].weight == 0.95


# ═══════════════════════════════════════════════════════════════════════
# Batch upsert
# ═══════════════════════════════════════════════════════════════════════


class TestRecordInfluencesBatch:

    @pytest.mark.asyncio
    async def test_results_in_input_order(self, provider):
        results = await provider.record_influences_batch([
            {"from_artist": "Kraftwerk", "to_artist": "Juan Atkins", "weight": 0.9},
            {"from_artist": "Juan Atkins", "to_artist": "Derrick May", "relationship": "collaboration"},
            EdgeObservation(from_artist="Derrick May", to_artist="Carl Craig", source_type="wikipedia"),
        ])

        assert [(r.from_artist, r.to_artist) for r in results] == [
            ("Kraftwerk", "Juan Atkins"),
            ("Juan Atkins", "Derrick May"),
            ("Derrick May", "Carl Craig"),
        ]
        # Identities created earlier in the batch are reused later in it.
        assert results[0].to_id == results[1].from_id
        assert results[1].to_id == results[2].from_id

        stats = await provider.graph_stats()
        assert stats.total_edges == 3
        assert stats.total_sources == 1

    @pytest.mark.asyncio
    async def test_repeated_triple_within_batch_merges(self, provider):
        results = await provider.record_influences_batch([
            {"from_artist": "A", "to_artist": "B", "weight": 0.4, "source_type": "review"},
            {"from_artist": "a", "to_artist": "b", "weight": 0.8, "source_type": "lastfm"},
        ])
        assert results[0].edge_id == results[1].edge_id

        lookup = await provider.lookup("A")
        assert lookup.connections[0].weight == 0.8
        assert len(await provider.list_edge_sources(results[0].edge_id)) == 2

    @pytest.mark.asyncio
    async def test_invalid_entry_writes_nothing(self, provider):
        with pytest.raises(InvalidInputError):
            await provider.record_influences_batch([
                {"from_artist": "A", "to_artist": "B"},
                {"from_artist": "B", "to_artist": "C", "relationship": "rivalry"},
            ])
        stats = await provider.graph_stats()
        assert stats.total_artists == 0
        assert stats.total_edges == 0

    @pytest.mark.asyncio
    async def test_failure_partway_rolls_back_everything(self, provider, monkeypatch):
        original = provider._upsert_edge
        calls = {"count": 0}

        async def flaky_upsert(db, obs):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("simulated failure")
            return await original(db, obs)

        monkeypatch.setattr(provider, "_upsert_edge", flaky_upsert)

        with pytest.raises(RuntimeError, match="simulated failure"):
            await provider.record_influences_batch([
                {"from_artist": "A", "to_artist": "B", "source_type": "review"},
                {"from_artist": "B", "to_artist": "C"},
            ])

        stats = await provider.graph_stats()
        assert stats.total_artists == 0
        assert stats.total_edges == 0
        assert stats.total_sources == 0

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, provider):
        with pytest.raises(InvalidInputError, match="at least one"):
            await provider.record_influences_batch([])

    @pytest.mark.asyncio
    async def test_oversized_batch_rejected(self, provider):
        batch = [{"from_artist": f"A{i}", "to_artist": "B"} for i in range(101)]
        with pytest.raises(InvalidInputError, match="at most 100"):
            await provider.record_influences_batch(batch)


# ═══════════════════════════════════════════════════════════════════════
# Adjacency lookup
# ═══════════════════════════════════════════════════════════════════════


class TestLookup:

    @pytest.fixture
    def edges(self):
        return [
            ("A", "B", "influenced", 0.8),
            ("C", "A", "influenced", 0.6),
            ("A", "A", "similar", 0.3),
        ]

    async def _seed(self, provider, edges):
        for src, dst, kind, weight in edges:
            await provider.record_influence(src, dst, relationship=kind, weight=weight)

    @pytest.mark.asyncio
    async def test_both_directions_ordered_by_weight(self, provider, edges):
        await self._seed(provider, edges)
        result = await provider.lookup("a")

        assert result.found is True
        assert result.count == 3
        assert [c.weight for c in result.connections] == [0.8, 0.6, 0.3]
        assert [c.direction for c in result.connections] == [
            EdgeDirection.OUTGOING,
            EdgeDirection.INCOMING,
            EdgeDirection.OUTGOING,
        ]

    @pytest.mark.asyncio
    async def test_self_loop_appears_once(self, provider, edges):
        await self._seed(provider, edges)
        result = await provider.lookup("A")
        self_loops = [c for c in result.connections if c.from_artist == c.to_artist]
        assert len(self_loops) == 1

    @pytest.mark.asyncio
    async def test_outgoing_only(self, provider, edges):
        await self._seed(provider, edges)
        result = await provider.lookup("A", direction="outgoing")
        assert {(c.from_artist, c.to_artist) for c in result.connections} == {("A", "B"), ("A", "A")}

    @pytest.mark.asyncio
    async def test_incoming_only(self, provider, edges):
        await self._seed(provider, edges)
        result = await provider.lookup("A", direction="incoming")
        assert {(c.from_artist, c.to_artist) for c in result.connections} == {("C", "A"), ("A", "A")}

    @pytest.mark.asyncio
    async def test_relationship_filter(self, provider, edges):
        await self._seed(provider, edges)
        result = await provider.lookup("A", relationship="similar")
        assert result.count == 1
        assert result.connections[0].relationship is RelationshipKind.SIMILAR

    @pytest.mark.asyncio
    async def test_min_weight_and_limit(self, provider, edges):
        await self._seed(provider, edges)
        assert (await provider.lookup("A", min_weight=0.5)).count == 2

        limited = await provider.lookup("A", limit=1)
        assert limited.count == 1
        assert limited.connections[0].weight == 0.8

    @pytest.mark.asyncio
    async def test_unknown_artist_is_not_found_and_not_created(self, provider):
        await provider.record_influence("Aphex Twin", "Squarepusher")

        result = await provider.lookup("Aphex Twim")
        assert result.found is False
        assert result.connections == []
        assert result.count == 0
        assert result.message == "Artist not found in cache"
        assert "Aphex Twin" in result.suggestions

        stats = await provider.graph_stats()
        assert stats.total_artists == 2

    @pytest.mark.asyncio
    async def test_invalid_filters_rejected(self, provider):
        with pytest.raises(InvalidInputError):
            await provider.lookup("A", direction="sideways")
        with pytest.raises(InvalidInputError):
            await provider.lookup("A", relationship="rivalry")
        with pytest.raises(InvalidInputError):
            await provider.lookup("A", min_weight=2.0)
        with pytest.raises(InvalidInputError):
            await provider.lookup("A", limit=0)


# ═══════════════════════════════════════════════════════════════════════
# Aliases
# ═══════════════════════════════════════════════════════════════════════


class TestRegisterAlias:

    @pytest.mark.asyncio
    async def test_alias_lookup_matches_canonical(self, provider):
        await provider.record_influence("MF DOOM", "Madlib", relationship="collaboration", weight=0.9)
        await provider.record_influence("KMD", "MF DOOM", weight=0.7)

        added = await provider.register_alias("DOOM", "MF DOOM")
        assert added.status is AliasStatus.ADDED

        via_alias = await provider.lookup("DOOM")
        via_name = await provider.lookup("MF DOOM")
        assert via_alias.artist_id == via_name.artist_id
        assert via_alias.connections == via_name.connections

    @pytest.mark.asyncio
    async def test_recording_through_alias_reuses_identity(self, provider):
        canonical = await provider.record_influence("MF DOOM", "Madlib")
        await provider.register_alias("doom", "mf doom")

        via_alias = await provider.record_influence("  Doom ", "Danger Mouse")
        assert via_alias.from_id == canonical.from_id

        stats = await provider.graph_stats()
        assert stats.total_artists == 3
        assert stats.total_aliases == 1

    @pytest.mark.asyncio
    async def test_same_binding_is_noop(self, provider):
        await provider.register_alias("DOOM", "MF DOOM")
        again = await provider.register_alias("doom", "MF DOOM")
        assert again.status is AliasStatus.ALREADY_EXISTS
        assert (await provider.graph_stats()).total_aliases == 1

    @pytest.mark.asyncio
    async def test_conflicting_binding_rejected(self, provider):
        doom = await provider.record_influence("MF DOOM", "Madlib")
        await provider.record_influence("Doom (band)", "Napalm Death")
        await provider.register_alias("DOOM", "MF DOOM")

        conflict = await provider.register_alias("DOOM", "Doom (band)")
        assert conflict.status is AliasStatus.CONFLICT
        assert conflict.artist_id == doom.from_id
        assert "MF DOOM" in conflict.message

        lookup = await provider.lookup("DOOM")
        assert lookup.artist_id == doom.from_id

    @pytest.mark.asyncio
    async def test_conflict_does_not_create_canonical(self, provider):
        await provider.register_alias("DOOM", "MF DOOM")
        conflict = await provider.register_alias("DOOM", "Daniel Dumile")
        assert conflict.status is AliasStatus.CONFLICT

        stats = await provider.graph_stats()
        assert stats.total_artists == 1

    @pytest.mark.asyncio
    async def test_alias_for_unseen_artist_creates_identity(self, provider):
        result = await provider.register_alias("Ye", "Kanye West")
        assert result.status is AliasStatus.ADDED

        hits = await provider.search_identities("kanye")
        assert [h.name for h in hits] == ["Kanye West"]
        assert hits[0].id == result.artist_id

    @pytest.mark.asyncio
    async def test_alias_equal_to_other_artist_name_conflicts(self, provider):
        await provider.record_influence("Prince", "D'Angelo")
        result = await provider.register_alias("Prince", "The Artist")
        assert result.status is AliasStatus.CONFLICT

    @pytest.mark.asyncio
    async def test_blank_alias_rejected(self, provider):
        with pytest.raises(InvalidInputError):
            await provider.register_alias("  ", "MF DOOM")


# ═══════════════════════════════════════════════════════════════════════
# Edge deletion
# ═══════════════════════════════════════════════════════════════════════


class TestDeleteEdge:

    @pytest.mark.asyncio
    async def test_delete_cascades_to_provenance(self, provider):
        edge = await provider.record_influence("A", "B", source_type="review")
        await provider.record_influence("A", "B", source_type="web_search")

        removed = await provider.delete_edge(edge.edge_id)
        assert removed.status is DeleteStatus.REMOVED
        assert removed.from_artist == "A"
        assert removed.to_artist == "B"
        assert removed.relationship is RelationshipKind.INFLUENCED
        assert removed.sources_removed == 2

        assert await provider.list_edge_sources(edge.edge_id) == []
        assert (await provider.lookup("A")).connections == []
        assert (await provider.lookup("B")).connections == []

        stats = await provider.graph_stats()
        assert stats.total_sources == 0
        # Identities are never pruned by edge deletion.
        assert stats.total_artists == 2

    @pytest.mark.asyncio
    async def test_delete_unknown_edge_is_not_found(self, provider):
        result = await provider.delete_edge(9999)
        assert result.status is DeleteStatus.NOT_FOUND
        assert result.edge_id == 9999

    @pytest.mark.asyncio
    async def test_delete_leaves_other_edges(self, provider):
        doomed = await provider.record_influence("A", "B")
        kept = await provider.record_influence("A", "C", source_type="review")

        await provider.delete_edge(doomed.edge_id)

        lookup = await provider.lookup("A")
        assert [c.edge_id for c in lookup.connections] == [kept.edge_id]
        assert len(await provider.list_edge_sources(kept.edge_id)) == 1


# ═══════════════════════════════════════════════════════════════════════
# Identity search
# ═══════════════════════════════════════════════════════════════════════


class TestSearchIdentities:

    @pytest.mark.asyncio
    async def test_substring_match_with_counts(self, provider):
        await provider.record_influence("Kraftwerk", "Neu!")
        await provider.record_influence("Kraftwerk", "Cluster")
        await provider.record_influence("Karl Bartos", "Kraftwerk")

        hits = await provider.search_identities("K")
        assert [h.name for h in hits] == ["Kraftwerk", "Karl Bartos"]
        assert (hits[0].outgoing, hits[0].incoming, hits[0].total) == (2, 1, 3)
        assert hits[0].first_seen

    @pytest.mark.asyncio
    async def test_limit(self, provider):
        for name in ["Kraftwerk", "Karl Bartos", "Klaus Schulze"]:
            await provider.record_influence(name, "Neu!")
        assert len(await provider.search_identities("k", limit=2)) == 2

    @pytest.mark.asyncio
    async def test_like_wildcards_are_literal(self, provider):
        await provider.record_influence("Kraftwerk", "Neu!")
        assert await provider.search_identities("%") == []
        assert await provider.search_identities("_") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(self, provider, query):
        await provider.record_influence("Kraftwerk", "Neu!")
        with pytest.raises(InvalidInputError, match="blank"):
            await provider.search_identities(query)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range_rejected(self, provider, limit):
        with pytest.raises(InvalidInputError, match="limit"):
            await provider.search_identities("k", limit=limit)

    @pytest.mark.asyncio
    async def test_limit_upper_bound_accepted(self, provider):
        await provider.record_influence("Kraftwerk", "Neu!")
        assert len(await provider.search_identities("k", limit=100)) == 1


# ═══════════════════════════════════════════════════════════════════════
# Statistics
# ═══════════════════════════════════════════════════════════════════════


class TestGraphStats:

    @pytest.mark.asyncio
    async def test_empty_graph(self, provider):
        stats = await provider.graph_stats()
        assert stats.total_artists == 0
        assert stats.total_edges == 0
        assert stats.total_sources == 0
        assert stats.total_aliases == 0
        assert stats.by_relationship == {}
        assert stats.by_source_type == {}
        assert stats.most_connected == []
        assert stats.avg_weight is None

    @pytest.mark.asyncio
    async def test_populated_graph(self, provider):
        await provider.record_influence("A", "B", weight=0.8, source_type="review")
        await provider.record_influence("B", "C", relationship="similar", weight=0.6, source_type="lastfm")
        await provider.record_influence("C", "D", weight=0.7, source_type="review")
        await provider.register_alias("Ye", "Kanye West")

        stats = await provider.graph_stats()
        assert stats.total_artists == 5
        assert stats.total_edges == 3
        assert stats.total_sources == 3
        assert stats.total_aliases == 1
        assert stats.by_relationship == {"influenced": 2, "similar": 1}
        assert list(stats.by_source_type) == ["review", "lastfm"]
        assert stats.avg_weight == 0.7
        assert [(a.name, a.total) for a in stats.most_connected] == [
            ("B", 2), ("C", 2), ("A", 1), ("D", 1),
        ]

    @pytest.mark.asyncio
    async def test_top_n(self, chain_provider):
        stats = await chain_provider.graph_stats(top_n=2)
        assert [a.name for a in stats.most_connected] == ["B", "C"]
