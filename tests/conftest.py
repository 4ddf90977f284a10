"""Shared pytest fixtures for the influence graph test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from src.providers.influence_graph.sqlite_influence_graph_provider import (
    SQLiteInfluenceGraphProvider,
)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temp database path; each test gets its own store."""
    return tmp_path / "test_influence.db"


@pytest_asyncio.fixture
async def provider(db_path: Path) -> SQLiteInfluenceGraphProvider:
    """A provider with its schema bootstrapped."""
    return await SQLiteInfluenceGraphProvider.open(db_path)


@pytest_asyncio.fixture
async def chain_provider(provider: SQLiteInfluenceGraphProvider) -> SQLiteInfluenceGraphProvider:
    """Provider holding the chain A -> B -> C -> D."""
    await provider.record_influence("A", "B", weight=0.8)
    await provider.record_influence("B", "C", weight=0.6)
    await provider.record_influence("C", "D", weight=0.7)
    return provider
