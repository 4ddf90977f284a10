"""Public interface definitions for persistence providers.

Tool handlers talk to the influence graph only through the abstract base
class defined here.  The concrete adapter lives in ``src/providers/`` and
is constructed in ``src/main.py``, so tests and callers can swap in a fake.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IInfluenceGraphProvider    →  SQLiteInfluenceGraphProvider
"""

from src.interfaces.influence_graph_provider import IInfluenceGraphProvider

__all__ = ["IInfluenceGraphProvider"]
