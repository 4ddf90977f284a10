"""Bounded breadth-first path search over the influence graph.

The graph is stored directed, but for connectivity every edge may be
walked either way: an edge A->B lets a path move A->B or B->A.  Direction
survives only in the label reported for each hop.

The search keeps one visited set for the whole query, marking each artist
when it is first queued, so every artist is expanded at most
once and the cost stays linear in the edge count however dense the graph.
Because the queue is drained level by level and neighbour order is fixed,
the first path to reach the goal only passes through first arrivals.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class GraphEdge:
    id: int
    from_id: int
    to_id: int
    relationship: str
    weight: float
    context: str | None = None


def _stronger(candidate: GraphEdge, current: GraphEdge | None) -> bool:
    if current is None:
        return True
    if candidate.weight != current.weight:
        return candidate.weight > current.weight
    return candidate.id < current.id


class InfluenceAdjacency:
    """Undirected adjacency index built once per query from an edge list.

    Neighbours are yielded strongest link first (ties by identity id) so
    that among equally short paths the one through heavier edges is found
    first.  Self-loops are kept for labelling but never traversed.
    """

    def __init__(self, edges: Iterable[GraphEdge]) -> None:
        self._best: dict[frozenset[int], GraphEdge] = {}
        for edge in edges:
            key = frozenset((edge.from_id, edge.to_id))
            if _stronger(edge, self._best.get(key)):
                self._best[key] = edge

        neighbours: dict[int, list[tuple[float, int]]] = {}
        for key, edge in self._best.items():
            if len(key) < 2:
                continue
            neighbours.setdefault(edge.from_id, []).append((edge.weight, edge.to_id))
            neighbours.setdefault(edge.to_id, []).append((edge.weight, edge.from_id))

        self._neighbours: dict[int, list[int]] = {
            node: [other for _, other in sorted(pairs, key=lambda p: (-p[0], p[1]))]
            for node, pairs in neighbours.items()
        }

    def neighbours(self, node: int) -> list[int]:
        return self._neighbours.get(node, [])

    def best_edge(self, a: int, b: int) -> GraphEdge | None:
        """Highest-weight edge between ``a`` and ``b`` in either direction."""
        return self._best.get(frozenset((a, b)))


def build_adjacency(edges: Iterable[GraphEdge]) -> InfluenceAdjacency:
    return InfluenceAdjacency(edges)


def bounded_bfs(
    adjacency: InfluenceAdjacency,
    start: int,
    goal: int,
    max_depth: int,
) -> list[int] | None:
    """Return the shortest identity path from ``start`` to ``goal``.

    Args:
        adjacency: Undirected view of the edge set.
        start: Identity id to start from.
        goal: Identity id to reach.
        max_depth: Maximum number of hops a path may use.

    Returns:
        The ordered identity ids including both endpoints, ``[start]`` when
        start and goal coincide, or ``None`` if no path exists within
        ``max_depth`` hops.
    """
    if start == goal:
        return [start]

    parents: dict[int, int] = {}
    reached: set[int] = {start}
    queue: deque[tuple[int, int]] = deque([(start, 0)])

    while queue:
        current, depth = queue.popleft()
        if depth >= max_depth:
            continue
        for neighbour in adjacency.neighbours(current):
            if neighbour in reached:
                continue
            reached.add(neighbour)
            parents[neighbour] = current
            if neighbour == goal:
                return _unwind(parents, start, goal)
            queue.append((neighbour, depth + 1))
    return None


def _unwind(parents: dict[int, int], start: int, goal: int) -> list[int]:
    path = [goal]
    while path[-1] != start:
        path.append(parents[path[-1]])
    path.reverse()
    return path


def hop_evidence(edge: GraphEdge) -> str:
    """Human-readable evidence for one hop: the context, else the weight."""
    if edge.context:
        return edge.context
    return f"weight: {edge.weight}"
