"""
Feedback arc sets.

A feedback arc set resolver is any callable taking the boolean adjacency
matrix of a directed graph and returning a FeedbackArcSet: the edges whose
removal leaves the graph acyclic, plus a topological order of the vertices
of that remaining graph. Both refer to the row/column numbering of the
adjacency matrix; entries may be Python or numpy integers.

Two resolvers are provided:

- greedy_fas: the Eades-Lin-Smyth greedy heuristic (default)
- dfs_fas: the back edges of a depth-first search

Neither aims for a minimum arc set; the loop-removal transformation only
relies on the result being consistent, which check_feedback_arc_set()
verifies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from typing import Callable

import numpy as np

from mldloops.errors import InvalidFeedbackArcSetError


@dataclass
class FeedbackArcSet:
    """
    Result of a feedback arc set resolver.

    arcs: ``arcs[i] == (source, sink)`` is the i-th edge to break
    sequence: ``sequence[i]`` is the vertex evaluated i-th once the arcs are removed
    """

    arcs: list[tuple[Integral, Integral]] = field(default_factory=list)
    sequence: list[Integral] = field(default_factory=list)

    def __post_init__(self) -> None:
        # resolvers working on the adjacency array may hand back numpy integers
        self.arcs = [(int(u), int(v)) for u, v in self.arcs]
        self.sequence = [int(v) for v in self.sequence]

    def __len__(self) -> int:
        return len(self.arcs)

    @property
    def sources(self) -> list[int]:
        """Distinct arc sources in order of first appearance."""
        seen: list[int] = []
        for source, _ in self.arcs:
            if source not in seen:
                seen.append(source)
        return seen

    def positions(self) -> dict[int, int]:
        """Map vertex -> position in ``sequence``."""
        return {v: i for i, v in enumerate(self.sequence)}


FASResolver = Callable[[np.ndarray], FeedbackArcSet]


def _backward_arcs(adjacency: np.ndarray, sequence: list[int]) -> list[tuple[int, int]]:
    """Every edge that does not point forward in ``sequence``, self-loops included."""
    pos = {v: i for i, v in enumerate(sequence)}
    arcs = [(int(u), int(v)) for u, v in np.argwhere(adjacency) if pos[int(u)] >= pos[int(v)]]
    return sorted(arcs, key=lambda arc: (pos[arc[0]], pos[arc[1]]))


def greedy_fas(adjacency: np.ndarray) -> FeedbackArcSet:
    """
    Eades-Lin-Smyth greedy feedback arc set.

    Sinks are peeled off to the back of the sequence and sources to the
    front; when neither exists the vertex with the largest
    out-degree minus in-degree goes to the front (lowest index on ties).
    Every edge pointing backwards in the resulting sequence is a feedback arc.

    Args:
        adjacency: Square boolean matrix, ``adjacency[u, v]``: edge u -> v

    Returns:
        FeedbackArcSet with arcs ordered by source then sink position
    """
    adj = np.array(adjacency, dtype=bool)
    np.fill_diagonal(adj, False)
    n = adj.shape[0]

    out_deg = adj.sum(axis=1).astype(int)
    in_deg = adj.sum(axis=0).astype(int)
    remaining = set(range(n))
    front: list[int] = []
    back: list[int] = []

    def remove(v: int) -> None:
        remaining.discard(v)
        for w in np.flatnonzero(adj[v]):
            if int(w) in remaining:
                in_deg[w] -= 1
        for w in np.flatnonzero(adj[:, v]):
            if int(w) in remaining:
                out_deg[w] -= 1

    while remaining:
        changed = True
        while changed:
            changed = False
            for v in sorted(remaining):
                if v in remaining and out_deg[v] == 0:
                    back.append(v)
                    remove(v)
                    changed = True
            for v in sorted(remaining):
                if v in remaining and in_deg[v] == 0:
                    front.append(v)
                    remove(v)
                    changed = True

        if remaining:
            v = max(sorted(remaining), key=lambda w: out_deg[w] - in_deg[w])
            front.append(v)
            remove(v)

    sequence = front + back[::-1]
    return FeedbackArcSet(arcs=_backward_arcs(adjacency, sequence), sequence=sequence)


def dfs_fas(adjacency: np.ndarray) -> FeedbackArcSet:
    """
    Feedback arc set from the back edges of a depth-first search.

    The search starts from vertices in index order; the sequence is the
    reverse post-order, which is topological once the back edges are gone.
    """
    n = adjacency.shape[0]
    state = [0] * n  # 0 = unvisited, 1 = on stack, 2 = done
    postorder: list[int] = []
    back_edges: list[tuple[int, int]] = []

    def visit(v: int) -> None:
        state[v] = 1
        for w in np.flatnonzero(adjacency[v]):
            w = int(w)
            if state[w] == 0:
                visit(w)
            elif state[w] == 1:
                back_edges.append((v, w))
        state[v] = 2
        postorder.append(v)

    for v in range(n):
        if state[v] == 0:
            visit(v)

    sequence = postorder[::-1]
    pos = {v: i for i, v in enumerate(sequence)}
    arcs = sorted(back_edges, key=lambda arc: (pos[arc[0]], pos[arc[1]]))
    return FeedbackArcSet(arcs=arcs, sequence=sequence)


def check_feedback_arc_set(adjacency: np.ndarray, fas: FeedbackArcSet) -> None:
    """
    Verify a resolver result against the adjacency matrix it was computed from.

    Raises:
        InvalidFeedbackArcSetError: if the sequence is not a permutation of
            the vertices, an arc is not an edge, or an edge that is not an arc
            points backwards in the sequence.
    """
    n = adjacency.shape[0]
    if sorted(fas.sequence) != list(range(n)):
        raise InvalidFeedbackArcSetError(f"Vertex sequence is not a permutation of 0..{n - 1}: {fas.sequence}")

    arcs = set()
    for source, sink in fas.arcs:
        if not (0 <= source < n and 0 <= sink < n) or not adjacency[source, sink]:
            raise InvalidFeedbackArcSetError(f"Feedback arc ({source}, {sink}) is not an edge of the graph")
        arcs.add((source, sink))

    pos = fas.positions()
    for u, v in np.argwhere(adjacency):
        u, v = int(u), int(v)
        if (u, v) not in arcs and pos[u] >= pos[v]:
            raise InvalidFeedbackArcSetError(
                f"Edge ({u}, {v}) is not in the feedback arc set but violates the vertex sequence"
            )
