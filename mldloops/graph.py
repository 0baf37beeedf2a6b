"""
Variable dependency graph of an MLD model.

Vertices are the model variables (every symbol with a computable order >= 0,
in symbol-table order). An edge ``u -> v`` means "u must be computed before
v": it is drawn from every name in a row's ``depends`` to the row's
``defines``. Rows of a continuous MUST section define nothing and are skipped.

The graph is a throw-away structure: it is rebuilt for every run and only
used to extract the feedback arc set and the evaluation order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from mldloops.errors import UndefinedVariableError
from mldloops.model import MLDModel
from mldloops.rowinfo import RowInfo
from mldloops.types import ValueType, VariableKind


@dataclass(frozen=True)
class Vertex:
    """Vertex-table entry: the variable a vertex position stands for."""

    name: str
    type: ValueType
    kind: VariableKind


@dataclass(eq=False)
class DependencyGraph:
    """Vertex table plus boolean adjacency matrix (``adjacency[u, v]``: u before v)."""

    vertices: list[Vertex]
    adjacency: np.ndarray

    def __post_init__(self) -> None:
        n = len(self.vertices)
        if self.adjacency.shape != (n, n):
            raise ValueError(f"Adjacency matrix must be {n}x{n}, got {self.adjacency.shape}")
        self._positions = {v.name: i for i, v in enumerate(self.vertices)}

    def __len__(self) -> int:
        return len(self.vertices)

    def vertex(self, name: str) -> Optional[int]:
        """Position of the vertex named ``name``, or None."""
        return self._positions.get(name)

    def add_edge(self, source: int, sink: int) -> None:
        self.adjacency[source, sink] = True

    def has_edge(self, source: int, sink: int) -> bool:
        return bool(self.adjacency[source, sink])

    def edges(self) -> list[tuple[int, int]]:
        """All edges in row-major order."""
        return [(int(u), int(v)) for u, v in np.argwhere(self.adjacency)]

    def named_edges(self) -> list[tuple[str, str]]:
        return [(self.vertices[u].name, self.vertices[v].name) for u, v in self.edges()]

    def strongly_connected_components(self) -> list[list[int]]:
        return strongly_connected_components(self.adjacency)

    def is_acyclic(self) -> bool:
        return is_acyclic(self.adjacency)

    def topological_order(self) -> list[int]:
        return topological_sort(self.adjacency)


def build_vertex_table(model: MLDModel) -> list[Vertex]:
    """One vertex per variable, skipping constants (computable order < 0)."""
    return [Vertex(sym.name, sym.type, sym.kind) for sym in model.symtable if sym.is_variable]


def _add_row_edges(graph: DependencyGraph, row: RowInfo, index: int, table: str) -> None:
    sink = graph.vertex(row.defines)
    if sink is None:
        raise UndefinedVariableError(row.defines, row=index, table=table)
    for dep in row.depends:
        source = graph.vertex(dep)
        # constants and parameters impose no ordering
        if source is not None:
            graph.add_edge(source, sink)


def build_dependency_graph(model: MLDModel) -> DependencyGraph:
    """
    Build the dependency graph from the model's row descriptors.

    Inequality rows tagged as a continuous MUST section are ignored; output
    rows are always included.

    Raises:
        UndefinedVariableError: if a defining row names no vertex.
    """
    vertices = build_vertex_table(model)
    n = len(vertices)
    graph = DependencyGraph(vertices, np.zeros((n, n), dtype=bool))

    for r, row in enumerate(model.rowinfo.ineq):
        if not row.defines_variable:
            continue
        _add_row_edges(graph, row, r, "ineq")

    for r, row in enumerate(model.rowinfo.output):
        _add_row_edges(graph, row, r, "output")

    return graph


def strongly_connected_components(adjacency: np.ndarray) -> list[list[int]]:
    """Find strongly connected components using Tarjan's algorithm.

    Args:
        adjacency: Square boolean matrix (``adjacency[u, v]``: edge u -> v)

    Returns:
        List of SCCs, each SCC is a list of vertices.
        SCCs are returned in reverse topological order.
    """
    n = adjacency.shape[0]
    adj = [[int(w) for w in np.flatnonzero(adjacency[v])] for v in range(n)]

    index_counter = [0]
    stack: list[int] = []
    lowlink: dict[int, int] = {}
    index: dict[int, int] = {}
    on_stack: dict[int, bool] = {}
    sccs: list[list[int]] = []

    def strongconnect(node: int) -> None:
        index[node] = index_counter[0]
        lowlink[node] = index_counter[0]
        index_counter[0] += 1
        stack.append(node)
        on_stack[node] = True

        for successor in adj[node]:
            if successor not in index:
                strongconnect(successor)
                lowlink[node] = min(lowlink[node], lowlink[successor])
            elif on_stack.get(successor, False):
                lowlink[node] = min(lowlink[node], index[successor])

        # root of an SCC: pop it off the stack
        if lowlink[node] == index[node]:
            scc: list[int] = []
            while True:
                w = stack.pop()
                on_stack[w] = False
                scc.append(w)
                if w == node:
                    break
            sccs.append(scc)

    for node in range(n):
        if node not in index:
            strongconnect(node)

    return sccs


def is_acyclic(adjacency: np.ndarray) -> bool:
    """True if the directed graph has no cycle (self-loops count as cycles)."""
    if np.any(np.diag(adjacency)):
        return False
    return all(len(scc) == 1 for scc in strongly_connected_components(adjacency))


def topological_sort(adjacency: np.ndarray) -> list[int]:
    """
    Kahn's algorithm, always taking the lowest-numbered ready vertex.

    Raises:
        ValueError: if the graph has a cycle.
    """
    n = adjacency.shape[0]
    in_degree = adjacency.sum(axis=0).astype(int)
    ready = [v for v in range(n) if in_degree[v] == 0]
    order: list[int] = []

    while ready:
        ready.sort()
        v = ready.pop(0)
        order.append(v)
        for w in np.flatnonzero(adjacency[v]):
            in_degree[w] -= 1
            if in_degree[w] == 0:
                ready.append(int(w))

    if len(order) != n:
        raise ValueError("Graph has a cycle, no topological order exists")
    return order
