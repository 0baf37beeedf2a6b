"""
Detection and removal of algebraic loops in MLD models.

An algebraic loop is a cycle in the variable dependency graph: the rows
defining some variables depend, directly or transitively, on each other, so
there is no order in which they can be evaluated. The front-end marks such
variables with computable order 0.

================================================================================
ALGORITHM
================================================================================

1. Check whether any variable has computable order 0 (otherwise: no-op)
2. Build the dependency graph from the row descriptors
3. Find a feedback arc set (FAS) and a vertex sequence for the rest
4. Write the sequence back as computable order (1, 2, ...)
5. For every distinct FAS source ``s`` add an auxiliary input ``s_aux``
6. For every FAS arc ``s -> t``:
   - in the rows defining ``t``, move the coefficient of ``s`` to the
     column of ``s_aux`` (negated, as it changes sides of the inequality)
   - add the two rows ``s <= s_aux`` and ``-s <= -s_aux``

The auxiliary input is free from the point of view of the model, the
equality rows pin it to the value of the variable it replaces, so the
input/output behaviour is unchanged.

Notes:
- output rows are not rewritten: the equality rows already give the
  auxiliary input its proper value
- the state-update and output matrices only receive zero columns for the
  auxiliary inputs; eliminating the equality is left to downstream passes
================================================================================
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional

from mldloops.errors import ModelValidationError, SymbolTableError, UnsupportedLoopSourceError
from mldloops.fas import FASResolver, FeedbackArcSet, check_feedback_arc_set, greedy_fas
from mldloops.graph import DependencyGraph, build_dependency_graph
from mldloops.model import MLDModel
from mldloops.rowinfo import RowInfo
from mldloops.symbol import AUX_SUFFIX, Symbol
from mldloops.types import ItemType, ValueType, VariableKind

logger = logging.getLogger(__name__)


def has_algebraic_loop(model: MLDModel) -> bool:
    """True if some variable could not be ordered by the front-end (order 0)."""
    return any(sym.computable_order == 0 for sym in model.symtable)


def assign_computational_order(model: MLDModel, graph: DependencyGraph, sequence: list[int]) -> None:
    """
    Rank the variables 1, 2, ... in the order given by ``sequence``.

    Every vertex gets a distinct order, including inputs that were already
    computable.
    """
    for order, v in enumerate(sequence, start=1):
        model.lookup(graph.vertices[v].name).computable_order = order


def _loop_source_section(model: MLDModel, source: Symbol) -> str:
    """Inequality matrix holding the columns of a loop source."""
    if source.kind not in (VariableKind.DISCRETE_AUX, VariableKind.CONTINUOUS_AUX):
        # TODO: states as loop sources need E4 with the signs of x (x sits
        # on the right-hand side) and separate handling of real/binary states
        raise UnsupportedLoopSourceError(source.name, source.kind)
    return model.ineq_section(source.kind)


def create_aux_input(model: MLDModel, source_name: str) -> Symbol:
    """
    Add the auxiliary input ``<source_name>_aux`` to the model.

    A real auxiliary is placed after the real inputs, a binary one after all
    inputs, so inputs stay sorted real-first. Zero columns are inserted into
    B1, D1 and E1 at its index.

    Raises:
        SymbolTableError: if ``source_name`` does not match exactly one entry.
    """
    source = model.lookup(source_name)
    aux = source.make_aux_input()
    aux.index = model.nur if aux.type == ValueType.REAL else model.nu

    model.insert_input_column(aux.index)
    model.add_symbol(aux)
    if aux.type == ValueType.REAL:
        model.nuar += 1
    else:
        model.nuab += 1
    logger.debug("Created auxiliary input '%s' at input column %d", aux.name, aux.index)
    return aux


def update_ineq_constraints(model: MLDModel, source_name: str, sink_name: str) -> tuple[int, int]:
    """
    Break the arc ``source -> sink`` in the inequality system.

    The coefficient of the source in every row defining the sink moves to the
    column of ``<source>_aux`` with opposite sign, and the equality
    ``source == <source>_aux`` is appended as two inequality rows tagged
    AL_must.

    Returns:
        Indices of the two appended rows.

    Raises:
        SymbolTableError: if the source or its auxiliary input is not unique.
        UnsupportedLoopSourceError: if the source is not a d or z variable.
    """
    aux_name = source_name + AUX_SUFFIX
    u_col = model.lookup(aux_name).index
    source = model.lookup(source_name)
    section = _loop_source_section(model, source)
    dep_col = source.index

    E_src = getattr(model, section)
    for r in model.rowinfo.ineq_rows_defining(sink_name):
        row = model.rowinfo.ineq[r]
        if row.depends_on(source_name):
            model.E1[r, u_col] = -E_src[r, dep_col]
            E_src[r, dep_col] = 0.0
            row.replace_dependency(source_name, aux_name)
            logger.debug("Row %d (%s): moved %s column %d to E1 column %d", r, row, section, dep_col, u_col)

    # source <= aux and -source <= -aux
    first = model.append_ineq_rows(2)
    model.E1[first : first + 2, u_col] = [1.0, -1.0]
    getattr(model, section)[first : first + 2, dep_col] = [1.0, -1.0]

    for _ in range(2):
        model.rowinfo.ineq.append(RowInfo(defines=sink_name, depends=(aux_name,), item_type=ItemType.AL_MUST))

    return first, first + 1


def _check_loop_sources(graph: DependencyGraph, fas: FeedbackArcSet) -> None:
    for source, _ in fas.arcs:
        vertex = graph.vertices[source]
        if vertex.kind not in (VariableKind.DISCRETE_AUX, VariableKind.CONTINUOUS_AUX):
            raise UnsupportedLoopSourceError(vertex.name, vertex.kind)


def _raise_if_invalid(model: MLDModel) -> None:
    result = model.validate()
    for issue in result.warnings:
        warnings.warn(str(issue))
    if not result.is_valid:
        raise ModelValidationError(result)


def remove_algebraic_loops(
    model: MLDModel,
    resolver: Optional[FASResolver] = None,
    *,
    validate: bool = False,
) -> MLDModel:
    """
    Remove all algebraic loops from ``model`` (in place) and return it.

    If no variable has computable order 0 the model is returned untouched.

    Args:
        model: MLD model as produced by the front-end
        resolver: Feedback arc set resolver, greedy_fas if None
        validate: Run validate_model() before and after the transformation

    Returns:
        The same model object, now free of algebraic loops: every variable
        has a distinct computable order, one auxiliary input exists per
        distinct loop source, and two AL_must rows per broken arc.

    Raises:
        ModelConsistencyError: (or a subclass) on any structural violation.
            The model is left partially transformed and must be discarded.
    """
    if not has_algebraic_loop(model):
        logger.info("No algebraic loops detected in '%s'", model.name)
        return model

    logger.info("Found implicitly defined variable(s) in '%s' - possibly an algebraic loop", model.name)
    if validate:
        _raise_if_invalid(model)

    graph = build_dependency_graph(model)
    if resolver is None:
        resolver = greedy_fas
    fas = resolver(graph.adjacency.copy())
    check_feedback_arc_set(graph.adjacency, fas)
    _check_loop_sources(graph, fas)
    model.alg_loop = True

    logger.info(
        "Breaking %d feedback arc(s) with %d auxiliary input(s)",
        len(fas.arcs),
        len(fas.sources),
    )

    assign_computational_order(model, graph, fas.sequence)

    for source in fas.sources:
        aux_name = graph.vertices[source].name + AUX_SUFFIX
        matches = model.find_symbols(aux_name)
        if not matches:
            create_aux_input(model, graph.vertices[source].name)
        elif len(matches) > 1:
            raise SymbolTableError(aux_name, len(matches))

    for source, sink in fas.arcs:
        source_name = graph.vertices[source].name
        sink_name = graph.vertices[sink].name
        logger.debug("Breaking feedback arc %s -> %s", source_name, sink_name)
        update_ineq_constraints(model, source_name, sink_name)

    if validate:
        _raise_if_invalid(model)
    return model
