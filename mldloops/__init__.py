"""
mldloops - Algebraic loop removal for MLD hybrid system models

Detects variables of a mixed logical dynamical (MLD) model whose defining
inequalities depend on each other, breaks the cycles with auxiliary inputs
and equality constraints, and assigns every variable a computable order.
"""

from beartype.claw import beartype_package

beartype_package(__name__)

__version__ = "0.1.0"

from mldloops.types import ItemType, ValueType, VariableKind
from mldloops.errors import (
    InvalidFeedbackArcSetError,
    ModelConsistencyError,
    ModelValidationError,
    SymbolTableError,
    UndefinedVariableError,
    UnsupportedLoopSourceError,
)
from mldloops.symbol import AUX_SUFFIX, Symbol
from mldloops.rowinfo import RowInfo, RowInfoTable
from mldloops.model import MLDModel
from mldloops.graph import DependencyGraph, Vertex, build_dependency_graph
from mldloops.fas import FASResolver, FeedbackArcSet, check_feedback_arc_set, dfs_fas, greedy_fas
from mldloops.loops import (
    assign_computational_order,
    create_aux_input,
    has_algebraic_loop,
    remove_algebraic_loops,
    update_ineq_constraints,
)
from mldloops.validation import ValidationResult, validate_model

__all__ = [
    # Types
    "ItemType",
    "ValueType",
    "VariableKind",
    # Errors
    "ModelConsistencyError",
    "UndefinedVariableError",
    "SymbolTableError",
    "UnsupportedLoopSourceError",
    "InvalidFeedbackArcSetError",
    "ModelValidationError",
    # Model
    "AUX_SUFFIX",
    "Symbol",
    "RowInfo",
    "RowInfoTable",
    "MLDModel",
    # Graph and feedback arc sets
    "Vertex",
    "DependencyGraph",
    "build_dependency_graph",
    "FASResolver",
    "FeedbackArcSet",
    "greedy_fas",
    "dfs_fas",
    "check_feedback_arc_set",
    # Loop removal
    "has_algebraic_loop",
    "assign_computational_order",
    "create_aux_input",
    "update_ineq_constraints",
    "remove_algebraic_loops",
    # Validation
    "ValidationResult",
    "validate_model",
    "__version__",
]
