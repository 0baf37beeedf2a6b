"""
Exceptions raised when a model violates a structural invariant.

All of them are fatal: the model is presumed internally consistent and a
violation points at upstream corruption. A model is left partially mutated
after any of these is raised and must not be reused.
"""

from typing import Optional


class ModelConsistencyError(RuntimeError):
    """Base class for all model-consistency violations."""


class UndefinedVariableError(ModelConsistencyError):
    """A defining row names a variable that is not a graph vertex."""

    def __init__(self, name: str, row: Optional[int] = None, table: str = "ineq") -> None:
        self.name = name
        self.row = row
        self.table = table
        where = f" (rowinfo.{table}[{row}])" if row is not None else ""
        super().__init__(
            f"Found undefined variable '{name}'{where} - it is probably defined in the MUST section"
        )


class SymbolTableError(ModelConsistencyError):
    """A symbol lookup returned zero or several entries where one was expected."""

    def __init__(self, name: str, matches: int) -> None:
        self.name = name
        self.matches = matches
        super().__init__(f"Corrupted symbol table: expected one entry named '{name}', found {matches}")


class UnsupportedLoopSourceError(ModelConsistencyError):
    """The source of a feedback arc has a kind the rewriter cannot handle."""

    def __init__(self, name: str, kind) -> None:
        self.name = name
        self.kind = kind
        super().__init__(
            f"Cannot break algebraic loop at '{name}': source variables of kind "
            f"{kind.name} are not supported (only DISCRETE_AUX and CONTINUOUS_AUX)"
        )


class InvalidFeedbackArcSetError(ModelConsistencyError):
    """The feedback arc set resolver returned a result violating its contract."""


class ModelValidationError(ModelConsistencyError):
    """Structural validation of a model found errors."""

    def __init__(self, result) -> None:
        self.result = result
        super().__init__(result.summary())
