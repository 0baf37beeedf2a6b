"""
MLD model representation.

An MLDModel bundles the symbol table, the row descriptors and the matrices of
a mixed logical dynamical system in HYSDEL form::

    x(k+1) = A x + B1 u + B2 d + B3 z + B5
    y(k)   = C x + D1 u + D2 d + D3 z + D5
    E2 d + E3 z <= E1 u + E4 x + E5

Variable counts (nx, nu, nd, ...) are derived from the symbol table, so the
only state that has to be kept in sync by hand is the matrices themselves.
All growth of the input column space goes through insert_input_column().
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from mldloops.errors import SymbolTableError
from mldloops.rowinfo import RowInfoTable
from mldloops.symbol import Symbol
from mldloops.types import ValueType, VariableKind

STATE_UPDATE_MATRICES = ("A", "B1", "B2", "B3", "B5")
OUTPUT_MATRICES = ("C", "D1", "D2", "D3", "D5")
INEQ_MATRICES = ("E1", "E2", "E3", "E4", "E5")

# Matrices whose columns are indexed by the inputs
INPUT_MATRICES = ("B1", "D1", "E1")

# Column space of every matrix (None = affine term, one column)
COLUMN_KIND: dict[str, Optional[VariableKind]] = {
    "A": VariableKind.STATE,
    "B1": VariableKind.INPUT,
    "B2": VariableKind.DISCRETE_AUX,
    "B3": VariableKind.CONTINUOUS_AUX,
    "B5": None,
    "C": VariableKind.STATE,
    "D1": VariableKind.INPUT,
    "D2": VariableKind.DISCRETE_AUX,
    "D3": VariableKind.CONTINUOUS_AUX,
    "D5": None,
    "E1": VariableKind.INPUT,
    "E2": VariableKind.DISCRETE_AUX,
    "E3": VariableKind.CONTINUOUS_AUX,
    "E4": VariableKind.STATE,
    "E5": None,
}


def _empty() -> np.ndarray:
    return np.zeros((0, 0))


def _vec(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(-1)


@dataclass(eq=False)
class MLDModel:
    """
    Symbol table, row descriptors and matrix bundle of an MLD model.

    The model is mutated in place by the loop-removal transformation. Use
    copy() first if the original is still needed.
    """

    name: str = "mld"
    symtable: list[Symbol] = field(default_factory=list)
    rowinfo: RowInfoTable = field(default_factory=RowInfoTable)

    # State update
    A: np.ndarray = field(default_factory=_empty)
    B1: np.ndarray = field(default_factory=_empty)
    B2: np.ndarray = field(default_factory=_empty)
    B3: np.ndarray = field(default_factory=_empty)
    B5: np.ndarray = field(default_factory=_empty)

    # Output
    C: np.ndarray = field(default_factory=_empty)
    D1: np.ndarray = field(default_factory=_empty)
    D2: np.ndarray = field(default_factory=_empty)
    D3: np.ndarray = field(default_factory=_empty)
    D5: np.ndarray = field(default_factory=_empty)

    # Inequalities
    E1: np.ndarray = field(default_factory=_empty)
    E2: np.ndarray = field(default_factory=_empty)
    E3: np.ndarray = field(default_factory=_empty)
    E4: np.ndarray = field(default_factory=_empty)
    E5: np.ndarray = field(default_factory=_empty)

    # Bookkeeping of the loop-removal transformation
    alg_loop: bool = False
    nuar: int = 0  # auxiliary real inputs
    nuab: int = 0  # auxiliary binary inputs

    @classmethod
    def from_symbols(
        cls,
        symtable: list[Symbol],
        rowinfo: Optional[RowInfoTable] = None,
        name: str = "mld",
        **matrices: Any,
    ) -> MLDModel:
        """
        Build a model from a symbol table, zero-filling missing matrices.

        The number of inequality rows is taken from ``rowinfo.ineq``. Matrices
        that are given are reshaped to their expected shape, so affine terms
        may be passed as flat sequences.
        """
        unknown = set(matrices) - set(COLUMN_KIND)
        if unknown:
            raise TypeError(f"Unknown matrices: {', '.join(sorted(unknown))}")

        model = cls(name=name, symtable=list(symtable), rowinfo=rowinfo or RowInfoTable())
        for mat_name, shape in model.expected_shapes(len(model.rowinfo.ineq)).items():
            if mat_name in matrices:
                value = np.asarray(matrices[mat_name], dtype=float).reshape(shape)
            else:
                value = np.zeros(shape)
            setattr(model, mat_name, value)
        return model

    # ------------------------------------------------------------------
    # Symbol table
    # ------------------------------------------------------------------

    def find_symbols(self, name: str) -> list[Symbol]:
        """Return every symbol-table entry named ``name`` (zero, one or many)."""
        return [sym for sym in self.symtable if sym.name == name]

    def lookup(self, name: str) -> Symbol:
        """Return the unique entry named ``name``.

        Raises:
            SymbolTableError: if there is no such entry or more than one.
        """
        matches = self.find_symbols(name)
        if len(matches) != 1:
            raise SymbolTableError(name, len(matches))
        return matches[0]

    def has_symbol(self, name: str) -> bool:
        return any(sym.name == name for sym in self.symtable)

    def add_symbol(self, sym: Symbol) -> None:
        """Append a symbol, refusing duplicate names."""
        if self.has_symbol(sym.name):
            raise ValueError(f"Symbol '{sym.name}' already exists in model")
        self.symtable.append(sym)

    def symbols_of_kind(self, kind: VariableKind) -> list[Symbol]:
        """Symbols of one kind, in column order where they have one."""
        syms = [sym for sym in self.symtable if sym.kind == kind]
        return sorted(syms, key=lambda s: -1 if s.index is None else s.index)

    def _count(self, kind: VariableKind, value_type: Optional[ValueType] = None) -> int:
        return sum(
            1
            for sym in self.symtable
            if sym.kind == kind and (value_type is None or sym.type == value_type)
        )

    @property
    def nx(self) -> int:
        return self._count(VariableKind.STATE)

    @property
    def nxr(self) -> int:
        return self._count(VariableKind.STATE, ValueType.REAL)

    @property
    def nxb(self) -> int:
        return self._count(VariableKind.STATE, ValueType.BINARY)

    @property
    def nu(self) -> int:
        return self._count(VariableKind.INPUT)

    @property
    def nur(self) -> int:
        return self._count(VariableKind.INPUT, ValueType.REAL)

    @property
    def nub(self) -> int:
        return self._count(VariableKind.INPUT, ValueType.BINARY)

    @property
    def nuor(self) -> int:
        """Number of real inputs present before loop removal."""
        return self.nur - self.nuar

    @property
    def nuob(self) -> int:
        """Number of binary inputs present before loop removal."""
        return self.nub - self.nuab

    @property
    def nd(self) -> int:
        return self._count(VariableKind.DISCRETE_AUX)

    @property
    def nz(self) -> int:
        return self._count(VariableKind.CONTINUOUS_AUX)

    @property
    def ny(self) -> int:
        return self._count(VariableKind.OUTPUT)

    @property
    def nyr(self) -> int:
        return self._count(VariableKind.OUTPUT, ValueType.REAL)

    @property
    def nyb(self) -> int:
        return self._count(VariableKind.OUTPUT, ValueType.BINARY)

    @property
    def ne(self) -> int:
        """Number of inequality rows."""
        return int(self.E5.shape[0])

    # ------------------------------------------------------------------
    # Matrix bundle
    # ------------------------------------------------------------------

    def kind_count(self, kind: Optional[VariableKind]) -> int:
        """Column count of a column space (1 for the affine term)."""
        if kind is None:
            return 1
        return self._count(kind)

    def expected_shapes(self, ne: Optional[int] = None) -> dict[str, tuple[int, int]]:
        """Shape every matrix must have given the current symbol table."""
        if ne is None:
            ne = self.ne
        rows = {"A": self.nx, "B": self.nx, "C": self.ny, "D": self.ny, "E": ne}
        return {
            mat_name: (rows[mat_name[0]], self.kind_count(kind))
            for mat_name, kind in COLUMN_KIND.items()
        }

    def ineq_section(self, kind: VariableKind) -> str:
        """Name of the inequality matrix holding the columns of ``kind``."""
        if kind == VariableKind.INPUT:
            return "E1"
        elif kind == VariableKind.DISCRETE_AUX:
            return "E2"
        elif kind == VariableKind.CONTINUOUS_AUX:
            return "E3"
        elif kind == VariableKind.STATE:
            return "E4"
        elif kind in (VariableKind.OUTPUT, VariableKind.OTHER):
            raise ValueError(f"Variables of kind {kind.name} have no inequality columns")
        raise AssertionError(f"Unhandled variable kind {kind!r}")

    def insert_input_column(self, index: int) -> None:
        """
        Open a zero column at ``index`` in every input-indexed matrix.

        Every input whose index is >= ``index`` is shifted up by one, so the
        caller can then give the new input exactly this index.
        """
        if not 0 <= index <= self.B1.shape[1]:
            raise IndexError(f"Input column {index} out of range 0..{self.B1.shape[1]}")

        for sym in self.symtable:
            if sym.kind == VariableKind.INPUT and sym.index is not None and sym.index >= index:
                sym.index += 1

        for mat_name in INPUT_MATRICES:
            setattr(self, mat_name, np.insert(getattr(self, mat_name), index, 0.0, axis=1))

    def append_ineq_rows(self, count: int = 1) -> int:
        """Append ``count`` zero rows to E1..E5 and return the first new row."""
        first = self.ne
        for mat_name in INEQ_MATRICES:
            mat = getattr(self, mat_name)
            setattr(self, mat_name, np.vstack([mat, np.zeros((count, mat.shape[1]))]))
        return first

    # ------------------------------------------------------------------
    # Numeric evaluation
    # ------------------------------------------------------------------

    def state_update(self, x: Any, u: Any, d: Any, z: Any) -> np.ndarray:
        """x(k+1) = A x + B1 u + B2 d + B3 z + B5."""
        x, u, d, z = _vec(x), _vec(u), _vec(d), _vec(z)
        return self.A @ x + self.B1 @ u + self.B2 @ d + self.B3 @ z + self.B5.reshape(-1)

    def output(self, x: Any, u: Any, d: Any, z: Any) -> np.ndarray:
        """y(k) = C x + D1 u + D2 d + D3 z + D5."""
        x, u, d, z = _vec(x), _vec(u), _vec(d), _vec(z)
        return self.C @ x + self.D1 @ u + self.D2 @ d + self.D3 @ z + self.D5.reshape(-1)

    def ineq_residual(self, x: Any, u: Any, d: Any, z: Any) -> np.ndarray:
        """E2 d + E3 z - E1 u - E4 x - E5, non-positive where feasible."""
        x, u, d, z = _vec(x), _vec(u), _vec(d), _vec(z)
        return self.E2 @ d + self.E3 @ z - self.E1 @ u - self.E4 @ x - self.E5.reshape(-1)

    def is_feasible(self, x: Any, u: Any, d: Any, z: Any, tol: float = 1e-9) -> bool:
        """True if (x, u, d, z) satisfies every inequality row."""
        return bool(np.all(self.ineq_residual(x, u, d, z) <= tol))

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------

    def copy(self) -> MLDModel:
        """Deep copy (symbols, row descriptors and matrices)."""
        return copy.deepcopy(self)

    def validate(self, **checks: bool):
        """Run validate_model() on this model and return the ValidationResult."""
        from mldloops.validation import validate_model

        return validate_model(self, **checks)

    def summary(self) -> str:
        lines = [f"MLD model: {self.name}"]
        lines.append(
            f"  nx={self.nx} (r={self.nxr}, b={self.nxb})  "
            f"nu={self.nu} (r={self.nur}, b={self.nub})  "
            f"nd={self.nd}  nz={self.nz}  "
            f"ny={self.ny} (r={self.nyr}, b={self.nyb})  ne={self.ne}"
        )
        if self.nuar or self.nuab:
            lines.append(f"  auxiliary inputs: {self.nuar} real, {self.nuab} binary")
        if self.alg_loop:
            lines.append("  algebraic loop detected")

        for kind in VariableKind:
            syms = self.symbols_of_kind(kind)
            if syms:
                lines.append(f"\n  {kind.name} ({len(syms)}):")
                for sym in syms:
                    lines.append(f"    {sym}")

        if self.rowinfo.ineq:
            lines.append(f"\n  Inequality rows ({len(self.rowinfo.ineq)}):")
            for r, row in enumerate(self.rowinfo.ineq):
                lines.append(f"    {r}: {row}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()
