"""
Symbol-table entries of an MLD model.
"""

from dataclasses import dataclass, replace
from typing import Optional

from mldloops.types import ValueType, VariableKind

#: Suffix of the auxiliary input created for a loop source.
AUX_SUFFIX = "_aux"


@dataclass
class Symbol:
    """
    One entry of the symbol table.

    ``computable_order`` is the evaluation rank assigned by the front-end:
    0 means the variable could not be ordered (it is part of an algebraic
    loop), -1 marks non-variables such as constants and parameters.

    ``index`` is the 0-based column of the variable within its kind
    (e.g. the column of ``B1``/``D1``/``E1`` for an input). Real members of a
    kind come first, binary members after them.
    """

    name: str
    type: ValueType
    kind: VariableKind
    computable_order: int = 0
    index: Optional[int] = None
    bounds: Optional[tuple[float, float]] = None
    aux_input: bool = False

    # Front-end provenance
    line_of_declaration: Optional[int] = None
    line_of_first_use: Optional[int] = None
    defined: Optional[int] = None
    description: str = ""

    @property
    def is_real(self) -> bool:
        return self.type == ValueType.REAL

    @property
    def is_binary(self) -> bool:
        return self.type == ValueType.BINARY

    @property
    def is_variable(self) -> bool:
        """True for anything that takes part in the evaluation order."""
        return self.computable_order >= 0

    @property
    def aux_name(self) -> str:
        """Name of the auxiliary input that stands in for this variable."""
        return self.name + AUX_SUFFIX

    def make_aux_input(self) -> "Symbol":
        """Build the auxiliary input for this variable (without an index).

        The auxiliary keeps the type and bounds, is an input by construction
        and therefore computable first.
        """
        return replace(
            self,
            name=self.aux_name,
            kind=VariableKind.INPUT,
            computable_order=1,
            index=None,
            aux_input=True,
            line_of_declaration=None,
            line_of_first_use=None,
            defined=None,
            description=f"auxiliary input for '{self.name}'",
        )

    def __str__(self) -> str:
        parts = [f"{self.name}: {self.kind.name} {self.type.name.lower()}"]
        if self.index is not None:
            parts.append(f"[{self.index}]")
        parts.append(f" order={self.computable_order}")
        if self.bounds is not None:
            parts.append(f" in [{self.bounds[0]}, {self.bounds[1]}]")
        if self.aux_input:
            parts.append(" (aux)")
        return "".join(parts)
