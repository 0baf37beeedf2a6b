"""
Row descriptors ("rowinfo") of an MLD model.

Every row of the inequality system ``E2 d + E3 z <= E1 u + E4 x + E5`` and
every output row carries a descriptor that records which variable the row
defines and which variables it depends on. The dependency graph is built from
these descriptors alone.
"""

from dataclasses import dataclass, field
from typing import Optional

from mldloops.types import ItemType


@dataclass
class RowInfo:
    """
    Descriptor of one matrix row.

    Examples:
        z1 = 2 u1 + d1      -> RowInfo("z1", ("u1", "d1"), ItemType.CONTINUOUS)
        z1 <= 10 (must)     -> RowInfo("z1", (), ItemType.CONT_MUST)
    """

    defines: str
    depends: tuple[str, ...] = ()
    item_type: ItemType = ItemType.DEFINE

    # Source-level provenance
    group: Optional[int] = None
    subgroup: Optional[int] = None
    subindex: Optional[int] = None
    section: str = ""

    @property
    def defines_variable(self) -> bool:
        return self.item_type.defines_variable

    def depends_on(self, name: str) -> bool:
        return name in self.depends

    def replace_dependency(self, old: str, new: str) -> None:
        """Substitute ``new`` for every occurrence of ``old`` in ``depends``."""
        self.depends = tuple(new if dep == old else dep for dep in self.depends)

    def __str__(self) -> str:
        deps = ", ".join(self.depends)
        return f"{self.defines} <- ({deps}) [{self.item_type.value}]"


@dataclass
class RowInfoTable:
    """Descriptors for the inequality, output and state-update rows."""

    ineq: list[RowInfo] = field(default_factory=list)
    output: list[RowInfo] = field(default_factory=list)
    state_upd: list[RowInfo] = field(default_factory=list)

    def ineq_rows_defining(self, name: str) -> list[int]:
        """Indices of inequality rows whose ``defines`` equals ``name``."""
        return [r for r, row in enumerate(self.ineq) if row.defines == name]
