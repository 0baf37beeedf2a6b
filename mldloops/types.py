"""
Type definitions for MLD models.
"""

from enum import Enum


class ValueType(Enum):
    """Value domain of a variable."""

    REAL = "r"
    BINARY = "b"

    @classmethod
    def from_code(cls, code: str) -> "ValueType":
        """Convert the front-end's one-character tag ('r' or 'b')."""
        try:
            return cls(code)
        except ValueError:
            raise ValueError(f"Unknown value type code '{code}'") from None


class VariableKind(Enum):
    """Role of a variable in the MLD equations."""

    STATE = "x"  # x(k), column of A, C, E4
    INPUT = "u"  # u(k), column of B1, D1, E1
    DISCRETE_AUX = "d"  # binary intermediate, column of B2, D2, E2
    CONTINUOUS_AUX = "z"  # real intermediate, column of B3, D3, E3
    OUTPUT = "y"  # defined by the output equations
    OTHER = "-"  # parameters, constants, anything without a column

    @classmethod
    def from_code(cls, code: str) -> "VariableKind":
        """Convert the front-end's one-character tag.

        Any tag other than x, u, d, z, y maps to OTHER.
        """
        for kind in cls:
            if kind.value == code:
                return kind
        return cls.OTHER

    @property
    def has_columns(self) -> bool:
        """True if variables of this kind own matrix columns (or output rows)."""
        return self != VariableKind.OTHER


class ItemType(Enum):
    """Item-type tag of an inequality row."""

    CONTINUOUS = "continuous"  # DA item of a continuous section
    LOGIC = "logic"  # logic item
    AD = "AD"  # analog-digital item
    DA = "DA"  # digital-analog item
    DEFINE = "define"  # any other defining item
    CONT_MUST = "Cont_must"  # continuous MUST section, defines nothing
    AL_MUST = "AL_must"  # equality added when breaking an algebraic loop

    @property
    def defines_variable(self) -> bool:
        """True if rows with this tag define the variable named in ``defines``."""
        return self != ItemType.CONT_MUST

    @property
    def is_synthetic(self) -> bool:
        """True for rows added by the loop-removal transformation."""
        return self == ItemType.AL_MUST
