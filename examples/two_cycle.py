"""
Example: breaking a two-variable algebraic loop.

The model has one input u, one state x and two continuous auxiliaries
defined in terms of each other::

    z1 = u + 0.5 z2
    z2 = 0.5 z1
    x(k+1) = 0.9 x + z1
    y = z1 + z2

Each equality is two inequality rows of E2 d + E3 z <= E1 u + E4 x + E5.
"""

import logging

from mldloops import ItemType, MLDModel, RowInfo, RowInfoTable, Symbol, ValueType, VariableKind
from mldloops import remove_algebraic_loops
from mldloops.backends import CasadiBackend


def create_two_cycle() -> MLDModel:
    R = ValueType.REAL
    symtable = [
        Symbol("x", R, VariableKind.STATE, computable_order=1, index=0, bounds=(-100.0, 100.0)),
        Symbol("u", R, VariableKind.INPUT, computable_order=1, index=0, bounds=(-10.0, 10.0)),
        Symbol("z1", R, VariableKind.CONTINUOUS_AUX, index=0, bounds=(-100.0, 100.0)),
        Symbol("z2", R, VariableKind.CONTINUOUS_AUX, index=1, bounds=(-50.0, 50.0)),
        Symbol("y", R, VariableKind.OUTPUT, index=0),
    ]
    z1_rows = [RowInfo("z1", ("u", "z2"), ItemType.CONTINUOUS) for _ in range(2)]
    z2_rows = [RowInfo("z2", ("z1",), ItemType.CONTINUOUS) for _ in range(2)]
    rowinfo = RowInfoTable(ineq=z1_rows + z2_rows, output=[RowInfo("y", ("z1", "z2"))])

    return MLDModel.from_symbols(
        symtable,
        rowinfo,
        name="two_cycle",
        A=[[0.9]],
        B3=[[1.0, 0.0]],
        D3=[[1.0, 1.0]],
        E1=[[1.0], [-1.0], [0.0], [0.0]],
        E3=[[1.0, -0.5], [-1.0, 0.5], [-0.5, 1.0], [0.5, -1.0]],
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    model = create_two_cycle()
    print(model)

    remove_algebraic_loops(model, validate=True)
    print()
    print(model)

    # u = 1.5 gives z1 = 2, z2 = 1; the auxiliary input must equal z2
    backend = CasadiBackend(model).compile()
    x, z = [0.0], [2.0, 1.0]
    print("\nfeasible with u_aux = z2:", backend.is_feasible(x, [1.5, 1.0], [], z))
    print("feasible with u_aux = 0: ", backend.is_feasible(x, [1.5, 0.0], [], z))
    print("y =", backend.output(x, [1.5, 1.0], [], z))
