"""Model fixtures shared by the test modules."""

from mldloops import ItemType, MLDModel, RowInfo, RowInfoTable, Symbol, ValueType, VariableKind

R = ValueType.REAL
B = ValueType.BINARY


def real(name, kind, index=None, order=0, bounds=(-100.0, 100.0)):
    return Symbol(name, R, kind, computable_order=order, index=index, bounds=bounds)


def binary(name, kind, index=None, order=0):
    return Symbol(name, B, kind, computable_order=order, index=index, bounds=(0.0, 1.0))


def equality_rows(defines, depends, item_type=ItemType.CONTINUOUS):
    """Descriptors for the two rows encoding one equality."""
    return [RowInfo(defines, tuple(depends), item_type) for _ in range(2)]


def two_cycle_model() -> MLDModel:
    """
    z1 = u1 + 0.5 z2, z2 = 0.5 z1 (z1 and z2 form an algebraic loop).

        x1(k+1) = 0.9 x1 + z1
        y1      = z1 + z2

    For u1 = 1.5 the unique solution is z1 = 2, z2 = 1.
    """
    symtable = [
        real("x1", VariableKind.STATE, index=0, order=1),
        real("u1", VariableKind.INPUT, index=0, order=1, bounds=(-10.0, 10.0)),
        real("z1", VariableKind.CONTINUOUS_AUX, index=0),
        real("z2", VariableKind.CONTINUOUS_AUX, index=1, bounds=(-50.0, 50.0)),
        real("y1", VariableKind.OUTPUT, index=0),
        Symbol("k", R, VariableKind.OTHER, computable_order=-1),
    ]
    rowinfo = RowInfoTable(
        ineq=equality_rows("z1", ["u1", "z2", "k"]) + equality_rows("z2", ["z1"]),
        output=[RowInfo("y1", ("z1", "z2"))],
        state_upd=[RowInfo("x1", ("x1", "z1"))],
    )
    # E2 d + E3 z <= E1 u + E4 x + E5
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


def shared_source_model() -> MLDModel:
    """
    z1 = u1 + 0.25 z2 + 0.25 z3, z2 = 0.5 z1, z3 = 0.5 z1.

    For u1 = 3 the unique solution is z1 = 4, z2 = z3 = 2.
    """
    symtable = [
        real("u1", VariableKind.INPUT, index=0, order=1),
        real("z1", VariableKind.CONTINUOUS_AUX, index=0),
        real("z2", VariableKind.CONTINUOUS_AUX, index=1),
        real("z3", VariableKind.CONTINUOUS_AUX, index=2),
    ]
    rowinfo = RowInfoTable(
        ineq=equality_rows("z1", ["u1", "z2", "z3"])
        + equality_rows("z2", ["z1"])
        + equality_rows("z3", ["z1"]),
    )
    return MLDModel.from_symbols(
        symtable,
        rowinfo,
        name="shared_source",
        E1=[[1.0], [-1.0], [0.0], [0.0], [0.0], [0.0]],
        E3=[
            [1.0, -0.25, -0.25],
            [-1.0, 0.25, 0.25],
            [-0.5, 1.0, 0.0],
            [0.5, -1.0, 0.0],
            [-0.5, 0.0, 1.0],
            [0.5, 0.0, -1.0],
        ],
    )


def binary_loop_model() -> MLDModel:
    """
    d1 = d2 and d2 = ub (or) d1, with one real and one binary input.

        d1 - d2 <= 0, d2 - d1 <= 0
        d2 >= ub, d2 >= d1, d2 <= ub + d1
        z1 = u1 - 2 d1
    """
    symtable = [
        real("u1", VariableKind.INPUT, index=0, order=1),
        binary("ub", VariableKind.INPUT, index=1, order=1),
        binary("d1", VariableKind.DISCRETE_AUX, index=0),
        binary("d2", VariableKind.DISCRETE_AUX, index=1),
        real("z1", VariableKind.CONTINUOUS_AUX, index=0, order=1),
    ]
    rowinfo = RowInfoTable(
        ineq=equality_rows("d1", ["d2"], ItemType.LOGIC)
        + [RowInfo("d2", ("ub", "d1"), ItemType.LOGIC) for _ in range(3)]
        + equality_rows("z1", ["u1", "d1"], ItemType.DA),
    )
    return MLDModel.from_symbols(
        symtable,
        rowinfo,
        name="binary_loop",
        E1=[
            [0.0, 0.0],
            [0.0, 0.0],
            [0.0, -1.0],
            [0.0, 0.0],
            [0.0, 1.0],
            [1.0, 0.0],
            [-1.0, 0.0],
        ],
        E2=[
            [1.0, -1.0],
            [-1.0, 1.0],
            [0.0, -1.0],
            [1.0, -1.0],
            [-1.0, 1.0],
            [2.0, 0.0],
            [-2.0, 0.0],
        ],
        E3=[[0.0], [0.0], [0.0], [0.0], [0.0], [1.0], [-1.0]],
    )


def acyclic_model() -> MLDModel:
    """z1 = 2 u1, already ordered by the front-end."""
    symtable = [
        real("u1", VariableKind.INPUT, index=0, order=1),
        real("z1", VariableKind.CONTINUOUS_AUX, index=0, order=2),
        real("y1", VariableKind.OUTPUT, index=0, order=3),
    ]
    rowinfo = RowInfoTable(
        ineq=equality_rows("z1", ["u1"]),
        output=[RowInfo("y1", ("z1",))],
    )
    return MLDModel.from_symbols(
        symtable,
        rowinfo,
        name="acyclic",
        D3=[[1.0]],
        E1=[[2.0], [-2.0]],
        E3=[[1.0], [-1.0]],
    )


def state_loop_model() -> MLDModel:
    """A (malformed) model where a state takes part in an algebraic loop."""
    symtable = [
        real("z1", VariableKind.CONTINUOUS_AUX, index=0),
        real("x1", VariableKind.STATE, index=0),
    ]
    rowinfo = RowInfoTable(ineq=equality_rows("z1", ["x1"]) + equality_rows("x1", ["z1"]))
    return MLDModel.from_symbols(
        symtable,
        rowinfo,
        name="state_loop",
        E3=[[1.0], [-1.0], [-1.0], [1.0]],
        E4=[[1.0], [-1.0], [0.0], [0.0]],
    )


def fixed_resolver(arcs, sequence):
    """A resolver that always returns the given arc set."""
    from mldloops import FeedbackArcSet

    def resolve(adjacency):
        return FeedbackArcSet(arcs=list(arcs), sequence=list(sequence))

    return resolve


def orders(model: MLDModel) -> dict:
    return {sym.name: sym.computable_order for sym in model.symtable}
