"""Tests for the MLD model store: symbol table, matrix bundle and evaluation."""

import numpy as np
import pytest

from mldloops import (
    ItemType,
    MLDModel,
    RowInfo,
    Symbol,
    SymbolTableError,
    ValueType,
    VariableKind,
)

from .common import binary_loop_model, real, two_cycle_model


class TestTypes:
    def test_variable_kind_from_code(self):
        assert VariableKind.from_code("x") == VariableKind.STATE
        assert VariableKind.from_code("u") == VariableKind.INPUT
        assert VariableKind.from_code("d") == VariableKind.DISCRETE_AUX
        assert VariableKind.from_code("z") == VariableKind.CONTINUOUS_AUX
        assert VariableKind.from_code("y") == VariableKind.OUTPUT
        assert VariableKind.from_code("p") == VariableKind.OTHER

    def test_value_type_from_code(self):
        assert ValueType.from_code("r") == ValueType.REAL
        assert ValueType.from_code("b") == ValueType.BINARY
        with pytest.raises(ValueError, match="Unknown value type"):
            ValueType.from_code("i")

    def test_item_type_flags(self):
        assert not ItemType.CONT_MUST.defines_variable
        assert ItemType.AL_MUST.defines_variable
        assert ItemType.AL_MUST.is_synthetic
        assert not ItemType.LOGIC.is_synthetic
        assert ItemType("Cont_must") == ItemType.CONT_MUST


class TestSymbol:
    def test_make_aux_input(self):
        z = real("z2", VariableKind.CONTINUOUS_AUX, index=1, bounds=(-5.0, 5.0))
        z.line_of_declaration = 12
        aux = z.make_aux_input()

        assert aux.name == "z2_aux"
        assert aux.kind == VariableKind.INPUT
        assert aux.type == ValueType.REAL
        assert aux.bounds == (-5.0, 5.0)
        assert aux.computable_order == 1
        assert aux.aux_input
        assert aux.index is None
        assert aux.line_of_declaration is None
        # the source is left alone
        assert z.kind == VariableKind.CONTINUOUS_AUX
        assert z.index == 1

    def test_is_variable(self):
        assert real("z1", VariableKind.CONTINUOUS_AUX, order=0).is_variable
        assert real("u1", VariableKind.INPUT, order=1).is_variable
        assert not real("k", VariableKind.OTHER, order=-1).is_variable

    def test_str(self):
        s = str(real("z1", VariableKind.CONTINUOUS_AUX, index=0, order=3))
        assert "z1" in s
        assert "CONTINUOUS_AUX" in s
        assert "order=3" in s


class TestRowInfo:
    def test_replace_dependency(self):
        row = RowInfo("z1", ("u1", "z2", "z2"))
        row.replace_dependency("z2", "z2_aux")
        assert row.depends == ("u1", "z2_aux", "z2_aux")
        assert row.depends_on("z2_aux")
        assert not row.depends_on("z2")

    def test_must_rows_define_nothing(self):
        assert not RowInfo("z1", (), ItemType.CONT_MUST).defines_variable

    def test_ineq_rows_defining(self):
        rowinfo = two_cycle_model().rowinfo
        assert rowinfo.ineq_rows_defining("z1") == [0, 1]
        assert rowinfo.ineq_rows_defining("z2") == [2, 3]
        assert rowinfo.ineq_rows_defining("y1") == []


class TestLookup:
    def test_counts(self):
        model = two_cycle_model()
        assert (model.nx, model.nu, model.nd, model.nz, model.ny, model.ne) == (1, 1, 0, 2, 1, 4)
        assert model.nur == 1 and model.nub == 0
        assert model.nuor == 1 and model.nuob == 0

    def test_binary_counts(self):
        model = binary_loop_model()
        assert model.nu == 2
        assert model.nur == 1
        assert model.nub == 1
        assert model.nd == 2

    def test_find_and_lookup(self):
        model = two_cycle_model()
        assert model.find_symbols("nope") == []
        assert model.lookup("z2").index == 1

        with pytest.raises(SymbolTableError) as exc:
            model.lookup("nope")
        assert exc.value.matches == 0

        model.symtable.append(real("z2", VariableKind.CONTINUOUS_AUX, index=2))
        assert len(model.find_symbols("z2")) == 2
        with pytest.raises(SymbolTableError, match="found 2"):
            model.lookup("z2")

    def test_add_symbol_rejects_duplicates(self):
        model = two_cycle_model()
        with pytest.raises(ValueError, match="already exists"):
            model.add_symbol(real("z1", VariableKind.CONTINUOUS_AUX, index=2))

    def test_symbols_of_kind_sorted_by_index(self):
        model = two_cycle_model()
        model.symtable.reverse()
        assert [s.name for s in model.symbols_of_kind(VariableKind.CONTINUOUS_AUX)] == ["z1", "z2"]


class TestMatrices:
    def test_from_symbols_zero_fills(self):
        model = two_cycle_model()
        assert model.B1.shape == (1, 1)
        assert model.E2.shape == (4, 0)
        assert model.E5.shape == (4, 1)
        assert not model.B1.any()

    def test_from_symbols_rejects_unknown_matrix(self):
        with pytest.raises(TypeError, match="F9"):
            MLDModel.from_symbols([], F9=[[1.0]])

    def test_expected_shapes_match(self):
        model = two_cycle_model()
        for name, shape in model.expected_shapes().items():
            assert getattr(model, name).shape == shape, name

    def test_insert_input_column_shifts_indices(self):
        model = binary_loop_model()
        e1 = model.E1.copy()
        model.insert_input_column(1)

        assert model.lookup("u1").index == 0
        assert model.lookup("ub").index == 2
        assert model.E1.shape == (7, 3)
        assert not model.E1[:, 1].any()
        assert np.array_equal(model.E1[:, [0, 2]], e1)
        assert model.B1.shape == (0, 3)
        assert model.D1.shape == (0, 3)

    def test_insert_input_column_out_of_range(self):
        model = two_cycle_model()
        with pytest.raises(IndexError):
            model.insert_input_column(5)

    def test_append_ineq_rows(self):
        model = two_cycle_model()
        first = model.append_ineq_rows(2)
        assert first == 4
        assert model.ne == 6
        for name in ("E1", "E2", "E3", "E4", "E5"):
            assert getattr(model, name).shape[0] == 6
            assert not getattr(model, name)[4:].any()

    def test_ineq_section(self):
        model = two_cycle_model()
        assert model.ineq_section(VariableKind.INPUT) == "E1"
        assert model.ineq_section(VariableKind.DISCRETE_AUX) == "E2"
        assert model.ineq_section(VariableKind.CONTINUOUS_AUX) == "E3"
        assert model.ineq_section(VariableKind.STATE) == "E4"
        with pytest.raises(ValueError):
            model.ineq_section(VariableKind.OUTPUT)


class TestEvaluation:
    def test_solution_is_feasible(self):
        model = two_cycle_model()
        assert model.is_feasible([1.0], [1.5], [], [2.0, 1.0])
        assert not model.is_feasible([1.0], [1.5], [], [2.0, 1.1])

    def test_state_update_and_output(self):
        model = two_cycle_model()
        assert np.allclose(model.state_update([1.0], [1.5], [], [2.0, 1.0]), [2.9])
        assert np.allclose(model.output([1.0], [1.5], [], [2.0, 1.0]), [3.0])

    def test_copy_is_deep(self):
        model = two_cycle_model()
        clone = model.copy()
        clone.lookup("z1").computable_order = 7
        clone.E3[0, 0] = 42.0
        assert model.lookup("z1").computable_order == 0
        assert model.E3[0, 0] == 1.0

    def test_summary(self):
        summary = two_cycle_model().summary()
        assert summary.splitlines()[0] == "MLD model: two_cycle"
        assert "nz=2" in summary
        assert "Inequality rows (4)" in summary
