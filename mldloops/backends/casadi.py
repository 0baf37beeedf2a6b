"""
CasADi backend for MLD models.

This backend turns the matrix bundle of an MLDModel into CasADi functions of
the stacked vectors (x, u, d, z), enabling:
- Symbolic inspection of the state update, output and inequality system
- Numerical evaluation (e.g. to check that two models behave the same)
- Jacobians of the inequality rows with respect to any vector
"""

from typing import Any, Optional, Union

import casadi as ca
import numpy as np

from mldloops.model import MLDModel


def _dm(value: np.ndarray) -> ca.DM:
    """Convert a 2-D array to DM, keeping the shape of empty matrices."""
    if value.size == 0:
        return ca.DM.zeros(*value.shape)
    return ca.DM(value)


class CasadiBackend:
    """
    CasADi functions for an MLD model.

    After compile():
    - f_update(x, u, d, z) -> x_next = A x + B1 u + B2 d + B3 z + B5
    - f_output(x, u, d, z) -> y = C x + D1 u + D2 d + D3 z + D5
    - f_ineq(x, u, d, z) -> r = E2 d + E3 z - E1 u - E4 x - E5 (feasible iff r <= 0)

    The functions capture the matrices at compile time; recompile after
    mutating the model.

    Args:
        model: The MLD model to compile
        sym_type: Type of CasADi symbols to use - 'SX' (scalar, default) or 'MX' (matrix)
    """

    def __init__(self, model: MLDModel, sym_type: str = "SX") -> None:
        if sym_type not in ["SX", "MX"]:
            raise ValueError(f"sym_type must be 'SX' or 'MX', got '{sym_type}'")

        self.model = model
        self.sym_type = sym_type
        self.sym_class: type[Union[ca.SX, ca.MX]] = ca.SX if sym_type == "SX" else ca.MX

        self.x: Optional[Union[ca.SX, ca.MX]] = None
        self.u: Optional[Union[ca.SX, ca.MX]] = None
        self.d: Optional[Union[ca.SX, ca.MX]] = None
        self.z: Optional[Union[ca.SX, ca.MX]] = None

        self.f_update: Optional[ca.Function] = None
        self.f_output: Optional[ca.Function] = None
        self.f_ineq: Optional[ca.Function] = None

    def compile(self) -> "CasadiBackend":
        """Build the symbols and functions from the current matrices."""
        m = self.model
        self.x = self.sym_class.sym("x", m.nx)
        self.u = self.sym_class.sym("u", m.nu)
        self.d = self.sym_class.sym("d", m.nd)
        self.z = self.sym_class.sym("z", m.nz)
        args = [self.x, self.u, self.d, self.z]
        names = ["x", "u", "d", "z"]

        def affine(mats: tuple[str, ...], vecs: list) -> Union[ca.SX, ca.MX]:
            expr = _dm(getattr(m, mats[-1]))
            for mat_name, vec in zip(mats[:-1], vecs):
                expr = expr + ca.mtimes(_dm(getattr(m, mat_name)), vec)
            return expr

        x_next = affine(("A", "B1", "B2", "B3", "B5"), [self.x, self.u, self.d, self.z])
        y = affine(("C", "D1", "D2", "D3", "D5"), [self.x, self.u, self.d, self.z])
        lhs = ca.mtimes(_dm(m.E2), self.d) + ca.mtimes(_dm(m.E3), self.z)
        rhs = affine(("E1", "E4", "E5"), [self.u, self.x])

        self.f_update = ca.Function("f_update", args, [x_next], names, ["x_next"])
        self.f_output = ca.Function("f_output", args, [y], names, ["y"])
        self.f_ineq = ca.Function("f_ineq", args, [lhs - rhs], names, ["r"])
        return self

    def _ensure_compiled(self) -> None:
        if self.f_ineq is None:
            raise RuntimeError("Backend not compiled. Call compile() first.")

    def _args(self, x: Any, u: Any, d: Any, z: Any) -> list[ca.DM]:
        m = self.model
        sizes = [m.nx, m.nu, m.nd, m.nz]
        return [_dm(np.asarray(v, dtype=float).reshape(n, 1)) for v, n in zip([x, u, d, z], sizes)]

    def state_update(self, x: Any, u: Any, d: Any, z: Any) -> np.ndarray:
        self._ensure_compiled()
        return np.array(self.f_update(*self._args(x, u, d, z))).flatten()

    def output(self, x: Any, u: Any, d: Any, z: Any) -> np.ndarray:
        self._ensure_compiled()
        return np.array(self.f_output(*self._args(x, u, d, z))).flatten()

    def ineq_residual(self, x: Any, u: Any, d: Any, z: Any) -> np.ndarray:
        self._ensure_compiled()
        return np.array(self.f_ineq(*self._args(x, u, d, z))).flatten()

    def is_feasible(self, x: Any, u: Any, d: Any, z: Any, tol: float = 1e-9) -> bool:
        """True if (x, u, d, z) satisfies every inequality row."""
        return bool(np.all(self.ineq_residual(x, u, d, z) <= tol))

    def ineq_jacobian(self, wrt: str) -> np.ndarray:
        """Jacobian of the inequality residual with respect to 'x', 'u', 'd' or 'z'.

        The residual is affine, so this is a constant matrix (e.g. -E1 for 'u').
        """
        self._ensure_compiled()
        if wrt not in ("x", "u", "d", "z"):
            raise ValueError(f"wrt must be one of 'x', 'u', 'd', 'z', got '{wrt}'")
        args = [self.x, self.u, self.d, self.z]
        r = self.f_ineq(*args)
        jac = ca.Function("f_ineq_jac", args, [ca.jacobian(r, getattr(self, wrt))])
        zeros = self._args(
            np.zeros(self.model.nx), np.zeros(self.model.nu), np.zeros(self.model.nd), np.zeros(self.model.nz)
        )
        return np.array(jac(*zeros))
