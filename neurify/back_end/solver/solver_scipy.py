#===- neurify/back_end/solver/solver_scipy.py - SciPy HiGHS LP Backend -====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Open-source LP backend built on scipy.optimize.linprog (HiGHS). Used
#   when no Gurobi licence is available.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
from typing import List, Optional
import numpy as np
from scipy.optimize import linprog
from neurify.back_end.solver.solver_base import Solver, SolveStatus

# scipy.optimize.OptimizeResult.status codes
_LINPROG_STATUS = {
    0: SolveStatus.OPTIMAL,
    1: SolveStatus.TIMEOUT,
    2: SolveStatus.INFEASIBLE,
    3: SolveStatus.UNBOUNDED,
}


class SciPySolver(Solver):
    """Collects rows in memory and solves them with linprog(method='highs') on optimize()."""

    def __init__(self):
        self.begin()

    @property
    def n(self) -> int:
        return self._nvars

    def begin(self, name: str = "verify") -> None:
        self._nvars = 0
        self._rows: List[np.ndarray] = []
        self._rhs: List[float] = []
        self._c = np.zeros(0)
        self._const = 0.0
        self._sense = "min"
        self._res = None

    def add_vars(self, n: int) -> None:
        self._nvars += n
        self._rows = [np.concatenate([r, np.zeros(n)]) for r in self._rows]
        self._c = np.concatenate([self._c, np.zeros(n)])

    def add_lin_le(self, vids: List[int], coeffs: List[float], rhs: float) -> None:
        row = np.zeros(self._nvars)
        for i, a in zip(vids, coeffs):
            row[i] += float(a)
        self._rows.append(row)
        self._rhs.append(float(rhs))

    def set_objective_linear(self, vids: List[int], coeffs: List[float], const: float = 0.0, sense: str = "min") -> None:
        c = np.zeros(self._nvars)
        for i, a in zip(vids, coeffs):
            c[i] += float(a)
        self._c, self._const, self._sense = c, float(const), sense

    def optimize(self, timelimit: Optional[float] = None) -> None:
        c = self._c if self._sense == "min" else -self._c
        A_ub = np.vstack(self._rows) if self._rows else None
        b_ub = np.asarray(self._rhs) if self._rows else None
        options = {} if timelimit is None else {"time_limit": float(timelimit)}
        self._res = linprog(c, A_ub=A_ub, b_ub=b_ub, bounds=[(None, None)] * self._nvars,
                            method="highs", options=options)

    def status(self) -> str:
        if self._res is None:
            return SolveStatus.UNKNOWN
        return _LINPROG_STATUS.get(self._res.status, SolveStatus.UNKNOWN)

    def has_solution(self) -> bool:
        return self._res is not None and self._res.status == 0 and self._res.x is not None

    def get_values(self, vids: List[int]) -> np.ndarray:
        return np.array([self._res.x[i] for i in vids], dtype=float)

    def objective_value(self) -> float:
        value = float(self._res.fun)
        if self._sense != "min":
            value = -value
        return value + self._const
