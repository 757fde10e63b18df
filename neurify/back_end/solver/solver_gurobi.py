#===- neurify/back_end/solver/solver_gurobi.py - Gurobi LP Backend -----====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Gurobi backend for exact LP solving. The licence is located by gurobipy
#   itself (GRB_LICENSE_FILE or the default search path).
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import logging
from typing import List, Optional
import numpy as np
from neurify.back_end.solver.solver_base import Solver, SolveStatus
from neurify.back_end.errors import SolverUnavailableError

logger = logging.getLogger(__name__)

try:
    import gurobipy as gp
    from gurobipy import GRB
    GUROBI_AVAILABLE = True
except ImportError:
    gp = None
    GRB = None
    GUROBI_AVAILABLE = False


class GurobiSolver(Solver):
    """Gurobi backend for exact LP solving (CPU-only)."""

    def __init__(self):
        if gp is None:
            raise SolverUnavailableError("gurobipy is not available in this environment.")
        self.m = None
        self._x = []

    @property
    def n(self) -> int:
        return len(self._x)

    def begin(self, name: str = "verify") -> None:
        try:
            self.m = gp.Model(name)
        except gp.GurobiError as e:
            raise SolverUnavailableError(f"Cannot create Gurobi model: {e}") from e
        self.m.Params.OutputFlag = 0
        # Tell infeasible and unbounded apart instead of INF_OR_UNBD.
        self.m.Params.DualReductions = 0
        self._x = []

    def add_vars(self, n: int) -> None:
        new = self.m.addVars(n, lb=-GRB.INFINITY, ub=+GRB.INFINITY, name="x")
        self._x.extend(list(new.values()))

    def _lexpr(self, vids: List[int], coeffs: List[float]):
        e = gp.LinExpr()
        for i, a in zip(vids, coeffs):
            e.addTerms(float(a), self._x[i])
        return e

    def add_lin_le(self, vids: List[int], coeffs: List[float], rhs: float) -> None:
        self.m.addConstr(self._lexpr(vids, coeffs) <= float(rhs))

    def set_objective_linear(self, vids: List[int], coeffs: List[float], const: float = 0.0, sense: str = "min") -> None:
        e = self._lexpr(vids, coeffs) + float(const)
        self.m.setObjective(e, GRB.MINIMIZE if sense == "min" else GRB.MAXIMIZE)

    def optimize(self, timelimit: Optional[float] = None) -> None:
        if timelimit is not None:
            self.m.Params.TimeLimit = float(timelimit)
        self.m.update()
        self.m.optimize()

    def status(self) -> str:
        if self.m.Status == GRB.OPTIMAL:
            return SolveStatus.OPTIMAL
        if self.m.Status in (GRB.INFEASIBLE, GRB.INF_OR_UNBD):
            return SolveStatus.INFEASIBLE
        if self.m.Status == GRB.UNBOUNDED:
            return SolveStatus.UNBOUNDED
        if self.m.Status == GRB.TIME_LIMIT:
            return SolveStatus.TIMEOUT
        return SolveStatus.UNKNOWN

    def has_solution(self) -> bool:
        return self.m.SolCount > 0

    def get_values(self, vids: List[int]) -> np.ndarray:
        return np.array([self._x[i].X for i in vids], dtype=float)

    def objective_value(self) -> float:
        return float(self.m.ObjVal)
