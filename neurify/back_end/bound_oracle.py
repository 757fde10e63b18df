#===- neurify/back_end/bound_oracle.py - LP Bound Oracle ----------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Optimises an affine objective c·[x;1] over a polytope with one of the
#   LP backends. Serves ReLU pre-activation bounding, the inclusion check
#   and box approximation.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional
import numpy as np

from neurify.back_end.errors import SolverInconsistencyError
from neurify.back_end.polytope import HPolytope
from neurify.back_end.solver import SolveStatus, make_solver, resolve_backend
from neurify.util.device_manager import to_numpy

logger = logging.getLogger(__name__)


@dataclass
class LPSolution:
    status: str
    value: Optional[float] = None
    x: Optional[np.ndarray] = None

    @property
    def optimal(self) -> bool:
        return self.status == SolveStatus.OPTIMAL


class BoundOracle:
    """
    Thin layer over a Solver backend answering `optimize(sense, c, P)`.

    Objectives are affine rows of length dim+1 whose last entry is the
    constant term, matching the layout of symbolic interval rows.
    """

    def __init__(self, solver: str = "auto", timelimit: Optional[float] = None):
        self.backend = resolve_backend(solver)
        self.timelimit = timelimit
        self.lp_calls = 0

    def optimize(self, sense: str, objective, polytope: HPolytope) -> LPSolution:
        c = to_numpy(objective).reshape(-1)
        n = polytope.dim
        if c.shape[0] != n + 1:
            raise ValueError(f"Objective has {c.shape[0]} entries, expected {n + 1} for a {n}-dimensional polytope")

        solver = make_solver(self.backend)
        solver.begin("bound")
        solver.add_vars(n)
        vids = list(range(n))
        A, b = polytope.A, polytope.b
        for i in range(A.shape[0]):
            solver.add_lin_le(vids, list(A[i, :]), float(b[i]))
        solver.set_objective_linear(vids, list(c[:-1]), float(c[-1]), sense=sense)
        solver.optimize(self.timelimit)
        self.lp_calls += 1

        st = solver.status()
        x = solver.get_values(vids) if solver.has_solution() else None
        if st == SolveStatus.OPTIMAL and x is not None:
            return LPSolution(st, solver.objective_value(), x)
        logger.debug(f"LP ({sense}) over {polytope!r} ended with status {st}")
        return LPSolution(st, x=x)

    def upper_bound(self, objective, polytope: HPolytope) -> float:
        return self._required("max", objective, polytope)

    def lower_bound(self, objective, polytope: HPolytope) -> float:
        return self._required("min", objective, polytope)

    def _required(self, sense: str, objective, polytope: HPolytope) -> float:
        sol = self.optimize(sense, objective, polytope)
        if not sol.optimal:
            raise SolverInconsistencyError(
                f"No optimal {sense} bound over a sub-domain that should be bounded and non-empty", sol.status)
        return sol.value

    def is_feasible(self, polytope: HPolytope) -> bool:
        sol = self.optimize("min", np.zeros(polytope.dim + 1), polytope)
        if sol.status == SolveStatus.INFEASIBLE:
            return False
        if not sol.optimal:
            # Only a proven INFEASIBLE status may discard a region.
            raise SolverInconsistencyError("Feasibility check did not conclude", sol.status)
        return True
