#===- neurify/back_end/solver/__init__.py - LP Solvers ------------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   LP backends (Gurobi, SciPy/HiGHS) and backend selection by name.
#
#===---------------------------------------------------------------------===#

import logging
from functools import lru_cache

from .solver_base import Solver, SolveStatus
from .solver_gurobi import GurobiSolver, GUROBI_AVAILABLE
from .solver_scipy import SciPySolver
from neurify.back_end.errors import SolverUnavailableError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def gurobi_usable() -> bool:
    """Whether gurobipy imports and a model can be created with the local licence."""
    if not GUROBI_AVAILABLE:
        return False
    try:
        GurobiSolver().begin("probe")
    except SolverUnavailableError as e:
        logger.warning(f"Gurobi not usable, falling back to SciPy: {e}")
        return False
    return True


def resolve_backend(name: str) -> str:
    """Map "auto" to a concrete backend name."""
    if name == "auto":
        return "gurobi" if gurobi_usable() else "scipy"
    if name in ("gurobi", "scipy"):
        return name
    raise SolverUnavailableError(f"Unknown solver backend '{name}'")


def make_solver(name: str = "auto") -> Solver:
    backend = resolve_backend(name)
    if backend == "gurobi":
        return GurobiSolver()
    return SciPySolver()


__all__ = [
    'Solver', 'SolveStatus',
    'GurobiSolver', 'SciPySolver', 'GUROBI_AVAILABLE',
    'gurobi_usable', 'resolve_backend', 'make_solver',
]
