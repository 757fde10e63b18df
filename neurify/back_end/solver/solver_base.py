#===- neurify/back_end/solver/solver_base.py - Base Solver Interface ---====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Base Solver Interface. Defines the abstract LP backend used by the
#   bound oracle and the status codes it reports.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import numpy as np
from typing import List, Optional

class SolveStatus:
    OPTIMAL = "OPTIMAL"
    INFEASIBLE = "INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"

class Solver:
    """Abstract LP interface: continuous free variables, `<=` rows and a linear objective."""

    # --- Lifecycle ---
    def begin(self, name: str = "verify") -> None:  # pragma: no cover - abstract
        ...

    def add_vars(self, n: int) -> None:  # pragma: no cover - abstract
        ...

    # --- Linear constraints ---
    def add_lin_le(self, vids: List[int], coeffs: List[float], rhs: float) -> None:  # pragma: no cover - abstract
        ...

    # --- Objective & solve ---
    def set_objective_linear(self, vids: List[int], coeffs: List[float], const: float = 0.0, sense: str = "min") -> None:  # pragma: no cover - abstract
        ...

    def optimize(self, timelimit: Optional[float] = None) -> None:  # pragma: no cover - abstract
        ...

    def status(self) -> str:  # pragma: no cover - abstract
        ...

    def has_solution(self) -> bool:  # pragma: no cover - abstract
        ...

    # --- Accessors ---
    def get_values(self, vids: List[int]) -> np.ndarray:  # pragma: no cover - abstract
        ...

    def objective_value(self) -> float:  # pragma: no cover - abstract
        ...

    @property
    def n(self) -> int:  # pragma: no cover - abstract
        ...
