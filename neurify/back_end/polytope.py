#===- neurify/back_end/polytope.py - Half-Space Polytopes ---------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   H-representation polytopes {x | A x <= b} used for input domains,
#   sub-domains and output sets. Queries that need optimisation (emptiness,
#   boundedness, box approximation, sampling) take a BoundOracle.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING
import numpy as np

from neurify.back_end.solver.solver_base import SolveStatus

if TYPE_CHECKING:
    from neurify.back_end.bound_oracle import BoundOracle


@dataclass(frozen=True)
class HalfSpace:
    """The set {x | a·x <= b}."""
    a: np.ndarray
    b: float

    def __post_init__(self):
        object.__setattr__(self, "a", np.asarray(self.a, dtype=np.float64).reshape(-1))
        object.__setattr__(self, "b", float(self.b))

    def contains(self, x, tol: float = 0.0) -> bool:
        return float(np.dot(self.a, np.asarray(x, dtype=np.float64))) <= self.b + tol


class HPolytope:
    """
    Polytope given by a finite list of half-space constraints.

    The constraint matrix is copied on construction; polytopes are never
    mutated, intersection returns a new object.
    """

    __slots__ = ['A', 'b']

    def __init__(self, A, b):
        A = np.array(A, dtype=np.float64, ndmin=2)
        b = np.array(b, dtype=np.float64).reshape(-1)
        if A.shape[0] != b.shape[0]:
            raise ValueError(f"Constraint matrix has {A.shape[0]} rows but offset vector has {b.shape[0]} entries")
        if A.shape[0] == 0:
            raise ValueError("A polytope needs at least one constraint")
        self.A = A
        self.b = b

    @classmethod
    def from_box(cls, lb, ub) -> "HPolytope":
        lb = np.asarray(lb, dtype=np.float64).reshape(-1)
        ub = np.asarray(ub, dtype=np.float64).reshape(-1)
        if lb.shape != ub.shape:
            raise ValueError(f"Box bounds differ in shape: {lb.shape} vs {ub.shape}")
        if np.any(lb > ub):
            raise ValueError("Box lower bound exceeds upper bound")
        eye = np.eye(lb.shape[0])
        return cls(np.vstack([eye, -eye]), np.concatenate([ub, -lb]))

    @classmethod
    def from_halfspaces(cls, halfspaces: Sequence[HalfSpace]) -> "HPolytope":
        return cls(np.vstack([h.a for h in halfspaces]), np.array([h.b for h in halfspaces]))

    @property
    def dim(self) -> int:
        return self.A.shape[1]

    @property
    def constraints(self) -> List[HalfSpace]:
        return [HalfSpace(self.A[i], self.b[i]) for i in range(self.A.shape[0])]

    def __len__(self) -> int:
        return self.A.shape[0]

    def __repr__(self) -> str:
        return f"HPolytope(dim={self.dim}, constraints={len(self)})"

    def tosimplehrep(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.A.copy(), self.b.copy()

    def intersection(self, *halfspaces: HalfSpace) -> "HPolytope":
        if not halfspaces:
            return HPolytope(self.A, self.b)
        extra_A = np.vstack([h.a for h in halfspaces])
        if extra_A.shape[1] != self.dim:
            raise ValueError(f"Half-space dimension {extra_A.shape[1]} does not match polytope dimension {self.dim}")
        extra_b = np.array([h.b for h in halfspaces])
        return HPolytope(np.vstack([self.A, extra_A]), np.concatenate([self.b, extra_b]))

    def contains(self, x, tol: float = 1e-9) -> bool:
        x = np.asarray(x, dtype=np.float64).reshape(-1)
        if x.shape[0] != self.dim:
            return False
        return bool(np.all(self.A @ x <= self.b + tol))

    def __contains__(self, x) -> bool:
        return self.contains(x)

    # --- Oracle-backed queries ---

    def is_empty(self, oracle: "BoundOracle") -> bool:
        return not oracle.is_feasible(self)

    def is_bounded(self, oracle: "BoundOracle") -> bool:
        """True when every coordinate has a finite minimum and maximum over a non-empty polytope."""
        for i in range(self.dim):
            row = np.zeros(self.dim + 1)
            row[i] = 1.0
            for sense in ("max", "min"):
                if oracle.optimize(sense, row, self).status != SolveStatus.OPTIMAL:
                    return False
        return True

    def box_approximation(self, oracle: "BoundOracle") -> Tuple[np.ndarray, np.ndarray]:
        """Smallest axis-aligned box containing the polytope."""
        lb = np.zeros(self.dim)
        ub = np.zeros(self.dim)
        for i in range(self.dim):
            row = np.zeros(self.dim + 1)
            row[i] = 1.0
            lb[i] = oracle.lower_bound(row, self)
            ub[i] = oracle.upper_bound(row, self)
        return lb, ub

    def sample(self, n: int, oracle: "BoundOracle", rng: Optional[np.random.Generator] = None,
               max_tries: Optional[int] = None) -> np.ndarray:
        """
        Draw up to n points uniformly from the polytope by rejection sampling
        in its box approximation.

        Returns:
            Array of shape (k, dim) with k <= n accepted points.
        """
        rng = rng if rng is not None else np.random.default_rng()
        max_tries = max_tries if max_tries is not None else 100 * max(n, 1)
        lb, ub = self.box_approximation(oracle)
        accepted = []
        tries = 0
        while len(accepted) < n and tries < max_tries:
            batch = rng.uniform(lb, ub, size=(max(n, 16), self.dim))
            tries += batch.shape[0]
            for x in batch:
                if self.contains(x):
                    accepted.append(x)
                    if len(accepted) == n:
                        break
        return np.array(accepted).reshape(-1, self.dim)
