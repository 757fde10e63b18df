#===- neurify/back_end/__init__.py - Neurify Verification Back End ------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Symbolic interval analysis and influence-guided branch-and-bound for
#   ReLU/identity networks against half-space polytope specifications.
#
#===---------------------------------------------------------------------===#

"""
- Half-space polytopes and an LP bound oracle (Gurobi or SciPy/HiGHS)
- Symbolic interval propagation with ReLU relaxation
- Output inclusion check with concrete counter-example confirmation
- Influence-guided node splitting with per-lineage split sets
- Branch-and-bound search tree and the top-level Neurify loop

Example usage:
    >>> from neurify.back_end import *
    >>> net = Network([Layer(W1, b1, "relu"), Layer(W2, b2, "identity")])
    >>> problem = Problem(net, (lb, ub), HPolytope(A, b))
    >>> result = Neurify(max_iter=20, solver="scipy").solve(problem)
"""

# Core data structures
from .core import Activation, Layer, Network, apply_activation, compute_output
from .polytope import HalfSpace, HPolytope
from .search_tree import SearchTree

# Errors
from .errors import (
    NeurifyError, PreconditionError, SolverInconsistencyError,
    RefinementDeadEndError, SolverUnavailableError,
)

# LP oracle
from .bound_oracle import BoundOracle, LPSolution

# Analysis
from .symbolic import SymbolicInterval, SymbolicIntervalGradient, SymbolicPropagator
from .inclusion import InclusionChecker, constraint_objective
from .refinement import SplitRecord, SplitSet, interval_map_right, nodewise_influence, partition, refine

# Verification
from .problem import Problem
from .verif_status import VerifStatus, VerifResult
from .bab import Neurify, TreeSearch, BranchState

__all__ = [
    'Activation', 'Layer', 'Network', 'apply_activation', 'compute_output',
    'HalfSpace', 'HPolytope', 'SearchTree',
    'NeurifyError', 'PreconditionError', 'SolverInconsistencyError',
    'RefinementDeadEndError', 'SolverUnavailableError',
    'BoundOracle', 'LPSolution',
    'SymbolicInterval', 'SymbolicIntervalGradient', 'SymbolicPropagator',
    'InclusionChecker', 'constraint_objective',
    'SplitRecord', 'SplitSet', 'interval_map_right', 'nodewise_influence', 'partition', 'refine',
    'Problem', 'VerifStatus', 'VerifResult',
    'Neurify', 'TreeSearch', 'BranchState',
]
