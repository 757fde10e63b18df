#===- neurify/back_end/inclusion.py - Output Inclusion Check ------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Decides whether the symbolic output interval of a sub-domain stays
#   inside the output polytope by maximising each output constraint over
#   the sub-domain, and confirms suspected violations on the concrete
#   network.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import logging
from typing import List, Optional, Tuple
import numpy as np
import torch

from neurify.back_end.bound_oracle import BoundOracle
from neurify.back_end.core import Network, compute_output
from neurify.back_end.errors import SolverInconsistencyError
from neurify.back_end.polytope import HPolytope
from neurify.back_end.symbolic import SymbolicInterval
from neurify.back_end.verif_status import VerifResult
from neurify.util.device_manager import as_tensor
from neurify.util.stats import NeurifyLog

logger = logging.getLogger(__name__)


def constraint_objective(a, reach: SymbolicInterval) -> torch.Tensor:
    """Tightest affine upper bound of a·y over the symbolic output y: max(a,0)·Up + min(a,0)·Low."""
    a = as_tensor(a).reshape(-1)
    return torch.clamp(a, min=0) @ reach.up + torch.clamp(a, max=0) @ reach.low


class InclusionChecker:
    """
    Per output constraint a·y <= b, maximise the relaxed objective over the
    sub-domain. An optimum whose concrete output leaves the output set is a
    real counter-example; otherwise the constraint with the largest excess
    over b is reported for refinement.
    """

    def __init__(self, oracle: BoundOracle, num_witness_samples: int = 0,
                 rng: Optional[np.random.Generator] = None, tol: float = 1e-9):
        self.oracle = oracle
        self.num_witness_samples = num_witness_samples
        self.rng = rng if rng is not None else np.random.default_rng()
        self.tol = tol

    def check(self, reach: SymbolicInterval, output: HPolytope,
              network: Network) -> Tuple[VerifResult, Optional[np.ndarray]]:
        """
        Returns:
            (result, constraint): constraint is the normal vector of the most
            violated output constraint when the result is UNKNOWN, else None.
        """
        domain = reach.domain
        max_violation = -np.inf
        max_violation_con = None

        for a, b in zip(output.A, output.b):
            obj = constraint_objective(a, reach)
            sol = self.oracle.optimize("max", obj, domain)
            if not sol.optimal:
                if sol.x is not None and domain.contains(sol.x, self.tol):
                    raise SolverInconsistencyError(
                        "LP not optimal although its point lies in the input set; "
                        "this is usually caused by an open input set, check the input constraints", sol.status)
                raise SolverInconsistencyError("No solution, check the problem definition", sol.status)

            y = compute_output(network, sol.x)
            if not output.contains(y, self.tol):
                witnesses = [sol.x] + self._sample_witnesses(domain, output, network)
                NeurifyLog.log_inclusion("violated")
                return VerifResult.violated(witnesses, region=domain, lp_solution=sol.x), None

            excess = sol.value - b
            if excess > max_violation:
                max_violation = excess
                max_violation_con = np.array(a, copy=True)

        if max_violation > 0:
            NeurifyLog.log_inclusion("unknown", max_violation)
            return VerifResult.unknown(max_violation=float(max_violation)), max_violation_con
        NeurifyLog.log_inclusion("holds", max_violation)
        return VerifResult.holds(max_violation=float(max_violation)), None

    def _sample_witnesses(self, domain: HPolytope, output: HPolytope, network: Network) -> List[np.ndarray]:
        if self.num_witness_samples <= 0:
            return []
        points = domain.sample(self.num_witness_samples, self.oracle, self.rng)
        found = [x for x in points if not output.contains(compute_output(network, x), self.tol)]
        logger.debug(f"Sampled {len(points)} point(s), {len(found)} additional counter-example(s)")
        return found
