#===- neurify/back_end/problem.py - Verification Problem ----------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Problem descriptor: for all points of the input set, the network output
#   must belong to the output set.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union

from neurify.back_end.bound_oracle import BoundOracle
from neurify.back_end.core import Network
from neurify.back_end.errors import PreconditionError
from neurify.back_end.polytope import HPolytope

# (lb, ub) pairs are accepted as boxes
SetLike = Union[HPolytope, Tuple]


def to_hpolytope(s: SetLike) -> HPolytope:
    if isinstance(s, HPolytope):
        return s
    if isinstance(s, tuple) and len(s) == 2:
        return HPolytope.from_box(*s)
    raise PreconditionError(f"Cannot convert {type(s).__name__} to a half-space polytope")


@dataclass
class Problem:
    network: Network
    input: SetLike
    output: SetLike

    def validate(self, oracle: BoundOracle) -> "Problem":
        """
        Return a copy with both sets in H-representation after checking
        dimensions, non-emptiness and boundedness of the input.

        Raises:
            PreconditionError: on any violated precondition
        """
        try:
            input_set = to_hpolytope(self.input)
            output_set = to_hpolytope(self.output)
        except ValueError as e:
            raise PreconditionError(f"Malformed set: {e}") from e

        if input_set.dim != self.network.input_dim:
            raise PreconditionError(f"Input set has dimension {input_set.dim}, network expects {self.network.input_dim}")
        if output_set.dim != self.network.output_dim:
            raise PreconditionError(f"Output set has dimension {output_set.dim}, network produces {self.network.output_dim}")
        if input_set.is_empty(oracle):
            raise PreconditionError("Input set is empty")
        if not input_set.is_bounded(oracle):
            raise PreconditionError("Input set is unbounded")
        return Problem(self.network, input_set, output_set)
