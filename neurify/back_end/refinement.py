#===- neurify/back_end/refinement.py - Influence-Guided Refinement ------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Ranks relaxed ReLU nodes by influence (backpropagated gradient of the
#   most violated output constraint times pre-activation width) and splits
#   the sub-domain along the symbolic bounds of the winning node.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import logging
from typing import FrozenSet, List, NamedTuple, Optional, Tuple
import numpy as np
import torch

from neurify.back_end.bound_oracle import BoundOracle
from neurify.back_end.core import Activation, Network
from neurify.back_end.errors import RefinementDeadEndError
from neurify.back_end.polytope import HalfSpace, HPolytope
from neurify.back_end.symbolic import SymbolicIntervalGradient
from neurify.util.device_manager import as_tensor, to_numpy
from neurify.util.stats import NeurifyLog

logger = logging.getLogger(__name__)


class SplitRecord(NamedTuple):
    """A node chosen for refinement: (layer index, node index, influence at selection time)."""
    layer: int
    node: int
    influence: float


SplitSet = FrozenSet[SplitRecord]


def interval_map_right(W: torch.Tensor, l: torch.Tensor, u: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
    """Interval bounds of the row-vector product g·W for g in [l, u]."""
    w_pos = torch.clamp(W, min=0)
    w_neg = torch.clamp(W, max=0)
    return l @ w_pos + u @ w_neg, u @ w_pos + l @ w_neg


def nodewise_influence(network: Network, reach: SymbolicIntervalGradient, violated_con,
                       splits: SplitSet = frozenset()) -> SplitRecord:
    """
    Walk the layers backwards carrying a gradient interval seeded with the
    violated constraint, and return the relaxed ReLU node with the largest
    influence that is not already recorded in `splits`.

    Raises:
        RefinementDeadEndError: if no relaxed node is eligible
    """
    if reach.n_layers != len(network):
        raise ValueError(f"Gradient data covers {reach.n_layers} layer(s), network has {len(network)}")

    LG = as_tensor(violated_con).reshape(-1)
    UG = LG.clone()
    best: Optional[SplitRecord] = None

    for i in reversed(range(len(network))):
        layer = network.layers[i]
        lam_low, lam_up = reach.lower_masks[i], reach.upper_masks[i]

        # Only ReLU nodes are split.
        if layer.activation == Activation.RELU:
            for j in range(layer.n_out):
                if not (0 < float(lam_low[j]) < 1 and 0 < float(lam_up[j]) < 1):
                    continue
                influence = max(abs(float(LG[j])), abs(float(UG[j]))) * float(reach.radii[i][j])
                if SplitRecord(i, j, influence) in splits:
                    continue
                if best is None or influence > best.influence:
                    best = SplitRecord(i, j, influence)

        if i == 0:
            break
        LG_hat = torch.clamp(LG, min=0) * lam_low + torch.clamp(LG, max=0) * lam_up
        UG_hat = torch.clamp(UG, max=0) * lam_low + torch.clamp(UG, min=0) * lam_up
        LG, UG = interval_map_right(layer.weights, LG_hat, UG_hat)

    if best is None:
        raise RefinementDeadEndError("No relaxed ReLU node left to split while a violation is still suspected")
    return best


def _side(normal: np.ndarray, offset: float, sign: float) -> Tuple[bool, Optional[HalfSpace]]:
    """
    Half-space sign·(normal·x + offset) <= 0.

    Returns (feasible, halfspace). A zero normal gives no half-space: the
    side is either satisfied everywhere (None) or nowhere (feasible=False).
    """
    if not np.any(normal):
        return sign * offset <= 0.0, None
    return True, HalfSpace(sign * normal, -sign * offset)


def partition(domain: HPolytope, reach: SymbolicIntervalGradient, split: SplitRecord,
              oracle: BoundOracle) -> List[HPolytope]:
    """
    Split `domain` along the pre-activation bounds L(x) <= node <= U(x) of
    the chosen node into the feasible sign combinations
    (L<=0, U<=0), (L<=0, U>=0), (L>=0, U>=0). L>=0 with U<=0 forces L=U=0
    and is covered by the first region.

    Returns:
        The non-empty sub-domains, between 0 and 3 of them.
    """
    pre = reach.pre_activation[split.layer]
    low_row = to_numpy(pre.low[split.node])
    up_row = to_numpy(pre.up[split.node])
    l_sym, l_off = low_row[:-1], float(low_row[-1])
    u_sym, u_off = up_row[:-1], float(up_row[-1])

    children: List[HPolytope] = []
    discarded = 0
    for low_sign, up_sign in ((1.0, 1.0), (1.0, -1.0), (-1.0, -1.0)):
        ok_l, h_l = _side(l_sym, l_off, low_sign)
        ok_u, h_u = _side(u_sym, u_off, up_sign)
        if not (ok_l and ok_u):
            discarded += 1
            continue
        candidate = domain.intersection(*[h for h in (h_l, h_u) if h is not None])
        if candidate.is_empty(oracle):
            discarded += 1
            continue
        children.append(candidate)

    NeurifyLog.log_partition(len(children), discarded)
    return children


def refine(network: Network, reach: SymbolicIntervalGradient, violated_con,
           splits: SplitSet = frozenset(), oracle: Optional[BoundOracle] = None) -> Tuple[List[HPolytope], SplitSet]:
    """
    Choose the most influential relaxed node and partition the sub-domain
    along it.

    Returns:
        (child sub-domains, the split set extended with the chosen node)
    """
    oracle = oracle if oracle is not None else BoundOracle()
    split = nodewise_influence(network, reach, violated_con, splits)
    NeurifyLog.log_split(split.layer, split.node, split.influence)
    children = partition(reach.domain, reach, split, oracle)
    return children, splits | {split}
