#===- neurify/back_end/symbolic.py - Symbolic Interval Propagation ------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Pushes affine lower/upper bounds of every neuron, as functions of the
#   input, through the network. ReLU nodes whose sign is ambiguous over the
#   sub-domain are linearly relaxed; the slopes and pre-activation widths
#   are recorded per layer for influence-guided refinement.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Tuple, Union
import numpy as np
import torch

from neurify.back_end.bound_oracle import BoundOracle
from neurify.back_end.core import Activation, Layer, Network
from neurify.back_end.polytope import HPolytope
from neurify.util.device_manager import as_tensor, get_default_dtype, to_numpy

logger = logging.getLogger(__name__)


def _affine_eval(rows: torch.Tensor, x) -> np.ndarray:
    x1 = torch.cat([as_tensor(x).reshape(-1), torch.ones(1, dtype=get_default_dtype())])
    return to_numpy(rows @ x1)


@dataclass
class SymbolicInterval:
    """
    Affine bounds `low·[x;1] <= value(x) <= up·[x;1]` valid for every x in
    `domain`. Row i bounds neuron i; the last column is the constant term.
    The domain is referenced, not owned.
    """
    low: torch.Tensor
    up: torch.Tensor
    domain: HPolytope

    @property
    def n_nodes(self) -> int:
        return self.low.shape[0]

    def evaluate(self, x) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper bound values at a concrete input point."""
        return _affine_eval(self.low, x), _affine_eval(self.up, x)

    def concretize(self, oracle: BoundOracle) -> Tuple[np.ndarray, np.ndarray]:
        """Numeric per-node bounds over the whole domain."""
        lb = np.array([oracle.lower_bound(self.low[i], self.domain) for i in range(self.n_nodes)])
        ub = np.array([oracle.upper_bound(self.up[i], self.domain) for i in range(self.n_nodes)])
        return lb, ub


@dataclass
class SymbolicIntervalGradient:
    """
    A symbolic interval plus what the backward influence pass needs, one
    entry per processed layer:
        lower_masks/upper_masks: ReLU slopes (1 exact, 0 inactive, fractional relaxed)
        radii: pre-activation width of relaxed nodes (identity layers record 1)
        pre_activation: the layer's symbolic interval before its activation
    """
    sym: SymbolicInterval
    lower_masks: List[torch.Tensor] = field(default_factory=list)
    upper_masks: List[torch.Tensor] = field(default_factory=list)
    radii: List[torch.Tensor] = field(default_factory=list)
    pre_activation: List[SymbolicInterval] = field(default_factory=list)

    @property
    def n_layers(self) -> int:
        return len(self.lower_masks)

    @property
    def domain(self) -> HPolytope:
        return self.sym.domain


class SymbolicPropagator:
    """
    Forward symbolic interval analysis of a Network over a polytope.
    Concrete pre-activation bounds come from LPs over the sub-domain.
    """

    def __init__(self, oracle: BoundOracle):
        self.oracle = oracle

    def propagate(self, network: Network, domain: HPolytope) -> SymbolicIntervalGradient:
        if domain.dim != network.input_dim:
            raise ValueError(f"Domain dimension {domain.dim} does not match network input {network.input_dim}")
        state: Union[HPolytope, SymbolicIntervalGradient] = domain
        for idx, layer in enumerate(network.layers):
            state = self.propagate_layer(layer, state)
            logger.debug(f"Layer {idx} propagated: {state.sym.n_nodes} node(s)")
        return state

    def propagate_layer(self, layer: Layer, state: Union[HPolytope, SymbolicIntervalGradient]) -> SymbolicIntervalGradient:
        return self._forward_act(layer, self._forward_linear(layer, state))

    # =========================================================================
    # LINEAR STEP
    # =========================================================================

    def _forward_linear(self, layer: Layer, state: Union[HPolytope, SymbolicIntervalGradient]) -> SymbolicIntervalGradient:
        W, b = layer.weights, layer.bias
        if isinstance(state, HPolytope):
            # Input layer: both bounds are the exact affine map [W | b].
            Wb = torch.cat([W, b.unsqueeze(1)], dim=1)
            sym = SymbolicInterval(Wb.clone(), Wb.clone(), state)
            return SymbolicIntervalGradient(sym)

        w_pos = torch.clamp(W, min=0)
        w_neg = torch.clamp(W, max=0)
        up = w_pos @ state.sym.up + w_neg @ state.sym.low
        low = w_pos @ state.sym.low + w_neg @ state.sym.up
        up[:, -1] += b
        low[:, -1] += b
        sym = SymbolicInterval(low, up, state.sym.domain)
        return SymbolicIntervalGradient(sym, state.lower_masks, state.upper_masks, state.radii, state.pre_activation)

    # =========================================================================
    # ACTIVATION STEP
    # =========================================================================

    def _forward_act(self, layer: Layer, pre: SymbolicIntervalGradient) -> SymbolicIntervalGradient:
        if layer.activation == Activation.RELU:
            low, up, mask_lower, mask_upper, width = self._handle_relu(pre.sym)
        elif layer.activation == Activation.IDENTITY:
            low, up, mask_lower, mask_upper, width = self._handle_identity(pre.sym)
        else:
            raise ValueError(f"Unsupported activation {layer.activation!r}")

        return SymbolicIntervalGradient(
            SymbolicInterval(low, up, pre.sym.domain),
            pre.lower_masks + [mask_lower],
            pre.upper_masks + [mask_upper],
            pre.radii + [width],
            pre.pre_activation + [pre.sym],
        )

    def _handle_identity(self, sym: SymbolicInterval):
        n = sym.n_nodes
        ones = torch.ones(n, dtype=get_default_dtype())
        return sym.low, sym.up, ones, ones.clone(), ones.clone()

    def _handle_relu(self, sym: SymbolicInterval):
        n_node = sym.n_nodes
        low, up = sym.low.clone(), sym.up.clone()
        mask_lower = torch.zeros(n_node, dtype=get_default_dtype())
        mask_upper = torch.ones(n_node, dtype=get_default_dtype())
        width = torch.zeros(n_node, dtype=get_default_dtype())
        domain = sym.domain

        for i in range(n_node):
            up_up = self.oracle.upper_bound(sym.up[i], domain)
            if up_up <= 0.0:
                # Always inactive
                mask_lower[i], mask_upper[i] = 0.0, 0.0
                low[i, :] = 0.0
                up[i, :] = 0.0
                continue

            low_low = self.oracle.lower_bound(sym.low[i], domain)
            if low_low >= 0.0:
                # Always active: keep dependency
                mask_lower[i], mask_upper[i] = 1.0, 1.0
                continue

            if torch.equal(sym.low[i], sym.up[i]):
                up_low, low_up = low_low, up_up
            else:
                up_low = self.oracle.lower_bound(sym.up[i], domain)
                low_up = self.oracle.upper_bound(sym.low[i], domain)

            # Upper row: chord of ReLU over [up_low, up_up], or the row itself if never negative.
            if up_low < 0.0:
                up_slope = up_up / (up_up - up_low)
                up[i, -1] -= up_low
                up[i, :] *= up_slope
            else:
                up_slope = 1.0

            # Lower row: line through the origin below ReLU, or zero if never positive.
            if low_up > 0.0:
                low_slope = low_up / (low_up - low_low)
                low[i, :] *= low_slope
            else:
                low_slope = 0.0
                low[i, :] = 0.0

            mask_lower[i], mask_upper[i] = low_slope, up_slope
            width[i] = up_up - low_low

        return low, up, mask_lower, mask_upper, width
