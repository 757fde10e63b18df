#===- neurify/back_end/core.py - Network Data Structures ----------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Feed-forward piecewise-linear network representation (dense layers with
#   ReLU or identity activation), concrete evaluation and conversion from
#   torch nn.Sequential models.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List
import numpy as np
import torch
import torch.nn as nn

from neurify.util.device_manager import as_tensor


class Activation(Enum):
    RELU = "relu"
    IDENTITY = "identity"


def apply_activation(kind: Activation, z: torch.Tensor) -> torch.Tensor:
    if kind == Activation.RELU:
        return torch.clamp(z, min=0.0)
    if kind == Activation.IDENTITY:
        return z
    raise ValueError(f"Unsupported activation {kind!r}")


@dataclass
class Layer:
    weights: torch.Tensor                       # (n_out, n_in)
    bias: torch.Tensor                          # (n_out,)
    activation: Activation = Activation.RELU

    def __post_init__(self):
        self.weights = as_tensor(self.weights)
        self.bias = as_tensor(self.bias).reshape(-1)
        if isinstance(self.activation, str):
            self.activation = Activation(self.activation.lower())
        if self.weights.dim() != 2:
            raise ValueError(f"Layer weights must be a matrix, got shape {tuple(self.weights.shape)}")
        if self.bias.shape[0] != self.weights.shape[0]:
            raise ValueError(f"Bias has {self.bias.shape[0]} entries but weights have {self.weights.shape[0]} rows")

    @property
    def n_in(self) -> int:
        return self.weights.shape[1]

    @property
    def n_out(self) -> int:
        return self.weights.shape[0]

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return apply_activation(self.activation, self.weights @ x + self.bias)


@dataclass
class Network:
    layers: List[Layer]

    def __post_init__(self):
        if not self.layers:
            raise ValueError("A network needs at least one layer")
        for k in range(1, len(self.layers)):
            prev, cur = self.layers[k - 1], self.layers[k]
            if cur.n_in != prev.n_out:
                raise ValueError(f"Layer {k} expects {cur.n_in} inputs but layer {k - 1} produces {prev.n_out}")

    def __len__(self) -> int:
        return len(self.layers)

    @property
    def input_dim(self) -> int:
        return self.layers[0].n_in

    @property
    def output_dim(self) -> int:
        return self.layers[-1].n_out

    def truncated(self, k: int) -> "Network":
        """The sub-network made of the first k layers."""
        return Network(self.layers[:k])

    @classmethod
    def from_torch(cls, model: nn.Sequential) -> "Network":
        """
        Convert an nn.Sequential of nn.Linear modules, each optionally
        followed by nn.ReLU, into a Network. A Linear not followed by a
        ReLU becomes an identity layer.
        """
        layers: List[Layer] = []
        modules = [m for m in model if not isinstance(m, (nn.Flatten, nn.Identity))]
        i = 0
        while i < len(modules):
            mod = modules[i]
            if not isinstance(mod, nn.Linear):
                raise ValueError(f"Unsupported module {type(mod).__name__} at position {i}; expected nn.Linear")
            W = mod.weight.detach().clone()
            b = mod.bias.detach().clone() if mod.bias is not None else torch.zeros(mod.out_features)
            if i + 1 < len(modules) and isinstance(modules[i + 1], nn.ReLU):
                layers.append(Layer(W, b, Activation.RELU))
                i += 2
            else:
                layers.append(Layer(W, b, Activation.IDENTITY))
                i += 1
        return cls(layers)


@torch.no_grad()
def compute_output(network: Network, x) -> np.ndarray:
    """Concrete forward evaluation of a single input point."""
    y = as_tensor(x).reshape(-1)
    for layer in network.layers:
        y = layer.forward(y)
    return y.cpu().numpy()
