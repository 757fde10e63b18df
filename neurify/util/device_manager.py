#===- neurify/util/device_manager.py - Dtype Management -----------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Fixed float64 dtype for all symbolic computation plus conversion
#   helpers between torch tensors and numpy arrays at the solver boundary.
#
#===---------------------------------------------------------------------===#

import numpy as np
import torch

# LP feasibility is decided on these numbers; single precision is not enough.
_DTYPE = torch.float64


def get_default_dtype() -> torch.dtype:
    """Get the dtype used for every tensor created by the back end."""
    return _DTYPE


def as_tensor(x) -> torch.Tensor:
    """Convert arrays, lists or tensors into a detached CPU float64 tensor."""
    if isinstance(x, torch.Tensor):
        return x.detach().to("cpu", dtype=_DTYPE)
    return torch.as_tensor(np.asarray(x, dtype=np.float64), dtype=_DTYPE)


def to_numpy(x) -> np.ndarray:
    if isinstance(x, torch.Tensor):
        return x.detach().to("cpu", dtype=_DTYPE).numpy()
    return np.asarray(x, dtype=np.float64)
