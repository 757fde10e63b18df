#===- neurify/back_end/verif_status.py - Verification Results -----------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Three-way verification verdict and its payload, validated when built.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple
import numpy as np

from neurify.back_end.polytope import HPolytope


class VerifStatus(Enum):
    HOLDS = "holds"
    VIOLATED = "violated"
    UNKNOWN = "unknown"


@dataclass(frozen=True, eq=False)
class VerifResult:
    """
    Outcome of a verification call.

    Attributes:
        status: HOLDS, VIOLATED or UNKNOWN.
        counter_examples: Input points whose output leaves the output set (VIOLATED only).
        region: Sub-domain the counter-examples were found in (VIOLATED only).
        max_violation: Largest remaining over-approximation excess (UNKNOWN diagnostic).
        lp_solution: Raw solution vector of the LP that produced the verdict, if any.
        stats: Search statistics.
    """
    status: VerifStatus
    counter_examples: Tuple[np.ndarray, ...] = ()
    region: Optional[HPolytope] = None
    max_violation: Optional[float] = None
    lp_solution: Optional[np.ndarray] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.status, VerifStatus):
            raise ValueError(f"unexpected status {self.status!r}; only {[s.value for s in VerifStatus]} are accepted")
        object.__setattr__(self, "counter_examples",
                           tuple(np.asarray(x, dtype=np.float64).reshape(-1) for x in self.counter_examples))
        if self.status == VerifStatus.VIOLATED:
            if not self.counter_examples:
                raise ValueError("A violated result needs at least one counter-example")
        else:
            if self.counter_examples or self.region is not None:
                raise ValueError(f"A {self.status.value} result carries no counter-example or region")

    @classmethod
    def holds(cls, **kwargs) -> "VerifResult":
        return cls(VerifStatus.HOLDS, **kwargs)

    @classmethod
    def violated(cls, counter_examples: Sequence[np.ndarray], **kwargs) -> "VerifResult":
        return cls(VerifStatus.VIOLATED, tuple(counter_examples), **kwargs)

    @classmethod
    def unknown(cls, **kwargs) -> "VerifResult":
        return cls(VerifStatus.UNKNOWN, **kwargs)

    @property
    def counter_example(self) -> Optional[np.ndarray]:
        return self.counter_examples[0] if self.counter_examples else None

    def with_stats(self, stats: Dict[str, Any]) -> "VerifResult":
        return dataclasses.replace(self, stats=dict(stats))

    def __repr__(self) -> str:
        return f"VerifResult({self.status.value}, counter_examples={len(self.counter_examples)})"
