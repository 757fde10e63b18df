#===- neurify/util/stats.py - Logging and Search Statistics -------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Logging setup, structured log messages for the branch-and-bound engine
#   and counters collected over one verification run.
#
#===---------------------------------------------------------------------===#

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger("neurify")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, format_str: Optional[str] = None):
    """
    Setup logging configuration.

    Args:
        level: Logging level name
        log_file: Optional file receiving a copy of every record
        format_str: Custom format string
    """
    if format_str is None:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_str,
        handlers=handlers
    )


def set_log_level(level: str) -> None:
    """Set the level of the "neurify" logger without touching handlers."""
    logger.setLevel(getattr(logging, level.upper()))


@dataclass
class BaBStats:
    """Statistics collected during one branch-and-bound run.

    Attributes:
        iterations: Top-level iterations performed (root check included).
        subdomains_checked: Sub-domains propagated and checked for inclusion.
        holds_subdomains: Sub-domains proven safe.
        unknown_subdomains: Sub-domains pushed back for refinement.
        splits: Refinement splits performed.
        empty_children: Candidate children discarded as empty.
        lp_calls: Linear programs solved.
        max_depth: Deepest sub-domain in the search tree.
        split_records: (layer, node, influence) of every split, in order.
    """
    iterations: int = 0
    subdomains_checked: int = 0
    holds_subdomains: int = 0
    unknown_subdomains: int = 0
    splits: int = 0
    empty_children: int = 0
    lp_calls: int = 0
    max_depth: int = 0
    split_records: List[Tuple[int, int, float]] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'iterations': self.iterations,
            'subdomains_checked': self.subdomains_checked,
            'holds_subdomains': self.holds_subdomains,
            'unknown_subdomains': self.unknown_subdomains,
            'splits': self.splits,
            'empty_children': self.empty_children,
            'lp_calls': self.lp_calls,
            'max_depth': self.max_depth,
            'split_records': list(self.split_records),
            'elapsed_s': self.elapsed,
        }


class NeurifyLog:
    """
    Structured log messages emitted by the verification engine.

    Everything goes through the "neurify" logger so callers control the
    output with the standard logging configuration.
    """

    @staticmethod
    def log_run_start(max_iter: int, tree_search: str, solver: str) -> None:
        logger.info(f"Starting Neurify: max_iter={max_iter}, tree_search={tree_search}, solver={solver}")

    @staticmethod
    def log_iteration(iteration: int, pending: int) -> None:
        logger.debug(f"Iteration {iteration}: {pending} pending sub-domain(s)")

    @staticmethod
    def log_inclusion(status: str, max_violation: Optional[float] = None) -> None:
        if max_violation is None:
            logger.debug(f"Inclusion check: {status}")
        else:
            logger.debug(f"Inclusion check: {status} (max excess {max_violation:.6g})")

    @staticmethod
    def log_split(layer: int, node: int, influence: float) -> None:
        logger.debug(f"Splitting layer {layer} node {node} (influence {influence:.6g})")

    @staticmethod
    def log_partition(kept: int, discarded: int) -> None:
        logger.debug(f"Partition produced {kept} sub-domain(s), {discarded} empty")

    @staticmethod
    def log_verdict(status: str, stats: BaBStats) -> None:
        logger.info(f"Verification finished: {status} after {stats.iterations} iteration(s), "
                    f"{stats.subdomains_checked} sub-domain(s), {stats.lp_calls} LP(s), {stats.elapsed:.3f}s")
