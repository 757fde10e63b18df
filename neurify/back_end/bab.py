#===- neurify/back_end/bab.py - Neurify Branch-and-Bound ----------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Top-level branch-and-bound loop: propagate symbolic intervals over a
#   sub-domain, check output inclusion, and refine undecided sub-domains
#   along their most influential relaxed ReLU node until every sub-domain
#   is resolved, a counter-example is found or the iteration budget runs out.
#
#===---------------------------------------------------------------------===#

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional
import numpy as np

from neurify.back_end.bound_oracle import BoundOracle
from neurify.back_end.inclusion import InclusionChecker
from neurify.back_end.problem import Problem
from neurify.back_end.refinement import SplitSet, refine
from neurify.back_end.search_tree import SearchTree
from neurify.back_end.symbolic import SymbolicIntervalGradient, SymbolicPropagator
from neurify.back_end.verif_status import VerifResult, VerifStatus
from neurify.util.config import NeurifyConfig
from neurify.util.stats import BaBStats, NeurifyLog, set_log_level

logger = logging.getLogger(__name__)


class TreeSearch:
    DFS = "DFS"
    BFS = "BFS"


@dataclass
class BranchState:
    """An undecided sub-domain waiting for refinement."""
    reach: SymbolicIntervalGradient
    violated_con: np.ndarray
    splits: SplitSet
    max_violation: float

    @property
    def domain(self):
        return self.reach.domain


class Neurify:
    """
    Symbolic interval branch-and-bound verifier.

    Iteration 1 checks the whole input set. Every further iteration takes one
    pending sub-domain (newest first for DFS, oldest first for BFS), splits
    it and checks each non-empty child. Each sub-domain carries the split
    set of its own lineage, so sibling branches never see each other's splits.

    Example:
        >>> solver = Neurify(NeurifyConfig(max_iter=20, solver="scipy"))
        >>> result = solver.solve(Problem(net, (lb, ub), output_set))
        >>> result.status
        <VerifStatus.HOLDS: 'holds'>
    """

    def __init__(self, config: Optional[NeurifyConfig] = None, **overrides):
        if config is None:
            config = NeurifyConfig(**overrides)
        elif overrides:
            config = NeurifyConfig.from_dict({**config.to_dict(), **overrides})
        self.config = config
        set_log_level(config.log_level)

    def solve(self, problem: Problem) -> VerifResult:
        """
        Decide whether every input point maps into the output set.

        Raises:
            PreconditionError: malformed, empty or unbounded input set
            SolverInconsistencyError: an LP returned no usable optimum
            RefinementDeadEndError: a sub-domain is undecided but nothing is left to split
        """
        cfg = self.config
        oracle = BoundOracle(cfg.solver, cfg.timelimit)
        problem = problem.validate(oracle)
        network, output = problem.network, problem.output

        propagator = SymbolicPropagator(oracle)
        checker = InclusionChecker(oracle, cfg.num_witness_samples,
                                   rng=np.random.default_rng(cfg.seed), tol=cfg.tol)
        stats = BaBStats()
        NeurifyLog.log_run_start(cfg.max_iter, cfg.tree_search, oracle.backend)

        def _finish(result: VerifResult) -> VerifResult:
            stats.lp_calls = oracle.lp_calls
            NeurifyLog.log_verdict(result.status.value, stats)
            return result.with_stats(stats.to_dict())

        stats.iterations = 1
        reach = propagator.propagate(network, problem.input)
        result, con = checker.check(reach.sym, output, network)
        stats.subdomains_checked += 1
        if result.status != VerifStatus.UNKNOWN:
            return _finish(result)

        tree: SearchTree[BranchState] = SearchTree(BranchState(reach, con, frozenset(), result.max_violation))
        pending: Deque[int] = deque([SearchTree.ROOT])

        for iteration in range(2, cfg.max_iter + 1):
            stats.iterations = iteration
            NeurifyLog.log_iteration(iteration, len(pending))
            node = pending.pop() if cfg.tree_search == TreeSearch.DFS else pending.popleft()
            state = tree.data(node)

            children, splits = refine(network, state.reach, state.violated_con, state.splits, oracle)
            new_split, = splits - state.splits
            stats.splits += 1
            stats.split_records.append(tuple(new_split))
            stats.empty_children += 3 - len(children)

            for domain in children:
                reach = propagator.propagate(network, domain)
                result, con = checker.check(reach.sym, output, network)
                stats.subdomains_checked += 1
                if result.status == VerifStatus.VIOLATED:
                    return _finish(result)
                if result.status == VerifStatus.HOLDS:
                    stats.holds_subdomains += 1
                    continue
                child = tree.add_child(node, BranchState(reach, con, splits, result.max_violation))
                pending.append(child)
                stats.unknown_subdomains += 1
                stats.max_depth = max(stats.max_depth, tree.depth(child))

            self._prune_resolved(tree, node, pending)
            if not pending:
                return _finish(VerifResult.holds())

        max_violation = max(tree.data(x).max_violation for x in pending)
        logger.info(f"Iteration budget exhausted with {len(pending)} undecided sub-domain(s)")
        return _finish(VerifResult.unknown(max_violation=float(max_violation)))

    @staticmethod
    def _prune_resolved(tree: SearchTree[BranchState], node: int, pending: Deque[int]) -> None:
        # A refined node with no undecided child is resolved, and so is its
        # parent once its last child goes.
        x = node
        while x != SearchTree.ROOT and tree.is_leaf(x) and x not in pending:
            parent = tree.parent(x)
            tree.delete_subtree(x)
            x = parent
