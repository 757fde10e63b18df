#!/usr/bin/env python3
"""
End-to-end tests of the Neurify branch-and-bound loop.

The ReLU scenario uses y = relu(x0 + x1) - x0 on [-1, 1]^2 with y <= 1.5:
the root relaxation overshoots to 2 at x = (-1, 1) where the true output
is 1, and splitting the single ambiguous hidden node settles every child.
"""

import logging
import unittest
from unittest import mock
import numpy as np

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from neurify.back_end.bab import Neurify
from neurify.back_end.bound_oracle import BoundOracle, LPSolution
from neurify.back_end.core import compute_output
from neurify.back_end.errors import PreconditionError, RefinementDeadEndError, SolverInconsistencyError
from neurify.back_end.inclusion import InclusionChecker
from neurify.back_end.polytope import HPolytope
from neurify.back_end.problem import Problem
from neurify.back_end.refinement import SplitRecord, nodewise_influence, refine
from neurify.back_end.solver import SolveStatus
from neurify.back_end.verif_status import VerifResult, VerifStatus
from neurify.util.config import NeurifyConfig
from test_configs import MockFactory, SOLVER


class TestNeurifyVerdicts(unittest.TestCase):

    def test_identity_holds_at_root(self):
        problem = Problem(MockFactory.identity_sum(), MockFactory.unit_box(2),
                          HPolytope(np.array([[1.0]]), np.array([3.0])))
        result = Neurify(solver=SOLVER).solve(problem)
        self.assertEqual(result.status, VerifStatus.HOLDS)
        self.assertEqual(result.stats["iterations"], 1)
        self.assertEqual(result.stats["splits"], 0)

    def test_identity_violated(self):
        net = MockFactory.identity_sum()
        problem = Problem(net, (np.zeros(2), np.ones(2)), HPolytope(np.array([[1.0]]), np.array([1.0])))
        result = Neurify(solver=SOLVER).solve(problem)
        self.assertEqual(result.status, VerifStatus.VIOLATED)
        x = result.counter_example
        self.assertGreater(float(np.sum(x)), 1.0)
        self.assertGreater(float(compute_output(net, x)[0]), 1.0)
        self.assertIsNotNone(result.region)

    def test_relu_holds_after_one_split(self):
        result = Neurify(max_iter=10, solver=SOLVER).solve(MockFactory.relu_kink_problem())
        self.assertEqual(result.status, VerifStatus.HOLDS)
        self.assertEqual(result.stats["iterations"], 2)
        self.assertEqual(result.stats["splits"], 1)
        layer, node, influence = result.stats["split_records"][0]
        self.assertEqual((layer, node), (0, 0))
        self.assertAlmostEqual(influence, 4.0, places=6)

    def test_budget_exhausted_is_unknown(self):
        result = Neurify(max_iter=1, solver=SOLVER).solve(MockFactory.relu_kink_problem())
        self.assertEqual(result.status, VerifStatus.UNKNOWN)
        self.assertEqual(result.counter_examples, ())
        self.assertAlmostEqual(result.max_violation, 0.5, places=6)
        self.assertEqual(result.stats["splits"], 0)

    def test_relu_violated_at_root(self):
        result = Neurify(solver=SOLVER).solve(MockFactory.relu_kink_problem(bound=0.9))
        self.assertEqual(result.status, VerifStatus.VIOLATED)
        y = compute_output(MockFactory.relu_kink(), result.counter_example)
        self.assertGreater(float(y[0]), 0.9)

    def test_search_orders_agree(self):
        for order in ("DFS", "BFS"):
            with self.subTest(order=order):
                result = Neurify(tree_search=order, solver=SOLVER).solve(MockFactory.relu_kink_problem())
                self.assertEqual(result.status, VerifStatus.HOLDS)

    def test_random_network_verdict_is_consistent(self):
        net = MockFactory.random_relu(seed=1)
        domain = MockFactory.unit_box(2, -0.5, 0.5)
        output = HPolytope(np.array([[1.0, 0.0]]), np.array([0.0]))
        result = Neurify(max_iter=8, solver=SOLVER).solve(Problem(net, domain, output))
        if result.status == VerifStatus.VIOLATED:
            for x in result.counter_examples:
                self.assertTrue(domain.contains(x, 1e-7))
                self.assertFalse(output.contains(compute_output(net, x)))
        elif result.status == VerifStatus.HOLDS:
            rng = np.random.default_rng(0)
            for x in rng.uniform(-0.5, 0.5, size=(200, 2)):
                self.assertTrue(output.contains(compute_output(net, x), 1e-7))


class TestNeurifyRuns(unittest.TestCase):

    def test_repeated_solves_are_independent(self):
        solver = Neurify(solver=SOLVER)
        first = solver.solve(MockFactory.relu_kink_problem())
        second = solver.solve(MockFactory.relu_kink_problem())
        self.assertEqual(first.status, second.status)
        self.assertEqual(first.stats["iterations"], second.stats["iterations"])
        self.assertEqual(first.stats["lp_calls"], second.stats["lp_calls"])

    def test_config_overrides(self):
        solver = Neurify(NeurifyConfig(max_iter=1), solver=SOLVER)
        self.assertEqual(solver.config.max_iter, 1)
        self.assertEqual(solver.config.solver, SOLVER)

    def test_stats_are_attached(self):
        result = Neurify(solver=SOLVER).solve(MockFactory.relu_kink_problem())
        self.assertGreater(result.stats["lp_calls"], 0)
        self.assertEqual(result.stats["subdomains_checked"], 1 + result.stats["holds_subdomains"]
                         + result.stats["unknown_subdomains"])

    def test_verdict_is_logged(self):
        with self.assertLogs("neurify", level="INFO") as logs:
            Neurify(solver=SOLVER).solve(MockFactory.relu_kink_problem())
        self.assertTrue(any("Verification finished: holds" in line for line in logs.output))


class TestNeurifyPreconditions(unittest.TestCase):

    def test_unbounded_input(self):
        problem = Problem(MockFactory.relu_kink(), HPolytope(np.array([[1.0, 0.0]]), np.array([1.0])),
                          HPolytope(np.array([[1.0]]), np.array([1.5])))
        with self.assertRaises(PreconditionError):
            Neurify(solver=SOLVER).solve(problem)

    def test_empty_input(self):
        empty = HPolytope(np.array([[1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0]]),
                          np.array([-1.0, 0.0, 1.0, 1.0]))
        problem = Problem(MockFactory.relu_kink(), empty, HPolytope(np.array([[1.0]]), np.array([1.5])))
        with self.assertRaises(PreconditionError):
            Neurify(solver=SOLVER).solve(problem)

    def test_dimension_mismatch(self):
        problem = Problem(MockFactory.relu_kink(), MockFactory.unit_box(3),
                          HPolytope(np.array([[1.0]]), np.array([1.5])))
        with self.assertRaises(PreconditionError):
            Neurify(solver=SOLVER).solve(problem)

    def test_unbounded_output_is_accepted(self):
        problem = Problem(MockFactory.identity_sum(), MockFactory.unit_box(2),
                          HPolytope(np.array([[-1.0]]), np.array([1.0])))
        self.assertEqual(Neurify(solver=SOLVER).solve(problem).status, VerifStatus.HOLDS)


class TestNeurifySearchOrder(unittest.TestCase):
    """
    Every sub-domain is reported undecided and split into two labelled
    copies, so the order in which sub-domains are refined is visible.
    """

    def _run(self, order, max_iter=4):
        labels = {}
        refined = []

        def split_in_two(network, reach, violated_con, splits, oracle):
            label = labels.get(id(reach.domain), "")
            refined.append(label)
            children = [reach.domain.intersection(), reach.domain.intersection()]
            for k, child in enumerate(children):
                labels[id(child)] = label + str(k)
            return children, splits | {SplitRecord(0, len(refined), 1.0)}

        undecided = (VerifResult.unknown(max_violation=1.0), np.array([1.0]))
        with mock.patch("neurify.back_end.bab.refine", side_effect=split_in_two), \
                mock.patch.object(InclusionChecker, "check", return_value=undecided):
            result = Neurify(tree_search=order, max_iter=max_iter, solver=SOLVER).solve(
                MockFactory.relu_kink_problem())
        return result, refined

    def test_dfs_refines_newest_first(self):
        result, refined = self._run("DFS")
        self.assertEqual(refined, ["", "1", "11"])
        self.assertEqual(result.stats["max_depth"], 3)

    def test_bfs_refines_oldest_first(self):
        result, refined = self._run("BFS")
        self.assertEqual(refined, ["", "0", "1"])
        self.assertEqual(result.stats["max_depth"], 2)

    def test_budget_bounds_iterations(self):
        for order in ("DFS", "BFS"):
            for n in (2, 3, 5):
                with self.subTest(order=order, max_iter=n):
                    result, refined = self._run(order, max_iter=n)
                    self.assertEqual(result.status, VerifStatus.UNKNOWN)
                    self.assertEqual(result.stats["iterations"], n)
                    self.assertEqual(len(refined), n - 1)
                    self.assertEqual(result.stats["splits"], n - 1)
                    self.assertEqual(result.max_violation, 1.0)

    def test_budget_bounds_iterations_on_real_network(self):
        net = MockFactory.random_relu(sizes=(2, 5, 5, 2), seed=24)
        output = HPolytope(np.array([[1.0, 0.0]]), np.array([0.75]))
        problem = Problem(net, MockFactory.unit_box(2, -1.0, 1.0), output)
        for order in ("DFS", "BFS"):
            with self.subTest(order=order):
                result = Neurify(tree_search=order, max_iter=6, solver=SOLVER).solve(problem)
                self.assertLessEqual(result.stats["iterations"], 6)
                if result.status == VerifStatus.UNKNOWN:
                    self.assertEqual(result.stats["iterations"], 6)
                    self.assertEqual(result.stats["splits"], 5)


class _TimeoutAfterOracle(BoundOracle):
    """Solves the first LPs normally and times out from then on."""
    budget = 5

    def optimize(self, sense, objective, polytope):
        if self.lp_calls >= self.budget:
            self.lp_calls += 1
            return LPSolution(SolveStatus.TIMEOUT)
        return super().optimize(sense, objective, polytope)


class TestNeurifyFatalErrors(unittest.TestCase):
    """Fatal conditions reach the caller instead of becoming UNKNOWN."""

    def test_solver_timeout_during_propagation(self):
        # Validating the 2-D input box takes 5 LPs; the first ReLU bound times out.
        with mock.patch("neurify.back_end.bab.BoundOracle", _TimeoutAfterOracle):
            with self.assertRaises(SolverInconsistencyError) as ctx:
                Neurify(solver=SOLVER).solve(MockFactory.relu_kink_problem())
        self.assertEqual(ctx.exception.status, SolveStatus.TIMEOUT)

    def test_inclusion_failure_is_not_downgraded(self):
        failure = SolverInconsistencyError("No solution, check the problem definition", SolveStatus.TIMEOUT)
        with mock.patch.object(InclusionChecker, "check", side_effect=failure):
            with self.assertRaises(SolverInconsistencyError):
                Neurify(solver=SOLVER).solve(MockFactory.relu_kink_problem())

    def test_refinement_dead_end_is_not_downgraded(self):
        with mock.patch("neurify.back_end.bab.refine", side_effect=RefinementDeadEndError("nothing to split")):
            with self.assertRaises(RefinementDeadEndError):
                Neurify(max_iter=3, solver=SOLVER).solve(MockFactory.relu_kink_problem())

    def test_dead_end_after_exhausting_splits(self):
        # Record the best node before refining, leaving no relaxed node to split.
        def refine_with_best_recorded(network, reach, violated_con, splits, oracle):
            best = nodewise_influence(network, reach, violated_con, splits)
            return refine(network, reach, violated_con, splits | {best}, oracle)

        undecided = (VerifResult.unknown(max_violation=0.5), np.array([1.0]))
        with mock.patch("neurify.back_end.bab.refine", side_effect=refine_with_best_recorded), \
                mock.patch.object(InclusionChecker, "check", return_value=undecided):
            with self.assertRaises(RefinementDeadEndError):
                Neurify(max_iter=3, solver=SOLVER).solve(MockFactory.relu_kink_problem())


class TestNeurifyLogLevel(unittest.TestCase):

    def setUp(self):
        self._logger = logging.getLogger("neurify")
        self._level = self._logger.level

    def tearDown(self):
        self._logger.setLevel(self._level)

    def test_config_sets_logger_level(self):
        Neurify(solver=SOLVER, log_level="warning")
        self.assertEqual(self._logger.level, logging.WARNING)
        Neurify(NeurifyConfig(log_level="DEBUG"))
        self.assertEqual(self._logger.level, logging.DEBUG)

    def test_warning_level_hides_run_messages(self):
        handler = _RecordingHandler()
        self._logger.addHandler(handler)
        try:
            Neurify(solver=SOLVER, log_level="WARNING").solve(MockFactory.relu_kink_problem())
        finally:
            self._logger.removeHandler(handler)
        self.assertFalse(any(r.levelno < logging.WARNING for r in handler.records))


class _RecordingHandler(logging.Handler):

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


if __name__ == '__main__':
    unittest.main()
