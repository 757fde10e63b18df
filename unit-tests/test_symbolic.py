#!/usr/bin/env python3
"""
Unit tests for symbolic interval propagation.

Soundness is checked by sampling: for random inputs in the domain, the
concrete value of every node must lie between the symbolic lower and
upper rows evaluated at that input.
"""

import unittest
import numpy as np
import torch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
from neurify.back_end.bound_oracle import BoundOracle
from neurify.back_end.core import compute_output
from neurify.back_end.symbolic import SymbolicPropagator
from test_configs import MockFactory, SOLVER

TOL = 1e-7


class TestSymbolicPropagation(unittest.TestCase):

    def setUp(self):
        self.oracle = BoundOracle(SOLVER)
        self.propagator = SymbolicPropagator(self.oracle)
        self.rng = np.random.default_rng(0)

    def _assert_sound(self, net, domain, n=200):
        reach = self.propagator.propagate(net, domain)
        for x in domain.sample(n, self.oracle, self.rng):
            y = compute_output(net, x)
            lo, hi = reach.sym.evaluate(x)
            self.assertTrue(np.all(lo <= y + TOL), f"lower bound {lo} above output {y} at {x}")
            self.assertTrue(np.all(y <= hi + TOL), f"upper bound {hi} below output {y} at {x}")

            # Pre-activation intervals enclose the concrete pre-activations.
            h = torch.as_tensor(x, dtype=torch.float64)
            for k, layer in enumerate(net.layers):
                z = (layer.weights @ h + layer.bias).numpy()
                plo, phi = reach.pre_activation[k].evaluate(x)
                self.assertTrue(np.all(plo <= z + TOL))
                self.assertTrue(np.all(z <= phi + TOL))
                h = layer.forward(h)
        return reach

    def test_random_networks_are_sound(self):
        for seed in range(3):
            with self.subTest(seed=seed):
                net = MockFactory.random_relu(seed=seed)
                self._assert_sound(net, MockFactory.unit_box(2, -1.0, 1.0))

    def test_identity_network_is_exact(self):
        net = MockFactory.identity_sum()
        reach = self.propagator.propagate(net, MockFactory.unit_box(2))
        self.assertTrue(torch.equal(reach.sym.low, reach.sym.up))
        lb, ub = reach.sym.concretize(self.oracle)
        np.testing.assert_allclose(lb, [0.0], atol=1e-7)
        np.testing.assert_allclose(ub, [2.0], atol=1e-7)

    def test_masks_and_radii(self):
        reach = self._assert_sound(MockFactory.relu_kink(), MockFactory.unit_box(2, -1.0, 1.0))
        self.assertEqual(reach.n_layers, 2)
        # Node 0 is relaxed with symmetric bounds [-2, 2], node 1 is always active.
        self.assertAlmostEqual(float(reach.lower_masks[0][0]), 0.5, places=7)
        self.assertAlmostEqual(float(reach.upper_masks[0][0]), 0.5, places=7)
        self.assertAlmostEqual(float(reach.radii[0][0]), 4.0, places=7)
        self.assertEqual(float(reach.lower_masks[0][1]), 1.0)
        self.assertEqual(float(reach.radii[0][1]), 0.0)
        self.assertTrue(torch.equal(reach.radii[1], torch.ones(1, dtype=torch.float64)))

    def test_inactive_node_is_zeroed(self):
        domain = MockFactory.unit_box(2, -1.0, 1.0)
        net = MockFactory.random_relu(sizes=(2, 1, 1), seed=0)
        net.layers[0].weights.zero_()
        net.layers[0].bias.fill_(-1.0)
        reach = self.propagator.propagate(net, domain)
        self.assertEqual(float(reach.upper_masks[0][0]), 0.0)
        self.assertTrue(torch.all(reach.pre_activation[1].up[:, :-1] == 0))

    def test_dimension_mismatch(self):
        with self.assertRaises(ValueError):
            self.propagator.propagate(MockFactory.relu_kink(), MockFactory.unit_box(3))


if __name__ == '__main__':
    unittest.main()
