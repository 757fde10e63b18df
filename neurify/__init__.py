#===- neurify/__init__.py - Neurify-BaB Verification Framework ---------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Sound-but-incomplete verification of piecewise-linear feed-forward
#   networks against polytope input/output specifications.
#
#===---------------------------------------------------------------------===#

__version__ = "0.1.0"
