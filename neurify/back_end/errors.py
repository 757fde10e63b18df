#===- neurify/back_end/errors.py - Engine Exceptions --------------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Exception hierarchy for fatal conditions of a verification run. None of
#   these is ever folded into an UNKNOWN verdict.
#
#===---------------------------------------------------------------------===#

from typing import Optional


class NeurifyError(Exception):
    """Base exception for verification engine errors."""
    pass


class PreconditionError(NeurifyError):
    """Raised when a problem is rejected before the search starts (unbounded input, shape mismatch)."""
    pass


class SolverInconsistencyError(NeurifyError):
    """Raised when an LP has no optimum although the sub-domain admits one."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message if status is None else f"{message} (solver status: {status})")
        self.status = status


class RefinementDeadEndError(NeurifyError):
    """Raised when no ambiguous node is left to split while a violation is still suspected."""
    pass


class SolverUnavailableError(NeurifyError):
    """Raised when the requested LP backend cannot be constructed."""
    pass
