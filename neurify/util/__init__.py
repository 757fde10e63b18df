#===- neurify/util/__init__.py - Shared Utilities -----------------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Configuration, logging/statistics and dtype helpers shared by the
#   back end.
#
#===---------------------------------------------------------------------===#

from .config import NeurifyConfig, ConfigValidationError, load_config
from .stats import BaBStats, NeurifyLog, setup_logging, set_log_level
from .device_manager import get_default_dtype, as_tensor, to_numpy

__all__ = [
    'NeurifyConfig', 'ConfigValidationError', 'load_config',
    'BaBStats', 'NeurifyLog', 'setup_logging', 'set_log_level',
    'get_default_dtype', 'as_tensor', 'to_numpy',
]
