#===- neurify/util/config.py - Solver Configuration ---------------------====#
# Neurify-BaB: Symbolic Interval Branch-and-Bound Verifier
# Copyright (C) 2025– Neurify-BaB Team
#
# Licensed under the GNU Affero General Public License v3.0 or later (AGPLv3+).
# Distributed without any warranty; see <http://www.gnu.org/licenses/>.
#===---------------------------------------------------------------------===#
#
# Purpose:
#   Configuration dataclass for the branch-and-bound solver together with
#   YAML/JSON loading and validation.
#
#===---------------------------------------------------------------------===#

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

TREE_SEARCH_ORDERS = ("DFS", "BFS")
SOLVER_BACKENDS = ("auto", "gurobi", "scipy")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ConfigValidationError(Exception):
    """Configuration validation error."""
    field: str
    message: str

    def __str__(self):
        return f"Configuration error in '{self.field}': {self.message}"


@dataclass
class NeurifyConfig:
    """
    Parameters of a Neurify branch-and-bound run.

    Attributes:
        max_iter: Number of top-level iterations before giving up with UNKNOWN.
        tree_search: "DFS" pops the newest pending sub-domain, "BFS" the oldest.
        solver: LP backend name ("auto", "gurobi" or "scipy").
        timelimit: Per-LP time limit in seconds, None for no limit.
        num_witness_samples: Extra counter-examples sampled after a violation.
        seed: Seed for witness sampling.
        tol: Tolerance used for point containment tests.
        log_level: Level applied to the "neurify" logger when a Neurify solver is built.
    """
    max_iter: int = 10
    tree_search: str = "DFS"
    solver: str = "auto"
    timelimit: Optional[float] = None
    num_witness_samples: int = 0
    seed: Optional[int] = None
    tol: float = 1e-9
    log_level: str = "INFO"

    def __post_init__(self):
        self.tree_search = str(self.tree_search).upper()
        self.log_level = str(self.log_level).upper()
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.max_iter, int) or self.max_iter < 1:
            raise ConfigValidationError("max_iter", f"must be a positive integer, got {self.max_iter!r}")
        if self.tree_search not in TREE_SEARCH_ORDERS:
            raise ConfigValidationError("tree_search", f"must be one of {TREE_SEARCH_ORDERS}, got {self.tree_search!r}")
        if self.solver not in SOLVER_BACKENDS:
            raise ConfigValidationError("solver", f"must be one of {SOLVER_BACKENDS}, got {self.solver!r}")
        if self.timelimit is not None and self.timelimit <= 0:
            raise ConfigValidationError("timelimit", "must be positive when set")
        if self.num_witness_samples < 0:
            raise ConfigValidationError("num_witness_samples", "must be non-negative")
        if self.tol < 0:
            raise ConfigValidationError("tol", "must be non-negative")
        if self.log_level not in LOG_LEVELS:
            raise ConfigValidationError("log_level", f"must be one of {LOG_LEVELS}, got {self.log_level!r}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NeurifyConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(unknown[0], f"unknown configuration key (allowed: {sorted(known)})")
        return cls(**data)


def load_config(path: Union[str, Path]) -> NeurifyConfig:
    """
    Load a NeurifyConfig from a YAML or JSON file.

    Args:
        path: Configuration file; ".json" files are parsed as JSON, anything else as YAML.

    Returns:
        Validated configuration.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigValidationError: If the file is malformed or holds invalid values
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigValidationError("format", f"Invalid configuration file: {e}")

    if not isinstance(data, dict):
        raise ConfigValidationError("format", "top level must be a mapping")

    config = NeurifyConfig.from_dict(data)
    logger.info(f"Loaded configuration: {config_path}")
    return config
