# solver/config.py

import numbers
from collections import namedtuple

from problem.errors import InvalidInputError

BOUND_CHOICES = ("greedy", "lp-relaxation")
BRANCHING_CHOICES = ("first-uncovered", "fewest-coverers")

SolverConfig = namedtuple(
    "SolverConfig",
    ["bound", "parallel", "workers", "branching", "max_nodes", "timeout"],
    defaults=("greedy", False, 4, "first-uncovered", None, None),
)
"""
bound: lower-bound strategy, "greedy" or "lp-relaxation"
parallel: explore the root's subtrees on a thread pool
workers: thread pool size when parallel
branching: element selection rule, "first-uncovered" or "fewest-coverers"
max_nodes: abort with CancelledError after this many search nodes (None = no limit)
timeout: seconds before the search is cancelled (None = no deadline)
"""


def validate_config(config):
    if config.bound not in BOUND_CHOICES:
        raise InvalidInputError(f"unknown bound strategy {config.bound!r}, expected one of {BOUND_CHOICES}")
    if config.branching not in BRANCHING_CHOICES:
        raise InvalidInputError(
            f"unknown branching strategy {config.branching!r}, expected one of {BRANCHING_CHOICES}")
    if not isinstance(config.parallel, bool):
        raise InvalidInputError(f"parallel must be True or False, got {config.parallel!r}")
    if not _is_integer(config.workers) or config.workers < 1:
        raise InvalidInputError(f"workers must be a positive integer, got {config.workers!r}")
    if config.max_nodes is not None and (not _is_integer(config.max_nodes) or config.max_nodes < 1):
        raise InvalidInputError(f"max_nodes must be a positive integer, got {config.max_nodes!r}")
    if config.timeout is not None and (not _is_number(config.timeout) or not config.timeout >= 0):
        # `not >=` also rejects NaN
        raise InvalidInputError(f"timeout must be a non-negative number of seconds, got {config.timeout!r}")
    return config


def _is_integer(value):
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_number(value):
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def config_from_dict(options):
    """Build a SolverConfig from a plain dict (e.g. parsed CLI flags or JSON)."""
    unknown = set(options) - set(SolverConfig._fields)
    if unknown:
        raise InvalidInputError(f"unknown solver options: {sorted(unknown)}")
    return validate_config(SolverConfig(**options))
