# solver/minimum_cover.py

from problem.coverage_matrix import build_coverage_matrix
from problem.model import ProblemModel
from .branch_and_bound_solver import SetCoverBranchAndBoundSolver
from .config import SolverConfig, validate_config


def solve_minimum_cover(distances, threshold, costs=None, cancel_token=None, config=None, logger=None):
    """
    Fewest hubs (or cheapest, with costs) such that every demand point lies
    within threshold of a selected hub.

    distances: 2-D array-like, rows = candidate sites, columns = demand points
    threshold: service range; distances[i][j] <= threshold means i serves j
    costs: optional per-candidate costs (default: every hub costs 1)
    cancel_token: optional CancellationToken
    config: optional SolverConfig (bound, parallel, branching, limits)
    logger: optional SolverLogger

    Returns the ascending list of selected candidate (row) indices.
    """
    matrix = build_coverage_matrix(distances, threshold)
    model = ProblemModel(matrix, costs=costs)
    return solve_model(model, cancel_token=cancel_token, config=config, logger=logger)


def solve_set_cover(sets, universe=None, costs=None, cancel_token=None, config=None, logger=None):
    """Same as solve_minimum_cover for explicit candidate sets of element labels."""
    model = ProblemModel.from_sets(sets, universe=universe, costs=costs)
    return solve_model(model, cancel_token=cancel_token, config=config, logger=logger)


def solve_model(model, cancel_token=None, config=None, logger=None):
    config = validate_config(config or SolverConfig())
    solver = SetCoverBranchAndBoundSolver.from_config(model, config, logger=logger, cancel_token=cancel_token)
    return solver.solve()
