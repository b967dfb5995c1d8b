import math
import random
import threading
import time

import numpy as np
import pytest

from instances.generator import (euclidean_distance_matrix, generate_random_instance,
                                 generate_random_set_instance)
from problem.coverage_matrix import build_coverage_matrix
from problem.errors import CancelledError, InfeasibleInstanceError, InvalidInputError
from problem.model import ProblemModel
from solver.bounds import GreedyBoundEstimator, greedy_cover
from solver.branch_and_bound_solver import DONE, LEAF_PRUNED, SetCoverBranchAndBoundSolver
from solver.branching_strategies import FewestCoverersStrategy
from solver.cancellation import CancellationToken
from solver.config import SolverConfig, config_from_dict
from solver.logger import SolverLogger
from solver.minimum_cover import solve_minimum_cover, solve_model, solve_set_cover
from solver.node import root_node

CONFIGS = [
    SolverConfig(),
    SolverConfig(branching="fewest-coverers"),
    SolverConfig(bound="lp-relaxation"),
    SolverConfig(parallel=True, workers=3),
    SolverConfig(bound="lp-relaxation", branching="fewest-coverers", parallel=True, workers=2),
]
CONFIG_IDS = ["greedy", "fewest", "lp", "parallel", "lp-fewest-parallel"]


def test_scenario_a() -> None:
    cover = solve_set_cover([{1, 2, 3}, {2, 4}, {3, 4}, {4, 5}], universe=[1, 2, 3, 4, 5])
    assert cover == [0, 3]


def test_scenario_b_no_pair_in_range() -> None:
    D = [[0, 10, 10], [10, 0, 10], [10, 10, 0]]
    assert solve_minimum_cover(D, 5) == [0, 1, 2]


def test_scenario_c_one_hub_covers_all() -> None:
    D = [[0, 10, 10], [10, 0, 10], [10, 10, 0]]
    assert solve_minimum_cover(D, 10) == [0]


def test_empty_universe_gives_empty_cover() -> None:
    assert solve_set_cover([{1}, {2}], universe=[]) == []
    assert solve_set_cover([], universe=[]) == []


def test_zero_candidates_is_infeasible() -> None:
    with pytest.raises(InfeasibleInstanceError):
        solve_minimum_cover(np.zeros((0, 2)), 1.0)
    with pytest.raises(InfeasibleInstanceError):
        solve_set_cover([], universe=[1])


def test_unreachable_point_is_infeasible() -> None:
    # demand point 2 is not within range of any candidate site
    D = [[0, 1, 50], [1, 0, 50]]
    with pytest.raises(InfeasibleInstanceError) as exc:
        solve_minimum_cover(D, 5)
    assert exc.value.elements == (2,)


@pytest.mark.parametrize("config", CONFIGS, ids=CONFIG_IDS)
def test_matches_brute_force(config, small_models, brute_force) -> None:
    for model in small_models:
        optimum, covers = brute_force(model)
        cover = solve_model(model, config=config)
        assert len(cover) == optimum
        assert cover == min(covers)
        assert model.coverage_of(cover) == model.universe_mask


@pytest.mark.parametrize("config", CONFIGS, ids=CONFIG_IDS)
def test_twelve_candidates_match_brute_force(config, brute_force, model_factory) -> None:
    for model in model_factory(3, num_elements=14, num_sets=12, density=0.2, seed=100):
        optimum, covers = brute_force(model)
        assert solve_model(model, config=config) == min(covers)


@pytest.mark.parametrize("config", CONFIGS[:3], ids=CONFIG_IDS[:3])
def test_weighted_cover_minimises_cost(config, brute_force) -> None:
    rnd = random.Random(7)
    for seed in range(6):
        inst = generate_random_set_instance(9, 8, density=0.3, seed=seed)
        costs = [rnd.randint(1, 5) for _ in inst["sets"]]
        model = ProblemModel.from_sets(inst["sets"], universe=inst["universe"], costs=costs)
        optimum, covers = brute_force(model)
        cover = solve_model(model, config=config)
        assert model.cost_of(cover) == optimum
        assert cover == min(covers)


def test_weights_change_the_answer() -> None:
    sets = [{1, 2, 3, 4}, {1, 2}, {3, 4}]
    assert solve_set_cover(sets) == [0]
    assert solve_set_cover(sets, costs=[5, 1, 1]) == [1, 2]


def test_idempotent() -> None:
    inst = generate_random_instance(15, threshold=30.0, seed=3)
    first = solve_minimum_cover(inst["distances"], inst["threshold"])
    second = solve_minimum_cover(inst["distances"], inst["threshold"])
    parallel = solve_minimum_cover(inst["distances"], inst["threshold"], config=SolverConfig(parallel=True))
    assert first == second == parallel


def test_threshold_monotonicity() -> None:
    for seed in range(3):
        inst = generate_random_instance(14, threshold=None, seed=seed)
        sizes = [len(solve_minimum_cover(inst["distances"], r)) for r in (0, 10, 20, 35, 60, 150)]
        assert sizes == sorted(sizes, reverse=True)
        assert sizes[0] == 14
        assert sizes[-1] == 1


def test_rectangular_candidates() -> None:
    # three candidate sites, four demand points
    D = [[1, 1, 9, 9],
         [9, 1, 1, 9],
         [9, 9, 1, 1]]
    assert solve_minimum_cover(D, 2) == [0, 2]


def test_cancelled_before_start() -> None:
    token = CancellationToken()
    token.cancel()
    with pytest.raises(CancelledError):
        solve_minimum_cover([[0, 10], [10, 0]], 5, cancel_token=token)


def test_cancelled_before_start_parallel() -> None:
    token = CancellationToken()
    token.cancel()
    config = SolverConfig(parallel=True)
    with pytest.raises(CancelledError):
        solve_minimum_cover([[0, 10], [10, 0]], 5, cancel_token=token, config=config)


def test_expired_deadline() -> None:
    with pytest.raises(CancelledError):
        solve_minimum_cover([[0, 10], [10, 0]], 5, config=SolverConfig(timeout=0))


def test_parent_token_cancels_timeout_token() -> None:
    parent = CancellationToken()
    child = CancellationToken(timeout=3600, parent=parent)
    assert not child.cancelled
    parent.cancel()
    assert child.cancelled
    with pytest.raises(CancelledError):
        child.check()


def test_node_limit(model_factory) -> None:
    model = model_factory(1, num_elements=12, num_sets=10)[0]
    solver = SetCoverBranchAndBoundSolver(model, max_nodes=1)
    with pytest.raises(CancelledError):
        solver.solve()
    assert solver.state != DONE


def test_solver_counters_and_state(scenario_a) -> None:
    solver = SetCoverBranchAndBoundSolver(scenario_a, branching_strategy=FewestCoverersStrategy())
    assert solver.solve() == [0, 3]
    assert solver.state == DONE
    assert solver.best_cost == 2
    assert solver.node_count >= 1
    assert solver.incumbent_updates >= 1


def test_search_improves_on_greedy() -> None:
    # greedy takes the big middle set first and needs three sets, the optimum is two
    sets = [{1, 2, 3, 4}, {1, 2, 5}, {3, 4, 6}]
    model = ProblemModel.from_sets(sets)
    solver = SetCoverBranchAndBoundSolver(model)
    assert solver.solve() == [1, 2]
    assert solver.incumbent_updates == 2


def test_solver_logger(tmp_path, scenario_a) -> None:
    log_file = tmp_path / "solver_log.csv"
    solver = SetCoverBranchAndBoundSolver(scenario_a, logger=SolverLogger(str(log_file)))
    solver.solve()
    lines = log_file.read_text().splitlines()
    assert lines[0] == "timestamp,event,node_depth,objective,details"
    events = [line.split(",")[1] for line in lines[1:]]
    assert events[0] == "SolverStart"
    assert "IncumbentFound" in events
    assert "Canonicalised" in events
    assert events[-1] == "SolverEnd"


def test_config_from_dict() -> None:
    config = config_from_dict({"bound": "lp-relaxation", "parallel": True})
    assert config.bound == "lp-relaxation"
    assert config.workers == 4
    assert config_from_dict({"timeout": 2.5, "max_nodes": 1000}).timeout == 2.5


@pytest.mark.parametrize("options", [
    {"bound": "simplex"},
    {"colour": "blue"},
    {"workers": 0},
    {"workers": True},
    {"workers": 2.0},
    {"max_nodes": "many"},
    {"max_nodes": 0},
    {"timeout": "soon"},
    {"timeout": float("nan")},
    {"timeout": -1},
    {"parallel": "yes"},
])
def test_config_from_dict_rejects(options) -> None:
    with pytest.raises(InvalidInputError):
        config_from_dict(options)


def test_from_config_validates() -> None:
    model = ProblemModel.from_sets([{1}])
    with pytest.raises(InvalidInputError):
        SetCoverBranchAndBoundSolver.from_config(model, SolverConfig(workers=-3))


def test_coverage_matrix_reuse_across_configs() -> None:
    # extra sites plus the demand points themselves, so every point is served
    inst = generate_random_instance(12, threshold=25.0, num_candidates=6, seed=11)
    sites = np.vstack([inst["candidates"], inst["points"]])
    distances = euclidean_distance_matrix(sites, inst["points"])
    model = ProblemModel(build_coverage_matrix(distances, inst["threshold"]))
    assert (model.n, model.m) == (18, 12)
    covers = {tuple(solve_model(model, config=c)) for c in CONFIGS}
    assert len(covers) == 1


def test_large_float_costs(brute_force) -> None:
    rnd = random.Random(0)
    for seed in range(40):
        inst = generate_random_set_instance(9, 8, seed=seed)
        costs = [rnd.uniform(1e8, 1e9) for _ in inst["sets"]]
        model = ProblemModel.from_sets(inst["sets"], universe=inst["universe"], costs=costs)
        optimum, _ = brute_force(model)
        cover = solve_model(model)
        assert math.isclose(model.cost_of(cover), optimum, rel_tol=1e-9)


GREEDY_TRAP = [{1, 2, 3, 4}, {1, 2, 5}, {3, 4, 6}]


class CancellingBound(GreedyBoundEstimator):
    """Greedy bound that cancels a token on its n-th call."""

    def __init__(self, token, after):
        self.token = token
        self.after = after
        self.calls = 0
        self._lock = threading.Lock()

    def lower_bound(self, model, node):
        with self._lock:
            self.calls += 1
            if self.calls >= self.after:
                self.token.cancel()
        return super().lower_bound(model, node)


class SlowBound(GreedyBoundEstimator):
    def __init__(self, delay):
        self.delay = delay

    def lower_bound(self, model, node):
        time.sleep(self.delay)
        return super().lower_bound(model, node)


def test_cancelled_mid_search() -> None:
    model = ProblemModel.from_sets(GREEDY_TRAP)
    token = CancellationToken()
    solver = SetCoverBranchAndBoundSolver(model, bound_estimator=CancellingBound(token, after=2),
                                          cancel_token=token)
    with pytest.raises(CancelledError, match="cancelled by caller"):
        solver.solve()
    # root and first child were searched, the second child never started
    assert solver.node_count == 2
    assert solver.canonical_node_count == 0
    assert solver.state != DONE


def test_cancelled_mid_search_parallel() -> None:
    model = ProblemModel.from_sets(GREEDY_TRAP)
    token = CancellationToken()
    solver = SetCoverBranchAndBoundSolver(model, bound_estimator=CancellingBound(token, after=2),
                                          cancel_token=token, parallel=True, workers=2)
    with pytest.raises(CancelledError):
        solver.solve()
    # raised inside a worker, before the canonical pass could start
    assert solver.canonical_node_count == 0
    assert solver.state != DONE


def test_deadline_expires_mid_search() -> None:
    model = ProblemModel.from_sets(GREEDY_TRAP)
    solver = SetCoverBranchAndBoundSolver(model, bound_estimator=SlowBound(0.4),
                                          cancel_token=CancellationToken(timeout=0.2))
    with pytest.raises(CancelledError, match="deadline"):
        solver.solve()
    assert solver.node_count >= 1


def test_state_is_written_by_calling_thread_only(scenario_a) -> None:
    solver = SetCoverBranchAndBoundSolver(scenario_a, parallel=True, workers=2)
    solver.solve()
    assert solver.state == DONE
    worker = threading.Thread(target=solver._set_state, args=(LEAF_PRUNED,))
    worker.start()
    worker.join()
    assert solver.state == DONE


def test_parallel_splits_past_forced_choices() -> None:
    # element 0 is only covered by set 0, so the root has a single child
    model = ProblemModel.from_sets([{0}] + GREEDY_TRAP, universe=range(7))
    solver = SetCoverBranchAndBoundSolver(model, parallel=True, workers=2)
    solver._offer(greedy_cover(model), depth=0)
    assert solver.best_cost == 4
    frontier = solver._initial_frontier(root_node(model))
    assert [node.selected for node in frontier] == [(0, 1), (0, 2)]

    assert SetCoverBranchAndBoundSolver(model, parallel=True, workers=2).solve() == [0, 2, 3]
