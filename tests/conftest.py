from itertools import combinations

import pytest

from instances.generator import generate_random_set_instance
from problem.model import ProblemModel

SCENARIO_A_SETS = [{1, 2, 3}, {2, 4}, {3, 4}, {4, 5}]


def _brute_force(model):
    """(optimal cost, all optimal covers) by enumerating every subset."""
    best = None
    covers = []
    for k in range(model.n + 1):
        for combo in combinations(range(model.n), k):
            if model.coverage_of(combo) != model.universe_mask:
                continue
            cost = model.cost_of(combo)
            if best is None or cost < best - 1e-9:
                best = cost
                covers = [list(combo)]
            elif abs(cost - best) <= 1e-9:
                covers.append(list(combo))
        if best is not None and model.is_unit_cost:
            break
    return best, covers


@pytest.fixture
def brute_force():
    return _brute_force


@pytest.fixture
def scenario_a():
    return ProblemModel.from_sets(SCENARIO_A_SETS, universe=[1, 2, 3, 4, 5])


def random_models(count, num_elements=10, num_sets=9, density=0.25, seed=0):
    models = []
    for i in range(count):
        inst = generate_random_set_instance(num_elements, num_sets, density=density, seed=seed + i)
        models.append(ProblemModel.from_sets(inst["sets"], universe=inst["universe"]))
    return models


@pytest.fixture
def small_models():
    return random_models(12)


@pytest.fixture
def model_factory():
    return random_models
