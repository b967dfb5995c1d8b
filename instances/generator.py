# instances/generator.py

import random

import numpy as np


def euclidean_distance_matrix(candidates, demand_points=None):
    """Pairwise Euclidean distances, rows = candidates, columns = demand points."""
    candidates = np.asarray(candidates, dtype=float)
    demand_points = candidates if demand_points is None else np.asarray(demand_points, dtype=float)
    diff = candidates[:, None, :] - demand_points[None, :, :]
    return np.sqrt((diff ** 2).sum(axis=-1))


def generate_random_instance(num_points, threshold, width=100.0, height=100.0,
                             num_candidates=None, seed=None):
    """
    Random facility-siting instance on a width x height rectangle.
    Candidates default to the demand points themselves, so every point can
    serve itself and the instance is always feasible.
    """
    rng = np.random.default_rng(seed)
    points = rng.uniform((0.0, 0.0), (width, height), size=(num_points, 2))
    if num_candidates is None:
        candidates = points
    else:
        candidates = rng.uniform((0.0, 0.0), (width, height), size=(num_candidates, 2))
    instance = {
        "points": points,
        "candidates": candidates,
        "distances": euclidean_distance_matrix(candidates, points),
        "threshold": threshold,
    }
    return instance


def generate_random_set_instance(num_elements, num_sets, density=0.3, seed=None):
    """
    Random abstract set-cover instance. Each element is forced into at least
    one set so the instance is feasible.
    """
    rnd = random.Random(seed)
    sets = [set() for _ in range(num_sets)]
    for e in range(num_elements):
        for s in sets:
            if rnd.random() < density:
                s.add(e)
        if num_sets and not any(e in s for s in sets):
            sets[rnd.randrange(num_sets)].add(e)
    instance = {
        "universe": list(range(num_elements)),
        "sets": [sorted(s) for s in sets],
    }
    return instance


def generate_multiple_instances(count=10, seed=None, **kwargs):
    instances = []
    for i in range(count):
        inst_seed = None if seed is None else seed + i
        inst = generate_random_instance(seed=inst_seed, **kwargs)
        instances.append(inst)
    return instances
