# solver/bounds.py

import math
import threading

import gurobipy as gp
from gurobipy import GRB

from problem.errors import InvalidInputError
from problem.model import iter_bits
from .node import uncovered_of


def greedy_cover(model, covered=0, allowed=None):
    """
    Classic greedy set cover: repeatedly take the allowed candidate that covers
    the most still-uncovered elements per unit cost (lowest id on ties).

    covered: bitset of elements already covered
    allowed: bitset of candidate ids that may be picked (default: all)
    Returns the list of picked ids, or None if the allowed candidates cannot
    finish the cover.
    """
    uncovered = model.universe_mask & ~covered
    pool = allowed if allowed is not None else (1 << model.n) - 1
    picks = []
    while uncovered:
        best_id = None
        best_ratio = 0.0
        for i in iter_bits(pool):
            cand = model.candidates[i]
            gain = (cand.coverage & uncovered).bit_count()
            if gain == 0:
                continue
            ratio = gain / cand.cost
            if ratio > best_ratio:
                best_ratio = ratio
                best_id = i
        if best_id is None:
            return None
        picks.append(best_id)
        uncovered &= ~model.candidates[best_id].coverage
        pool &= ~(1 << best_id)
    return picks


class BaseBoundEstimator:
    """
    Lower bound on the cost still needed to complete a PartialSolution using
    only its undecided candidates. Must never exceed the true optimum of the
    completion; returns math.inf when no completion exists.
    """
    name = "base"

    def lower_bound(self, model, node):
        raise NotImplementedError

    def close(self):
        pass


class GreedyBoundEstimator(BaseBoundEstimator):
    """
    Counting bound derived from the best single marginal gain:
    no candidate covers more than max_gain of the uncovered elements, so at least
    ceil(uncovered / max_gain) more picks are needed. With weights, every covered
    element costs at least min(cost / gain).
    """
    name = "greedy"

    def lower_bound(self, model, node):
        uncovered = uncovered_of(model, node)
        if not uncovered:
            return 0
        count = uncovered.bit_count()
        reachable = 0
        max_gain = 0
        min_ratio = math.inf
        for i in iter_bits(node.undecided):
            cand = model.candidates[i]
            hit = cand.coverage & uncovered
            if not hit:
                continue
            reachable |= hit
            gain = hit.bit_count()
            max_gain = max(max_gain, gain)
            min_ratio = min(min_ratio, cand.cost / gain)
        if reachable != uncovered:
            return math.inf
        if model.is_unit_cost:
            return -(-count // max_gain)
        return count * min_ratio


class LPRelaxationBoundEstimator(BaseBoundEstimator):
    """
    Bound from the LP relaxation of the remaining sub-instance:
      min sum(cost_j * x_j)
      s.t. sum(x_j for j covering e) >= 1   for every uncovered e
           0 <= x_j <= 1                     for every undecided j
    The integer optimum is at least the LP optimum, and with unit costs it is
    an integer, so the ceiling is still valid.

    Each thread gets its own Gurobi environment since environments are not
    shared safely between threads.
    """
    name = "lp-relaxation"

    def __init__(self, tol=1e-6):
        self.tol = tol
        self._envs = {}
        self._envs_lock = threading.Lock()
        self.lp_solves = 0

    def _env(self):
        key = threading.get_ident()
        with self._envs_lock:
            env = self._envs.get(key)
            if env is None:
                env = gp.Env(empty=True)
                env.setParam("OutputFlag", 0)
                env.start()
                self._envs[key] = env
            return env

    def lower_bound(self, model, node):
        uncovered = uncovered_of(model, node)
        if not uncovered:
            return 0
        cands = [i for i in iter_bits(node.undecided) if model.candidates[i].coverage & uncovered]
        if model.coverage_of(cands) & uncovered != uncovered:
            return math.inf

        m = gp.Model(env=self._env())
        try:
            x_vars = {}
            for i in cands:
                x_vars[i] = m.addVar(lb=0, ub=1, vtype=GRB.CONTINUOUS, obj=model.candidates[i].cost, name=f"x_{i}")
            for e in iter_bits(uncovered):
                m.addConstr(gp.quicksum(x_vars[i] for i in cands if model.candidates[i].coverage >> e & 1) >= 1,
                            name=f"cover_{e}")
            m.ModelSense = GRB.MINIMIZE
            m.optimize()
            self.lp_solves += 1
            if m.Status != GRB.OPTIMAL:
                return math.inf
            obj_val = m.ObjVal
        finally:
            m.dispose()

        if model.is_unit_cost:
            return math.ceil(obj_val - self.tol)
        return max(0.0, obj_val - self.tol * max(1.0, abs(obj_val)))

    def close(self):
        with self._envs_lock:
            for env in self._envs.values():
                env.dispose()
            self._envs.clear()


def make_bound_estimator(name):
    if name == "greedy":
        return GreedyBoundEstimator()
    if name == "lp-relaxation":
        return LPRelaxationBoundEstimator()
    raise InvalidInputError(f"unknown bound strategy {name!r}")
