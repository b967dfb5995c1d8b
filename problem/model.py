# problem/model.py

import math
import numbers
from collections import namedtuple

import numpy as np

from .coverage_matrix import CoverageMatrix
from .errors import InfeasibleInstanceError, InvalidInputError

CandidateSet = namedtuple("CandidateSet", ["id", "coverage", "cost"])
"""
id: candidate index 0..n-1
coverage: int bitset, bit j set iff the candidate covers universe element j
cost: positive selection cost (1 for the unweighted problem)
"""


class ProblemModel:
    """
    Abstract set-cover instance built from a coverage matrix.
    Universe elements are 0..m-1 and candidate sets 0..n-1; coverage is kept as
    Python int bitsets so union and difference are single operations.

    Raises InfeasibleInstanceError when some element has no covering candidate,
    so an instance that reaches the solver always has a cover.
    """

    def __init__(self, coverage_matrix, costs=None, element_labels=None):
        incidence = coverage_matrix.incidence
        self.n, self.m = incidence.shape
        self.universe_mask = (1 << self.m) - 1
        self.element_labels = list(element_labels) if element_labels is not None else list(range(self.m))
        if len(self.element_labels) != self.m:
            raise InvalidInputError(
                f"{len(self.element_labels)} element labels given for {self.m} universe elements")

        costs = self._check_costs(costs)
        self.candidates = []
        for i in range(self.n):
            mask = 0
            for j in incidence[i].nonzero()[0]:
                mask |= 1 << int(j)
            self.candidates.append(CandidateSet(id=i, coverage=mask, cost=costs[i]))
        self.is_unit_cost = all(c.cost == 1 for c in self.candidates)

        # element -> ids of the candidates covering it, ascending
        self._coverers = [[] for _ in range(self.m)]
        for cand in self.candidates:
            for j in iter_bits(cand.coverage):
                self._coverers[j].append(cand.id)

        self._check_feasibility()

    @classmethod
    def from_sets(cls, sets, universe=None, costs=None):
        """
        Build a model from explicit candidate sets of hashable element labels.
        universe: ordered labels; defaults to the sorted union of the sets
        """
        sets = [set(s) for s in sets]
        if universe is None:
            universe = sorted(set().union(*sets))
        universe = list(universe)
        index = {label: j for j, label in enumerate(universe)}
        if len(index) != len(universe):
            raise InvalidInputError("universe contains duplicate elements")

        incidence = np.zeros((len(sets), len(universe)), dtype=bool)
        for i, s in enumerate(sets):
            for label in s:
                if label not in index:
                    raise InvalidInputError(f"candidate {i} covers {label!r}, which is not in the universe")
                incidence[i, index[label]] = True
        return cls(CoverageMatrix(incidence=incidence, threshold=None), costs=costs, element_labels=universe)

    def _check_costs(self, costs):
        if costs is None:
            return [1] * self.n
        costs = list(costs)
        if len(costs) != self.n:
            raise InvalidInputError(f"{len(costs)} costs given for {self.n} candidates")
        for i, c in enumerate(costs):
            if isinstance(c, bool) or not isinstance(c, numbers.Real) or not math.isfinite(c) or c <= 0:
                raise InvalidInputError(f"cost of candidate {i} must be a positive finite number, got {c!r}")
        return costs

    def _check_feasibility(self):
        missing = [j for j in range(self.m) if not self._coverers[j]]
        if missing:
            labels = [self.element_labels[j] for j in missing]
            if self.n == 0:
                msg = f"no candidates for a universe of {self.m} elements"
            else:
                msg = f"universe elements {labels} are not covered by any candidate"
            raise InfeasibleInstanceError(msg, elements=labels)

    def coverers(self, element):
        return self._coverers[element]

    def coverage_of(self, ids):
        mask = 0
        for i in ids:
            mask |= self.candidates[i].coverage
        return mask

    def cost_of(self, ids):
        return sum(self.candidates[i].cost for i in ids)

    def label(self, element):
        return self.element_labels[element]

    def __repr__(self):
        return f"ProblemModel(n={self.n}, m={self.m}, unit_cost={self.is_unit_cost})"


def iter_bits(mask):
    """Yield the indices of the set bits of mask, lowest first."""
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def mask_of(ids):
    mask = 0
    for i in ids:
        mask |= 1 << i
    return mask
