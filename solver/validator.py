# solver/validator.py

import math

from problem.errors import InvariantViolationError

REL_TOL = 1e-9


def cost_tolerance(value):
    """Slack for comparing float cost sums, scaled to the magnitude of value."""
    if not math.isfinite(value):
        return 0.0
    return REL_TOL * max(1.0, abs(value))


class SolutionValidator:
    """
    Sanity checks on a cover returned by the solver:
      - ids are valid and unique
      - the union of the selected coverages is the whole universe
      - no selected candidate is redundant
    Global optimality comes from the exhaustive search, not from here.
    Any failure is an internal bug and raises InvariantViolationError.
    """

    def __init__(self, model):
        self.model = model

    def validate(self, cover, expected_objective=None):
        model = self.model
        ids = list(cover)
        if len(set(ids)) != len(ids):
            raise InvariantViolationError(f"cover {ids} selects a candidate twice")
        for i in ids:
            if not 0 <= i < model.n:
                raise InvariantViolationError(f"cover {ids} references unknown candidate {i}")

        union = model.coverage_of(ids)
        if union != model.universe_mask:
            missing = [model.label(e) for e in range(model.m) if not union >> e & 1]
            raise InvariantViolationError(f"cover {ids} leaves elements {missing} uncovered")

        for i in ids:
            rest = model.coverage_of(j for j in ids if j != i)
            if rest == model.universe_mask:
                raise InvariantViolationError(f"candidate {i} is redundant in cover {ids}")

        if expected_objective is not None:
            cost = model.cost_of(ids)
            if abs(cost - expected_objective) > cost_tolerance(expected_objective):
                raise InvariantViolationError(f"cover {ids} costs {cost}, expected {expected_objective}")
        return True
