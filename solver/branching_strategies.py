# solver/branching_strategies.py

from problem.errors import InvalidInputError
from problem.model import iter_bits
from .node import uncovered_of


class BaseBranchingStrategy:
    """Base class for branching strategy. Must implement choose_element."""
    name = "base"

    def choose_element(self, model, node):
        """
        model: the ProblemModel being solved
        node: a PartialSolution with at least one uncovered element

        Returns the index of the uncovered universe element to branch on.
        Every child then covers it, so each path makes progress.
        """
        raise NotImplementedError

    def branch_candidates(self, model, node, element):
        """Undecided candidates covering element, in ascending id order."""
        return [c for c in model.coverers(element) if node.undecided >> c & 1]


class FirstUncoveredStrategy(BaseBranchingStrategy):
    """Branches on the lowest-index uncovered element."""
    name = "first-uncovered"

    def choose_element(self, model, node):
        uncovered = uncovered_of(model, node)
        return (uncovered & -uncovered).bit_length() - 1


class FewestCoverersStrategy(BaseBranchingStrategy):
    """
    Branches on the uncovered element with the fewest undecided coverers,
    which keeps the branching factor low. Lowest index wins ties.
    """
    name = "fewest-coverers"

    def choose_element(self, model, node):
        best_element = None
        best_count = None
        for e in iter_bits(uncovered_of(model, node)):
            count = sum(1 for c in model.coverers(e) if node.undecided >> c & 1)
            if best_count is None or count < best_count:
                best_count = count
                best_element = e
                if count <= 1:
                    break
        return best_element


def make_branching_strategy(name):
    if name == "first-uncovered":
        return FirstUncoveredStrategy()
    if name == "fewest-coverers":
        return FewestCoverersStrategy()
    raise InvalidInputError(f"unknown branching strategy {name!r}")
