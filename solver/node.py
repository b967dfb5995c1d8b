# solver/node.py

from collections import namedtuple

PartialSolution = namedtuple("PartialSolution", ["selected", "covered", "undecided", "cost", "depth"])
"""
selected: tuple of candidate ids chosen so far, in selection order
covered: int bitset of universe elements covered by the selection
undecided: int bitset of candidate ids that may still be selected
cost: total cost of the selection
depth: the depth in the search tree
"""


def root_node(model):
    return PartialSolution(
        selected=(),
        covered=0,
        undecided=(1 << model.n) - 1,
        cost=0,
        depth=0,
    )


def include_child(model, node, cand_id, excluded=0):
    """
    Child node that selects cand_id. Candidates in the excluded bitset
    (siblings already tried at this branch point) are removed from the
    undecided pool along with cand_id itself.
    """
    cand = model.candidates[cand_id]
    return PartialSolution(
        selected=node.selected + (cand_id,),
        covered=node.covered | cand.coverage,
        undecided=node.undecided & ~excluded & ~(1 << cand_id),
        cost=node.cost + cand.cost,
        depth=node.depth + 1,
    )


def exclude_child(node, cand_id):
    return node._replace(undecided=node.undecided & ~(1 << cand_id), depth=node.depth + 1)


def uncovered_of(model, node):
    return model.universe_mask & ~node.covered
