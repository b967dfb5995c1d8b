# solver/branch_and_bound_solver.py

import math
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed

from problem.errors import CancelledError, InvariantViolationError
from problem.model import iter_bits
from .bounds import GreedyBoundEstimator, greedy_cover, make_bound_estimator
from .branching_strategies import FirstUncoveredStrategy, make_branching_strategy
from .cancellation import CancellationToken
from .config import validate_config
from .node import exclude_child, include_child, root_node, uncovered_of
from .validator import SolutionValidator, cost_tolerance

# search states
ROOT = "ROOT"
BRANCHING = "BRANCHING"
LEAF_FEASIBLE = "LEAF_FEASIBLE"
LEAF_PRUNED = "LEAF_PRUNED"
DONE = "DONE"


class SetCoverBranchAndBoundSolver:
    """
    Exact minimum set cover by branch-and-bound.
    Every branch point picks an uncovered element and tries each undecided
    candidate covering it; siblings tried earlier are excluded from later
    children so no cover is enumerated twice. Subtrees whose lower bound
    cannot beat the incumbent are pruned. The incumbent starts from the
    greedy cover.

    Once the optimum is known, a second include/exclude pass over candidate
    ids in ascending order picks the lexicographically smallest optimal cover,
    so the answer does not depend on search order or thread scheduling.
    """

    def __init__(self, model, bound_estimator=None, branching_strategy=None, logger=None,
                 cancel_token=None, parallel=False, workers=4, max_nodes=None):
        """
        model: a ProblemModel
        bound_estimator: a BaseBoundEstimator (default: greedy counting bound)
        branching_strategy: a BaseBranchingStrategy (default: first uncovered element)
        logger: optional SolverLogger for structured logging
        cancel_token: optional CancellationToken checked at every node
        parallel: if True, independent subtrees are searched on a thread pool
        workers: thread pool size
        max_nodes: raise CancelledError after this many nodes (None = unlimited)
        """
        self.model = model
        self.bound_estimator = bound_estimator or GreedyBoundEstimator()
        self.branching_strategy = branching_strategy or FirstUncoveredStrategy()
        self.logger = logger
        self.cancel_token = cancel_token
        self.parallel = parallel
        self.workers = workers
        self.max_nodes = max_nodes

        self.best_cost = math.inf
        self.best_cover = None
        self.state = ROOT
        self.node_count = 0
        self.prune_count = 0
        self.incumbent_updates = 0
        self.canonical_node_count = 0

        self._lock = threading.Lock()
        self._abort = threading.Event()
        self._owner = None

    @classmethod
    def from_config(cls, model, config, logger=None, cancel_token=None):
        validate_config(config)
        if config.timeout is not None:
            cancel_token = CancellationToken(timeout=config.timeout, parent=cancel_token)
        return cls(model,
                   bound_estimator=make_bound_estimator(config.bound),
                   branching_strategy=make_branching_strategy(config.branching),
                   logger=logger,
                   cancel_token=cancel_token,
                   parallel=config.parallel,
                   workers=config.workers,
                   max_nodes=config.max_nodes)

    def solve(self):
        """
        Public entry point. Returns the minimum cover as an ascending list of
        candidate ids. Raises CancelledError if the search is aborted; no
        partial cover is returned in that case.
        """
        self._owner = threading.get_ident()
        owns_log = self.logger is not None and self.logger.csv_writer is None
        if owns_log:
            self.logger.open()
        self._log("SolverStart", 0, 0,
                  f"n={self.model.n}, m={self.model.m}, bound={self.bound_estimator.name}, "
                  f"branching={self.branching_strategy.name}, parallel={self.parallel}")
        try:
            self._check_cancel()
            if self.model.m == 0:
                cover = []
                self.best_cost = 0
            else:
                self._offer(greedy_cover(self.model), depth=0)
                root = root_node(self.model)
                if self.parallel:
                    self._search_parallel(root)
                else:
                    self._search(root)
                cover = self._canonical_cover()
            SolutionValidator(self.model).validate(cover, expected_objective=self.best_cost)
            self.best_cover = cover
            self._set_state(DONE)
            self._log("SolverEnd", 0, self.best_cost,
                      f"cover={cover}, nodes={self.node_count}, prunes={self.prune_count}")
            return cover
        except CancelledError as e:
            self._log("Cancelled", 0, self.best_cost, str(e))
            raise
        finally:
            self.bound_estimator.close()
            if owns_log:
                self.logger.close()

    def _search(self, start):
        # depth-first; children are pushed reversed so the lowest id is explored first
        stack = [start]
        while stack:
            node = stack.pop()
            stack.extend(reversed(self._expand(node)))

    def _search_parallel(self, root):
        subtrees = self._initial_frontier(root)
        if not subtrees:
            return
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [pool.submit(self._search, node) for node in subtrees]
            try:
                for f in as_completed(futures):
                    f.result()
            except BaseException:
                self._abort.set()
                for f in futures:
                    f.cancel()
                raise

    def _initial_frontier(self, root):
        """
        Expand breadth-first on the calling thread until there are at least
        `workers` open subtrees (or the tree runs out), so a chain of
        single-coverer elements near the root does not leave one worker
        with the whole search.
        """
        frontier = deque([root])
        while frontier and len(frontier) < self.workers:
            frontier.extend(self._expand(frontier.popleft()))
        return list(frontier)

    def _expand(self, node):
        """Process one node. Returns its children (empty for a leaf)."""
        self._enter_node()
        model = self.model
        uncovered = uncovered_of(model, node)
        if not uncovered:
            self._set_state(LEAF_FEASIBLE)
            self._offer(node.selected, depth=node.depth, cost=node.cost)
            return []

        if model.coverage_of(iter_bits(node.undecided)) & uncovered != uncovered:
            self._prune(node, "undecided candidates cannot cover the remainder")
            return []

        bound = self.bound_estimator.lower_bound(model, node)
        if node.cost + bound >= self.best_cost - cost_tolerance(self.best_cost):
            self._prune(node, f"bound {node.cost + bound} >= incumbent {self.best_cost}")
            return []

        self._set_state(BRANCHING)
        element = self.branching_strategy.choose_element(model, node)
        candidates = self.branching_strategy.branch_candidates(model, node, element)
        self._log("Branch", node.depth, node.cost, f"element={model.label(element)}, candidates={candidates}")

        children = []
        tried = 0
        for c in candidates:
            children.append(include_child(model, node, c, excluded=tried))
            tried |= 1 << c
        return children

    def _canonical_cover(self):
        """
        Lexicographically smallest cover whose cost equals the optimum.
        Include-first depth-first search over candidate ids in ascending order,
        so the first cover reached is the smallest one.
        """
        model = self.model
        target = self.best_cost
        budget = target + cost_tolerance(target)
        stack = [root_node(model)]
        while stack:
            node = stack.pop()
            self._enter_node(canonical=True)
            uncovered = uncovered_of(model, node)
            if not uncovered:
                cover = sorted(node.selected)
                self._log("Canonicalised", node.depth, node.cost, f"cover={cover}")
                return cover
            if not node.undecided:
                continue
            if model.coverage_of(iter_bits(node.undecided)) & uncovered != uncovered:
                continue
            if node.cost + self.bound_estimator.lower_bound(model, node) > budget:
                continue

            i = (node.undecided & -node.undecided).bit_length() - 1
            stack.append(exclude_child(node, i))
            cand = model.candidates[i]
            if cand.coverage & uncovered and node.cost + cand.cost <= budget:
                stack.append(include_child(model, node, i))

        raise InvariantViolationError(f"no cover of cost {target} found after the search proved it optimal")

    def _offer(self, selected, depth, cost=None):
        if selected is None:
            return False
        if cost is None:
            cost = self.model.cost_of(selected)
        with self._lock:
            # re-checked under the lock; pruning reads of best_cost may be stale
            if cost < self.best_cost - cost_tolerance(self.best_cost):
                self.best_cost = cost
                self.best_cover = sorted(selected)
                self.incumbent_updates += 1
                self._log("IncumbentFound", depth, cost, f"cover={self.best_cover}")
                return True
        return False

    def _prune(self, node, reason):
        self._set_state(LEAF_PRUNED)
        with self._lock:
            self.prune_count += 1
        self._log("Prune", node.depth, node.cost, reason)

    def _enter_node(self, canonical=False):
        self._check_cancel()
        with self._lock:
            if canonical:
                self.canonical_node_count += 1
            else:
                self.node_count += 1
            total = self.node_count + self.canonical_node_count
        if self.max_nodes is not None and total > self.max_nodes:
            raise CancelledError(f"node limit {self.max_nodes} reached")

    def _check_cancel(self):
        if self._abort.is_set():
            raise CancelledError("search aborted by a failing worker")
        if self.cancel_token is not None:
            self.cancel_token.check()

    def _log(self, event, depth, objective, details=""):
        if self.logger:
            self.logger.log_event(event, depth, objective, details)

    def _set_state(self, state):
        # a trace of the coordinating thread only; worker threads never write it
        if threading.get_ident() == self._owner:
            self.state = state
