# evaluation/evaluate_solver.py

import csv
import time

from problem.coverage_matrix import build_coverage_matrix
from problem.model import ProblemModel
from solver.branch_and_bound_solver import SetCoverBranchAndBoundSolver

FIELDS = ["instance_id", "strategy", "time", "nodes", "prunes", "best_obj", "cover"]


def evaluate_strategies(instances, strategies, output_csv="strategy_comparison.csv"):
    """
    instances: list of instances with "distances" and "threshold" (see instances.generator)
    strategies: dict of { strategy_name: SolverConfig }
    output_csv: path to store results
    We measure time, node_count, prune_count and final objective.
    """
    results = []
    for idx, inst in enumerate(instances):
        model = ProblemModel(build_coverage_matrix(inst["distances"], inst["threshold"]),
                             costs=inst.get("costs"))
        for strat_name, config in strategies.items():
            start_t = time.time()
            solver = SetCoverBranchAndBoundSolver.from_config(model, config)
            cover = solver.solve()
            end_t = time.time()
            results.append({
                "instance_id": idx,
                "strategy": strat_name,
                "time": end_t - start_t,
                "nodes": solver.node_count,
                "prunes": solver.prune_count,
                "best_obj": solver.best_cost,
                "cover": " ".join(str(i) for i in cover),
            })
    # write to CSV
    with open(output_csv, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        writer.writeheader()
        for r in results:
            writer.writerow(r)
    return results
