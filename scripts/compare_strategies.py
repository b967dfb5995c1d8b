# scripts/compare_strategies.py

import pickle

from evaluation.evaluate_solver import evaluate_strategies
from evaluation.metrics import objectives_agree, summarize_csv_performance
from solver.config import SolverConfig


def main():
    # load test instances
    with open("test_instances.pkl","rb") as f:
        instances = pickle.load(f)

    strategies = {
        "greedy": SolverConfig(bound="greedy"),
        "greedy-fewest": SolverConfig(bound="greedy", branching="fewest-coverers"),
        "lp": SolverConfig(bound="lp-relaxation"),
        "greedy-parallel": SolverConfig(bound="greedy", parallel=True),
    }

    # evaluate
    results = evaluate_strategies(instances, strategies, output_csv="strategy_comparison.csv")
    if not objectives_agree(results):
        print("WARNING: strategies disagree on the optimum")
    for name, stats in summarize_csv_performance("strategy_comparison.csv").items():
        print(f"{name:16s} time={stats['avg_time']:.3f}s nodes={stats['avg_nodes']:.1f} "
              f"prunes={stats['avg_prunes']:.1f} obj={stats['avg_obj']:.2f}")
    print("Evaluation done. See strategy_comparison.csv")

if __name__=="__main__":
    main()
