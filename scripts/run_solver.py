# scripts/run_solver.py

import argparse
import pickle
import sys

import numpy as np

from problem.errors import SetCoverError
from solver.config import config_from_dict
from solver.logger import SolverLogger
from solver.minimum_cover import solve_minimum_cover


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Exact minimum hub siting for a distance matrix.")
    parser.add_argument("--instance", default="single_instance.pkl",
                        help="pickled instance dict with 'distances' and 'threshold'")
    parser.add_argument("--matrix-csv", help="read the distance matrix from a CSV file instead")
    parser.add_argument("--threshold", type=float, help="service range (overrides the instance's)")
    parser.add_argument("--bound", default="greedy", choices=["greedy", "lp-relaxation"])
    parser.add_argument("--branching", default="first-uncovered", choices=["first-uncovered", "fewest-coverers"])
    parser.add_argument("--parallel", action="store_true")
    parser.add_argument("--workers", type=int, default=4)
    parser.add_argument("--timeout", type=float, default=None, help="seconds before the search is cancelled")
    parser.add_argument("--log-file", default=None, help="write solver events to this CSV file")
    return parser.parse_args(argv)


def load_instance(args):
    if args.matrix_csv:
        inst = {"distances": np.loadtxt(args.matrix_csv, delimiter=",", ndmin=2)}
    else:
        with open(args.instance, "rb") as f:
            inst = pickle.load(f)
    if args.threshold is not None:
        inst["threshold"] = args.threshold
    if inst.get("threshold") is None:
        sys.exit("no threshold given (use --threshold)")
    return inst


def main(argv=None):
    args = parse_args(argv)
    inst = load_instance(args)
    config = config_from_dict({
        "bound": args.bound,
        "branching": args.branching,
        "parallel": args.parallel,
        "workers": args.workers,
        "timeout": args.timeout,
    })
    logger = SolverLogger(args.log_file) if args.log_file else None
    try:
        cover = solve_minimum_cover(inst["distances"], inst["threshold"],
                                    costs=inst.get("costs"), config=config, logger=logger)
    except SetCoverError as e:
        print(f"{type(e).__name__}: {e}")
        return 1
    print(f"Threshold = {inst['threshold']}")
    print(f"Minimum number of hubs = {len(cover)}")
    print("Selected hubs:", cover)
    return 0


if __name__=="__main__":
    sys.exit(main())
