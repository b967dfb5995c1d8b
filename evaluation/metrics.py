# evaluation/metrics.py

import csv
import statistics


def summarize_csv_performance(csv_file):
    """
    Reads 'strategy_comparison.csv' and computes average time, nodes, prunes, obj per strategy.
    """
    data = []
    with open(csv_file, "r") as f:
        reader = csv.DictReader(f)
        for row in reader:
            row["time"] = float(row["time"])
            row["nodes"] = int(row["nodes"])
            row["prunes"] = int(row["prunes"])
            row["best_obj"] = float(row["best_obj"])
            row["instance_id"] = int(row["instance_id"])
            data.append(row)
    # group by strategy
    strategies = {}
    for row in data:
        strategies.setdefault(row["strategy"], []).append(row)
    # compute stats
    results = {}
    for s, rows in strategies.items():
        results[s] = {
            "avg_time": statistics.mean(r["time"] for r in rows),
            "avg_nodes": statistics.mean(r["nodes"] for r in rows),
            "avg_prunes": statistics.mean(r["prunes"] for r in rows),
            "avg_obj": statistics.mean(r["best_obj"] for r in rows),
        }
    return results


def objectives_agree(results):
    """
    True if every strategy reached the same objective on each instance.
    Exact strategies must agree; a mismatch points at a broken bound.
    """
    per_instance = {}
    for r in results:
        per_instance.setdefault(int(r["instance_id"]), set()).add(round(float(r["best_obj"]), 9))
    return all(len(objs) == 1 for objs in per_instance.values())
