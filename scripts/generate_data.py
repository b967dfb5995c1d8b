# scripts/generate_data.py

import pickle

from instances.generator import generate_multiple_instances


def main():
    # 1) Generate random siting instances
    instances = generate_multiple_instances(
        count=10,
        num_points=25,
        threshold=25.0,
        width=100.0,
        height=100.0,
        seed=0
    )

    # 2) Save test set and one instance for run_solver.py
    with open("test_instances.pkl", "wb") as f:
        pickle.dump(instances, f)
    with open("single_instance.pkl", "wb") as f:
        pickle.dump(instances[0], f)
    print(f"Saved {len(instances)} instances to test_instances.pkl and single_instance.pkl")

if __name__=="__main__":
    main()
