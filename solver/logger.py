# solver/logger.py

import csv
import threading
import time


class SolverLogger:
    """
    Logs solver events (incumbents, prunes, branching, cancellation) to CSV.
    Also handles timing. Safe to share between the worker threads of a
    parallel search.
    """
    def __init__(self, log_file="solver_log.csv", log_prunes=True):
        self.log_file = log_file
        self.log_prunes = log_prunes
        self.file_handle = None
        self.csv_writer = None
        self.start_time = time.time()
        self._lock = threading.Lock()

    def open(self):
        self.file_handle = open(self.log_file, "w", newline="")
        self.csv_writer = csv.writer(self.file_handle)
        self.start_time = time.time()
        # write header
        self.csv_writer.writerow(["timestamp","event","node_depth","objective","details"])

    def close(self):
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None
            self.csv_writer = None

    def log_event(self, event, node_depth, objective, details=""):
        if not self.csv_writer:
            return
        if event == "Prune" and not self.log_prunes:
            return
        with self._lock:
            t = time.time() - self.start_time
            self.csv_writer.writerow([f"{t:.2f}", event, node_depth, objective, details])
            self.file_handle.flush()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __del__(self):
        self.close()
