import os
import csv
import json
import atexit
import argparse
import concurrent.futures
from pathlib import Path
from statistics import mean

from stepsat.settings import Settings
from stepsat.utils.logger import logger, LOGGER_LEVEL
from stepsat.utils.parser import read_cnf
from stepsat.utils.memory import measure_solve
from stepsat.utils.verify import is_model

from stepsat.solvers.dpll import DpllSolver
from stepsat.solvers.reference import ReferenceSolver

SOLVERS = {
    "dpll": DpllSolver,
    "reference": ReferenceSolver,
}

CSV_HEADER = [
    "solver", "folder", "avg_time", "min_time", "max_time",
    "avg_mem", "min_mem", "max_mem", "inconclusive", "failed", "decisions"
]

stats = {}


def save_backup():
    if not stats:
        return
    os.makedirs(os.path.dirname(Settings.backup_path) or ".", exist_ok=True)
    with open(Settings.backup_path, "w") as f:
        json.dump(stats, f, indent=2)


def load_backup():
    global stats
    if os.path.exists(Settings.backup_path):
        print(">> Resuming from previous backup...")
        try:
            with open(Settings.backup_path, "r") as f:
                stats = json.load(f)
        except json.JSONDecodeError:
            print(">> Error loading backup file, starting fresh")
            stats = {}


def _run_instance(SolverClass, instance):
    solver = SolverClass(instance.clauses, instance.num_vars)
    return measure_solve(solver, Settings.memory_interval)


class WorkerPool:
    """
    Process pool for one instance at a time. A solve that overruns its
    timeout keeps the worker busy, so restart() kills the worker and starts
    a fresh executor before the next instance is submitted.
    """

    def __init__(self, max_workers=1):
        self.max_workers = max_workers
        self.restarts = 0
        self.executor = concurrent.futures.ProcessPoolExecutor(max_workers=max_workers)

    def submit(self, fn, *args):
        return self.executor.submit(fn, *args)

    def restart(self):
        workers = list((getattr(self.executor, "_processes", None) or {}).values())
        for proc in workers:
            if proc.is_alive():
                proc.kill()
            proc.join()
        self.executor.shutdown(wait=False, cancel_futures=True)
        self.executor = concurrent.futures.ProcessPoolExecutor(max_workers=self.max_workers)
        self.restarts += 1
        logger.info("Restarted benchmark worker (%d killed)", len(workers))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.executor.shutdown(wait=True, cancel_futures=True)


def group_by_folder(paths):
    groups = {}
    for p in paths:
        folder = p.parent.name
        groups.setdefault(folder, []).append(p)
    return groups


def get_next_csv_path(base_path):
    if not os.path.exists(base_path):
        return base_path
    index = 1
    while True:
        new_path = base_path.replace(".csv", f" ({index}).csv")
        if not os.path.exists(new_path):
            return new_path
        index += 1


def new_folder_stats():
    return {
        "times": [],
        "mems": [],
        "mem_min": float('inf'),
        "mem_max": float('-inf'),
        "inconclusive": 0,
        "failed": 0,
        "completed": False,
        "completed_tests": 0,
        "csv_ready_data": [],
        "consecutive_timeouts": 0,
        "decisions": 0
    }


def summarise_folder(label, folder, folder_stats, total_tests):
    avg_decs = folder_stats["decisions"] / total_tests if total_tests > 0 else 0
    return [
        label,
        folder,
        f"{mean(folder_stats['times']):.6f}",
        f"{min(folder_stats['times']):.6f}",
        f"{max(folder_stats['times']):.6f}",
        f"{mean(folder_stats['mems']):.2f}",
        f"{folder_stats['mem_min']:.2f}",
        f"{folder_stats['mem_max']:.2f}",
        folder_stats["inconclusive"],
        folder_stats["failed"],
        f"{avg_decs:.2f}"
    ]


def run_folder(pool, label, SolverClass, folder, test_files, folder_stats):
    total_tests = len(test_files)
    start_idx = folder_stats["completed_tests"]

    actual_completed = len(folder_stats["times"]) + folder_stats["inconclusive"] + folder_stats["failed"]
    if start_idx != actual_completed:
        print(f">> Adjusting start index from {start_idx} to {actual_completed} based on actual data")
        start_idx = actual_completed
        folder_stats["completed_tests"] = start_idx

    for idx in range(start_idx, total_tests):
        path = test_files[idx]
        if folder_stats["consecutive_timeouts"] >= Settings.max_consecutive_timeouts:
            print(f">> {Settings.max_consecutive_timeouts}+ consecutive timeouts in {folder}, skipping remaining")
            folder_stats["inconclusive"] += total_tests - idx
            folder_stats["completed_tests"] = total_tests
            break

        decs = 0
        try:
            instance = read_cnf(path)
            future = pool.submit(_run_instance, SolverClass, instance)
            measured = future.result(timeout=Settings.timeout)
            result, t_elapsed = measured.result, measured.elapsed
            min_mem, mem_used, max_mem = measured.min_usage, measured.avg_usage, measured.max_usage
            logger.debug("%s: deepest sampled search depth %d", path.name, max(measured.peak_by_depth, default=0))
            if result.satisfiable and Settings.verify_witness and not is_model(instance.clauses, result.solution):
                raise ValueError("witness does not satisfy the formula")
            decs = result.decisions
            folder_stats["decisions"] += decs
            folder_stats["times"].append(t_elapsed)
            folder_stats["mems"].append(mem_used)
            folder_stats["mem_min"] = min(folder_stats["mem_min"], min_mem)
            folder_stats["mem_max"] = max(folder_stats["mem_max"], max_mem)
            folder_stats["consecutive_timeouts"] = 0
            status = result.state.name
        except concurrent.futures.TimeoutError:
            pool.restart()
            folder_stats["inconclusive"] += 1
            folder_stats["consecutive_timeouts"] += 1
            status = "TIMEOUT"
            t_elapsed = 0.0
            mem_used = 0.0
        except Exception as e:
            logger.warning("%s failed on %s: %s", label, path, e)
            folder_stats["failed"] += 1
            folder_stats["consecutive_timeouts"] = 0
            status = "ERROR"
            t_elapsed = 0.0
            mem_used = 0.0
        folder_stats["completed_tests"] = idx + 1

        print(f"{folder:10} {path.name:25} {status:<12} "
              f"Time: {t_elapsed:9.6f}s Mem(avg): {mem_used:9.2f}KB "
              f"Decisions: {decs:<5} (Consecutive TOs: {folder_stats['consecutive_timeouts']})")

        save_backup()


def benchmark_all(cnf_paths, solvers=SOLVERS):
    global stats
    os.makedirs(Settings.results_dir, exist_ok=True)
    folder_groups = group_by_folder(cnf_paths)

    load_backup()

    csv_path = get_next_csv_path(os.path.join(Settings.results_dir, "benchmark.csv"))
    print(f">> Results will be written to: {csv_path}")

    with open(csv_path, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(CSV_HEADER)

        for solver_name, folder_data in stats.items():
            for folder, data in folder_data.items():
                for row in data.get("csv_ready_data", []):
                    writer.writerow(row)
                    csvfile.flush()

        with WorkerPool(max_workers=1) as pool:
            for label, SolverClass in solvers.items():
                print(f"\n=== {label.upper()} ===")
                solver_stats = stats.setdefault(label, {})

                for folder, test_files in folder_groups.items():
                    folder_stats = solver_stats.setdefault(folder, new_folder_stats())

                    if folder_stats["completed"]:
                        print(f">> Skipping completed: {label} - {folder}")
                        continue

                    run_folder(pool, label, SolverClass, folder, test_files, folder_stats)

                    if folder_stats["completed_tests"] == len(test_files):
                        folder_stats["completed"] = True
                        if folder_stats["times"]:
                            csv_row = summarise_folder(label, folder, folder_stats, len(test_files))
                            writer.writerow(csv_row)
                            csvfile.flush()
                            folder_stats["csv_ready_data"].append(csv_row)

                        save_backup()

    return stats


def print_summary(stats):
    for label, folder_data in stats.items():
        print(f"\n--- Summary for {label.upper()} ---")
        print(f"{'Folder':15} {'AVG(s)':>10} {'MIN(s)':>10} {'MAX(s)':>10} "
              f"{'AVG(KB)':>10} {'MIN(KB)':>10} {'MAX(KB)':>10} "
              f"{'INC':>4} {'FAIL':>5} {'AVG DEC':>8}")

        for folder, data in folder_data.items():
            if data.get("csv_ready_data"):
                row = data["csv_ready_data"][0]
                print(f"{folder:15} {row[2]:>10} {row[3]:>10} {row[4]:>10} "
                      f"{row[5]:>10} {row[6]:>10} {row[7]:>10} "
                      f"{row[8]:>4} {row[9]:>5} {row[10]:>8}")
            else:
                avg_decs = data["decisions"] / data["completed_tests"] if data["completed_tests"] > 0 else 0
                print(f"{folder:15} {'-':>10} {'-':>10} {'-':>10} "
                      f"{'-':>10} {'-':>10} {'-':>10} "
                      f"{data.get('inconclusive', 0):4d} {data.get('failed', 0):5d} {avg_decs:8.2f}")


def main(argv=None):
    parser = argparse.ArgumentParser(prog='stepsat-benchmark')
    parser.add_argument('benchmark_root', nargs='?',
                        help="folder searched recursively for *.cnf files.")
    parser.add_argument('--results_dir', type=str,
                        help="folder the CSV and the backup are written to.")
    parser.add_argument('--timeout', type=float,
                        help="per-instance timeout in seconds.")
    parser.add_argument('--solver', action='append', choices=sorted(SOLVERS),
                        help="solver to run (repeatable, default: all).")
    parser.add_argument('--verbosity', type=int, choices=[0, 1, 2],
                        help='the logger level (0: WARNING, 1: INFO, 2: DEBUG).')
    args = parser.parse_args(argv)

    Settings.setup(args)
    if args.results_dir:
        Settings.backup_path = os.path.join(args.results_dir, "backup.tmp")
    logger.setLevel(LOGGER_LEVEL[Settings.verbosity])
    logger.info(Settings)

    solvers = {name: SOLVERS[name] for name in args.solver} if args.solver else SOLVERS
    cnf_paths = sorted(Path(Settings.benchmark_root).rglob("*.cnf"))
    if not cnf_paths:
        logger.error("No .cnf files under %s", Settings.benchmark_root)
        return 1

    try:
        result = benchmark_all(cnf_paths, solvers)
    finally:
        save_backup()
    print_summary(result)
    return 0


atexit.register(save_backup)

if __name__ == "__main__":
    raise SystemExit(main())
