import csv
import os
from collections import defaultdict
from pathlib import Path
from statistics import mean

from .report import read_solution
from .logger import logger


def get_unique_filename(base_name):
    if not os.path.exists(base_name):
        return base_name
    name, ext = os.path.splitext(base_name)
    i = 1
    while True:
        new_name = f"{name} ({i}){ext}"
        if not os.path.exists(new_name):
            return new_name
        i += 1


def collect_reports(report_dir, pattern="*.sol"):
    stats = defaultdict(lambda: {
        "times": [],
        "sat": 0,
        "unsat": 0,
        "failed": 0
    })

    for path in sorted(Path(report_dir).rglob(pattern)):
        folder_data = stats[path.parent.name]
        try:
            report = read_solution(path)
        except (OSError, ValueError) as e:
            logger.warning("Skipping %s: %s", path, e)
            folder_data["failed"] += 1
            continue

        folder_data["times"].append(report.time_elapsed)
        if report.state.name == "SAT":
            folder_data["sat"] += 1
        else:
            folder_data["unsat"] += 1

    return stats


def summarise_reports(report_dir, output_csv_base, pattern="*.sol"):
    """
    Aggregate the solution reports found under report_dir, one CSV row per
    folder, and write them to a fresh file next to output_csv_base.

    Return:
        path of the CSV that was written
    """
    stats = collect_reports(report_dir, pattern)
    output_csv = get_unique_filename(output_csv_base)

    with open(output_csv, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow([
            "folder", "sat", "unsat", "failed",
            "avg_time", "min_time", "max_time"
        ])

        for folder, data in sorted(stats.items()):
            times = data["times"]
            if times:
                timing = [f"{mean(times):.6f}", f"{min(times):.6f}", f"{max(times):.6f}"]
            else:
                timing = ["-", "-", "-"]
            writer.writerow([folder, data["sat"], data["unsat"], data["failed"], *timing])

    logger.info("Summary written to %s", output_csv)
    return output_csv


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Summarise solution reports into a CSV file.")
    parser.add_argument("report_dir", help="folder searched recursively for solution reports.")
    parser.add_argument("--output", default="solution_summary.csv", help="CSV file to write.")
    parser.add_argument("--pattern", default="*.sol", help="glob matching the report files.")
    args = parser.parse_args()
    summarise_reports(args.report_dir, args.output, args.pattern)
