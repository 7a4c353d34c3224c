import os
import argparse

import pandas as pd
import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import LogLocator, ScalarFormatter

from stepsat.utils.logger import logger

NUMERIC_COLUMNS = ["avg_time", "min_time", "max_time", "avg_mem", "min_mem", "max_mem", "decisions"]


def load_results(csv_path, max_inconclusive=25):
    df = pd.read_csv(csv_path)

    # Drop rows where too many instances timed out to be comparable
    df = df[df["inconclusive"] <= max_inconclusive].copy()

    for column in NUMERIC_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors='coerce')
    return df


def _log_axis(ax, numticks=12):
    ax.set_yscale('log')
    ax.yaxis.set_major_locator(LogLocator(base=10, numticks=numticks))
    ax.yaxis.set_minor_locator(LogLocator(base=10, subs=np.arange(2, 10) * 0.1, numticks=numticks))
    ax.yaxis.set_major_formatter(ScalarFormatter())
    ax.yaxis.grid(True, which='both', linestyle='--', alpha=0.3)


def _range_bar(data, avg, low, high, color, label, ylabel, title, path):
    fig, ax = plt.subplots(figsize=(12, 7))

    yerr = [
        (data[avg] - data[low]).clip(lower=0),
        (data[high] - data[avg]).clip(lower=0)
    ]

    ax.bar(data.index, data[avg], color=color, label=label)
    ax.errorbar(
        data.index,
        data[avg],
        yerr=yerr,
        fmt='none',
        ecolor='black',
        capsize=5,
        linewidth=1,
        label="Min/Max Range"
    )

    ax.set_ylabel(ylabel)
    ax.set_title(title)
    _log_axis(ax)

    plt.setp(ax.get_xticklabels(), rotation=45, ha='right')
    fig.tight_layout()
    ax.legend(loc='upper left')
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_results(csv_path, out_dir="results"):
    """
    Draw log-scale bar charts from a benchmark CSV.

    Parameters:
        csv_path: CSV written by stepsat.benchmark
        out_dir: folder the PNG files are written to

    Return:
        list of the files written
    """
    df = load_results(csv_path)
    os.makedirs(out_dir, exist_ok=True)
    written = []

    solver_time_data = df.groupby("solver").agg({
        "avg_time": "mean",
        "min_time": "min",
        "max_time": "max"
    }).sort_values("avg_time")
    written.append(_range_bar(solver_time_data, "avg_time", "min_time", "max_time", "skyblue",
                              "Average Time", "Average Time (s)", "Average Execution Time per Solver",
                              os.path.join(out_dir, "avg_time_log.png")))

    solver_mem_data = df.groupby("solver").agg({
        "avg_mem": "mean",
        "min_mem": "min",
        "max_mem": "max"
    }).sort_values("avg_mem")
    written.append(_range_bar(solver_mem_data, "avg_mem", "min_mem", "max_mem", "salmon",
                              "Average Memory", "Average Memory (KB)", "Average Memory Usage per Solver",
                              os.path.join(out_dir, "avg_memory_log.png")))

    solver_decisions = df.groupby("solver")["decisions"].agg(["mean", "min", "max"]).sort_values("mean")
    written.append(_range_bar(solver_decisions, "mean", "min", "max", "lightgreen",
                              "Average Decisions", "Average Decisions", "Average Number of Decisions per Solver",
                              os.path.join(out_dir, "avg_decisions_log.png")))

    for folder in df["folder"].unique():
        sub_df = df[df["folder"] == folder].set_index("solver").sort_values("avg_time")
        written.append(_range_bar(sub_df, "avg_time", "min_time", "max_time", "mediumseagreen",
                                  "Average Time", "Average Time (s)", f"Avg Time - Folder: {folder}",
                                  os.path.join(out_dir, f"avg_time_{folder}_log.png")))

        sub_df = sub_df.sort_values("avg_mem")
        written.append(_range_bar(sub_df, "avg_mem", "min_mem", "max_mem", "cornflowerblue",
                                  "Average Memory", "Average Memory (KB)", f"Avg Memory Usage - Folder: {folder}",
                                  os.path.join(out_dir, f"avg_memory_{folder}_log.png")))

    solver_order = df.groupby("solver")["avg_time"].mean().sort_values().index
    pivot_df = df.pivot_table(index='solver', columns='folder', values='avg_time').reindex(solver_order)

    ax = pivot_df.plot(kind='bar', figsize=(14, 8), logy=True)
    ax.set_ylabel('Average Time (s) - Log Scale')
    ax.set_title('Solver Performance Comparison by Benchmark Folder')
    _log_axis(ax, numticks=15)

    plt.setp(ax.get_xticklabels(), rotation=45, ha='right')
    ax.figure.tight_layout()
    path = os.path.join(out_dir, "solver_comparison_log.png")
    ax.figure.savefig(path)
    plt.close(ax.figure)
    written.append(path)

    logger.info("Wrote %d plots to %s", len(written), out_dir)
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(prog='stepsat-plot')
    parser.add_argument('csv_path', nargs='?', default="results/benchmark.csv",
                        help="benchmark CSV to plot.")
    parser.add_argument('--out_dir', default="results",
                        help="folder the charts are written to.")
    args = parser.parse_args(argv)
    plot_results(args.csv_path, args.out_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
