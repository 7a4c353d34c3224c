import csv
import os

from stepsat.benchmark import CSV_HEADER
from stepsat.plot import plot_results, load_results


def write_results(path):
    rows = [
        ["dpll", "uf20", "0.010000", "0.005000", "0.020000", "120.00", "100.00", "150.00", 0, 0, "3.50"],
        ["reference", "uf20", "0.030000", "0.010000", "0.050000", "220.00", "200.00", "260.00", 0, 0, "2.00"],
        ["dpll", "uuf20", "0.020000", "0.010000", "0.040000", "130.00", "110.00", "170.00", 0, 0, "6.00"],
        ["reference", "uuf20", "0.060000", "0.020000", "0.090000", "240.00", "210.00", "300.00", 30, 0, "4.00"],
    ]
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        writer.writerows(rows)


def test_load_results_drops_mostly_inconclusive_rows(tmp_path):
    path = tmp_path / "benchmark.csv"
    write_results(path)
    df = load_results(path)
    assert len(df) == 3
    assert df["avg_time"].dtype.kind == "f"


def test_plot_results_writes_charts(tmp_path):
    path = tmp_path / "benchmark.csv"
    write_results(path)
    out_dir = tmp_path / "plots"

    written = plot_results(path, str(out_dir))

    assert os.path.join(str(out_dir), "avg_time_log.png") in written
    assert os.path.join(str(out_dir), "avg_time_uf20_log.png") in written
    assert os.path.join(str(out_dir), "solver_comparison_log.png") in written
    for file in written:
        assert os.path.getsize(file) > 0
