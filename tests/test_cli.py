import json

import numpy as np
import pandas as pd

from abbench.cli import insertion_sort, main


def _write_timings(path, labels, shifts, n=30, seed=0):
    rng = np.random.default_rng(seed)
    frames = [
        pd.DataFrame({"algorithm": label, "duration_ms": rng.normal(10.0 + shift, 0.5, n)})
        for label, shift in zip(labels, shifts)
    ]
    pd.concat(frames).to_csv(path, index=False)


def test_insertion_sort():
    assert insertion_sort([3, 1, 2, 2, 0]) == [0, 1, 2, 2, 3]
    assert insertion_sort([]) == []


def test_analyze_two_groups_writes_json(tmp_path, capsys):
    csv = tmp_path / "timings.csv"
    out = tmp_path / "out" / "report.json"
    _write_timings(csv, ["baseline", "candidate"], [0.0, -2.0])

    assert main(["analyze", "--input", str(csv), "--out-json", str(out)]) == 0
    printed = capsys.readouterr().out
    assert "=== STATISTICAL A/B TEST REPORT ===" in printed

    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["label_a"] == "baseline"
    assert report["is_significant"] is True
    assert report["improvement_direction"] == "candidate faster"


def test_analyze_three_groups_runs_anova(tmp_path, capsys):
    csv = tmp_path / "timings.csv"
    _write_timings(csv, ["a", "b", "c"], [0.0, 3.0, 6.0])

    assert main(["analyze", "--input", str(csv)]) == 0
    assert "MULTI-ALGORITHM COMPARISON (ANOVA)" in capsys.readouterr().out


def test_demo_saves_report(tmp_path, capsys):
    rc = main(["--log-level", "WARNING", "demo", "--iterations", "5", "--size", "30",
               "--seed", "1", "--report-dir", str(tmp_path)])
    assert rc == 0
    assert "InsertionSort" in capsys.readouterr().out
    saved = list(tmp_path.glob("ABTest_InsertionSort_vs_BuiltinSort_*.txt"))
    assert len(saved) == 1
