"""
Run an end-to-end timing comparison on a CSV.

Expected input format (minimum):
- group column: e.g. "algorithm" with two or more labels
- value column: e.g. "duration_ms"

Per-group summaries and assumption checks are printed first, then the
two-sample test (two groups) or ANOVA (three or more).

Examples:
  python scripts/run_analysis.py --input data/timings.csv
  python scripts/run_analysis.py --input data/timings.csv --method mann-whitney --out-json out/report.json
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from abbench.sanity import describe_groups
from abbench.stats import run_multi_group_test, run_two_sample_test


# ---- Main analysis -----------------------------------------------------------

def run(
    df: pd.DataFrame,
    group_col: str,
    value_col: str,
    alpha: float,
    method: str = "auto",
    out_json: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Run group summaries + the primary test.
    Returns a dict report.
    """
    clean = df[[group_col, value_col]].dropna()
    report: Dict[str, Any] = {
        "inputs": {"group_col": group_col, "value_col": value_col, "alpha": alpha, "method": method},
        "dropped_rows": int(len(df) - len(clean)),
    }

    groups = {str(k): g[value_col].astype(float).to_numpy() for k, g in clean.groupby(group_col, sort=True)}
    summary = describe_groups(groups)
    report["summary"] = summary.reset_index().to_dict(orient="records")

    if len(groups) == 2:
        (label_a, xa), (label_b, xb) = groups.items()
        result = run_two_sample_test(xa, xb, label_a, label_b, alpha, method=method)
        report["test"] = result.test_type
    else:
        result = run_multi_group_test(groups, alpha)
        report["test"] = "One-way ANOVA"
    report["result"] = result.to_dict()
    report["text"] = result.to_report()

    if out_json:
        out_json.parent.mkdir(parents=True, exist_ok=True)
        out_json.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    return report


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--input", type=str, required=True, help="Path to CSV input")
    parser.add_argument("--group-col", type=str, default="algorithm")
    parser.add_argument("--value-col", type=str, default="duration_ms")
    parser.add_argument("--alpha", type=float, default=0.05)
    parser.add_argument("--method", type=str, default="auto", choices=["auto", "welch", "mann-whitney"])
    parser.add_argument("--out-json", type=str, default=None, help="Write a JSON report to this path")
    args = parser.parse_args()

    df = pd.read_csv(Path(args.input))
    report = run(
        df=df,
        group_col=args.group_col,
        value_col=args.value_col,
        alpha=args.alpha,
        method=args.method,
        out_json=Path(args.out_json) if args.out_json else None,
    )

    print(f"\nTiming analysis: {args.value_col} by {args.group_col}")
    if report["dropped_rows"]:
        print(f"Dropped {report['dropped_rows']} rows with missing values")
    print(pd.DataFrame(report["summary"]).to_string(index=False, float_format=lambda x: f"{x:0.4f}"))
    print()
    print(report["text"])
    if args.out_json:
        print(f"Wrote report: {args.out_json}")


if __name__ == "__main__":
    main()
