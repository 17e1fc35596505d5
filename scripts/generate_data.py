#!/usr/bin/env python3
"""
Generate synthetic algorithm timing data.

Creates a CSV with one row per measurement:
- run_id
- algorithm (one label per --algorithms entry)
- input_size
- measured_at (ISO timestamp)
- duration_ms (float, > 0)

Durations are lognormal around a per-algorithm baseline, with an occasional
slow outlier (GC pause, cache miss) so the normality screen has something to
look at.

Usage:
  python scripts/generate_data.py --n 200 --out data/timings.csv
  abbench analyze --input data/timings.csv
"""

from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pandas as pd


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Generate synthetic timing data.")
    ap.add_argument("--n", type=int, default=200, help="Measurements per algorithm.")
    ap.add_argument("--seed", type=int, default=7, help="Random seed.")
    ap.add_argument("--out", type=str, default="data/timings.csv", help="Output CSV path.")
    ap.add_argument("--algorithms", type=str, default="baseline,candidate",
                    help="Comma-separated algorithm labels.")
    ap.add_argument("--base-ms", type=float, default=12.0, help="Median duration of the first algorithm.")
    ap.add_argument("--speedup", type=float, default=0.08,
                    help="Relative speedup of each subsequent algorithm over the previous one.")
    ap.add_argument("--noise", type=float, default=0.15, help="Lognormal sigma.")
    ap.add_argument("--outlier-rate", type=float, default=0.01, help="Share of slow outliers.")
    return ap.parse_args()


def main() -> None:
    args = parse_args()
    rng = np.random.default_rng(args.seed)
    labels = [s.strip() for s in args.algorithms.split(",") if s.strip()]
    if len(labels) < 2:
        raise SystemExit("Need at least two algorithm labels")

    start = datetime.now(timezone.utc).replace(microsecond=0)
    frames = []
    for i, label in enumerate(labels):
        n = args.n
        median = args.base_ms * (1.0 - args.speedup) ** i
        duration = rng.lognormal(mean=np.log(median), sigma=args.noise, size=n)

        # --- Outliers ---
        slow = rng.random(n) < args.outlier_rate
        duration[slow] *= rng.uniform(3.0, 6.0, size=slow.sum())

        offsets = rng.integers(0, 3600, size=n)
        frames.append(pd.DataFrame({
            "algorithm": label,
            "input_size": rng.choice([100, 500, 1000], size=n),
            "measured_at": [(start + timedelta(seconds=int(s))).isoformat() for s in offsets],
            "duration_ms": np.round(duration, 4),
        }))

    df = pd.concat(frames, ignore_index=True).sort_values("measured_at", kind="mergesort")
    df.insert(0, "run_id", np.arange(1, len(df) + 1))

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)

    # --- Quick sanity summary ---
    summary = (
        df.groupby("algorithm")
          .agg(samples=("run_id", "count"),
               mean_ms=("duration_ms", "mean"),
               median_ms=("duration_ms", "median"),
               max_ms=("duration_ms", "max"))
    )
    print(f"Wrote {len(df):,} rows -> {out_path}")
    print(summary.to_string(float_format=lambda x: f"{x:0.4f}"))


if __name__ == "__main__":
    main()
