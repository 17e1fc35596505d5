from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from .config import BenchmarkConfig
from .generators import array_generator
from .orchestrator import ABBenchmark, timed
from .report import save_report
from .stats import run_multi_group_test, run_two_sample_test

logger = logging.getLogger(__name__)


def insertion_sort(values: Sequence[int]) -> List[int]:
    out = list(values)
    for i in range(1, len(out)):
        key = out[i]
        j = i - 1
        while j >= 0 and out[j] > key:
            out[j + 1] = out[j]
            j -= 1
        out[j + 1] = key
    return out


def builtin_sort(values: Sequence[int]) -> List[int]:
    return sorted(values)


def _demo(args: argparse.Namespace) -> int:
    config = BenchmarkConfig.from_env().with_overrides(
        {k: v for k, v in {"alpha": args.alpha, "iterations": args.iterations,
                           "seed": args.seed}.items() if v is not None}
    )
    bench = ABBenchmark(config=config)
    data = array_generator(args.kind, args.size)
    a, b = timed(insertion_sort), timed(builtin_sort)

    if args.mode == "sequential":
        outcome = asyncio.run(bench.run_sequential(a, b, data, "InsertionSort", "BuiltinSort"))
        result = outcome.result
        print(f"Stopped after {outcome.n_per_group} pairs ({outcome.stop_reason})")
    else:
        result = asyncio.run(bench.run_fixed(a, b, data, "InsertionSort", "BuiltinSort"))

    text = result.to_detailed_report() if args.detailed else result.to_report()
    print(text)
    if args.report_dir:
        path = save_report(text, args.report_dir, stem=f"ABTest_{result.label_a}_vs_{result.label_b}")
        print(f"Wrote report: {path}")
    return 0


def _analyze(args: argparse.Namespace) -> int:
    df = pd.read_csv(args.input)
    for col in (args.group_col, args.value_col):
        if col not in df.columns:
            raise SystemExit(f"Column {col!r} not found in {args.input}")

    groups = {
        str(label): part[args.value_col].dropna().astype(float).to_numpy()
        for label, part in df.groupby(args.group_col, sort=True)
    }
    if len(groups) < 2:
        raise SystemExit(f"Expected at least 2 groups in {args.group_col!r}, found {list(groups)}")

    if len(groups) == 2:
        (label_a, xa), (label_b, xb) = groups.items()
        result = run_two_sample_test(xa, xb, label_a, label_b, args.alpha, method=args.method)
    else:
        result = run_multi_group_test(groups, args.alpha)

    print(result.to_detailed_report() if args.detailed else result.to_report())
    if args.out_json:
        out = Path(args.out_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(result.to_dict(), indent=2, default=str), encoding="utf-8")
        print(f"Wrote report: {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="abbench", description="Statistical A/B testing for algorithm performance.")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = ap.add_subparsers(dest="command", required=True)

    demo = sub.add_parser("demo", help="Benchmark insertion sort against the built-in sort")
    demo.add_argument("--mode", choices=["fixed", "sequential"], default="fixed")
    demo.add_argument("--iterations", type=int, default=None, help="Samples per algorithm (fixed mode)")
    demo.add_argument("--size", type=int, default=200, help="Input array length")
    demo.add_argument("--kind", choices=["random", "nearly_sorted", "duplicates", "worst", "best"], default="random")
    demo.add_argument("--alpha", type=float, default=None)
    demo.add_argument("--seed", type=int, default=None)
    demo.add_argument("--detailed", action="store_true", help="Print the extended report")
    demo.add_argument("--report-dir", type=str, default=None, help="Also save the report under this directory")
    demo.set_defaults(func=_demo)

    analyze = sub.add_parser("analyze", help="Test timing samples from a CSV")
    analyze.add_argument("--input", required=True, help="CSV with one row per measurement")
    analyze.add_argument("--group-col", default="algorithm")
    analyze.add_argument("--value-col", default="duration_ms")
    analyze.add_argument("--alpha", type=float, default=0.05)
    analyze.add_argument("--method", choices=["auto", "welch", "mann-whitney"], default="auto")
    analyze.add_argument("--detailed", action="store_true")
    analyze.add_argument("--out-json", type=str, default=None, help="Write the result as JSON to this path")
    analyze.set_defaults(func=_analyze)
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
