"""
abbench/report.py

Plain-text rendering of test results.

The engine only *returns* these strings; printing them or writing them to
disk (save_report) is left to the caller.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Union

from .utils import fmt_ci, fmt_float, fmt_pct, fmt_pvalue, sanitize_filename

if TYPE_CHECKING:  # pragma: no cover
    from .results import MultiGroupResult, TwoSampleResult

RULE = "=" * 79
TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"


def _fmt_df(df: Optional[float]) -> str:
    return "n/a" if df is None else f"{df:.1f}"


# -------------------------
# Two-sample reports
# -------------------------

def format_two_sample_report(result: "TwoSampleResult") -> str:
    a, b = result.stats_a, result.stats_b
    conf_pct = result.confidence_level * 100
    lines: List[str] = [
        "=== STATISTICAL A/B TEST REPORT ===",
        f"Test Date: {result.created_at.strftime(TIMESTAMP_FMT)}",
        f"Test Type: {result.test_type}",
        "",
        "ALGORITHMS COMPARED:",
        f"  Algorithm A: {result.label_a}",
        f"  Algorithm B: {result.label_b}",
        "",
        "SAMPLE STATISTICS:",
        f"  {result.label_a}: n={a.n}, mean={a.mean:.3f}ms, sd={a.sd:.3f}ms",
        f"  {result.label_b}: n={b.n}, mean={b.mean:.3f}ms, sd={b.sd:.3f}ms",
        "",
        "HYPOTHESIS TEST RESULTS:",
        "  H0: muA = muB (no difference between algorithms)",
        "  H1: muA != muB (significant difference exists)",
        f"  alpha = {result.alpha:.3f} ({conf_pct:.1f}% confidence level)",
    ]
    if result.df is not None:
        lines.append(f"  t-statistic = {result.statistic:.4f}")
        lines.append(f"  degrees of freedom = {_fmt_df(result.df)}")
    else:
        if result.u_statistic is not None:
            lines.append(f"  U = {result.u_statistic:.1f}")
        lines.append(f"  z-statistic = {result.statistic:.4f}")
    lines += [
        f"  p-value = {fmt_pvalue(result.p_value)}",
        f"  Result: {'REJECT H0' if result.is_significant else 'FAIL TO REJECT H0'}",
        "",
        "EFFECT SIZE ANALYSIS:",
        f"  {result.effect_size_name} = {fmt_float(result.effect_size)} ({result.effect_interpretation})",
        f"  Performance Change: {fmt_pct(result.improvement_pct)} ({result.improvement_direction})",
    ]
    if result.ci is not None:
        lines.append(f"  {conf_pct:.1f}% CI for mean difference: {fmt_ci(result.ci)}")
    lines += [
        "",
        "STATISTICAL POWER:",
        f"  Power = {result.power:.3f}",
        f"  Minimum Required Sample Size: {_fmt_min_n(result.minimum_sample_size)}",
        "",
    ]
    if result.warnings:
        lines.append("WARNINGS:")
        lines += [f"  ! {w}" for w in result.warnings]
        lines.append("")
    lines += [
        "RECOMMENDATION:",
        f"  {result.recommendation}",
        "",
        "BUSINESS IMPACT:",
        f"  {result.business_impact}",
    ]
    return "\n".join(lines) + "\n"


def _fmt_min_n(n: Optional[int]) -> str:
    return "undefined (zero effect)" if n is None else str(n)


def detailed_effect_interpretation(effect_size: float) -> str:
    d = abs(effect_size)
    if d < 0.2:
        return "Negligible effect - differences are minimal"
    if d < 0.5:
        return "Small effect - noticeable but limited practical impact"
    if d < 0.8:
        return "Medium effect - meaningful practical difference"
    if d < 1.2:
        return "Large effect - substantial practical impact"
    return "Very large effect - exceptional practical significance"


def practical_significance(improvement_pct: float) -> str:
    x = abs(improvement_pct)
    if x < 5:
        return "Minimal practical impact"
    if x < 15:
        return "Moderate practical benefit"
    if x < 50:
        return "Significant practical improvement"
    return "Exceptional practical impact"


def sample_size_assessment(total: int) -> str:
    if total < 30:
        return "Small sample - consider increasing"
    if total < 100:
        return "Adequate sample size"
    return "Large sample - high reliability"


def practical_significance_level(improvement_pct: float) -> str:
    x = abs(improvement_pct)
    if x < 5:
        return "LOW"
    if x < 25:
        return "MODERATE"
    return "HIGH"


def implementation_risk(result: "TwoSampleResult") -> str:
    if not result.is_significant:
        return "MEDIUM (No statistical significance)"
    if result.power < 0.8:
        return "MEDIUM (Low statistical power)"
    if result.effect_size < 0.5:
        return "MEDIUM (Small effect size)"
    return "LOW (Strong statistical evidence)"


def decision_confidence(result: "TwoSampleResult") -> str:
    if not result.is_significant:
        return "LOW"
    if result.power >= 0.9 and result.effect_size >= 0.8:
        return "VERY HIGH"
    if result.power >= 0.8 and result.effect_size >= 0.5:
        return "HIGH"
    return "MODERATE"


def _pooled_sd(result: "TwoSampleResult") -> float:
    a, b = result.stats_a, result.stats_b
    return math.sqrt(((a.n - 1) * a.variance + (b.n - 1) * b.variance) / (a.n + b.n - 2))


def _standard_error(result: "TwoSampleResult") -> float:
    a, b = result.stats_a, result.stats_b
    return math.sqrt(a.variance / a.n + b.variance / b.n)


def format_detailed_report(result: "TwoSampleResult") -> str:
    now = datetime.now(timezone.utc)
    a, b = result.stats_a, result.stats_b
    lines = [
        RULE,
        "DETAILED STATISTICAL A/B TEST ANALYSIS",
        RULE,
        f"Generated: {now.strftime(TIMESTAMP_FMT)}",
        f"Test Execution: {result.created_at.strftime(TIMESTAMP_FMT)}",
        "",
        format_two_sample_report(result),
        RULE,
        "EXTENDED STATISTICAL ANALYSIS",
        RULE,
        "RAW DATA SUMMARY:",
        f"  Total Observations: {a.n + b.n}",
        f"  Pooled Standard Deviation: {_pooled_sd(result):.3f}ms",
        f"  Standard Error of Difference: {_standard_error(result):.3f}ms",
        f"  Mean Difference: {abs(result.mean_difference):.3f}ms",
        "",
        "EFFECT SIZE DETAILED INTERPRETATION:",
        f"  {result.effect_size_name} = {fmt_float(result.effect_size)}",
        f"  Interpretation: {detailed_effect_interpretation(result.effect_size)}",
        f"  Practical Significance: {practical_significance(result.improvement_pct)}",
        "",
        "STATISTICAL ASSUMPTIONS:",
        f"  Test Type Selected: {result.test_type}",
        f"  Assumptions Valid: {'YES' if result.assumptions_valid else 'NO'}",
        f"  Sample Size Adequacy: {sample_size_assessment(a.n + b.n)}",
        "",
        "BUSINESS DECISION FRAMEWORK:",
        f"  Statistical Significance: {'ACHIEVED' if result.is_significant else 'NOT ACHIEVED'}",
        f"  Practical Significance: {practical_significance_level(result.improvement_pct)}",
        f"  Implementation Risk: {implementation_risk(result)}",
        f"  Confidence in Decision: {decision_confidence(result)}",
    ]
    return "\n".join(lines) + "\n"


# -------------------------
# Multi-group reports
# -------------------------

def format_multi_group_report(result: "MultiGroupResult") -> str:
    lines = [
        "=== MULTI-ALGORITHM COMPARISON (ANOVA) ===",
        f"Test Date: {result.created_at.strftime(TIMESTAMP_FMT)}",
        f"Algorithms Tested: {', '.join(result.labels)}",
        "",
        "OVERALL F-TEST:",
        f"  F-statistic = {result.f_statistic:.4f} (df = {result.df_between}, {result.df_within})",
        f"  p-value = {fmt_pvalue(result.p_value)}",
        f"  Result: {'Significant differences detected' if result.is_significant else 'No significant differences'}",
        "",
        "BEST PERFORMING ALGORITHM (lowest mean):",
        f"  Winner: {result.best_label}",
        f"  Performance: {result.best_mean:.3f}ms average",
    ]
    if result.degeneracy is not None:
        lines += ["", "WARNINGS:", f"  ! {result.degeneracy.message}"]
    if result.pairwise:
        lines += ["", f"PAIRWISE COMPARISONS (Bonferroni alpha = {result.adjusted_alpha:.4f}):"]
        significant = result.significant_pairs
        if not significant:
            lines.append("  No pair differs significantly after correction")
        for r in significant:
            lines.append(f"  {r.label_a} vs {r.label_b}: p={fmt_pvalue(r.p_value)} (significant)")
    return "\n".join(lines) + "\n"


def format_detailed_multi_report(result: "MultiGroupResult") -> str:
    now = datetime.now(timezone.utc)
    lines = [
        RULE,
        "MULTI-ALGORITHM STATISTICAL COMPARISON (ANOVA)",
        RULE,
        f"Generated: {now.strftime(TIMESTAMP_FMT)}",
        f"Test Execution: {result.created_at.strftime(TIMESTAMP_FMT)}",
        "",
        format_multi_group_report(result),
        RULE,
        "GROUP STATISTICS",
        RULE,
    ]
    for s in result.group_stats:
        lines.append(f"  {s.label}: n={s.n}, mean={s.mean:.3f}ms, sd={s.sd:.3f}ms")
    lines += ["", RULE, "DETAILED PAIRWISE ANALYSIS", RULE]
    if not result.pairwise:
        lines.append("  Pairwise comparisons run only when the overall F-test is significant.")
    for r in result.pairwise:
        verdict = "(significant)" if r.is_significant else "(not significant)"
        lines += [
            f"{r.label_a} vs {r.label_b}:",
            f"   p-value: {fmt_pvalue(r.p_value)} {verdict}",
            f"   Effect size: {fmt_float(r.effect_size)} ({r.effect_interpretation})",
            f"   Performance difference: {fmt_pct(r.improvement_pct)} ({r.improvement_direction})",
            "",
        ]
    return "\n".join(lines) + "\n"


# -------------------------
# Persistence
# -------------------------

def report_filename(stem: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now(timezone.utc)
    return f"{sanitize_filename(stem)}_{when.strftime('%Y%m%d_%H%M%S')}.txt"


def save_report(text: str, directory: Union[str, Path] = ".", stem: str = "ABTest",
                when: Optional[datetime] = None) -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / report_filename(stem, when)
    path.write_text(text, encoding="utf-8")
    return path
