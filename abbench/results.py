"""
abbench/results.py

Immutable result objects produced by the hypothesis test engine.

A result is created once per test invocation and never changes afterwards;
it can be rendered to text (to_report / to_detailed_report) or flattened to a
plain dict for JSON.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .errors import Degeneracy
from .utils import as_report_dict, is_constant
from . import report


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SampleStats:
    label: str
    n: int
    mean: float
    variance: float  # unbiased, n - 1 denominator

    @property
    def sd(self) -> float:
        return math.sqrt(self.variance)

    @classmethod
    def from_array(cls, label: str, x: np.ndarray) -> "SampleStats":
        if is_constant(x):
            return cls(label=label, n=len(x), mean=float(x[0]), variance=0.0)
        return cls(
            label=label,
            n=len(x),
            mean=float(np.mean(x)),
            variance=float(np.var(x, ddof=1)),
        )


@dataclass(frozen=True)
class TwoSampleResult:
    label_a: str
    label_b: str
    test_type: str
    stats_a: SampleStats
    stats_b: SampleStats
    statistic: float            # t for Welch, z for Mann-Whitney
    df: Optional[float]         # None for Mann-Whitney
    p_value: float
    alpha: float
    is_significant: bool
    effect_size: float          # magnitude, >= 0
    effect_size_name: str
    effect_interpretation: str
    ci: Optional[Tuple[float, float]]  # mean(a) - mean(b); None for Mann-Whitney
    power: float
    minimum_sample_size: Optional[int]
    improvement_pct: float
    improvement_direction: str
    assumptions_valid: bool
    recommendation: str = ""
    business_impact: str = ""
    warnings: Tuple[str, ...] = ()
    u_statistic: Optional[float] = None
    degeneracy: Optional[Degeneracy] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def confidence_level(self) -> float:
        return 1.0 - self.alpha

    @property
    def is_degenerate(self) -> bool:
        return self.degeneracy is not None

    @property
    def mean_difference(self) -> float:
        return self.stats_a.mean - self.stats_b.mean

    @property
    def better_label(self) -> str:
        # lower is better: the measurements are execution times
        return self.label_a if self.stats_a.mean < self.stats_b.mean else self.label_b

    def to_report(self) -> str:
        return report.format_two_sample_report(self)

    def to_detailed_report(self) -> str:
        return report.format_detailed_report(self)

    def to_dict(self) -> Dict[str, Any]:
        out = as_report_dict(self)
        out["created_at"] = self.created_at.isoformat()
        out["confidence_level"] = self.confidence_level
        return out


@dataclass(frozen=True)
class MultiGroupResult:
    """
    One-way ANOVA over k labelled groups.

    best_label is the group with the lowest mean: lower execution time is
    better. Callers measuring a higher-is-better quantity must invert it.
    """
    labels: Tuple[str, ...]
    f_statistic: float
    df_between: int
    df_within: int
    p_value: float
    alpha: float
    is_significant: bool
    best_label: str
    best_mean: float
    group_stats: Tuple[SampleStats, ...]
    adjusted_alpha: float
    pairwise: Tuple[TwoSampleResult, ...] = ()
    degeneracy: Optional[Degeneracy] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_degenerate(self) -> bool:
        return self.degeneracy is not None

    @property
    def significant_pairs(self) -> Tuple[TwoSampleResult, ...]:
        return tuple(r for r in self.pairwise if r.is_significant)

    def pairwise_frame(self) -> pd.DataFrame:
        columns = ["label_a", "label_b", "mean_a", "mean_b", "statistic", "df",
                   "p_value", "alpha", "significant", "effect_size",
                   "interpretation", "improvement_pct"]
        rows = [
            {
                "label_a": r.label_a,
                "label_b": r.label_b,
                "mean_a": r.stats_a.mean,
                "mean_b": r.stats_b.mean,
                "statistic": r.statistic,
                "df": r.df,
                "p_value": r.p_value,
                "alpha": r.alpha,
                "significant": r.is_significant,
                "effect_size": r.effect_size,
                "interpretation": r.effect_interpretation,
                "improvement_pct": r.improvement_pct,
            }
            for r in self.pairwise
        ]
        return pd.DataFrame(rows, columns=columns)

    def to_report(self) -> str:
        return report.format_multi_group_report(self)

    def to_detailed_report(self) -> str:
        return report.format_detailed_multi_report(self)

    def to_dict(self) -> Dict[str, Any]:
        out = as_report_dict(self)
        out["created_at"] = self.created_at.isoformat()
        out["pairwise"] = [r.to_dict() for r in self.pairwise]
        return out
