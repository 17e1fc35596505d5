"""
abbench/sanity.py

Assumption checks and sample summaries for timing data:
  - normality heuristic (skewness / kurtosis)
  - outlier detection (1.5 x IQR)
  - coefficient of variation
  - per-group descriptive tables
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from .utils import as_1d_float, is_constant

# Shape estimators are too noisy to judge below this size
NORMALITY_MIN_N = 8
MAX_ABS_SKEW = 2.0
MAX_ABS_EXCESS_KURTOSIS = 4.0
IQR_FENCE = 1.5


# -------------------------
# Shape statistics
# -------------------------

def _standardized(x: np.ndarray) -> np.ndarray:
    if is_constant(x):
        return np.zeros_like(x)
    sd = np.std(x, ddof=1)
    return (x - np.mean(x)) / sd


def skewness(sample: Iterable[float]) -> float:
    x = as_1d_float(sample)
    if len(x) < 2:
        return 0.0
    return float(np.mean(_standardized(x) ** 3))


def kurtosis(sample: Iterable[float]) -> float:
    """
    Fourth standardized moment (not excess; a normal sample gives about 3).
    A constant sample is reported as 3 so it never reads as heavy-tailed.
    """
    x = as_1d_float(sample)
    if len(x) < 2 or is_constant(x):
        return 3.0
    return float(np.mean(_standardized(x) ** 4))


def coefficient_of_variation(sample: Iterable[float]) -> float:
    x = as_1d_float(sample)
    if len(x) < 2 or is_constant(x):
        return 0.0
    sd = float(np.std(x, ddof=1))
    mean = float(np.mean(x))
    if mean == 0:
        return 0.0 if sd == 0 else math.inf
    return sd / abs(mean)


# -------------------------
# Assumption checks
# -------------------------

def check_normality(sample: Iterable[float]) -> bool:
    """
    Heuristic normality screen: |skew| < 2 and |kurtosis - 3| < 4.

    Not a formal test. Samples smaller than 8 always pass because the moment
    estimators are unreliable there.
    """
    x = as_1d_float(sample)
    if len(x) < NORMALITY_MIN_N:
        return True
    return (abs(skewness(x)) < MAX_ABS_SKEW
            and abs(kurtosis(x) - 3.0) < MAX_ABS_EXCESS_KURTOSIS)


def check_outliers(sample: Iterable[float]) -> bool:
    """
    True when any value lies outside [q1 - 1.5*IQR, q3 + 1.5*IQR], with the
    quartiles taken as sorted[n//4] and sorted[3n//4].
    """
    x = np.sort(as_1d_float(sample))
    n = len(x)
    if n < 4:
        return False
    q1 = x[n // 4]
    q3 = x[(3 * n) // 4]
    iqr = q3 - q1
    lower = q1 - IQR_FENCE * iqr
    upper = q3 + IQR_FENCE * iqr
    return bool(np.any((x < lower) | (x > upper)))


def validate_assumptions(sample_a: Iterable[float], sample_b: Iterable[float]) -> bool:
    a = as_1d_float(sample_a)
    b = as_1d_float(sample_b)
    return (check_normality(a) and check_normality(b)
            and not check_outliers(a) and not check_outliers(b))


# -------------------------
# Descriptive summaries
# -------------------------

@dataclass(frozen=True)
class SampleSummary:
    n: int
    mean: float
    median: float
    sd: float
    min: float
    max: float
    p95: float
    p99: float
    cv: float


def nearest_rank_percentile(sorted_x: np.ndarray, percentile: float) -> float:
    n = len(sorted_x)
    idx = int(math.ceil(percentile / 100.0 * n)) - 1
    return float(sorted_x[max(0, min(idx, n - 1))])


def describe_sample(sample: Iterable[float]) -> SampleSummary:
    x = as_1d_float(sample)
    if len(x) == 0:
        raise ValueError("Empty input.")
    xs = np.sort(x)
    return SampleSummary(
        n=len(x),
        mean=float(np.mean(x)),
        median=nearest_rank_percentile(xs, 50),
        sd=float(np.std(x, ddof=1)) if len(x) > 1 else 0.0,
        min=float(xs[0]),
        max=float(xs[-1]),
        p95=nearest_rank_percentile(xs, 95),
        p99=nearest_rank_percentile(xs, 99),
        cv=coefficient_of_variation(x),
    )


def describe_groups(groups: Mapping[str, Iterable[float]]) -> pd.DataFrame:
    """
    One row per label with n, mean, median, sd, min, max, p95, p99, cv and
    the two assumption flags.
    """
    rows = []
    for label, values in groups.items():
        x = as_1d_float(values)
        row = {"label": label, **asdict(describe_sample(x))}
        row["normal"] = check_normality(x)
        row["outliers"] = check_outliers(x)
        rows.append(row)
    return pd.DataFrame(rows).set_index("label")
