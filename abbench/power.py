"""
abbench/power.py

Effect sizes, statistical power and sample-size planning.

  - Cohen's d (pooled SD, equal-weight) and rank-biserial correlation,
    each with its own interpretation tiers
  - Power of a two-sided two-sample t-test (normal approximation)
  - Minimum per-group sample size (Cohen's formula)
"""

from __future__ import annotations

import math
from typing import Optional

from .distributions import normal_cdf, normal_inverse_cdf, t_inverse_cdf
from .errors import DomainError, SampleSizeError, check_alpha, check_probability
from .config import DEFAULT_ALPHA, DEFAULT_TARGET_POWER


def z_alpha(alpha: float, two_sided: bool = True) -> float:
    check_alpha(alpha)
    a = alpha / 2.0 if two_sided else alpha
    return normal_inverse_cdf(1.0 - a)


def z_beta(power: float) -> float:
    check_probability(power, "power")
    return normal_inverse_cdf(power)


# -------------------------
# Effect sizes
# -------------------------

def cohens_d(mean_a: float, mean_b: float, var_a: float, var_b: float) -> float:
    """
    |mean_a - mean_b| / sqrt((var_a + var_b) / 2)

    With zero variance in both groups the ratio is pinned: 0.0 for equal
    means, inf otherwise.
    """
    if var_a < 0 or var_b < 0:
        raise DomainError("variances must be non-negative")
    diff = abs(mean_a - mean_b)
    pooled = math.sqrt((var_a + var_b) / 2.0)
    if pooled == 0:
        return 0.0 if diff == 0 else math.inf
    return diff / pooled


def interpret_cohens_d(d: float) -> str:
    d = abs(d)
    if d < 0.2:
        return "Negligible effect"
    if d < 0.5:
        return "Small effect"
    if d < 0.8:
        return "Medium effect"
    return "Large effect"


def rank_biserial(u: float, n_a: int, n_b: int) -> float:
    if n_a <= 0 or n_b <= 0:
        raise SampleSizeError("n_a and n_b must be > 0")
    return 1.0 - (2.0 * u) / (n_a * n_b)


def interpret_rank_biserial(r: float) -> str:
    # not on the same scale as Cohen's d, hence the tighter tiers
    r = abs(r)
    if r < 0.1:
        return "Negligible effect"
    if r < 0.3:
        return "Small effect"
    if r < 0.5:
        return "Medium effect"
    return "Large effect"


# -------------------------
# Power / sample size
# -------------------------

def statistical_power(d: float, n1: int, n2: int, alpha: float = DEFAULT_ALPHA) -> float:
    """
    Approximate power of a two-sided two-sample t-test.

    Exact power needs the noncentral t; this uses the usual normal
    approximation around the noncentrality delta = d * sqrt(n1*n2/(n1+n2)).
    """
    check_alpha(alpha)
    if n1 < 2 or n2 < 2:
        raise SampleSizeError("power needs at least 2 observations per group")
    if math.isnan(d):
        raise DomainError("effect size must be a number, got NaN")

    d = abs(d)
    critical = t_inverse_cdf(1.0 - alpha / 2.0, n1 + n2 - 2)
    if math.isinf(d):
        return 1.0
    delta = d * math.sqrt((n1 * n2) / float(n1 + n2))
    power = 1.0 - normal_cdf(critical - delta) + normal_cdf(-critical - delta)
    return min(1.0, max(0.0, power))


def minimum_sample_size(d: float,
                        alpha: float = DEFAULT_ALPHA,
                        target_power: float = DEFAULT_TARGET_POWER) -> Optional[int]:
    """
    Per-group n needed to detect effect d: ceil(2 * (z_{1-alpha/2} + z_power)^2 / d^2).

    Returns None for d == 0 (no finite sample detects a zero effect). The
    result is never below 2, the smallest sample any test here accepts.
    """
    za = z_alpha(alpha, two_sided=True)
    zb = z_beta(target_power)
    d = abs(d)
    if math.isnan(d):
        raise DomainError("effect size must be a number, got NaN")
    if d == 0:
        return None
    if math.isinf(d):
        return 2
    n = 2.0 * (za + zb) ** 2 / (d ** 2)
    return max(2, int(math.ceil(n)))
