"""
abbench/stats.py

Hypothesis tests for "algorithm A vs algorithm B" timing comparisons.

What's included:
  - Welch's t-test (unequal variances) + t-based CI for the mean difference
  - Mann-Whitney U test (normal approximation, averaged tie ranks)
  - One-way ANOVA with Bonferroni-corrected pairwise Welch follow-ups
  - Automatic test selection and the narrative recommendation / warnings

Lower is better throughout: samples are execution times, so the "better"
algorithm is the one with the smaller mean.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from itertools import combinations
from typing import Iterable, List, Literal, Mapping, Optional, Tuple

import numpy as np

from .config import (
    DEFAULT_ALPHA,
    DEFAULT_TARGET_POWER,
    HIGH_CV_THRESHOLD,
    LOW_POWER_THRESHOLD,
    MWU_APPROXIMATION_MIN_N,
    SMALL_SAMPLE_THRESHOLD,
)
from .distributions import f_cdf, normal_cdf, t_cdf, t_inverse_cdf
from .errors import Degeneracy, DomainError, SampleSizeError, check_alpha
from .power import (
    cohens_d,
    interpret_cohens_d,
    interpret_rank_biserial,
    minimum_sample_size,
    rank_biserial,
    statistical_power,
)
from .results import MultiGroupResult, SampleStats, TwoSampleResult
from .sanity import check_normality, coefficient_of_variation, validate_assumptions
from .utils import as_1d_float, require_min_size, safe_rel_change

logger = logging.getLogger(__name__)

TEST_WELCH = "Welch's t-test (unequal variances)"
TEST_MANN_WHITNEY = "Mann-Whitney U test (non-parametric)"
TEST_SEQUENTIAL = "Sequential Welch's t-test with early stopping"

Method = Literal["auto", "welch", "mann-whitney"]


# -------------------------
# Small helpers
# -------------------------

def _prepare(sample: Iterable[float], label: str) -> np.ndarray:
    x = require_min_size(as_1d_float(sample), 2, label)
    if not np.all(np.isfinite(x)):
        raise DomainError(f"{label} contains NaN or infinite values")
    return x


def _clip_p(p: float) -> float:
    # guards against rounding just outside [0, 1]
    return min(1.0, max(0.0, p))


def _improvement(a: SampleStats, b: SampleStats) -> Tuple[float, str]:
    larger, smaller = max(a.mean, b.mean), min(a.mean, b.mean)
    pct = float(safe_rel_change(larger, smaller)) * 100.0
    if a.mean == b.mean:
        return pct, "No difference"
    faster = a.label if a.mean < b.mean else b.label
    return pct, f"{faster} faster"


def rank_with_ties(values: Iterable[float]) -> np.ndarray:
    """
    1-based ranks; every member of a tied block gets the average of the
    positions the block occupies.
    """
    x = as_1d_float(values)
    order = np.argsort(x, kind="mergesort")
    ranks = np.empty(len(x), dtype=float)
    i = 0
    n = len(x)
    while i < n:
        j = i
        while j + 1 < n and x[order[j + 1]] == x[order[i]]:
            j += 1
        ranks[order[i:j + 1]] = (i + j + 2) / 2.0
        i = j + 1
    return ranks


# -------------------------
# Narratives
# -------------------------

def recommendation_for(result: TwoSampleResult) -> str:
    if not result.is_significant:
        return (f"No statistically significant difference detected "
                f"(p={result.p_value:.6f} >= alpha={result.alpha:.3f}). "
                "Consider collecting more data or the algorithms perform similarly.")
    return (f"Statistically significant difference detected "
            f"(p={result.p_value:.6f} < alpha={result.alpha:.3f}). "
            f"Recommend using {result.better_label} with "
            f"{result.effect_interpretation.lower()} practical significance "
            f"({result.improvement_pct:.1f}% improvement).")


def business_impact_for(result: TwoSampleResult) -> str:
    if not result.is_significant:
        return "No significant business impact expected from algorithm change."
    x = result.improvement_pct
    if x > 50:
        return (f"HIGH IMPACT: {x:.1f}% performance improvement could significantly "
                "reduce operational costs and improve user experience.")
    if x > 20:
        return f"MEDIUM IMPACT: {x:.1f}% performance improvement provides measurable business value."
    if x > 5:
        return f"LOW IMPACT: {x:.1f}% performance improvement provides marginal business value."
    return f"MINIMAL IMPACT: {x:.1f}% performance improvement may not justify implementation costs."


def warnings_for(result: TwoSampleResult, xa: np.ndarray, xb: np.ndarray) -> Tuple[str, ...]:
    out: List[str] = []
    if result.degeneracy is not None:
        out.append(result.degeneracy.message)

    if result.power < LOW_POWER_THRESHOLD:
        if result.minimum_sample_size is None:
            out.append(f"Low statistical power ({result.power:.3f}). "
                       "The observed effect is zero; no finite sample size will detect it")
        else:
            out.append(f"Low statistical power ({result.power:.3f}). "
                       f"Consider increasing sample size to {result.minimum_sample_size}+")

    normal = check_normality(xa) and check_normality(xb)
    if result.test_type == TEST_MANN_WHITNEY:
        if not normal:
            out.append("Normality assumption violated; non-parametric Mann-Whitney U test used")
        if min(len(xa), len(xb)) < MWU_APPROXIMATION_MIN_N:
            out.append("Mann-Whitney p-value uses the normal approximation, "
                       f"which is rough with fewer than {MWU_APPROXIMATION_MIN_N} observations per group")
    elif not result.assumptions_valid:
        out.append("Normality assumptions may be violated. "
                   "Consider Mann-Whitney U test for non-parametric analysis")

    if len(xa) < SMALL_SAMPLE_THRESHOLD or len(xb) < SMALL_SAMPLE_THRESHOLD:
        out.append("Small sample sizes may affect reliability. "
                   f"Central Limit Theorem is more reliable with n>={SMALL_SAMPLE_THRESHOLD}")

    if (coefficient_of_variation(xa) > HIGH_CV_THRESHOLD
            or coefficient_of_variation(xb) > HIGH_CV_THRESHOLD):
        out.append("High coefficient of variation detected. Results may be influenced by outliers")
    return tuple(out)


def _finalize(draft: TwoSampleResult, xa: np.ndarray, xb: np.ndarray) -> TwoSampleResult:
    return replace(
        draft,
        recommendation=recommendation_for(draft),
        business_impact=business_impact_for(draft),
        warnings=warnings_for(draft, xa, xb),
    )


# -------------------------
# Two-sample tests
# -------------------------

def welch_ttest(
    samples_a: Iterable[float],
    samples_b: Iterable[float],
    label_a: str = "Algorithm A",
    label_b: str = "Algorithm B",
    alpha: float = DEFAULT_ALPHA,
) -> TwoSampleResult:
    """
    Welch's t-test for a difference in mean execution time + t-based CI.

    Degrees of freedom come from Welch-Satterthwaite; no equal-variance
    assumption is made. When both groups have zero variance the t statistic
    is undefined: the result is returned with a zero_variance degeneracy tag
    (t=0, p=1 for equal means; t=+/-inf, p=0 otherwise) instead of raising.
    """
    check_alpha(alpha)
    xa = _prepare(samples_a, label_a)
    xb = _prepare(samples_b, label_b)
    sa = SampleStats.from_array(label_a, xa)
    sb = SampleStats.from_array(label_b, xb)

    va = sa.variance / sa.n
    vb = sb.variance / sb.n
    se = math.sqrt(va + vb)
    diff = sa.mean - sb.mean

    degeneracy: Optional[Degeneracy] = None
    if se == 0:
        df = float(sa.n + sb.n - 2)
        if diff == 0:
            t_stat, p_value = 0.0, 1.0
        else:
            t_stat, p_value = math.copysign(math.inf, diff), 0.0
        degeneracy = Degeneracy(
            kind="zero_variance",
            message=f"Both {label_a} and {label_b} have zero variance; "
                    "t statistic is degenerate",
        )
        logger.debug("Welch t-test on zero-variance samples (%s vs %s)", label_a, label_b)
    else:
        t_stat = diff / se
        df = (va + vb) ** 2 / (va ** 2 / (sa.n - 1) + vb ** 2 / (sb.n - 1))
        p_value = _clip_p(2.0 * (1.0 - t_cdf(abs(t_stat), df)))

    d = cohens_d(sa.mean, sb.mean, sa.variance, sb.variance)
    t_crit = t_inverse_cdf(1.0 - alpha / 2.0, df)
    margin = t_crit * se
    pct, direction = _improvement(sa, sb)

    draft = TwoSampleResult(
        label_a=label_a,
        label_b=label_b,
        test_type=TEST_WELCH,
        stats_a=sa,
        stats_b=sb,
        statistic=float(t_stat),
        df=float(df),
        p_value=float(p_value),
        alpha=alpha,
        is_significant=p_value < alpha,
        effect_size=d,
        effect_size_name="Cohen's d",
        effect_interpretation=interpret_cohens_d(d),
        ci=(diff - margin, diff + margin),
        power=statistical_power(d, sa.n, sb.n, alpha),
        minimum_sample_size=minimum_sample_size(d, alpha, DEFAULT_TARGET_POWER),
        improvement_pct=pct,
        improvement_direction=direction,
        assumptions_valid=validate_assumptions(xa, xb),
        degeneracy=degeneracy,
    )
    return _finalize(draft, xa, xb)


def mannwhitney_u_test(
    samples_a: Iterable[float],
    samples_b: Iterable[float],
    label_a: str = "Algorithm A",
    label_b: str = "Algorithm B",
    alpha: float = DEFAULT_ALPHA,
) -> TwoSampleResult:
    """
    Mann-Whitney U test with the large-sample normal approximation.

    No exact small-sample distribution and no tie correction to the variance
    of U; results for small groups carry a warning. The effect size is the
    rank-biserial correlation; power and minimum sample size are reported
    from Cohen's d of the same samples so every result carries them.
    """
    check_alpha(alpha)
    xa = _prepare(samples_a, label_a)
    xb = _prepare(samples_b, label_b)
    sa = SampleStats.from_array(label_a, xa)
    sb = SampleStats.from_array(label_b, xb)
    na, nb = sa.n, sb.n

    ranks = rank_with_ties(np.concatenate([xa, xb]))
    sum_ranks_a = float(np.sum(ranks[:na]))
    u_a = sum_ranks_a - na * (na + 1) / 2.0
    u_b = na * nb - u_a
    u = min(u_a, u_b)

    mean_u = na * nb / 2.0
    std_u = math.sqrt(na * nb * (na + nb + 1) / 12.0)
    z = (u - mean_u) / std_u
    p_value = _clip_p(2.0 * (1.0 - normal_cdf(abs(z))))

    r = abs(rank_biserial(u, na, nb))
    d = cohens_d(sa.mean, sb.mean, sa.variance, sb.variance)
    pct, direction = _improvement(sa, sb)

    draft = TwoSampleResult(
        label_a=label_a,
        label_b=label_b,
        test_type=TEST_MANN_WHITNEY,
        stats_a=sa,
        stats_b=sb,
        statistic=float(z),
        df=None,
        p_value=float(p_value),
        alpha=alpha,
        is_significant=p_value < alpha,
        effect_size=r,
        effect_size_name="rank-biserial r",
        effect_interpretation=interpret_rank_biserial(r),
        ci=None,
        power=statistical_power(d, na, nb, alpha),
        minimum_sample_size=minimum_sample_size(d, alpha, DEFAULT_TARGET_POWER),
        improvement_pct=pct,
        improvement_direction=direction,
        assumptions_valid=True,  # no distributional assumption to violate
        u_statistic=float(u),
    )
    return _finalize(draft, xa, xb)


def select_two_sample_test(samples_a: Iterable[float], samples_b: Iterable[float]) -> str:
    """'welch' when both samples pass the normality screen, else 'mann-whitney'."""
    if check_normality(samples_a) and check_normality(samples_b):
        return "welch"
    return "mann-whitney"


def run_two_sample_test(
    samples_a: Iterable[float],
    samples_b: Iterable[float],
    label_a: str = "Algorithm A",
    label_b: str = "Algorithm B",
    alpha: float = DEFAULT_ALPHA,
    method: Method = "auto",
) -> TwoSampleResult:
    xa = _prepare(samples_a, label_a)
    xb = _prepare(samples_b, label_b)
    if method == "auto":
        method = select_two_sample_test(xa, xb)  # type: ignore[assignment]
        if method == "welch":
            logger.info("Data meets normality assumptions - using Welch's t-test")
        else:
            logger.info("Data violates normality assumptions - using Mann-Whitney U test")
    if method == "welch":
        return welch_ttest(xa, xb, label_a, label_b, alpha)
    if method == "mann-whitney":
        return mannwhitney_u_test(xa, xb, label_a, label_b, alpha)
    raise ValueError("method must be 'auto', 'welch', or 'mann-whitney'")


# -------------------------
# Multiple groups
# -------------------------

def bonferroni_alpha(alpha: float, k: int) -> float:
    """alpha / C(k, 2): per-pair threshold for all pairwise comparisons of k groups."""
    check_alpha(alpha)
    if k < 2:
        raise SampleSizeError("Need at least 2 groups for comparison")
    return alpha / math.comb(k, 2)


def one_way_anova(groups: Mapping[str, Iterable[float]], alpha: float = DEFAULT_ALPHA) -> MultiGroupResult:
    """
    One-way ANOVA F-test over labelled groups.

    Pairwise Welch t-tests at the Bonferroni-adjusted alpha run only when the
    overall test is significant. The best group is the one with the lowest
    mean (lower execution time is better).
    """
    check_alpha(alpha)
    if len(groups) < 2:
        raise SampleSizeError("Need at least 2 algorithms for comparison")

    samples = {label: _prepare(values, label) for label, values in groups.items()}
    labels = tuple(samples)
    stats = tuple(SampleStats.from_array(label, x) for label, x in samples.items())

    pooled = np.concatenate(list(samples.values()))
    grand_mean = float(np.mean(pooled))
    total_n = len(pooled)
    k = len(samples)

    if len({s.mean for s in stats}) == 1:
        ssb = 0.0
    else:
        ssb = sum(s.n * (s.mean - grand_mean) ** 2 for s in stats)
    # constant groups contribute exactly 0 (SampleStats pins their variance)
    ssw = sum((s.n - 1) * s.variance for s in stats)
    df_between = k - 1
    df_within = total_n - k

    degeneracy: Optional[Degeneracy] = None
    if ssw == 0:
        f_stat, p_value = (0.0, 1.0) if ssb == 0 else (math.inf, 0.0)
        degeneracy = Degeneracy(
            kind="zero_within_group_variance",
            message="Every group has zero variance; F statistic is degenerate",
        )
        logger.debug("ANOVA on zero within-group variance")
    else:
        f_stat = (ssb / df_between) / (ssw / df_within)
        p_value = _clip_p(1.0 - f_cdf(f_stat, df_between, df_within))

    best = min(stats, key=lambda s: s.mean)
    adjusted = bonferroni_alpha(alpha, k)
    is_significant = p_value < alpha

    pairwise: Tuple[TwoSampleResult, ...] = ()
    if is_significant:
        pairwise = tuple(
            welch_ttest(samples[a], samples[b], a, b, adjusted)
            for a, b in combinations(labels, 2)
        )

    return MultiGroupResult(
        labels=labels,
        f_statistic=float(f_stat),
        df_between=df_between,
        df_within=df_within,
        p_value=float(p_value),
        alpha=alpha,
        is_significant=is_significant,
        best_label=best.label,
        best_mean=best.mean,
        group_stats=stats,
        adjusted_alpha=adjusted,
        pairwise=pairwise,
        degeneracy=degeneracy,
    )


def run_multi_group_test(groups: Mapping[str, Iterable[float]], alpha: float = DEFAULT_ALPHA) -> MultiGroupResult:
    return one_way_anova(groups, alpha)
