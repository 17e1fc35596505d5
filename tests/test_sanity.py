# tests/test_sanity.py
import numpy as np
import pytest

from abbench.sanity import (
    check_normality,
    check_outliers,
    coefficient_of_variation,
    describe_groups,
    describe_sample,
    kurtosis,
    skewness,
    validate_assumptions,
)


def test_normality_passes_for_normal_data():
    rng = np.random.default_rng(0)
    x = rng.normal(100.0, 5.0, size=500)
    assert check_normality(x)


def test_normality_flags_heavy_skew():
    # one huge value among constants => skewness far above 2
    x = [1.0] * 19 + [1000.0]
    assert skewness(x) > 2
    assert not check_normality(x)


def test_normality_small_samples_always_pass():
    assert check_normality([1.0, 1.0, 1.0, 1000.0])
    assert check_normality([3.0, 7.0])


def test_constant_sample_counts_as_normal():
    x = [4.0] * 20
    assert skewness(x) == 0.0
    assert kurtosis(x) == pytest.approx(3.0)
    assert check_normality(x)


def test_constant_float_sample_has_no_shape():
    x = [0.1] * 20
    assert skewness(x) == 0.0
    assert kurtosis(x) == 3.0
    assert coefficient_of_variation(x) == 0.0
    assert check_normality(x)


def test_check_outliers_iqr_rule():
    # q1 = sorted[1] = 2, q3 = sorted[3] = 4 => fences (-1, 7)
    assert check_outliers([1, 2, 3, 4, 100])
    assert not check_outliers([1, 2, 3, 4, 5])
    assert not check_outliers([1, 2, 500])  # fewer than 4 values


def test_check_outliers_does_not_mutate_input():
    data = [5.0, 1.0, 3.0, 2.0, 4.0]
    check_outliers(data)
    assert data == [5.0, 1.0, 3.0, 2.0, 4.0]


def test_coefficient_of_variation():
    assert coefficient_of_variation([10.0, 10.0, 10.0]) == 0.0
    assert coefficient_of_variation([9.0, 11.0]) == pytest.approx(np.std([9, 11], ddof=1) / 10.0)
    assert coefficient_of_variation([-1.0, 1.0]) == float("inf")


def test_validate_assumptions_requires_both_clean():
    rng = np.random.default_rng(1)
    clean = rng.normal(50.0, 2.0, size=200)
    clean = clean[(clean > 45) & (clean < 55)]  # trim tails so no IQR outliers
    dirty = np.concatenate([clean, [500.0]])
    assert validate_assumptions(clean, clean[::-1])
    assert not validate_assumptions(clean, dirty)


def test_describe_sample_nearest_rank():
    s = describe_sample(np.arange(1, 101))
    assert s.n == 100
    assert s.mean == pytest.approx(50.5)
    assert s.median == 50
    assert s.p95 == 95
    assert s.p99 == 99
    assert s.min == 1 and s.max == 100


def test_describe_sample_rejects_empty():
    with pytest.raises(ValueError):
        describe_sample([])


def test_describe_groups_frame():
    df = describe_groups({"fast": [1.0, 1.1, 0.9, 1.0], "slow": [2.0, 2.2, 1.8, 9.0]})
    assert list(df.index) == ["fast", "slow"]
    assert {"n", "mean", "p95", "cv", "normal", "outliers"} <= set(df.columns)
    assert df.loc["fast", "n"] == 4
    assert df.loc["slow", "mean"] == pytest.approx(3.75)
