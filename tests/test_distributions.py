import math

import numpy as np
import pytest
from scipy import special
from scipy import stats as sps

from abbench.distributions import (
    T_NORMAL_CUTOFF_DF,
    f_cdf,
    incomplete_beta,
    log_gamma,
    normal_cdf,
    normal_inverse_cdf,
    t_cdf,
    t_inverse_cdf,
    t_pdf,
)
from abbench.errors import DomainError


# scipy is only the reference here; the library never imports it.

def test_normal_cdf_matches_reference():
    for z in np.linspace(-8, 8, 161):
        assert normal_cdf(float(z)) == pytest.approx(sps.norm.cdf(z), abs=1e-9)


def test_normal_cdf_center_and_symmetry():
    assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-15)
    for z in [0.1, 0.5, 1.0, 1.96, 3.0, 5.0, 7.5, 12.0]:
        assert normal_cdf(-z) == pytest.approx(1.0 - normal_cdf(z), abs=1e-12)


def test_normal_cdf_is_monotone():
    grid = np.linspace(-10, 10, 2001)
    values = [normal_cdf(float(z)) for z in grid]
    assert all(b >= a for a, b in zip(values, values[1:]))
    assert normal_cdf(-40.0) == 0.0
    assert normal_cdf(40.0) == 1.0


def test_normal_inverse_matches_reference():
    for p in [1e-7, 1e-4, 0.001, 0.025, 0.05, 0.2, 0.5, 0.8, 0.95, 0.975, 0.999, 1 - 1e-6]:
        assert normal_inverse_cdf(p) == pytest.approx(sps.norm.ppf(p), abs=1e-6)


def test_normal_round_trip_over_five_sigma():
    for z in np.linspace(-5, 5, 101):
        assert normal_inverse_cdf(normal_cdf(float(z))) == pytest.approx(z, abs=1e-4)


@pytest.mark.parametrize("p", [0.0, 1.0, -0.1, 1.5])
def test_normal_inverse_rejects_out_of_domain(p):
    with pytest.raises(DomainError):
        normal_inverse_cdf(p)


def test_t_cdf_matches_reference_below_cutoff():
    for df in [1, 2, 3.5, 5, 10, 29.5]:
        for t in [-6.0, -2.5, -1.0, -0.2, 0.0, 0.3, 1.0, 2.0, 4.0, 10.0]:
            assert t_cdf(t, df) == pytest.approx(sps.t.cdf(t, df), abs=1e-7)


def test_t_cdf_is_half_at_zero():
    # regression: the t >= 0 branch must not return 1 at t == 0
    for df in [1, 4, 12]:
        assert t_cdf(0.0, df) == pytest.approx(0.5, abs=1e-12)


def test_t_cdf_uses_normal_from_cutoff():
    assert t_cdf(1.7, T_NORMAL_CUTOFF_DF) == normal_cdf(1.7)
    assert t_cdf(-0.4, 250) == normal_cdf(-0.4)


def test_t_cdf_large_df_close_to_reference():
    for t in np.linspace(-5, 5, 41):
        assert abs(t_cdf(float(t), 1000) - sps.t.cdf(t, 1000)) < 1e-3
        assert abs(t_cdf(float(t), 1000) - normal_cdf(float(t))) < 1e-3
    # worst case of the normal hand-off, right at the cutoff
    for t in [1.0, 2.0, 2.5]:
        assert abs(t_cdf(t, T_NORMAL_CUTOFF_DF) - sps.t.cdf(t, T_NORMAL_CUTOFF_DF)) < 1e-2


def test_t_pdf_matches_reference():
    for df in [1, 3, 8, 40]:
        for t in [-3.0, 0.0, 0.7, 2.2]:
            assert t_pdf(t, df) == pytest.approx(sps.t.pdf(t, df), rel=1e-7)


def test_t_inverse_round_trip_and_reference():
    for df in [2, 5, 9, 20]:
        for p in [0.01, 0.1, 0.5, 0.9, 0.975, 0.995]:
            t = t_inverse_cdf(p, df)
            assert t_cdf(t, df) == pytest.approx(p, abs=1e-8)
            assert t == pytest.approx(sps.t.ppf(p, df), abs=1e-5)


def test_t_rejects_bad_arguments():
    with pytest.raises(DomainError):
        t_cdf(1.0, 0)
    with pytest.raises(DomainError):
        t_cdf(1.0, -3)
    with pytest.raises(DomainError):
        t_inverse_cdf(0.0, 5)
    with pytest.raises(DomainError):
        t_inverse_cdf(0.5, 0)


def test_f_cdf_matches_reference():
    for df1, df2 in [(1, 1), (2, 10), (3, 27), (5, 100)]:
        for f in [0.05, 0.5, 1.0, 2.5, 8.0]:
            assert f_cdf(f, df1, df2) == pytest.approx(sps.f.cdf(f, df1, df2), abs=1e-7)


def test_f_cdf_edges():
    assert f_cdf(0.0, 2, 10) == 0.0
    assert f_cdf(-1.0, 2, 10) == 0.0
    assert f_cdf(math.inf, 2, 10) == 1.0
    with pytest.raises(DomainError):
        f_cdf(1.0, 0, 10)
    with pytest.raises(DomainError):
        f_cdf(1.0, 3, -1)


def test_incomplete_beta_matches_reference():
    for a, b in [(0.5, 0.5), (1, 1), (2, 5), (10, 0.5), (30, 40)]:
        for x in [0.01, 0.2, 0.5, 0.8, 0.99]:
            assert incomplete_beta(a, b, x) == pytest.approx(special.betainc(a, b, x), abs=1e-8)


def test_incomplete_beta_edges_and_domain():
    assert incomplete_beta(2, 3, 0.0) == 0.0
    assert incomplete_beta(2, 3, 1.0) == 1.0
    with pytest.raises(DomainError):
        incomplete_beta(0, 1, 0.5)
    with pytest.raises(DomainError):
        incomplete_beta(1, -2, 0.5)


def test_log_gamma_matches_math_lgamma():
    for x in [0.1, 0.5, 1.0, 2.5, 6.9, 7.0, 10.0, 100.0, 1e4]:
        assert log_gamma(x) == pytest.approx(math.lgamma(x), abs=1e-8)


@pytest.mark.parametrize("x", [0.0, -1.0, -0.5])
def test_log_gamma_rejects_non_positive(x):
    with pytest.raises(DomainError):
        log_gamma(x)


def test_nan_is_a_domain_error():
    with pytest.raises(DomainError):
        normal_cdf(float("nan"))
    with pytest.raises(DomainError):
        t_cdf(float("nan"), 5)
