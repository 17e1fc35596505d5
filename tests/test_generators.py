import numpy as np
import pytest

from abbench.generators import (
    array_generator,
    array_with_duplicates,
    best_case_array,
    nearly_sorted_array,
    random_array,
    worst_case_array,
)


def test_random_array_range_and_seed():
    a = random_array(np.random.default_rng(1), 200, low=5, high=10)
    b = random_array(np.random.default_rng(1), 200, low=5, high=10)
    assert a.shape == (200,)
    assert a.min() >= 5 and a.max() < 10
    assert np.array_equal(a, b)


def test_fixed_orderings():
    assert list(best_case_array(4)) == [1, 2, 3, 4]
    assert list(worst_case_array(4)) == [4, 3, 2, 1]


def test_nearly_sorted_is_a_permutation():
    arr = nearly_sorted_array(np.random.default_rng(0), 100, disorder=0.1)
    assert sorted(arr.tolist()) == list(range(1, 101))
    # at most 2 positions move per swap
    assert np.sum(arr != np.arange(1, 101)) <= 20
    with pytest.raises(ValueError):
        nearly_sorted_array(np.random.default_rng(0), 10, disorder=2.0)


def test_array_with_duplicates():
    arr = array_with_duplicates(np.random.default_rng(0), 100, duplicate_ratio=0.5)
    assert len(arr) == 100
    assert len(np.unique(arr)) <= 50
    assert set(range(1, 51)) <= set(arr.tolist())


def test_array_generator_kinds():
    rng = np.random.default_rng(3)
    assert len(array_generator("random", 12)(rng)) == 12
    assert list(array_generator("best", 3)(rng)) == [1, 2, 3]
    assert list(array_generator("worst", 3)(rng)) == [3, 2, 1]
    assert len(array_generator("duplicates", 30, duplicate_ratio=0.5)(rng)) == 30
    with pytest.raises(ValueError):
        array_generator("zigzag", 10)
