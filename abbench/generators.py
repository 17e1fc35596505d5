"""
abbench/generators.py

Input generators for benchmark runs.

Every random generator takes an explicit numpy Generator so a run seeded once
is reproducible end to end; nothing here touches global random state.
"""

from __future__ import annotations

from functools import partial
from typing import Callable, Dict

import numpy as np

DataGenerator = Callable[[np.random.Generator], np.ndarray]


def random_array(rng: np.random.Generator, size: int, low: int = 1, high: int = 1000) -> np.ndarray:
    """Uniform integers in [low, high)."""
    if size < 0:
        raise ValueError("size must be >= 0")
    return rng.integers(low, high, size=size)


def worst_case_array(size: int) -> np.ndarray:
    # reverse sorted
    return np.arange(size, 0, -1)


def best_case_array(size: int) -> np.ndarray:
    return np.arange(1, size + 1)


def nearly_sorted_array(rng: np.random.Generator, size: int, disorder: float = 0.1) -> np.ndarray:
    """Sorted 1..size with size*disorder random pair swaps."""
    if not (0.0 <= disorder <= 1.0):
        raise ValueError("disorder must be in [0,1]")
    arr = np.arange(1, size + 1)
    swaps = int(size * disorder)
    if size == 0 or swaps == 0:
        return arr
    pairs = rng.integers(0, size, size=(swaps, 2))
    for i, j in pairs:
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def array_with_duplicates(rng: np.random.Generator, size: int, duplicate_ratio: float = 0.3) -> np.ndarray:
    if not (0.0 <= duplicate_ratio < 1.0):
        raise ValueError("duplicate_ratio must be in [0,1)")
    if size == 0:
        return np.arange(0)
    unique_count = max(1, int(size * (1.0 - duplicate_ratio)))
    unique = np.arange(1, unique_count + 1)
    extra = rng.choice(unique, size=size - unique_count, replace=True)
    return rng.permutation(np.concatenate([unique, extra]))


def _fixed(fn: Callable[[int], np.ndarray], size: int, rng: np.random.Generator) -> np.ndarray:
    return fn(size)


_KINDS: Dict[str, Callable[..., np.ndarray]] = {
    "random": random_array,
    "nearly_sorted": nearly_sorted_array,
    "duplicates": array_with_duplicates,
}


def array_generator(kind: str = "random", size: int = 500, **kwargs) -> DataGenerator:
    """
    Data generator for the orchestrator: returns f(rng) -> fresh array.

    kind is one of random, nearly_sorted, duplicates, worst, best.
    """
    if kind == "worst":
        return partial(_fixed, worst_case_array, size)
    if kind == "best":
        return partial(_fixed, best_case_array, size)
    try:
        fn = _KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown array kind {kind!r}; expected one of "
                         f"{sorted(list(_KINDS) + ['best', 'worst'])}") from None

    def generate(rng: np.random.Generator) -> np.ndarray:
        return fn(rng, size, **kwargs)

    return generate
