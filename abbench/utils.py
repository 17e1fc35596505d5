"""
abbench/utils.py

Utility functions used across the package:
  - Input coercion
  - Reproducibility helpers
  - Formatting for reports
"""

from __future__ import annotations

import re
from dataclasses import asdict, is_dataclass
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from .errors import SampleSizeError


# -------------------------
# Validation / coercion
# -------------------------

def as_1d_float(x: Iterable[float]) -> np.ndarray:
    arr = np.asarray(list(x), dtype=float)
    if arr.ndim != 1:
        raise SampleSizeError("Input must be 1D.")
    return arr


def is_constant(arr: np.ndarray) -> bool:
    # exact: a float mean of equal values can leave a rounding residue in np.var
    return len(arr) > 0 and bool(arr.min() == arr.max())


def require_min_size(arr: np.ndarray, minimum: int = 2, label: str = "sample") -> np.ndarray:
    if len(arr) < minimum:
        raise SampleSizeError(
            f"Each sample group must have at least {minimum} observations "
            f"({label} has {len(arr)})."
        )
    return arr


def safe_rel_change(larger: float, smaller: float) -> float:
    """(larger - smaller) / smaller, with the zero-baseline cases pinned down."""
    if smaller == 0:
        return np.inf if larger != 0 else 0.0
    return (larger - smaller) / smaller


# -------------------------
# Reproducibility
# -------------------------

def rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


# -------------------------
# Reporting / formatting
# -------------------------

def as_report_dict(obj) -> Dict:
    """
    Convert dataclass or dict-like result to a plain dict for JSON/printing.
    """
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    raise TypeError("Expected dataclass or dict.")


def fmt_pct(x: float, digits: int = 1) -> str:
    return f"{x:.{digits}f}%"


def fmt_float(x: float, digits: int = 3) -> str:
    return f"{x:.{digits}f}"


def fmt_pvalue(p: float) -> str:
    if p < 1e-6:
        return "<1e-6"
    return f"{p:.6f}"


def fmt_ci(ci: Tuple[float, float], digits: int = 3) -> str:
    lo, hi = ci
    return f"[{lo:.{digits}f}, {hi:.{digits}f}]"


_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str) -> str:
    cleaned = name.replace("(", "").replace(")", "")
    return _UNSAFE_FILENAME.sub("_", cleaned).strip("_") or "report"
