"""
abbench/errors.py

Error taxonomy for the statistics engine.

  - StatsError: base class; subclasses ValueError so callers that already
    catch ValueError keep working.
  - DomainError: argument outside a function's mathematical domain
    (probabilities, degrees of freedom, shape parameters, alpha).
  - SampleSizeError: not enough data to run a test.
  - Degeneracy: tag attached to a *result* (not raised) when the data is
    numerically degenerate, e.g. zero variance in every group.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


class StatsError(ValueError):
    """Base class for validation failures raised by abbench."""


class DomainError(StatsError):
    """Argument outside the domain of a distribution or special function."""


class SampleSizeError(StatsError):
    """Too few observations (or groups) for the requested test."""


DegeneracyKind = Literal["zero_variance", "zero_within_group_variance"]


@dataclass(frozen=True)
class Degeneracy:
    kind: DegeneracyKind
    message: str


def check_alpha(alpha: float) -> float:
    if not (0 < alpha < 1):
        raise DomainError(f"alpha must be in (0,1), got {alpha!r}")
    return alpha


def check_probability(p: float, name: str = "p") -> float:
    if not (0.0 < p < 1.0):
        raise DomainError(f"{name} must be in the open interval (0,1), got {p!r}")
    return p


def check_positive(value: float, name: str) -> float:
    if not value > 0:
        raise DomainError(f"{name} must be > 0, got {value!r}")
    return value
