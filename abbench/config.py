"""
abbench/config.py

Default parameters for benchmark runs and hypothesis tests.

All thresholds live here; the orchestrator and CLI read them from a
BenchmarkConfig instead of hardcoding values. Environment variables prefixed
with ABBENCH_ override the defaults (see BenchmarkConfig.from_env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from .errors import DomainError, check_alpha

# ---------------------------------------------------------------------------
# Hypothesis testing
# ---------------------------------------------------------------------------

DEFAULT_ALPHA = 0.05
DEFAULT_TARGET_POWER = 0.80

# Warnings
LOW_POWER_THRESHOLD = 0.80
SMALL_SAMPLE_THRESHOLD = 30
HIGH_CV_THRESHOLD = 0.5
# Mann-Whitney normal approximation is rough below this per-group size
MWU_APPROXIMATION_MIN_N = 20

# ---------------------------------------------------------------------------
# Sample collection
# ---------------------------------------------------------------------------

DEFAULT_ITERATIONS = 100
DEFAULT_MIN_ITERATIONS = 30
DEFAULT_MAX_ITERATIONS = 1000
DEFAULT_CHECK_EVERY = 10
DEFAULT_POWER_THRESHOLD = 0.80
DEFAULT_WARMUP = True
PROGRESS_FRACTION = 0.10

ENV_PREFIX = "ABBENCH_"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BenchmarkConfig:
    """
    Parameters for one orchestrator run.

    iterations applies to fixed and multi-algorithm runs; min_iterations,
    max_iterations, check_every and power_threshold to sequential runs.
    """
    alpha: float = DEFAULT_ALPHA
    iterations: int = DEFAULT_ITERATIONS
    min_iterations: int = DEFAULT_MIN_ITERATIONS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    check_every: int = DEFAULT_CHECK_EVERY
    power_threshold: float = DEFAULT_POWER_THRESHOLD
    warmup: bool = DEFAULT_WARMUP
    seed: Optional[int] = None

    def validate(self) -> "BenchmarkConfig":
        check_alpha(self.alpha)
        if self.iterations < 2:
            raise DomainError("iterations must be >= 2")
        if self.min_iterations < 2:
            raise DomainError("min_iterations must be >= 2")
        if self.max_iterations < self.min_iterations:
            raise DomainError("max_iterations must be >= min_iterations")
        if self.check_every < 1:
            raise DomainError("check_every must be >= 1")
        if not (0.0 <= self.power_threshold <= 1.0):
            raise DomainError("power_threshold must be in [0,1]")
        return self

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None) -> "BenchmarkConfig":
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown benchmark parameters: {sorted(unknown)}")
        return replace(self, **dict(overrides))

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "BenchmarkConfig":
        """
        Build a config from environment variables, e.g. ABBENCH_ALPHA=0.01,
        ABBENCH_ITERATIONS=50, ABBENCH_WARMUP=false, ABBENCH_SEED=42.
        """
        values: dict = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            if f.name == "warmup":
                values[f.name] = _parse_bool(raw)
            elif f.name in {"alpha", "power_threshold"}:
                values[f.name] = float(raw)
            else:
                values[f.name] = int(raw)
        return cls(**values)
