"""
abbench/orchestrator.py

Sample collection for algorithm A/B benchmarks.

Three protocols:
  - fixed: warm-up, then a fixed number of A/B rounds; the test is chosen
    from the normality screen (Welch or Mann-Whitney)
  - multi: the same loop over N named operations, analysed with ANOVA
  - sequential: rounds continue until an interim Welch test is significant
    with adequate power, or max_iterations is reached

Measured operations run strictly one after another, never concurrently, so
scheduling noise does not leak into the timings being compared. Each input is
drawn fresh for each operation (unpaired design). An exception raised by a
measured operation aborts the run; there is no retry and no timeout.
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Mapping, Optional, Tuple, Union

import numpy as np

from .config import PROGRESS_FRACTION, BenchmarkConfig
from .results import MultiGroupResult, TwoSampleResult
from .stats import TEST_SEQUENTIAL, one_way_anova, run_two_sample_test, welch_ttest
from .utils import rng as make_rng

logger = logging.getLogger(__name__)

MeasuredOperation = Callable[[Any], Union[float, Awaitable[float]]]
DataGenerator = Callable[..., Any]
StopReason = Literal["significant", "max_iterations"]


# -------------------------
# Measurement helpers
# -------------------------

async def measure(operation: MeasuredOperation, data: Any) -> float:
    """Run one measured operation and return the duration it reports."""
    out = operation(data)
    if inspect.isawaitable(out):
        out = await out
    return float(out)


def timed(fn: Callable[[Any], Any]) -> MeasuredOperation:
    """
    Turn fn(data) (plain or async) into a measured operation that returns
    its wall-clock duration in milliseconds.
    """
    @functools.wraps(fn)
    async def measured(data: Any) -> float:
        start = time.perf_counter()
        out = fn(data)
        if inspect.isawaitable(out):
            await out
        return (time.perf_counter() - start) * 1000.0

    return measured


def _takes_rng(generator: DataGenerator) -> bool:
    try:
        sig = inspect.signature(generator)
    except (TypeError, ValueError):
        return True
    for p in sig.parameters.values():
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if (p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
                and p.default is inspect.Parameter.empty):
            return True
    return False


# -------------------------
# Run records
# -------------------------

@dataclass(frozen=True)
class InterimCheck:
    n: int
    p_value: float
    power: float
    significant: bool


@dataclass(frozen=True)
class SequentialOutcome:
    result: TwoSampleResult
    stop_reason: StopReason
    n_per_group: int
    checks: Tuple[InterimCheck, ...] = ()

    @property
    def stopped_early(self) -> bool:
        return self.stop_reason == "significant"


@dataclass(frozen=True)
class RunRecord:
    mode: str
    labels: Tuple[str, ...]
    iterations: int
    p_value: float
    significant: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> str:
        verdict = "significant" if self.significant else "not significant"
        return (f"{self.timestamp:%Y-%m-%d %H:%M:%S} - {' vs '.join(self.labels)} "
                f"[{self.mode}, n={self.iterations}]: p={self.p_value:.6f} ({verdict})")


# -------------------------
# Orchestrator
# -------------------------

class ABBenchmark:
    """
    Owns the random generator, the sample lists of the current run and the
    run history. One instance per logical test session; not thread-safe.
    """

    def __init__(self,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 config: Optional[BenchmarkConfig] = None) -> None:
        if config is None:
            config = BenchmarkConfig(seed=seed)
        self.config = config.validate()
        if rng is None:
            rng = make_rng(seed if seed is not None else self.config.seed)
        self.rng = rng
        self._history: List[RunRecord] = []

    # ---- internals ----

    def _settings(self, **overrides: Any) -> BenchmarkConfig:
        given = {k: v for k, v in overrides.items() if v is not None}
        return self.config.with_overrides(given).validate()

    def _generate(self, data_generator: DataGenerator) -> Any:
        if _takes_rng(data_generator):
            return data_generator(self.rng)
        return data_generator()

    async def _warmup(self, operations: Mapping[str, MeasuredOperation], data_generator: DataGenerator) -> None:
        # results discarded: removes cold-start effects (imports, caches, JIT)
        logger.info("Warming up %d operation(s)", len(operations))
        for operation in operations.values():
            await measure(operation, self._generate(data_generator))

    async def _round(self,
                     operations: Mapping[str, MeasuredOperation],
                     data_generator: DataGenerator,
                     samples: Dict[str, List[float]]) -> None:
        for label, operation in operations.items():
            data = self._generate(data_generator)
            samples[label].append(await measure(operation, data))

    async def collect(self,
                      operations: Mapping[str, MeasuredOperation],
                      data_generator: DataGenerator,
                      iterations: int,
                      warmup: bool = True) -> Dict[str, List[float]]:
        """Run `iterations` rounds over every operation and return the raw durations."""
        if len(operations) < 2:
            raise ValueError("Need at least 2 operations to compare")
        samples: Dict[str, List[float]] = {label: [] for label in operations}
        if warmup:
            await self._warmup(operations, data_generator)

        logger.info("Collecting performance samples (%d iterations)", iterations)
        step = max(1, int(iterations * PROGRESS_FRACTION))
        for i in range(iterations):
            await self._round(operations, data_generator, samples)
            if (i + 1) % step == 0:
                logger.info("Progress: %d/%d (%.1f%%)", i + 1, iterations, (i + 1) * 100.0 / iterations)
        logger.info("Data collection completed")
        return samples

    def _record(self, mode: str, labels: Tuple[str, ...], iterations: int,
                p_value: float, significant: bool) -> None:
        self._history.append(RunRecord(mode, labels, iterations, p_value, significant))

    # ---- protocols ----

    async def run_fixed(self,
                        measure_a: MeasuredOperation,
                        measure_b: MeasuredOperation,
                        data_generator: DataGenerator,
                        label_a: str = "Algorithm A",
                        label_b: str = "Algorithm B",
                        iterations: Optional[int] = None,
                        alpha: Optional[float] = None,
                        warmup: Optional[bool] = None) -> TwoSampleResult:
        cfg = self._settings(iterations=iterations, alpha=alpha, warmup=warmup)
        logger.info("Starting A/B test: %s vs %s (iterations=%d, alpha=%.3f)",
                    label_a, label_b, cfg.iterations, cfg.alpha)

        samples = await self.collect({label_a: measure_a, label_b: measure_b},
                                     data_generator, cfg.iterations, cfg.warmup)
        result = run_two_sample_test(samples[label_a], samples[label_b],
                                     label_a, label_b, cfg.alpha, method="auto")
        self._record("fixed", (label_a, label_b), cfg.iterations, result.p_value, result.is_significant)
        return result

    async def run_multi(self,
                        operations: Mapping[str, MeasuredOperation],
                        data_generator: DataGenerator,
                        iterations: Optional[int] = None,
                        alpha: Optional[float] = None,
                        warmup: Optional[bool] = None) -> MultiGroupResult:
        cfg = self._settings(iterations=iterations, alpha=alpha, warmup=warmup)
        logger.info("Starting multi-algorithm comparison: %s (iterations=%d, alpha=%.3f)",
                    ", ".join(operations), cfg.iterations, cfg.alpha)

        samples = await self.collect(operations, data_generator, cfg.iterations, cfg.warmup)
        logger.info("Performing ANOVA analysis")
        result = one_way_anova(samples, cfg.alpha)
        self._record("multi", tuple(operations), cfg.iterations, result.p_value, result.is_significant)
        return result

    async def run_sequential(self,
                             measure_a: MeasuredOperation,
                             measure_b: MeasuredOperation,
                             data_generator: DataGenerator,
                             label_a: str = "Algorithm A",
                             label_b: str = "Algorithm B",
                             min_iterations: Optional[int] = None,
                             max_iterations: Optional[int] = None,
                             alpha: Optional[float] = None,
                             power_threshold: Optional[float] = None,
                             check_every: Optional[int] = None,
                             warmup: Optional[bool] = None) -> SequentialOutcome:
        """
        Collect A/B pairs until early stopping or max_iterations.

        Once min_iterations pairs exist, and after every check_every further
        pairs, an interim Welch test runs; collection stops when it is
        significant and its power reaches power_threshold. The returned
        result re-runs the test on every sample collected.
        """
        cfg = self._settings(min_iterations=min_iterations, max_iterations=max_iterations,
                             alpha=alpha, power_threshold=power_threshold,
                             check_every=check_every, warmup=warmup)
        logger.info("Starting sequential A/B test: %s vs %s (min=%d, max=%d, alpha=%.3f, power>=%.2f)",
                    label_a, label_b, cfg.min_iterations, cfg.max_iterations,
                    cfg.alpha, cfg.power_threshold)

        operations = {label_a: measure_a, label_b: measure_b}
        if len(operations) < 2:
            raise ValueError("label_a and label_b must differ")
        samples: Dict[str, List[float]] = {label_a: [], label_b: []}
        if cfg.warmup:
            await self._warmup(operations, data_generator)

        checks: List[InterimCheck] = []
        stop_reason: StopReason = "max_iterations"
        for i in range(cfg.max_iterations):
            await self._round(operations, data_generator, samples)
            n = i + 1
            if n < cfg.min_iterations or (n - cfg.min_iterations) % cfg.check_every:
                continue

            interim = welch_ttest(samples[label_a], samples[label_b], label_a, label_b, cfg.alpha)
            checks.append(InterimCheck(n, interim.p_value, interim.power, interim.is_significant))
            logger.debug("Iteration %d: p=%.6f, power=%.3f", n, interim.p_value, interim.power)
            if interim.is_significant and interim.power >= cfg.power_threshold:
                logger.info("Early stopping at iteration %d: significance achieved with adequate power", n)
                stop_reason = "significant"
                break

        n_collected = len(samples[label_a])
        final = welch_ttest(samples[label_a], samples[label_b], label_a, label_b, cfg.alpha)
        final = replace(final, test_type=TEST_SEQUENTIAL)
        self._record("sequential", (label_a, label_b), n_collected, final.p_value, final.is_significant)
        return SequentialOutcome(final, stop_reason, n_collected, tuple(checks))

    def history(self) -> List[str]:
        return [record.summary() for record in self._history]


# -------------------------
# Entry points
# -------------------------

async def run_ab_benchmark(
    measure_a: MeasuredOperation,
    measure_b: MeasuredOperation,
    data_generator: DataGenerator,
    mode: Literal["fixed", "sequential"] = "fixed",
    iteration_params: Optional[Mapping[str, Any]] = None,
    alpha: float = 0.05,
    label_a: str = "Algorithm A",
    label_b: str = "Algorithm B",
    seed: Optional[int] = None,
) -> TwoSampleResult:
    """
    Benchmark two operations and return the statistical verdict.

    iteration_params overrides BenchmarkConfig fields, e.g.
    {"iterations": 50} for fixed mode or
    {"min_iterations": 20, "max_iterations": 200, "power_threshold": 0.9}
    for sequential mode.
    """
    config = BenchmarkConfig(alpha=alpha, seed=seed).with_overrides(iteration_params)
    bench = ABBenchmark(seed=seed, config=config)
    if mode == "fixed":
        return await bench.run_fixed(measure_a, measure_b, data_generator, label_a, label_b)
    if mode == "sequential":
        outcome = await bench.run_sequential(measure_a, measure_b, data_generator, label_a, label_b)
        return outcome.result
    raise ValueError("mode must be 'fixed' or 'sequential'")


async def run_multi_benchmark(
    operations: Mapping[str, MeasuredOperation],
    data_generator: DataGenerator,
    iteration_params: Optional[Mapping[str, Any]] = None,
    alpha: float = 0.05,
    seed: Optional[int] = None,
) -> MultiGroupResult:
    config = BenchmarkConfig(alpha=alpha, seed=seed).with_overrides(iteration_params)
    return await ABBenchmark(seed=seed, config=config).run_multi(operations, data_generator)
