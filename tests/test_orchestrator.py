import asyncio
import logging

import numpy as np
import pytest

from abbench.config import BenchmarkConfig
from abbench.errors import DomainError
from abbench.generators import array_generator
from abbench.orchestrator import ABBenchmark, run_ab_benchmark, run_multi_benchmark, timed
from abbench.stats import TEST_MANN_WHITNEY, TEST_SEQUENTIAL, TEST_WELCH


# Durations are derived from the input so runs are deterministic under a seed
# and independent of machine speed.

def slow_op(data):
    return float(np.mean(data)) + 500.0


def fast_op(data):
    return float(np.mean(data))


def constant_op(data):
    return 10.0


class Counter:
    def __init__(self, fn):
        self.fn = fn
        self.calls = 0

    def __call__(self, data):
        self.calls += 1
        return self.fn(data)


@pytest.mark.asyncio
async def test_fixed_run_detects_faster_operation():
    bench = ABBenchmark(seed=1)
    res = await bench.run_fixed(slow_op, fast_op, array_generator("random", 20),
                                "Slow", "Fast", iterations=40)
    assert res.test_type in (TEST_WELCH, TEST_MANN_WHITNEY)
    assert res.stats_a.n == res.stats_b.n == 40
    assert res.is_significant
    assert res.better_label == "Fast"
    assert res.improvement_direction == "Fast faster"


@pytest.mark.asyncio
async def test_fixed_run_warmup_and_fresh_inputs():
    a, b = Counter(fast_op), Counter(fast_op)
    seen = []

    def generator(rng):
        seen.append(1)
        return rng.integers(1, 100, size=5)

    bench = ABBenchmark(seed=0)
    await bench.run_fixed(a, b, generator, iterations=10, warmup=True)
    assert a.calls == b.calls == 11
    # one fresh input per measured call, warm-up included
    assert len(seen) == 22

    a2, b2 = Counter(fast_op), Counter(fast_op)
    await bench.run_fixed(a2, b2, generator, iterations=10, warmup=False)
    assert a2.calls == b2.calls == 10


@pytest.mark.asyncio
async def test_seeded_runs_are_reproducible():
    gen = array_generator("random", 15)
    r1 = await ABBenchmark(seed=42).run_fixed(slow_op, fast_op, gen, iterations=20)
    r2 = await ABBenchmark(seed=42).run_fixed(slow_op, fast_op, gen, iterations=20)
    assert r1.stats_a.mean == r2.stats_a.mean
    assert r1.p_value == r2.p_value


@pytest.mark.asyncio
async def test_async_operations_and_zero_arg_generator():
    async def op_a(data):
        await asyncio.sleep(0)
        return 5.0 + len(data)

    async def op_b(data):
        return 1.0 + len(data) + data[0] * 0.01

    def generator():
        return [1, 2, 3]

    res = await ABBenchmark(seed=3).run_fixed(op_a, op_b, generator, iterations=5, warmup=False)
    assert res.stats_a.mean == pytest.approx(8.0)
    assert res.stats_b.mean == pytest.approx(4.01)


@pytest.mark.asyncio
async def test_progress_logged_every_tenth(caplog):
    caplog.set_level(logging.INFO, logger="abbench.orchestrator")
    await ABBenchmark(seed=5).run_fixed(slow_op, fast_op, array_generator("random", 5),
                                        iterations=20, warmup=False)
    progress = [r for r in caplog.records if r.getMessage().startswith("Progress:")]
    assert len(progress) == 10
    assert progress[-1].getMessage().startswith("Progress: 20/20")


@pytest.mark.asyncio
async def test_operation_exception_aborts_run():
    def broken(data):
        raise RuntimeError("boom")

    bench = ABBenchmark(seed=0)
    with pytest.raises(RuntimeError, match="boom"):
        await bench.run_fixed(fast_op, broken, array_generator("random", 5), iterations=5)
    assert bench.history() == []


@pytest.mark.asyncio
async def test_sequential_stops_early_on_clear_difference():
    bench = ABBenchmark(seed=7)
    outcome = await bench.run_sequential(slow_op, fast_op, array_generator("random", 20),
                                         "Slow", "Fast", min_iterations=30, max_iterations=200,
                                         check_every=10)
    assert outcome.stop_reason == "significant"
    assert outcome.stopped_early
    assert outcome.n_per_group == 30
    assert len(outcome.checks) == 1
    assert outcome.result.test_type == TEST_SEQUENTIAL
    assert outcome.result.stats_a.n == 30
    assert outcome.result.is_significant


@pytest.mark.asyncio
async def test_sequential_runs_to_max_without_difference():
    a, b = Counter(constant_op), Counter(constant_op)
    bench = ABBenchmark(seed=0)
    outcome = await bench.run_sequential(a, b, array_generator("random", 5),
                                         min_iterations=10, max_iterations=40,
                                         check_every=10, warmup=False)
    assert outcome.stop_reason == "max_iterations"
    assert outcome.n_per_group == 40
    assert a.calls == b.calls == 40
    # checks at 10, 20, 30, 40
    assert [c.n for c in outcome.checks] == [10, 20, 30, 40]
    assert outcome.result.p_value == 1.0
    assert outcome.result.is_degenerate


@pytest.mark.asyncio
async def test_sequential_rejects_bad_bounds():
    with pytest.raises(DomainError):
        await ABBenchmark().run_sequential(fast_op, fast_op, array_generator("random", 5),
                                           min_iterations=50, max_iterations=10)


@pytest.mark.asyncio
async def test_multi_run_uses_anova():
    ops = {
        "base": fast_op,
        "plus300": lambda d: fast_op(d) + 300.0,
        "plus600": lambda d: fast_op(d) + 600.0,
    }
    res = await run_multi_benchmark(ops, array_generator("random", 20),
                                    iteration_params={"iterations": 30}, seed=9)
    assert res.labels == ("base", "plus300", "plus600")
    assert res.is_significant
    assert res.best_label == "base"
    assert len(res.pairwise) == 3


@pytest.mark.asyncio
async def test_multi_needs_two_operations():
    with pytest.raises(ValueError):
        await ABBenchmark().run_multi({"only": fast_op}, array_generator("random", 5))


@pytest.mark.asyncio
async def test_run_ab_benchmark_modes():
    gen = array_generator("random", 10)
    fixed = await run_ab_benchmark(slow_op, fast_op, gen, mode="fixed",
                                   iteration_params={"iterations": 20}, seed=1)
    assert fixed.stats_a.n == 20

    seq = await run_ab_benchmark(slow_op, fast_op, gen, mode="sequential",
                                 iteration_params={"min_iterations": 10, "max_iterations": 50},
                                 seed=1)
    assert seq.test_type == TEST_SEQUENTIAL
    assert 10 <= seq.stats_a.n <= 50

    with pytest.raises(ValueError):
        await run_ab_benchmark(slow_op, fast_op, gen, mode="adaptive")
    with pytest.raises(TypeError):
        await run_ab_benchmark(slow_op, fast_op, gen, iteration_params={"rounds": 5})


@pytest.mark.asyncio
async def test_history_records_completed_runs():
    bench = ABBenchmark(config=BenchmarkConfig(iterations=10, seed=2))
    await bench.run_fixed(slow_op, fast_op, array_generator("random", 5), "X", "Y")
    await bench.run_fixed(slow_op, fast_op, array_generator("random", 5), "P", "Q")
    lines = bench.history()
    assert len(lines) == 2
    assert "X vs Y" in lines[0]
    assert "[fixed, n=10]" in lines[1]


@pytest.mark.asyncio
async def test_timed_returns_milliseconds():
    calls = []

    def work(data):
        calls.append(data)
        return sorted(data)

    measured = timed(work)
    elapsed = await measured([3, 1, 2])
    assert isinstance(elapsed, float)
    assert elapsed >= 0.0
    assert calls == [[3, 1, 2]]
    assert measured.__name__ == "work"
