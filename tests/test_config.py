import pytest

from abbench.config import DEFAULT_ALPHA, BenchmarkConfig
from abbench.errors import DomainError


def test_defaults_are_valid():
    cfg = BenchmarkConfig().validate()
    assert cfg.alpha == DEFAULT_ALPHA
    assert cfg.min_iterations <= cfg.max_iterations


@pytest.mark.parametrize("kwargs", [
    {"alpha": 0.0},
    {"alpha": 1.0},
    {"iterations": 1},
    {"min_iterations": 1},
    {"min_iterations": 50, "max_iterations": 20},
    {"check_every": 0},
    {"power_threshold": 1.5},
])
def test_validate_rejects_bad_values(kwargs):
    with pytest.raises(DomainError):
        BenchmarkConfig(**kwargs).validate()


def test_with_overrides():
    cfg = BenchmarkConfig().with_overrides({"iterations": 7, "warmup": False})
    assert cfg.iterations == 7
    assert cfg.warmup is False
    assert BenchmarkConfig().with_overrides(None) == BenchmarkConfig()
    with pytest.raises(TypeError):
        BenchmarkConfig().with_overrides({"iters": 7})


def test_from_env(monkeypatch):
    monkeypatch.setenv("ABBENCH_ALPHA", "0.01")
    monkeypatch.setenv("ABBENCH_ITERATIONS", "250")
    monkeypatch.setenv("ABBENCH_WARMUP", "false")
    monkeypatch.setenv("ABBENCH_SEED", "42")
    cfg = BenchmarkConfig.from_env()
    assert cfg.alpha == pytest.approx(0.01)
    assert cfg.iterations == 250
    assert cfg.warmup is False
    assert cfg.seed == 42
    assert cfg.max_iterations == BenchmarkConfig().max_iterations
