"""
abbench: statistical A/B testing for algorithm performance (distribution math,
hypothesis tests, power analysis, and a benchmark orchestrator).

Public API is re-exported here for convenience.
"""

from importlib.metadata import PackageNotFoundError, version as _version

# ---- Version ----
try:
    __version__ = _version("abbench")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

# Errors / config
from .errors import Degeneracy, DomainError, SampleSizeError, StatsError  # noqa: F401
from .config import BenchmarkConfig  # noqa: F401

# Distributions
from .distributions import (  # noqa: F401
    f_cdf,
    incomplete_beta,
    log_gamma,
    normal_cdf,
    normal_inverse_cdf,
    t_cdf,
    t_inverse_cdf,
    t_pdf,
)

# Effect size / power
from .power import (  # noqa: F401
    cohens_d,
    interpret_cohens_d,
    interpret_rank_biserial,
    minimum_sample_size,
    rank_biserial,
    statistical_power,
)

# Assumption checks
from .sanity import (  # noqa: F401
    check_normality,
    check_outliers,
    describe_groups,
    describe_sample,
    validate_assumptions,
)

# Tests / results
from .results import MultiGroupResult, SampleStats, TwoSampleResult  # noqa: F401
from .stats import (  # noqa: F401
    mannwhitney_u_test,
    one_way_anova,
    run_multi_group_test,
    run_two_sample_test,
    welch_ttest,
)

# Orchestration
from .orchestrator import (  # noqa: F401
    ABBenchmark,
    SequentialOutcome,
    run_ab_benchmark,
    run_multi_benchmark,
    timed,
)
from .report import save_report  # noqa: F401

__all__ = [
    "__version__",
    # errors / config
    "StatsError",
    "DomainError",
    "SampleSizeError",
    "Degeneracy",
    "BenchmarkConfig",
    # distributions
    "normal_cdf",
    "normal_inverse_cdf",
    "t_cdf",
    "t_inverse_cdf",
    "t_pdf",
    "f_cdf",
    "incomplete_beta",
    "log_gamma",
    # power
    "cohens_d",
    "interpret_cohens_d",
    "rank_biserial",
    "interpret_rank_biserial",
    "statistical_power",
    "minimum_sample_size",
    # sanity
    "check_normality",
    "check_outliers",
    "validate_assumptions",
    "describe_sample",
    "describe_groups",
    # tests
    "SampleStats",
    "TwoSampleResult",
    "MultiGroupResult",
    "welch_ttest",
    "mannwhitney_u_test",
    "one_way_anova",
    "run_two_sample_test",
    "run_multi_group_test",
    # orchestration
    "ABBenchmark",
    "SequentialOutcome",
    "run_ab_benchmark",
    "run_multi_benchmark",
    "timed",
    "save_report",
]
