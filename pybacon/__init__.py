"""
pybacon: outlier-robust weighted linear regression (BACON).

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .bacon import bacon, BaconRegression

# Core entry points
from ._core import (
    BaconDriver,
    BaconResult,
    FixedScale,
    Phase,
    SubsetResidualScale,
    bacon_cutoff,
    median_seed,
    wbacon_reg,
)
from ._errors import (
    BaconError,
    BaconStatus,
    ConvergenceError,
    RankDeficientError,
    TriangularMatrixSingularError,
)

# Configuration and backends (for advanced users)
from ._config import (
    get_default_backend,
    set_default_backend,
    get_n_jobs,
    set_n_jobs,
    get_parallel_min_size,
    set_parallel_min_size,
)
from ._backends import get_backend, list_available_backends

__all__ = [
    'bacon',
    'BaconRegression',
    'BaconDriver',
    'BaconResult',
    'FixedScale',
    'Phase',
    'SubsetResidualScale',
    'bacon_cutoff',
    'median_seed',
    'wbacon_reg',
    'BaconError',
    'BaconStatus',
    'ConvergenceError',
    'RankDeficientError',
    'TriangularMatrixSingularError',
    'get_default_backend',
    'set_default_backend',
    'get_n_jobs',
    'set_n_jobs',
    'get_parallel_min_size',
    'set_parallel_min_size',
    'get_backend',
    'list_available_backends',
]
