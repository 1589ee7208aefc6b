"""
Shared fixtures.
"""

import numpy as np
import pytest

import pybacon._config as _cfg

OUTLIER = 8


def line_with_outlier(shift=50.0, noise_scale=0.01):
    """y = 2 + 3x + small fixed noise, x = 1..10, one shifted response."""
    x = np.arange(1.0, 11.0)
    noise = noise_scale * np.array([5.0, -3.0, 1.0, 4.0, -6.0, 2.0, -1.0, 3.0, -2.0, -4.0])
    y = 2.0 + 3.0 * x + noise
    y[OUTLIER] += shift
    X = np.column_stack([np.ones(10), x])
    return X, y


@pytest.fixture
def outlier_data():
    return line_with_outlier()


@pytest.fixture
def clean_ols(outlier_data):
    """OLS coefficients on the 9 clean observations."""
    X, y = outlier_data
    keep = np.arange(len(y)) != OUTLIER
    coef, *_ = np.linalg.lstsq(X[keep], y[keep], rcond=None)
    return coef


@pytest.fixture
def random_design():
    rng = np.random.default_rng(42)
    n, p = 60, 3
    X = np.column_stack([np.ones(n), rng.normal(size=(n, p - 1))])
    y = X @ np.array([1.0, 2.0, -1.5]) + 0.1 * rng.normal(size=n)
    w = rng.uniform(0.5, 1.5, n)
    return X, y, w


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Each test starts from the default configuration."""
    for name in ("PYBACON_BACKEND", "PYBACON_N_JOBS", "PYBACON_PARALLEL_MIN_SIZE"):
        monkeypatch.delenv(name, raising=False)
    _cfg._backend_override = None
    _cfg._n_jobs_override = None
    _cfg._parallel_min_size_override = None
    yield
    _cfg._backend_override = None
    _cfg._n_jobs_override = None
    _cfg._parallel_min_size_override = None
