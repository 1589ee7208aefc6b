"""
Process-wide configuration for pybacon.

Controls the default decomposition backend and when the two
embarrassingly parallel accumulations (cross-product vector, leverage
values) are spread over threads.

Resolution order (first match wins):
    1. Programmatic override via the ``set_*`` functions.
    2. Environment variables ``PYBACON_BACKEND``, ``PYBACON_N_JOBS``,
       ``PYBACON_PARALLEL_MIN_SIZE``.
    3. Defaults: backend ``"cpu"``, ``n_jobs=1``,
       ``parallel_min_size=100_000`` (elements of the n x p design).

Examples
--------
Run the accumulations on all cores from the shell::

    export PYBACON_N_JOBS=-1

or programmatically::

    import pybacon
    pybacon.set_n_jobs(-1)
"""

import os
from typing import Optional

_VALID_BACKENDS = {"auto", "cpu", "pytorch"}

DEFAULT_N_JOBS = 1
DEFAULT_PARALLEL_MIN_SIZE = 100_000

# None means "no programmatic override has been set".
_backend_override: Optional[str] = None
_n_jobs_override: Optional[int] = None
_parallel_min_size_override: Optional[int] = None


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def get_default_backend() -> str:
    """Return the name of the default backend (``"cpu"`` or ``"pytorch"``)."""
    if _backend_override is not None and _backend_override != "auto":
        return _backend_override

    env = os.environ.get("PYBACON_BACKEND", "").strip().lower()
    if env in ("cpu", "pytorch"):
        return env

    # FP64 LAPACK is the reference; GPUs are opt-in
    return "cpu"


def set_default_backend(name: Optional[str]) -> None:
    """
    Override the default backend.

    Parameters
    ----------
    name : str or None
        ``"cpu"``, ``"pytorch"`` or ``"auto"`` (case-insensitive).
        ``"auto"`` or None restores the default resolution order.
    """
    global _backend_override
    if name is None:
        _backend_override = None
        return
    key = name.strip().lower()
    if key not in _VALID_BACKENDS:
        raise ValueError(
            f"Unknown backend: '{name}'\n"
            f"Valid options: {sorted(_VALID_BACKENDS)}"
        )
    _backend_override = None if key == "auto" else key


def get_n_jobs() -> int:
    """Number of threads for the parallel accumulations (joblib semantics)."""
    if _n_jobs_override is not None:
        return _n_jobs_override
    env = _env_int("PYBACON_N_JOBS")
    return env if env is not None else DEFAULT_N_JOBS


def set_n_jobs(n_jobs: Optional[int]) -> None:
    """Override the thread count; None restores the default resolution."""
    global _n_jobs_override
    if n_jobs is not None and (not isinstance(n_jobs, int) or n_jobs == 0):
        raise ValueError("n_jobs must be a nonzero integer")
    _n_jobs_override = n_jobs


def get_parallel_min_size() -> int:
    """Smallest n * p for which the accumulations run in parallel."""
    if _parallel_min_size_override is not None:
        return _parallel_min_size_override
    env = _env_int("PYBACON_PARALLEL_MIN_SIZE")
    return env if env is not None else DEFAULT_PARALLEL_MIN_SIZE


def set_parallel_min_size(size: Optional[int]) -> None:
    """Override the parallel threshold; None restores the default resolution."""
    global _parallel_min_size_override
    if size is not None and (not isinstance(size, int) or size < 0):
        raise ValueError("parallel_min_size must be a nonnegative integer")
    _parallel_min_size_override = size
