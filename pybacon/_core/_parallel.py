"""
Threshold-gated thread parallelism.

When ``n_jobs != 1`` and the problem is large enough, loops are run with
``joblib.Parallel(prefer="threads")``. The NumPy kernels release the GIL,
and every task writes to its own slice of the output, so no locking is
needed.
"""

from joblib import Parallel, delayed

from .._config import get_n_jobs, get_parallel_min_size


def use_parallel(size: int) -> bool:
    """True if work of ``size`` elements should be spread over threads."""
    return get_n_jobs() != 1 and size > get_parallel_min_size()


def parallel_for(func, tasks, size: int):
    """Call ``func(task)`` for every task, in threads for large problems."""
    tasks = list(tasks)
    if not use_parallel(size) or len(tasks) < 2:
        for task in tasks:
            func(task)
        return
    Parallel(n_jobs=get_n_jobs(), prefer="threads")(
        delayed(func)(task) for task in tasks
    )
