"""
Subset selection by order statistic.
"""

import numpy as np
from typing import Optional


def select_subset(
    scores: np.ndarray,
    m: int,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Mark the observations with the m smallest scores.

    The m-th order statistic is located by introselect
    (``np.partition``, expected linear time); every score <= that
    threshold is a member. Ties at the threshold are all included, so the
    subset can hold more than m observations.

    Parameters
    ----------
    scores : ndarray, shape (n,)
        Discrepancies; not modified
    m : int
        Target size, 1 <= m <= n
    out : ndarray of bool, shape (n,), optional
        Membership vector to overwrite

    Returns
    -------
    ndarray of bool, shape (n,)
    """
    n = len(scores)
    if not 1 <= m <= n:
        raise ValueError(f"m must be in [1, {n}], got {m}")
    scores = np.where(np.isnan(scores), np.inf, scores)
    threshold = np.partition(scores, m - 1)[m - 1]
    return np.less_equal(scores, threshold, out=out)
