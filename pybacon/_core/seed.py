"""
Default seed subset: distances from the coordinate-wise median.

A simple starting subset in the spirit of the "V2" initial subset of
Billor et al. (2000): observations close to the coordinate-wise
(weighted) median of the covariates, each column scaled by its weighted
MAD. Constant columns (such as the intercept) carry no information and
are skipped.
"""

import numpy as np
from typing import Tuple

from .selection import select_subset

# consistency factor of the MAD at the normal distribution
MAD_CONSTANT = 1.4826


def weighted_median(x: np.ndarray, weights: np.ndarray) -> float:
    """Smallest x with at least half of the total weight at or below it."""
    order = np.argsort(x, kind='stable')
    cumw = np.cumsum(weights[order])
    k = np.searchsorted(cumw, 0.5 * cumw[-1])
    return float(x[order[min(k, len(x) - 1)]])


def median_seed(
    X: np.ndarray,
    weights: np.ndarray,
    size: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Seed subset and distances for ``wbacon_reg``.

    Parameters
    ----------
    X : ndarray, shape (n, p)
        Design matrix
    weights : ndarray, shape (n,)
        Observation weights
    size : int
        Number of observations to select (ties may add more)

    Returns
    -------
    subset : ndarray of bool, shape (n,)
    dist : ndarray, shape (n,)
    """
    n, p = X.shape
    dist2 = np.zeros(n, dtype=np.float64)
    for j in range(p):
        col = X[:, j]
        center = weighted_median(col, weights)
        dev = np.abs(col - center)
        spread = MAD_CONSTANT * weighted_median(dev, weights)
        if spread > 0:
            dist2 += (dev / spread) ** 2
    dist = np.sqrt(dist2)
    subset = select_subset(dist, min(size, n))
    return subset, dist
