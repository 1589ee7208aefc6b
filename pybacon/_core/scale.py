"""
Scale collaborators.

A scale collaborator is any callable

    scale(residuals, weights, subset, p) -> float

evaluated right before every discrepancy computation, i.e. once per step
of the algorithm, for the subset the residuals belong to.
"""

import numpy as np
from typing import Callable

ScaleFunc = Callable[[np.ndarray, np.ndarray, np.ndarray, int], float]


class SubsetResidualScale:
    """
    Weighted residual scale over the current subset.

        sigma^2 = m / (m - p) * sum_S w_i r_i^2 / sum_S w_i

    Invariant to a uniform rescaling of the weights; with unit weights it
    is the usual RSS / (m - p).
    """

    def __call__(self, residuals, weights, subset, p) -> float:
        m = int(np.count_nonzero(subset))
        if m <= p:
            raise ValueError(f"Subset too small for a scale estimate (m={m}, p={p})")
        w = weights[subset]
        r = residuals[subset]
        sigma2 = m / (m - p) * np.dot(w, r * r) / np.sum(w)
        return float(np.sqrt(sigma2))

    def __repr__(self):
        return "SubsetResidualScale()"


class FixedScale:
    """A scale value supplied by the caller, used unchanged."""

    def __init__(self, value: float):
        self.value = float(value)

    def __call__(self, residuals, weights, subset, p) -> float:
        return self.value

    def __repr__(self):
        return f"FixedScale({self.value!r})"


def check_scale(sigma: float) -> float:
    """
    Validate a scale value before it is used in the discrepancies.

    Zero is allowed: the driver scores a perfect fit without dividing by it.
    """
    sigma = float(sigma)
    if not np.isfinite(sigma) or sigma < 0:
        raise ValueError(f"Scale must be nonnegative and finite, got {sigma}")
    return sigma
