"""
Utility functions.
"""

import numpy as np


def check_array(X, name='X', dtype=np.float64):
    """Validate array input."""
    X = np.asarray(X, dtype=dtype)
    if X.ndim != 2:
        raise ValueError(f"{name} must be 2-dimensional")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains NaN or Inf")
    return X


def check_vector(y, name='y', dtype=np.float64, n=None):
    """Validate vector input (optionally of length n)."""
    y = np.asarray(y, dtype=dtype)
    if y.ndim != 1:
        raise ValueError(f"{name} must be 1-dimensional")
    if n is not None and len(y) != n:
        raise ValueError(f"{name} must have length {n}, got {len(y)}")
    if not np.all(np.isfinite(y)):
        raise ValueError(f"{name} contains NaN or Inf")
    return y


def check_weights(weights, n):
    """Validate observation weights (nonnegative, length n)."""
    if weights is None:
        return np.ones(n, dtype=np.float64)
    w = check_vector(weights, name='weights', n=n)
    if np.any(w < 0):
        raise ValueError("weights must be nonnegative")
    if not np.any(w > 0):
        raise ValueError("All weights are zero")
    return w


def check_subset(subset, n):
    """Validate a membership vector; returns a boolean copy."""
    subset = np.asarray(subset)
    if subset.ndim != 1 or len(subset) != n:
        raise ValueError(f"subset must be 1-dimensional of length {n}")
    if subset.dtype != np.bool_:
        if not np.all(np.isin(subset, (0, 1))):
            raise ValueError("subset must contain only 0/1 or booleans")
    return subset.astype(bool)
