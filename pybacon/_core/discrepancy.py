"""
Leverage and discrepancy scores.

The discrepancy of observation i is (Billor et al., 2000, Eq. 6)

    t_i = |r_i| / (sigma * sqrt(1 + s_i * h_i)),

with s_i = -1 for members of the subset and +1 for non-members, and h_i
the (weighted) hat-matrix diagonal w_i x_i' (X_S' W X_S)^{-1} x_i.
Non-members are scored by their out-of-sample prediction variance,
members by their in-sample residual variance.
"""

import numpy as np
from scipy.linalg import get_lapack_funcs
from typing import Optional

from .._errors import TriangularMatrixSingularError
from ._parallel import parallel_for

# rows per task when the leverage loop runs in threads
_ROW_BLOCK = 4096


def hat_diagonal(
    X: np.ndarray,
    L: np.ndarray,
    weights: np.ndarray,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Diagonal of the hat matrix from the Cholesky factor of X_S'WX_S.

    h_i = w_i * ||L^{-1} x_i||^2, i.e. the weighted squared row norms of
    X L^{-T}.

    Raises
    ------
    TriangularMatrixSingularError
        If L cannot be inverted
    """
    n, p = X.shape
    trtri, = get_lapack_funcs(('trtri',), (L,))
    L_inv, info = trtri(L, lower=1)
    if info != 0:
        raise TriangularMatrixSingularError()

    if out is None:
        out = np.empty(n, dtype=np.float64)
    L_inv_t = np.tril(L_inv).T

    def rows(block):
        Z = X[block] @ L_inv_t
        out[block] = weights[block] * np.einsum('ij,ij->i', Z, Z)

    blocks = [slice(start, min(start + _ROW_BLOCK, n))
              for start in range(0, n, _ROW_BLOCK)]
    parallel_for(rows, blocks, n * p)
    return out


def discrepancies(
    residuals: np.ndarray,
    hat: np.ndarray,
    subset: np.ndarray,
    sigma: float,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Discrepancies t_i; the sign of the leverage term depends on membership.

    A member with leverage h_i >= 1 is fitted exactly and has no residual
    variance left; it scores +inf.
    """
    sign = np.where(subset, -1.0, 1.0)
    with np.errstate(divide='ignore', invalid='ignore'):
        t = np.abs(residuals) / (sigma * np.sqrt(np.maximum(1.0 + sign * hat, 0.0)))
    t[np.isnan(t)] = np.inf
    if out is None:
        return t
    out[...] = t
    return out
