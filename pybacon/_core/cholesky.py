"""
Incremental maintenance of the normal equations X'WX = L L' and X'Wy.

When the subset changes from S0 to S1, entering observations are added by
rank-one updates of L and leaving observations removed by rank-one
downdates, instead of refactoring the whole subset.

Reference
---------
Golub, G.H. and Van Loan, C.F. (1996). Matrix Computations, 3rd ed.,
Baltimore: The Johns Hopkins University Press, ch. 12.5
"""

import math
import numpy as np
from scipy.linalg import solve_triangular
from typing import Tuple

from .._errors import RankDeficientError
from ._parallel import parallel_for
from .workspace import Workspace


def chol_update(L: np.ndarray, u: np.ndarray) -> None:
    """
    Rank-one update L L' + u u' in place.

    ``L`` is lower triangular with nonzero diagonal; ``u`` is overwritten.
    """
    p = L.shape[0]
    for k in range(p):
        d = L[k, k]
        r = math.hypot(d, u[k])
        c = r / d
        s = u[k] / d
        L[k, k] = r
        if k + 1 < p:
            L[k + 1:, k] = (L[k + 1:, k] + s * u[k + 1:]) / c
            u[k + 1:] = c * u[k + 1:] - s * L[k + 1:, k]


def chol_downdate(L: np.ndarray, u: np.ndarray) -> bool:
    """
    Rank-one downdate L L' - u u' in place.

    Returns False (leaving ``L`` partially modified) if the result would
    not be positive definite; the caller must restore its copy of L.
    """
    p = L.shape[0]
    for k in range(p):
        d = L[k, k]
        a = d * d - u[k] * u[k]
        if a <= 0.0:
            return False
        r = math.sqrt(a)
        c = r / d
        s = u[k] / d
        L[k, k] = r
        if k + 1 < p:
            L[k + 1:, k] = (L[k + 1:, k] - s * u[k + 1:]) / c
            u[k + 1:] = c * u[k + 1:] - s * L[k + 1:, k]
    return True


def cross_product(X, y, weight, out=None) -> np.ndarray:
    """X'Wy, one independent column sum per coefficient."""
    n, p = X.shape
    if out is None:
        out = np.empty(p, dtype=np.float64)
    wy = weight * y

    def column(j):
        out[j] = np.dot(X[:, j], wy)

    parallel_for(column, range(p), n * p)
    return out


class NormalEquations:
    """
    Normal-equations state (L, xty) for the subset it currently represents.

    The arrays live in the workspace; the object only borrows them.

    Parameters
    ----------
    X : ndarray, shape (n, p)
    y : ndarray, shape (n,)
    weights : ndarray, shape (n,)
        Observation weights (not masked by the subset)
    workspace : Workspace
    """

    def __init__(self, X, y, weights, workspace: Workspace):
        self.X = X
        self.y = y
        self.weights = weights
        self.w_sqrt = np.sqrt(weights)
        self.workspace = workspace

    @property
    def L(self) -> np.ndarray:
        return self.workspace.L

    @property
    def xty(self) -> np.ndarray:
        return self.workspace.xty

    def reset(self, L: np.ndarray, subset: np.ndarray) -> None:
        """Represent ``subset`` from scratch, given its factor L."""
        self.workspace.L[...] = L
        cross_product(self.X, self.y, self.weights * subset, out=self.workspace.xty)

    def transition(self, subset0: np.ndarray, subset1: np.ndarray) -> Tuple[int, int]:
        """
        Move the state from ``subset0`` to ``subset1``.

        All updates are applied first, the downdates afterwards. Either
        every change is applied, or the state is restored to ``subset0``.

        Returns
        -------
        (n_update, n_downdate) : tuple of int

        Raises
        ------
        RankDeficientError
            If a downdate would make the factor indefinite (state restored)
        """
        ws = self.workspace
        X, y, w = self.X, self.y, self.weights
        L, xty, u = ws.L, ws.xty, ws.update

        ws.L_backup[...] = L
        ws.xty_backup[...] = xty

        n_update = n_downdate = 0
        for i in np.flatnonzero(subset0 != subset1):
            if subset1[i]:
                np.multiply(X[i], self.w_sqrt[i], out=u)
                xty += X[i] * (y[i] * w[i])
                chol_update(L, u)
                n_update += 1
            else:
                ws.stack[n_downdate] = i
                n_downdate += 1

        for i in ws.stack[:n_downdate]:
            np.multiply(X[i], self.w_sqrt[i], out=u)
            xty -= X[i] * (y[i] * w[i])
            if not chol_downdate(L, u):
                L[...] = ws.L_backup
                xty[...] = ws.xty_backup
                raise RankDeficientError(
                    "Cholesky downdate failed (factor would be indefinite)"
                )

        return n_update, n_downdate

    def solve(self) -> np.ndarray:
        """Coefficients from L L' beta = xty (two triangular solves)."""
        a = solve_triangular(self.L, self.xty, lower=True, check_finite=False)
        return solve_triangular(self.L, a, lower=True, trans='T', check_finite=False)
