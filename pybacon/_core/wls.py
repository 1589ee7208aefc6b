"""
Weighted least squares with rank-deficiency detection.

Rows of the design matrix and the response are scaled by sqrt(weight),
factored by Householder QR and solved by back-substitution. Observations
with zero weight drop out of the fit but still receive residuals.
"""

import numpy as np
from dataclasses import dataclass

from .._errors import RankDeficientError
from .workspace import Workspace

# |R_ii| below this flags rank deficiency. LAPACK only reports exact zeros,
# which misses near-singular designs.
RANK_TOLERANCE = np.sqrt(np.finfo(np.float64).eps)


@dataclass
class WLSFit:
    """Weighted least-squares coefficients and unweighted residuals."""
    coef: np.ndarray
    residuals: np.ndarray


class WeightedLeastSquaresSolver:
    """
    QR-based weighted least-squares solver.

    Parameters
    ----------
    X : ndarray, shape (n, p)
        Design matrix (n >= p); never modified
    y : ndarray, shape (n,)
        Response
    workspace : Workspace
        Arena providing the weighted buffers and the factorization
        capacity; ``workspace.wx`` holds the compact QR factorization
        after every call to ``fit``.

    Examples
    --------
    >>> with Workspace(n, p, get_backend('cpu')) as ws:
    ...     solver = WeightedLeastSquaresSolver(X, y, ws)
    ...     fit = solver.fit(weights)
    ...     L = solver.extract_factor()
    """

    def __init__(self, X: np.ndarray, y: np.ndarray, workspace: Workspace):
        n, p = X.shape
        if n < p:
            raise ValueError(f"Need n >= p, got n={n}, p={p}")
        self.X = X
        self.y = y
        self.n = n
        self.p = p
        self.workspace = workspace

    def fit(self, weight: np.ndarray) -> WLSFit:
        """
        Weighted least-squares fit.

        Parameters
        ----------
        weight : ndarray, shape (n,)
            Effective (nonnegative) weight per observation

        Returns
        -------
        WLSFit
            Coefficients and residuals y - X @ coef (original units)

        Raises
        ------
        RankDeficientError
            If any |R_ii| < sqrt(eps)
        """
        ws = self.workspace
        p = self.p

        w_sqrt = np.sqrt(weight)
        np.multiply(self.X, w_sqrt[:, np.newaxis], out=ws.wx)
        np.multiply(self.y, w_sqrt, out=ws.wy[:, 0])

        decomposition = ws.backend.solve_wls(ws.wx, ws.wy, ws.lwork)
        if not np.shares_memory(decomposition.qr, ws.wx):
            ws.wx[...] = decomposition.qr

        R_diag = np.abs(np.diag(ws.wx[:p, :p]))
        if np.any(R_diag < RANK_TOLERANCE) or not np.all(np.isfinite(decomposition.coef)):
            raise RankDeficientError()

        coef = decomposition.coef
        residuals = self.y - self.X @ coef
        return WLSFit(coef=coef, residuals=residuals)

    def extract_factor(self, out=None) -> np.ndarray:
        """
        Cholesky factor L = R' of X'WX from the last successful ``fit``.

        Columns are sign-normalised so that diag(L) > 0 (L L' is
        unchanged). Must be called before the next ``fit``.
        """
        p = self.p
        L = np.triu(self.workspace.wx[:p, :p]).T
        signs = np.where(np.diag(L) < 0, -1.0, 1.0)
        L = L * signs[np.newaxis, :]
        if out is None:
            return L
        out[...] = L
        return out
