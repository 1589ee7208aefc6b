"""
BACON regression driver, adapted for weighting.

Implements Algorithms 4 and 5 of Billor et al. (2000) on top of a seed
subset supplied by the caller:

    INITIAL    fit the seed subset (enlarging it until the design has
               full rank) and score every observation
    GROWING    grow the subset one observation at a time from p + 1 to
               ``collect * p``, tracking the normal equations by
               Cholesky up- and downdates
    REFINING   refit from scratch and keep the observations whose
               discrepancy falls below a Bonferroni-corrected Student-t
               cutoff, until the subset no longer changes

Reference
---------
Billor N, Hadi AS, Velleman PF (2000). BACON: Blocked Adaptive
Computationally efficient Outlier Nominators. Computational Statistics
and Data Analysis 34, pp. 279-298.
"""

import logging
import numpy as np
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from scipy import stats
from typing import Callable, Optional, Tuple

from .._backends import get_backend
from .._errors import (
    BaconError,
    BaconStatus,
    ConvergenceError,
    RankDeficientError,
    exception_for,
)
from .._utils import check_array, check_subset, check_vector, check_weights
from .cholesky import NormalEquations
from .discrepancy import discrepancies, hat_diagonal
from .scale import SubsetResidualScale, check_scale
from .selection import select_subset
from .workspace import Workspace
from .wls import RANK_TOLERANCE, WeightedLeastSquaresSolver

logger = logging.getLogger(__name__)


class Phase(Enum):
    """States of the driver."""
    INITIAL = "initial"
    GROWING = "growing"
    REFINING = "refining"
    CONVERGED = "converged"
    FAILED = "failed"


@dataclass
class BaconResult:
    """
    Outcome of a BACON fit.

    Attributes
    ----------
    coef : ndarray, shape (p,)
        Regression coefficients (zeros if no fit was ever obtained)
    residuals : ndarray, shape (n,)
        y - X @ coef, in original (unweighted) units
    subset : ndarray of bool, shape (n,)
        Final subset of outlier-free observations
    size : int
        Number of observations in ``subset``
    dist : ndarray, shape (n,)
        Discrepancies t_i
    iterations : int
        Refinement iterations (0 if refinement was not reached)
    success : bool
        True iff ``status`` is OK
    status : BaconStatus
    sigma : float
        Scale used for the last discrepancy computation
    qr : ndarray, shape (n, p)
        Compact QR factorization of the last full weighted fit
    factor : ndarray, shape (p, p)
        Lower-triangular L with L L' = X_S' W X_S
    xty : ndarray, shape (p,)
        X_S' W y
    """
    coef: np.ndarray
    residuals: np.ndarray
    subset: np.ndarray
    size: int
    dist: np.ndarray
    iterations: int
    success: bool
    status: BaconStatus
    sigma: float
    qr: np.ndarray
    factor: np.ndarray
    xty: np.ndarray

    def raise_for_status(self):
        """Raise the matching ``BaconError`` if the fit did not succeed."""
        if not self.success:
            raise exception_for(self.status)()


def bacon_cutoff(
    alpha: float,
    m: int,
    p: int,
    quantile: Optional[Callable] = None,
) -> float:
    """
    Student-t cutoff for the discrepancies of a subset of size m.

    The (1 - alpha / (2 (m + 1))) quantile with m - p degrees of freedom
    (Bonferroni correction over the m + 1 comparisons).
    """
    if quantile is None:
        quantile = stats.t.ppf
    if m <= p:
        raise ValueError(f"Need m > p for the cutoff, got m={m}, p={p}")
    return float(quantile(1.0 - alpha / (2.0 * (m + 1)), m - p))


class BaconDriver:
    """
    Three-phase BACON state machine.

    Parameters
    ----------
    X : ndarray, shape (n, p)
        Design matrix (include an intercept column yourself)
    y : ndarray, shape (n,)
        Response
    weights : ndarray, shape (n,), optional
        Nonnegative observation weights (default: ones)
    collect : int, default=4
        Growth multiplier; the growing phase stops at min(collect * p, n)
    alpha : float, default=0.05
        Significance level of the cutoff
    maxiter : int, default=50
        Maximum number of refinement iterations
    verbose : bool, default=False
        Log progress at INFO instead of DEBUG
    scale : callable, optional
        Scale collaborator (default: ``SubsetResidualScale()``)
    quantile : callable, optional
        Student-t quantile ``(prob, df) -> float`` (default: scipy)
    backend : str or BackendBase, optional
        Decomposition backend for the full refits
    """

    def __init__(
        self,
        X,
        y,
        weights=None,
        *,
        collect: int = 4,
        alpha: float = 0.05,
        maxiter: int = 50,
        verbose: bool = False,
        scale: Optional[Callable] = None,
        quantile: Optional[Callable] = None,
        backend=None,
    ):
        self.X = check_array(X)
        n, p = self.X.shape
        if n <= p:
            raise ValueError(f"Need more observations than coefficients, got n={n}, p={p}")
        self.y = check_vector(y, n=n)
        # residuals and scales below this count as zero
        self.fit_tolerance = RANK_TOLERANCE * float(np.max(np.abs(self.y)))
        self.weights = check_weights(weights, n)
        self.n = n
        self.p = p

        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        if int(maxiter) < 1:
            raise ValueError(f"maxiter must be >= 1, got {maxiter}")
        self.target = min(int(collect * p), n)
        if self.target <= p:
            raise ValueError(
                f"collect * p must exceed p (collect={collect}, p={p})"
            )
        self.collect = collect
        self.alpha = alpha
        self.maxiter = int(maxiter)
        self.verbose = verbose
        self.scale = scale if scale is not None else SubsetResidualScale()
        self.quantile = quantile if quantile is not None else stats.t.ppf
        self.backend = get_backend(backend)

        self.phase = Phase.INITIAL
        self._ws = None
        self._reset_state(np.zeros(n, dtype=bool), np.zeros(n))

    def _log(self, msg, *args):
        logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)

    def _reset_state(self, subset, dist):
        self.subset = subset.copy()
        self.dist = np.array(dist, dtype=np.float64)
        self.coef = np.zeros(self.p)
        self.residuals = self.y.copy()
        self.sigma = np.nan
        self.iterations = 0

    @contextmanager
    def _borrow_workspace(self):
        """Reuse the active workspace, or open one for the duration."""
        if self._ws is not None:
            yield self._ws
            return
        with Workspace(self.n, self.p, self.backend) as ws:
            self._ws = ws
            self._solver = WeightedLeastSquaresSolver(self.X, self.y, ws)
            self._normal = NormalEquations(self.X, self.y, self.weights, ws)
            try:
                yield ws
            finally:
                self._ws = None
                self._solver = None
                self._normal = None

    # ------------------------------------------------------------------ #
    # Public interface
    # ------------------------------------------------------------------ #

    def run(self, subset, dist) -> BaconResult:
        """
        Fit starting from a seed subset.

        Parameters
        ----------
        subset : array of bool or 0/1, shape (n,)
            Seed subset
        dist : ndarray, shape (n,)
            Seed distances; their order decides which observations are
            added if the seed is rank deficient

        Returns
        -------
        BaconResult
            ``success`` is False for any failure; algorithmic failures are
            never raised
        """
        subset = check_subset(subset, self.n)
        dist = check_vector(dist, name='dist', n=self.n)
        self._reset_state(subset, dist)
        status = BaconStatus.OK

        with self._borrow_workspace() as ws:
            try:
                self.phase = Phase.INITIAL
                self._initial()
                self.phase = Phase.GROWING
                self._grow()
                self.phase = Phase.REFINING
                self._refine()
                self.phase = Phase.CONVERGED
            except BaconError as exc:
                logger.warning("BACON failed in %s phase: %s", self.phase.value, exc)
                self.phase = Phase.FAILED
                status = exc.status

            result = BaconResult(
                coef=self.coef.copy(),
                residuals=self.residuals.copy(),
                subset=self.subset.copy(),
                size=int(np.count_nonzero(self.subset)),
                dist=self.dist.copy(),
                iterations=self.iterations,
                success=status is BaconStatus.OK,
                status=status,
                sigma=self.sigma,
                qr=ws.wx.copy(),
                factor=ws.L.copy(),
                xty=ws.xty.copy(),
            )
        return result

    def refinement_step(self, subset) -> Tuple[np.ndarray, np.ndarray]:
        """
        One refinement pass: refit ``subset`` and return the next candidate.

        Returns
        -------
        candidate : ndarray of bool, shape (n,)
            Observations with discrepancy strictly below the cutoff
        dist : ndarray, shape (n,)
            Discrepancies with respect to ``subset``

        Raises
        ------
        BaconError
            If ``subset`` cannot be fitted
        """
        subset = check_subset(subset, self.n)
        with self._borrow_workspace():
            candidate = self._refinement_pass(subset)
        return candidate, self.dist.copy()

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #

    def _score(self, subset):
        """
        Discrepancies for the current residuals and factor.

        A (numerically) perfect fit has no scale to divide by: observations
        on the fit score 0, all others +inf.
        """
        self.sigma = check_scale(
            self.scale(self.residuals, self.weights, subset, self.p)
        )
        if self.sigma <= self.fit_tolerance:
            self._log("  perfect fit (sigma = %g)", self.sigma)
            exact = np.abs(self.residuals) <= self.fit_tolerance
            self.dist[...] = np.where(exact, 0.0, np.inf)
            return
        hat = hat_diagonal(self.X, self._ws.L, self.weights, out=self._ws.hat)
        discrepancies(self.residuals, hat, subset, self.sigma, out=self.dist)

    def _full_fit(self, subset):
        """Refit from scratch; the factor and xty then represent ``subset``."""
        fit = self._solver.fit(self.weights * subset)
        self._normal.reset(self._solver.extract_factor(), subset)
        self.coef = fit.coef
        self.residuals = fit.residuals

    def _initial(self):
        """
        Fit the seed subset.

        While the seed has no more than p observations or is rank
        deficient, the observation with the smallest seed distance among
        the non-members is added and the fit is redone.
        """
        subset = self.subset
        candidates = iter(np.argsort(self.dist, kind='stable'))
        while True:
            if np.count_nonzero(subset) > self.p:
                try:
                    self._full_fit(subset)
                    break
                except RankDeficientError:
                    self._log("Step 0: subset of %d is rank deficient, enlarging it",
                              np.count_nonzero(subset))
            for i in candidates:
                if not subset[i]:
                    subset[i] = True
                    break
            else:
                raise RankDeficientError(
                    "design matrix is rank deficient with all observations"
                )
        self._log("Step 0: initial subset, m = %d", np.count_nonzero(subset))
        self._score(subset)

    def _enlarge(self, subset):
        """Add the non-member with the smallest discrepancy."""
        outside = np.flatnonzero(~subset)
        subset[outside[np.argmin(self.dist[outside])]] = True

    def _grow(self):
        """Algorithm 4: grow the subset from p + 1 to the target size."""
        self._log("Step 1 (Algorithm 4):")
        subset0 = self.subset
        subset1 = select_subset(self.dist, self.p + 1)

        while True:
            while True:
                size = int(np.count_nonzero(subset1))
                try:
                    n_update, n_downdate = self._normal.transition(subset0, subset1)
                    self._log("  m = %d (%d up- and %d downdates)",
                              size, n_update, n_downdate)
                    break
                except RankDeficientError:
                    if size >= self.target:
                        raise RankDeficientError(
                            f"subset reached {size} observations without "
                            f"a full-rank downdate"
                        )
                    self._log("  m = %d (downdate failed, subset is increased)", size)
                    self._enlarge(subset1)

            subset0 = subset1.copy()
            self.subset = subset0
            self.coef = self._normal.solve()
            self.residuals = self.y - self.X @ self.coef
            self._score(subset0)

            if size >= self.target:
                break
            select_subset(self.dist, size + 1, out=subset1)

    def _refinement_pass(self, subset):
        m = int(np.count_nonzero(subset))
        if m <= self.p:
            raise RankDeficientError(
                f"subset of {m} observations cannot identify {self.p} coefficients"
            )
        self._full_fit(subset)
        self._score(subset)
        cutoff = bacon_cutoff(self.alpha, m, self.p, self.quantile)
        return self.dist < cutoff

    def _refine(self):
        """Algorithm 5: iterate until the subset is stable."""
        self._log("Step 2 (Algorithm 5):")
        subset0 = self.subset
        for iteration in range(1, self.maxiter + 1):
            self.iterations = iteration
            subset1 = self._refinement_pass(subset0)
            if np.array_equal(subset0, subset1):
                self._log("  converged after %d iterations, m = %d",
                          iteration, np.count_nonzero(subset0))
                return
            self._log("  m = %d", np.count_nonzero(subset1))
            subset0 = subset1
            self.subset = subset0
        raise ConvergenceError(
            f"subset did not stabilize within {self.maxiter} iterations"
        )


def wbacon_reg(
    X,
    y,
    weights,
    subset,
    dist,
    *,
    collect: int = 4,
    alpha: float = 0.05,
    maxiter: int = 50,
    verbose: bool = False,
    scale: Optional[Callable] = None,
    quantile: Optional[Callable] = None,
    backend=None,
) -> BaconResult:
    """
    Weighted BACON regression from a seed subset.

    See ``BaconDriver`` for the parameters. ``X`` is left untouched: the
    compact QR factorization of the last full weighted fit, which LAPACK
    writes over the weighted design, is returned as ``result.qr`` instead
    of being written back into the caller's matrix.

    Examples
    --------
    >>> subset, dist = median_seed(X, w, 4 * X.shape[1])
    >>> result = wbacon_reg(X, y, w, subset, dist, alpha=0.05)
    >>> result.success, result.coef
    """
    driver = BaconDriver(
        X, y, weights,
        collect=collect, alpha=alpha, maxiter=maxiter, verbose=verbose,
        scale=scale, quantile=quantile, backend=backend,
    )
    return driver.run(subset, dist)
