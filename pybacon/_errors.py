"""
Status codes and exceptions of the BACON fit.

Every failure of the algorithm maps to one ``BaconStatus``. Components
raise the matching ``BaconError`` subclass; the driver turns it back into
a status on the returned result.
"""

from enum import Enum


class BaconStatus(Enum):
    """Outcome of a BACON fit (or of one of its steps)."""
    OK = "ok"
    RANK_DEFICIENT = "rank_deficient"
    TRIANGULAR_MATRIX_SINGULAR = "triangular_matrix_singular"
    CONVERGENCE_FAILURE = "convergence_failure"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    BaconStatus.OK: "no error",
    BaconStatus.RANK_DEFICIENT: "design matrix is rank deficient",
    BaconStatus.TRIANGULAR_MATRIX_SINGULAR: "triangular matrix is singular",
    BaconStatus.CONVERGENCE_FAILURE: "failure of convergence",
}


class BaconError(RuntimeError):
    """Base class for algorithmic failures of the BACON fit."""
    status = BaconStatus.OK

    def __init__(self, message=None):
        super().__init__(message or self.status.message)


class RankDeficientError(BaconError):
    """Design matrix (restricted to the subset) is not of full rank."""
    status = BaconStatus.RANK_DEFICIENT


class TriangularMatrixSingularError(BaconError):
    """Cholesky factor could not be inverted."""
    status = BaconStatus.TRIANGULAR_MATRIX_SINGULAR


class ConvergenceError(BaconError):
    """Refinement did not reach a stable subset within maxiter."""
    status = BaconStatus.CONVERGENCE_FAILURE


_EXCEPTIONS = {
    BaconStatus.RANK_DEFICIENT: RankDeficientError,
    BaconStatus.TRIANGULAR_MATRIX_SINGULAR: TriangularMatrixSingularError,
    BaconStatus.CONVERGENCE_FAILURE: ConvergenceError,
}


def exception_for(status: BaconStatus) -> type:
    """Exception class matching a (non-OK) status."""
    if status is BaconStatus.OK:
        raise ValueError("BaconStatus.OK has no exception")
    return _EXCEPTIONS[status]
