"""
Abstract base classes for backends.

Defines the interface all backends must implement.
"""

from abc import ABC, abstractmethod
import numpy as np
from dataclasses import dataclass


@dataclass
class WLSDecomposition:
    """Raw output of a weighted least-squares solve."""
    qr: np.ndarray    # compact QR of sqrt(w) * X (R on/above diagonal)
    coef: np.ndarray  # solution of R beta = Q'(sqrt(w) * y), unchecked


class BackendBase(ABC):
    """Abstract base class for all backends."""

    @abstractmethod
    def workspace_size(self, n: int, p: int) -> int:
        """
        Query the scratch size needed to factor an (n, p) matrix.

        No data is touched; the returned capacity is passed back to
        ``solve_wls``.
        """
        pass

    @abstractmethod
    def solve_wls(
        self,
        wx: np.ndarray,
        wy: np.ndarray,
        lwork: int,
    ) -> WLSDecomposition:
        """
        Least-squares solve of the row-scaled system.

        Backends factor ``wx`` via QR and solve the triangular system.
        They do NOT check the rank; that is the caller's job.

        Parameters
        ----------
        wx : ndarray, shape (n, p), Fortran order
            Design matrix pre-multiplied by sqrt(weight). May be
            overwritten by the factorization.
        wy : ndarray, shape (n, 1), Fortran order
            Response pre-multiplied by sqrt(weight). May be overwritten.
        lwork : int
            Capacity returned by ``workspace_size``.

        Returns
        -------
        WLSDecomposition
            Compact QR factorization and coefficients (numpy arrays)
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass


class CPUBackend(BackendBase):
    """CPU backend base class (always FP64)."""
    pass


class GPUBackendFP64(BackendBase):
    """GPU backend base class for FP64."""
    pass
