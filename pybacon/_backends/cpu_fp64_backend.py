"""
CPU backend using NumPy + SciPy.

This is the reference implementation (LAPACK dgels).
"""

import numpy as np
from scipy.linalg import get_lapack_funcs

from .base import CPUBackend, WLSDecomposition


class CPUBackendFP64(CPUBackend):
    """
    CPU backend using LAPACK through SciPy.

    ``dgels`` factors the weighted design via Householder QR (dgeqrf),
    applies Q' to the response and back-solves with R. Always FP64.
    """

    def __init__(self):
        self.name = "cpu_fp64"
        self.precision = "fp64"
        self._gels, self._gels_lwork = get_lapack_funcs(
            ('gels', 'gels_lwork'), dtype=np.float64
        )

    def workspace_size(self, n: int, p: int) -> int:
        """Optimal dgels work array size (LAPACK query with lwork=-1)."""
        work, info = self._gels_lwork(n, p, 1)
        if info != 0:
            raise ValueError(f"dgels workspace query failed (info={info})")
        return max(int(work), 1)

    def solve_wls(
        self,
        wx: np.ndarray,
        wy: np.ndarray,
        lwork: int,
    ) -> WLSDecomposition:
        """
        Solve min ||wy - wx b|| with dgels.

        ``wx`` is overwritten in place by the QR factorization when it is
        Fortran-contiguous.
        """
        p = wx.shape[1]
        lqr, x, info = self._gels(
            wx, wy, lwork=lwork, overwrite_a=True, overwrite_b=True
        )
        if info < 0:
            raise ValueError(f"illegal value in argument {-info} of dgels")

        # info > 0: an exact zero on the diagonal of R, x is meaningless;
        # the rank check of the caller rejects it
        if info > 0:
            coef = np.full(p, np.nan)
        else:
            coef = np.array(x[:p, 0], dtype=np.float64)

        return WLSDecomposition(qr=lqr, coef=coef)

    def get_device_info(self) -> dict:
        """Get backend information."""
        import scipy
        return {
            'backend': 'cpu',
            'precision': 'fp64',
            'library': f'NumPy {np.__version__}, SciPy {scipy.__version__}',
        }
