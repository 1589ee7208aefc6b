"""
Scratch arena shared by the components of one BACON call.

All buffers are allocated once up front (sizes depend only on n and p)
and handed to the components as borrowed views. The arena is a context
manager: the buffers are dropped on every exit path.
"""

import numpy as np

from .._backends import BackendBase


class Workspace:
    """
    Buffers for one top-level call.

    Attributes
    ----------
    wx : ndarray, shape (n, p), Fortran order
        Weighted design matrix; holds the QR factorization after a solve
    wy : ndarray, shape (n, 1), Fortran order
        Weighted response
    lwork : int
        Factorization workspace capacity (queried from the backend)
    L, xty : ndarray
        Normal-equations state (lower-triangular factor, X'Wy)
    L_backup, xty_backup : ndarray
        Snapshot used to roll back a failed Cholesky transition
    update : ndarray, shape (p,)
        Rank-one update vector
    stack : ndarray, shape (n,), int
        Indices of pending downdates
    hat : ndarray, shape (n,)
        Diagonal of the hat matrix
    """

    def __init__(self, n: int, p: int, backend: BackendBase):
        self.n = n
        self.p = p
        self.backend = backend
        # two-phase sizing: query the capacity, then allocate
        self.lwork = backend.workspace_size(n, p)
        self._allocate()

    def _allocate(self):
        n, p = self.n, self.p
        self.wx = np.zeros((n, p), dtype=np.float64, order='F')
        self.wy = np.zeros((n, 1), dtype=np.float64, order='F')
        self.L = np.zeros((p, p), dtype=np.float64)
        self.xty = np.zeros(p, dtype=np.float64)
        self.L_backup = np.zeros((p, p), dtype=np.float64)
        self.xty_backup = np.zeros(p, dtype=np.float64)
        self.update = np.zeros(p, dtype=np.float64)
        self.stack = np.zeros(n, dtype=np.intp)
        self.hat = np.zeros(n, dtype=np.float64)
        self.released = False

    def release(self):
        """Drop all buffers."""
        for name in ('wx', 'wy', 'L', 'xty', 'L_backup', 'xty_backup',
                     'update', 'stack', 'hat'):
            setattr(self, name, None)
        self.released = True

    def __enter__(self):
        if self.released:
            self._allocate()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __repr__(self):
        state = "released" if self.released else f"lwork={self.lwork}"
        return f"Workspace(n={self.n}, p={self.p}, {state})"
