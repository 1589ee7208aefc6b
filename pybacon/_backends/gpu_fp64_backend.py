"""
GPU backend using PyTorch with FP64 precision.

For data center GPUs: A100, H100, V100. The rank check of the WLS solve
works at sqrt(machine epsilon), so there is no FP32 variant.
"""

import numpy as np
import warnings
from typing import Optional

from .base import GPUBackendFP64, WLSDecomposition


class PyTorchBackendFP64(GPUBackendFP64):
    """
    PyTorch backend with FP64 precision.

    Householder QR via ``torch.geqrf``, Q' applied via ``torch.ormqr``,
    then a triangular back-solve. Falls back to the CPU device when CUDA
    is not available.
    """

    def __init__(self, device: Optional[str] = None):
        """Initialize PyTorch FP64 backend."""
        self.name = "pytorch_fp64"
        self.precision = "fp64"

        try:
            import torch
            self.torch = torch
        except ImportError:
            raise ImportError(
                "PyTorch required for GPU backend. "
                "Install: pip install torch"
            )

        # No FP64 on Apple Metal
        if device == 'mps':
            raise RuntimeError(
                "FP64 not supported on Apple Metal. "
                "Use the CPU backend."
            )

        if device is None:
            if torch.cuda.is_available():
                device = 'cuda'
            else:
                warnings.warn("No CUDA GPU available, using CPU")
                device = 'cpu'

        self.device = torch.device(device)

    def workspace_size(self, n: int, p: int) -> int:
        """geqrf works on a copy of the (n, p) matrix."""
        return n * p

    def solve_wls(
        self,
        wx: np.ndarray,
        wy: np.ndarray,
        lwork: int,
    ) -> WLSDecomposition:
        """Solve the weighted system on the device; results come back as numpy."""
        torch = self.torch
        p = wx.shape[1]

        wx_gpu = torch.from_numpy(np.ascontiguousarray(wx)).double().to(self.device)
        wy_gpu = torch.from_numpy(np.ascontiguousarray(wy)).double().to(self.device)

        a, tau = torch.geqrf(wx_gpu)
        qty = torch.ormqr(a, tau, wy_gpu, left=True, transpose=True)

        # Unchecked back-solve; near-singular R is rejected by the caller
        R = torch.triu(a[:p, :p])
        coef = torch.linalg.solve_triangular(R, qty[:p], upper=True).squeeze(1)

        return WLSDecomposition(
            qr=a.cpu().numpy(),
            coef=coef.cpu().numpy(),
        )

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'gpu',
            'precision': 'fp64',
            'device': str(self.device),
            'library': f'PyTorch {self.torch.__version__}',
        }
