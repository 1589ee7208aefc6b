"""
Backend selection and management.

Provides a unified interface to the CPU (LAPACK) and PyTorch FP64
decompositions used by the weighted least-squares solver.
"""

from typing import Optional, Union
import warnings

from .base import BackendBase
from .._config import get_default_backend

# Try importing CPU backend (always available)
try:
    from .cpu_fp64_backend import CPUBackendFP64
    CPU_AVAILABLE = True
except ImportError:
    CPU_AVAILABLE = False
    warnings.warn("CPU backend unavailable - installation error!")

# PyTorch is an optional dependency
try:
    import torch  # noqa: F401
    from .gpu_fp64_backend import PyTorchBackendFP64
    PYTORCH_AVAILABLE = True
except ImportError:
    PYTORCH_AVAILABLE = False


def get_backend(
    backend: Union[str, BackendBase, None] = None,
    device: Optional[str] = None,
) -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str, BackendBase or None
        Backend selection:
        - None: the configured default (see ``pybacon._config``)
        - 'auto': same as None
        - 'cpu': NumPy/SciPy LAPACK (FP64, reference)
        - 'pytorch': PyTorch FP64 (CUDA if available)
        A backend instance is returned unchanged.
    device : str, optional
        Torch device for the 'pytorch' backend

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> backend = get_backend('cpu')
    >>> backend = get_backend('pytorch', device='cuda')
    """
    if isinstance(backend, BackendBase):
        return backend

    if backend is None or backend == 'auto':
        backend = get_default_backend()

    if backend == 'cpu':
        if not CPU_AVAILABLE:
            raise RuntimeError("CPU backend unavailable!")
        return CPUBackendFP64()

    elif backend == 'pytorch':
        if not PYTORCH_AVAILABLE:
            raise RuntimeError(
                "PyTorch backend unavailable.\n"
                "Install: pip install torch"
            )
        return PyTorchBackendFP64(device=device)

    else:
        raise ValueError(
            f"Unknown backend: '{backend}'\n"
            f"Valid options: 'auto', 'cpu', 'pytorch'"
        )


def list_available_backends() -> list:
    """List names of available backends."""
    backends = []
    if CPU_AVAILABLE:
        backends.append('cpu')
    if PYTORCH_AVAILABLE:
        backends.append('pytorch')
    return backends


__all__ = [
    'get_backend',
    'list_available_backends',
    'BackendBase',
    'CPU_AVAILABLE',
    'PYTORCH_AVAILABLE',
]
