"""
Test backend implementations.

- CPU: Always tested
- PyTorch: Tested if torch is installed (on its CPU device)
"""

import pytest
import numpy as np

from pybacon import set_default_backend
from pybacon._backends import (
    PYTORCH_AVAILABLE,
    BackendBase,
    get_backend,
    list_available_backends,
)


def weighted_system(n=50, p=3, seed=42):
    rng = np.random.default_rng(seed)
    X = np.column_stack([np.ones(n), rng.normal(size=(n, p - 1))])
    y = X @ np.arange(1.0, p + 1) + 0.1 * rng.normal(size=n)
    sw = np.sqrt(rng.uniform(0.5, 1.5, n))
    wx = np.asfortranarray(X * sw[:, None])
    wy = np.asfortranarray((y * sw)[:, None])
    return wx, wy


class TestBackendSelection:
    """Test backend availability and lookup."""

    def test_list_backends(self):
        backends = list_available_backends()
        assert isinstance(backends, list)
        assert 'cpu' in backends
        assert ('pytorch' in backends) == PYTORCH_AVAILABLE

    def test_default_is_cpu(self):
        assert get_backend().name == 'cpu_fp64'
        assert get_backend('auto').name == 'cpu_fp64'

    def test_instance_passes_through(self):
        backend = get_backend('cpu')
        assert get_backend(backend) is backend
        assert isinstance(backend, BackendBase)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            get_backend('mlx')

    def test_configured_default(self):
        set_default_backend('cpu')
        assert get_backend().name == 'cpu_fp64'
        with pytest.raises(ValueError):
            set_default_backend('tpu')


class TestCPUBackend:
    """Test CPU backend (always available)."""

    def test_cpu_backend_creation(self):
        backend = get_backend('cpu')
        assert backend.name == 'cpu_fp64'
        assert backend.precision == 'fp64'

    def test_cpu_device_info(self):
        info = get_backend('cpu').get_device_info()
        assert info['backend'] == 'cpu'
        assert info['precision'] == 'fp64'

    def test_workspace_size(self):
        assert get_backend('cpu').workspace_size(50, 3) >= 3

    def test_solve_wls(self):
        backend = get_backend('cpu')
        wx, wy = weighted_system()
        expected, *_ = np.linalg.lstsq(wx, wy[:, 0], rcond=None)
        R_expected = np.linalg.qr(wx, mode='r')

        out = backend.solve_wls(wx.copy(order='F'), wy.copy(order='F'),
                                backend.workspace_size(*wx.shape))

        np.testing.assert_allclose(out.coef, expected, rtol=1e-10)
        p = wx.shape[1]
        np.testing.assert_allclose(np.abs(np.triu(out.qr[:p])), np.abs(R_expected),
                                   rtol=1e-10, atol=1e-12)


@pytest.mark.skipif(not PYTORCH_AVAILABLE, reason="PyTorch not installed")
class TestPyTorchBackend:
    """Test PyTorch FP64 backend on the CPU device."""

    def test_pytorch_backend_creation(self):
        backend = get_backend('pytorch', device='cpu')
        assert backend.name == 'pytorch_fp64'
        info = backend.get_device_info()
        assert info['backend'] == 'gpu'
        assert info['device'] == 'cpu'

    def test_pytorch_vs_cpu_consistency(self):
        cpu = get_backend('cpu')
        gpu = get_backend('pytorch', device='cpu')
        wx, wy = weighted_system()
        n, p = wx.shape

        cpu_out = cpu.solve_wls(wx.copy(order='F'), wy.copy(order='F'),
                                cpu.workspace_size(n, p))
        gpu_out = gpu.solve_wls(wx.copy(order='F'), wy.copy(order='F'),
                                gpu.workspace_size(n, p))

        np.testing.assert_allclose(gpu_out.coef, cpu_out.coef, rtol=1e-10)
        np.testing.assert_allclose(np.abs(np.triu(gpu_out.qr[:p])),
                                   np.abs(np.triu(cpu_out.qr[:p])),
                                   rtol=1e-10, atol=1e-12)

    def test_pytorch_rejects_mps(self):
        with pytest.raises(RuntimeError, match="Apple Metal"):
            get_backend('pytorch', device='mps')

    def test_driver_on_pytorch(self, outlier_data):
        from pybacon import median_seed, wbacon_reg
        from conftest import OUTLIER

        X, y = outlier_data
        w = np.ones(len(y))
        subset, dist = median_seed(X, w, 4)
        result = wbacon_reg(X, y, w, subset, dist, collect=2,
                            backend=get_backend('pytorch', device='cpu'))
        assert result.success
        assert not result.subset[OUTLIER]
