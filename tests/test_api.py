"""
Test the lm()-style interface.
"""

import numpy as np
import pandas as pd
import pytest

from pybacon import BaconRegression, BaconStatus, bacon

from conftest import OUTLIER


@pytest.fixture
def outlier_frame(outlier_data):
    X, y = outlier_data
    return pd.DataFrame({'y': y, 'x': X[:, 1], 'w': np.full(len(y), 2.0)})


class TestBaconRegression:
    """Arrays in, fitted model out."""

    def test_arrays(self, outlier_data, clean_ols):
        X, y = outlier_data
        model = BaconRegression(y, X[:, 1])

        assert model.success
        assert model.status is BaconStatus.OK
        assert model.outliers[OUTLIER]
        assert model.outliers.sum() == 1
        np.testing.assert_allclose(model.coefficients, clean_ols, atol=0.1)
        assert list(model.coef.index) == ['Intercept', 'x0']

    def test_dataframe(self, outlier_frame, clean_ols):
        model = bacon(y='y', X=['x'], data=outlier_frame, weights='w')

        assert model.success
        assert list(model.coef.index) == ['Intercept', 'x']
        np.testing.assert_allclose(model.coef.values, clean_ols, atol=0.1)
        assert np.flatnonzero(model.outliers).tolist() == [OUTLIER]

    def test_predict(self, outlier_frame):
        model = bacon(y='y', X=['x'], data=outlier_frame)
        new = pd.DataFrame({'x': [11.0, 12.0]})
        np.testing.assert_allclose(model.predict(new), [35.0, 38.0], atol=0.3)
        np.testing.assert_allclose(model.predict(np.array([11.0, 12.0])),
                                   model.predict(new))

    def test_fitted_values_and_residuals(self, outlier_data):
        X, y = outlier_data
        model = BaconRegression(y, X[:, 1])
        np.testing.assert_allclose(model.fitted_values + model.residuals, y,
                                   atol=1e-10)

    def test_no_intercept(self, outlier_data):
        X, y = outlier_data
        model = BaconRegression(y, X, intercept=False)
        assert model.n_coef == 2
        assert model.outliers[OUTLIER]

    def test_failure_warns(self, outlier_data):
        X, y = outlier_data
        x = X[:, 1]
        with pytest.warns(RuntimeWarning, match="did not succeed"):
            model = BaconRegression(y, np.column_stack([x, x]))
        assert not model.success
        assert model.status is BaconStatus.RANK_DEFICIENT

    def test_string_inputs_need_data(self, outlier_data):
        X, y = outlier_data
        with pytest.raises(ValueError):
            bacon(y='y', X=['x'])
        with pytest.raises(ValueError):
            BaconRegression(y, X[:, 1], subset=np.ones(len(y), dtype=bool))

    def test_repr(self, outlier_data):
        X, y = outlier_data
        text = repr(BaconRegression(y, X[:, 1]))
        assert text.startswith("BaconRegression(n=10, p=2")
        assert "outliers=1" in text
