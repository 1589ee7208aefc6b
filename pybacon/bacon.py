"""
Robust linear regression with an lm()-style interface.

This is the user-facing API: arrays or a DataFrame in, a fitted model
with outlier flags out.
"""

import numpy as np
import pandas as pd
import warnings
from typing import Optional, Union, List

from ._core import median_seed, wbacon_reg


class BaconRegression:
    """
    Fit a weighted BACON regression.

    Observations nominated as outliers are excluded from the final
    weighted least-squares fit.

    Examples
    --------
    >>> import pandas as pd
    >>> from pybacon import bacon
    >>>
    >>> data = pd.read_csv('survey.csv')
    >>> model = bacon(y='income', X=['age', 'hours'], data=data,
    ...               weights='design_weight')
    >>>
    >>> model.coef          # Named coefficients
    >>> model.outliers      # Observations nominated as outliers
    >>> model.predict(new_data)
    """

    def __init__(
        self,
        y: Union[str, np.ndarray],
        X: Union[List[str], np.ndarray],
        data: Optional[pd.DataFrame] = None,
        weights: Optional[Union[str, np.ndarray]] = None,
        intercept: bool = True,
        collect: int = 4,
        alpha: float = 0.05,
        maxiter: int = 50,
        verbose: bool = False,
        subset: Optional[np.ndarray] = None,
        dist: Optional[np.ndarray] = None,
        scale=None,
        backend: Optional[str] = None,
    ):
        """
        Fit robust regression model.

        Parameters
        ----------
        y : str or array
            Response variable
            - If string: column name in data
            - If array: numeric values
        X : list of str or array
            Covariates
            - If list of strings: column names in data
            - If array: numeric matrix (n x k)
        data : DataFrame, optional
            Dataset containing y, X and weights
        weights : str or array, optional
            Observation (e.g. sampling) weights
        intercept : bool
            Prepend a column of ones to X
        collect : int
            Growth multiplier; subset grows to collect * p
        alpha : float
            Significance level of the outlier cutoff
        maxiter : int
            Maximum number of refinement iterations
        verbose : bool
            Log progress at INFO level
        subset, dist : array, optional
            Seed subset and distances; by default observations close to
            the coordinate-wise median of X are used
        scale : callable, optional
            Scale collaborator (see ``pybacon.SubsetResidualScale``)
        backend : str, optional
            'cpu' or 'pytorch'
        """
        # Parse inputs
        if isinstance(y, str):
            if data is None:
                raise ValueError("Must provide data when y is a string")
            self.y_values = data[y].values
            self.y_name = y
        else:
            self.y_values = np.asarray(y)
            self.y_name = 'y'

        if isinstance(X, list) and all(isinstance(x, str) for x in X):
            if data is None:
                raise ValueError("Must provide data when X is list of strings")
            self.X_values = data[X].values
            self.X_names = X
        else:
            self.X_values = np.asarray(X)
            if self.X_values.ndim == 1:
                self.X_values = self.X_values[:, np.newaxis]
            self.X_names = [f'x{i}' for i in range(self.X_values.shape[1])]

        if weights is not None:
            if isinstance(weights, str):
                if data is None:
                    raise ValueError("Must provide data when weights is a string")
                self.weights_values = data[weights].values
            else:
                self.weights_values = np.asarray(weights)
        else:
            self.weights_values = np.ones(len(self.y_values))

        self.intercept = intercept
        self.n_obs = len(self.y_values)
        self.design = self._design(self.X_values)
        self.n_coef = self.design.shape[1]
        self.var_names = (['Intercept'] if intercept else []) + list(self.X_names)

        if subset is None:
            if dist is not None:
                raise ValueError("dist requires subset")
            subset, dist = median_seed(
                np.asarray(self.design, dtype=np.float64),
                np.asarray(self.weights_values, dtype=np.float64),
                min(collect * self.n_coef, self.n_obs),
            )
        elif dist is None:
            raise ValueError("subset requires dist")

        self.result = wbacon_reg(
            self.design,
            self.y_values,
            self.weights_values,
            subset,
            dist,
            collect=collect,
            alpha=alpha,
            maxiter=maxiter,
            verbose=verbose,
            scale=scale,
            backend=backend,
        )

        if not self.result.success:
            warnings.warn(
                f"BACON fit did not succeed: {self.result.status.message}. "
                f"Coefficients are not a valid robust fit.",
                RuntimeWarning
            )

    def _design(self, X):
        X = np.asarray(X, dtype=np.float64)
        if self.intercept:
            X = np.column_stack([np.ones(len(X)), X])
        return X

    @property
    def coefficients(self) -> np.ndarray:
        return self.result.coef

    @property
    def coef(self):
        """Named coefficients (pandas Series)."""
        return pd.Series(self.result.coef, index=self.var_names)

    @property
    def residuals(self) -> np.ndarray:
        return self.result.residuals

    @property
    def fitted_values(self) -> np.ndarray:
        return self.design @ self.result.coef

    @property
    def subset(self) -> np.ndarray:
        """Observations in the final outlier-free subset."""
        return self.result.subset

    @property
    def outliers(self) -> np.ndarray:
        """Observations nominated as outliers."""
        return ~self.result.subset

    @property
    def distances(self) -> np.ndarray:
        return self.result.dist

    @property
    def iterations(self) -> int:
        return self.result.iterations

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def status(self):
        return self.result.status

    def predict(self, newdata: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """
        Predict response for new data.

        Parameters
        ----------
        newdata : DataFrame or array
            New covariate values
            - If DataFrame: must have columns matching self.X_names
            - If array: must have same number of columns as X

        Returns
        -------
        array
            Predicted values
        """
        if isinstance(newdata, pd.DataFrame):
            X_new = newdata[self.X_names].values
        else:
            X_new = np.asarray(newdata)
            if X_new.ndim == 1:
                X_new = X_new[:, np.newaxis]

        return self._design(X_new) @ self.result.coef

    def __repr__(self):
        return (f"BaconRegression(n={self.n_obs}, p={self.n_coef}, "
                f"outliers={int(np.sum(self.outliers))}, success={self.success})")


def bacon(y, X, data=None, **kwargs):
    """
    Fit a weighted BACON regression (convenience function).

    Parameters
    ----------
    y : str or array
        Response variable
    X : list of str or array
        Covariates
    data : DataFrame, optional
        Dataset
    **kwargs
        Additional arguments passed to BaconRegression

    Returns
    -------
    BaconRegression
        Fitted model object

    Examples
    --------
    >>> model = bacon(y='mpg', X=['wt', 'hp'], data=mtcars)
    >>> model.coef
    >>> model.outliers
    """
    return BaconRegression(y=y, X=X, data=data, **kwargs)
