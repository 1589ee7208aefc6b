"""
Core algorithms (backend-agnostic).
"""

from .bacon import BaconDriver, BaconResult, Phase, bacon_cutoff, wbacon_reg
from .cholesky import NormalEquations, chol_downdate, chol_update, cross_product
from .discrepancy import discrepancies, hat_diagonal
from .scale import FixedScale, SubsetResidualScale
from .seed import median_seed
from .selection import select_subset
from .workspace import Workspace
from .wls import WeightedLeastSquaresSolver, WLSFit

__all__ = [
    "BaconDriver",
    "BaconResult",
    "Phase",
    "bacon_cutoff",
    "wbacon_reg",
    "NormalEquations",
    "chol_update",
    "chol_downdate",
    "cross_product",
    "discrepancies",
    "hat_diagonal",
    "FixedScale",
    "SubsetResidualScale",
    "median_seed",
    "select_subset",
    "Workspace",
    "WeightedLeastSquaresSolver",
    "WLSFit",
]
