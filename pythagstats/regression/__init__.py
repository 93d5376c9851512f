"""
Straight-line least squares: the pooled and per-group (unpooled) fits.

Public API:
    fit_ols(x, y, ...)          -> OLSSolution
    fit_pooled(dataset)         -> OLSSolution
    fit_unpooled(dataset, ...)  -> UnpooledFits

Example:
    >>> from pythagstats.regression import fit_ols
    >>> sol = fit_ols(x, y)
    >>> print(sol.estimate.slope)
    >>> print(sol.summary())
"""

from pythagstats.regression._common import (
    CI_MULTIPLIER, CoefficientEstimate, OLSParams,
)
from pythagstats.regression.design import RegressionDesign
from pythagstats.regression.solution import OLSSolution
from pythagstats.regression.solvers import (
    fit_ols, fit_pooled, fit_unpooled, UnpooledFits,
)

__all__ = [
    "fit_ols",
    "fit_pooled",
    "fit_unpooled",
    "CI_MULTIPLIER",
    "CoefficientEstimate",
    "OLSParams",
    "OLSSolution",
    "RegressionDesign",
    "UnpooledFits",
]
