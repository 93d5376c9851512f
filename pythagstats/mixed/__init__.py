"""
Hierarchical (partially pooled) straight-line model.

One grouping factor, a correlated random intercept and random slope per
group, fitted by REML (default) or ML.

Usage:
    from pythagstats.mixed import lmm

    sol = lmm(dataset)
    sol.estimates       # group_id -> CoefficientEstimate
    sol.Sigma           # random effects covariance
    print(sol.summary())
"""

from pythagstats.mixed._common import LMMParams, VarCompSummary, VarianceComponents
from pythagstats.mixed.backends import EMBackend, ProfiledDevianceBackend
from pythagstats.mixed.design import MixedDesign
from pythagstats.mixed.solution import LMMSolution
from pythagstats.mixed.solvers import get_variance_solver, lmm

__all__ = [
    'lmm',
    'get_variance_solver',
    'LMMSolution',
    'LMMParams',
    'MixedDesign',
    'VarCompSummary',
    'VarianceComponents',
    'ProfiledDevianceBackend',
    'EMBackend',
]
