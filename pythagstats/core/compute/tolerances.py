"""
Tolerance tiers for numerical validation.

Defines precision expectations for the different compute paths:
- closed-form least squares (QR): machine precision
- iterative variance-component estimation: optimizer precision

Used by the estimators' degeneracy checks and by the test suite.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance tier for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Closed-form OLS: two solutions of the same normal equations
CPU_FP64 = ToleranceTier(
    rtol=1e-9,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, closed-form solutions',
)

# Variance components from two different iterative solvers
ITERATIVE = ToleranceTier(
    rtol=1e-3,
    atol=1e-6,
    name='iterative',
    description='Iterative optimizers stopped at their own tolerance',
)

# Residual sum of squares at or below EXACT_FIT_RTOL * max(TSS, 1) * n is
# treated as an exact fit (zero residual variance).
EXACT_FIT_RTOL = 1e-24

# Relative (Σ/σ²) variances below this are on the boundary of the
# parameter space. Same threshold lme4 uses for isSingular().
BOUNDARY_TOL = 1e-4


def select_tolerance(backend_name: str) -> ToleranceTier:
    """Select the tolerance tier for results produced by a given backend."""
    if backend_name.endswith('_qr'):
        return CPU_FP64
    return ITERATIVE
