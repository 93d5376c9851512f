"""
Common data types for the random-intercept/random-slope model.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Each payload is a pure data container.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48.
"""

from dataclasses import dataclass
from typing import Hashable

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class VarCompSummary:
    """Variance component summary for one random effect term.

    Attributes:
        name: Term name ('(Intercept)' or 'x').
        variance: Estimated variance of this random effect.
        std_dev: Standard deviation (sqrt of variance).
        corr: Correlation with the intercept term, or None for the
              intercept itself (or when either variance is zero).
    """
    name: str
    variance: float
    std_dev: float
    corr: float | None = None


@dataclass(frozen=True, eq=False)
class VarianceComponents:
    """
    Estimated variance components of one completed fit.

    Sigma = sigma2 · T Tᵗ where T is the lower-triangular relative
    Cholesky factor packed in theta = (t00, t10, t11).

    Attributes:
        Sigma: 2×2 covariance of (random intercept, random slope).
        sigma2: Residual variance.
        theta: Relative Cholesky factor elements (3,).
        objective: Deviance (-2 log-likelihood, REML or ML) at the estimate.
        n_iter: Optimizer iterations used.
        converged: Whether the optimizer met its tolerance.
        reml: True for REML, False for ML.
        algorithm: 'direct' (profiled deviance) or 'em'.
        boundary_tol: Relative variances below this count as zero.
    """
    Sigma: NDArray
    sigma2: float
    theta: NDArray
    objective: float
    n_iter: int
    converged: bool
    reml: bool
    algorithm: str
    boundary_tol: float = 1e-4

    @property
    def method(self) -> str:
        return 'REML' if self.reml else 'ML'

    @property
    def relative_variances(self) -> NDArray:
        """Diagonal of Sigma / sigma2 (intercept, slope)."""
        t00, t10, t11 = self.theta
        return np.array([t00 * t00, t10 * t10 + t11 * t11])

    @property
    def boundary(self) -> bool:
        """At least one random-effect variance is on the zero boundary."""
        return bool(np.any(self.relative_variances < self.boundary_tol))

    @property
    def collapsed(self) -> bool:
        """Every random-effect variance is zero: the pooled model."""
        return bool(np.all(self.relative_variances < self.boundary_tol))


@dataclass(frozen=True, eq=False)
class LMMParams:
    """
    Parameter payload for a fitted random-intercept/random-slope model.
    """
    # Fixed effects
    coefficients: NDArray              # β̂ = (β0, β1)
    coefficient_names: tuple[str, ...]
    se: NDArray                        # standard errors of β̂ (2,)
    coefficient_covariance: NDArray    # Var(β̂) (2, 2)

    # Random effects
    variance_components: VarianceComponents
    var_components: tuple[VarCompSummary, ...]
    residual_variance: float
    residual_std: float

    # Groups
    group_levels: tuple[Hashable, ...]
    random_effects: NDArray            # BLUPs b̂_j (J, 2)
    group_coefficients: NDArray        # β̂ + b̂_j (J, 2)
    group_covariance: NDArray          # Var(β̂ + b̂_j - β - b_j) (J, 2, 2)
    shrinkage: NDArray                 # I - W_j, pull toward β̂ (J, 2, 2)
    group_sizes: NDArray               # observations per group (J,)

    # Model fit
    log_likelihood: float
    reml: bool
    aic: float
    bic: float
    n_obs: int
    n_groups: int
    exact_fit: bool

    # Convergence
    converged: bool
    n_iter: int
    boundary: str                      # 'interior', 'partial' or 'collapsed'

    # Predictions
    fitted_values: NDArray             # Xβ̂ + Zb̂ (n,)
    residuals: NDArray                 # y - fitted (n,)

    # Internal
    theta: NDArray
