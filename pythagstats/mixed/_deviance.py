"""
Deviance (-2 log-likelihood) of the random-intercept/random-slope model.

Two forms of the same criterion:

- profiled_deviance(θ): β and σ² profiled out; the objective the direct
  optimizer minimizes over θ alone.
- marginal_deviance(Σ, σ²): evaluated from the per-group marginal
  covariances V_j = Z_j Σ Z_jᵗ + σ² I; the objective the EM iterations
  decrease.

At σ² equal to its profiled value the two agree.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), Sections 2-3.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pythagstats.mixed._random_effects import build_lambda
from pythagstats.mixed._pls import PLSResult, solve_pls

LOG_2PI = float(np.log(2.0 * np.pi))

# pwrss is exactly zero when every observation lies on the pooled line
_PWRSS_FLOOR = 1e-300


def deviance_from_pls(pls: PLSResult, n: int, p: int, reml: bool) -> float:
    """Profiled deviance from a completed PLS solve.

    ML:   log|L|² + n (1 + log(2π pwrss / n))
    REML: log|L|² + log|RX|² + (n-p) (1 + log(2π pwrss / (n-p)))
    """
    pwrss = max(pls.pwrss, _PWRSS_FLOOR)
    log_det_L = 2.0 * np.sum(np.log(np.diag(pls.L)))

    if reml:
        log_det_RX = 2.0 * np.sum(np.log(np.maximum(np.abs(np.diag(pls.RX)), 1e-20)))
        df = n - p
        return float(log_det_L + log_det_RX + df * (1.0 + LOG_2PI + np.log(pwrss / df)))
    return float(log_det_L + n * (1.0 + LOG_2PI + np.log(pwrss / n)))


def profiled_deviance(
    theta: NDArray,
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    n_groups: int,
    reml: bool = True,
) -> float:
    """Profiled REML (or ML) deviance as a function of θ only."""
    n, p = X.shape
    pls = solve_pls(X, Z, y, build_lambda(theta, n_groups), reml=reml)
    return deviance_from_pls(pls, n, p, reml)


def marginal_deviance(
    Sigma: NDArray,
    sigma2: float,
    groups: list[tuple[NDArray, NDArray]],
    reml: bool = True,
) -> tuple[float, NDArray]:
    """-2 log-likelihood at (Σ, σ²) with β at its GLS estimate.

    -2 l = Σ_j log|V_j| + Σ_j r_jᵗ V_j⁻¹ r_j + n log 2π
    REML adds log|Xᵗ V⁻¹ X| and uses (n - p) log 2π.

    Args:
        Sigma: Random effects covariance (2, 2).
        sigma2: Residual variance.
        groups: (X_j, y_j) per group; Z_j equals X_j for this model.
        reml: REML or ML criterion.

    Returns:
        (deviance, beta).
    """
    p = groups[0][0].shape[1]
    n = sum(len(y_j) for _, y_j in groups)

    XtVX = np.zeros((p, p))
    XtVy = np.zeros(p)
    log_det_V = 0.0
    solved = []
    for X_j, y_j in groups:
        V_j = X_j @ Sigma @ X_j.T + sigma2 * np.eye(len(y_j))
        log_det_V += np.linalg.slogdet(V_j)[1]
        Vinv_X = np.linalg.solve(V_j, X_j)
        XtVX += X_j.T @ Vinv_X
        XtVy += Vinv_X.T @ y_j
        solved.append(V_j)

    beta = np.linalg.solve(XtVX, XtVy)
    quad = 0.0
    for (X_j, y_j), V_j in zip(groups, solved):
        r_j = y_j - X_j @ beta
        quad += float(r_j @ np.linalg.solve(V_j, r_j))

    dev = log_det_V + quad
    if reml:
        dev += np.linalg.slogdet(XtVX)[1] + (n - p) * LOG_2PI
    else:
        dev += n * LOG_2PI
    return float(dev), beta
