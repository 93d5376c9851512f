"""
Public API for the hierarchical (random intercept and slope) fit.

    lmm(dataset) fits  y_ij = (β0 + b0_j) + (β1 + b1_j)·x_ij + ε_ij
    with (b0_j, b1_j) ~ N(0, Σ) and ε_ij ~ N(0, σ²).

Variance components come from a VarianceSolver backend (direct profiled
deviance or EM); everything else follows from one PLS solve at θ̂.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48.
"""

from __future__ import annotations

import dataclasses
import logging
import warnings

import numpy as np

from pythagstats.core.compute.timing import Timer
from pythagstats.core.compute.tolerances import BOUNDARY_TOL, EXACT_FIT_RTOL
from pythagstats.core.protocols import VarianceSolver
from pythagstats.core.result import Result
from pythagstats.data.dataset import Dataset
from pythagstats.mixed._common import LMMParams, VarCompSummary, VarianceComponents
from pythagstats.mixed._conditional import conditional_covariances, shrinkage_matrices
from pythagstats.mixed._deviance import deviance_from_pls
from pythagstats.mixed._pls import solve_pls
from pythagstats.mixed._random_effects import (
    N_TERMS, TERM_NAMES, THETA_SIZE, build_lambda, relative_covariance,
)
from pythagstats.mixed.backends.cpu import ProfiledDevianceBackend
from pythagstats.mixed.backends.em import EMBackend
from pythagstats.mixed.design import MixedDesign
from pythagstats.mixed.solution import LMMSolution

logger = logging.getLogger(__name__)

_BACKENDS = {
    'direct': ProfiledDevianceBackend,
    'em': EMBackend,
}

_DEFAULT_MAX_ITER = {
    'direct': 200,
    'em': 10000,
}


def get_variance_solver(algorithm: str) -> VarianceSolver:
    """Return the variance component backend for an algorithm name."""
    try:
        return _BACKENDS[algorithm]()
    except KeyError:
        raise ValueError(
            f"Unknown algorithm: {algorithm!r}. Use one of {sorted(_BACKENDS)}"
        )


def lmm(
    data: Dataset | MixedDesign,
    *,
    reml: bool = True,
    algorithm: str = 'direct',
    tol: float = 1e-8,
    max_iter: int | None = None,
    boundary_tol: float = BOUNDARY_TOL,
) -> LMMSolution:
    """Fit the random-intercept/random-slope model.

    Args:
        data: Dataset (or a prebuilt MixedDesign).
        reml: If True (default), use REML estimation. If False, use ML.
        algorithm: 'direct' (L-BFGS-B on the profiled deviance) or 'em'.
        tol: Relative deviance reduction at which iteration stops.
        max_iter: Iteration budget; None picks 200 for 'direct' and
            10000 for 'em'.
        boundary_tol: Relative variances (Σ/σ² diagonal) below this count
            as zero. When both are below it the random effects are
            dropped and the fit is exactly the pooled fit.

    Returns:
        LMMSolution with fixed effects, BLUPs, group estimates and summary().

    Raises:
        DegenerateGroupingError: Fewer than 2 groups.
        ConvergenceError: The iteration budget ran out before tolerance.
        NotPositiveDefiniteError: Group coefficient covariances undefined.

    Example:
        >>> sol = lmm(dataset)
        >>> sol.estimates['BOS'].slope_standard_error
    """
    if tol <= 0:
        raise ValueError(f"tol must be positive, got {tol}")
    if boundary_tol < 0:
        raise ValueError(f"boundary_tol must be non-negative, got {boundary_tol}")

    backend = get_variance_solver(algorithm)
    if max_iter is None:
        max_iter = _DEFAULT_MAX_ITER[algorithm]
    if max_iter < 1:
        raise ValueError(f"max_iter must be >= 1, got {max_iter}")

    timer = Timer()
    timer.start()

    with timer.section('setup'):
        design = data if isinstance(data, MixedDesign) else MixedDesign.from_dataset(data)

    with timer.section('variance_components'):
        vc_result = backend.solve(design, reml=reml, tol=tol, max_iter=max_iter)
    vc = dataclasses.replace(vc_result.params, boundary_tol=boundary_tol)
    warn_list = list(vc_result.warnings)

    for msg in vc_result.warnings:
        warnings.warn(msg, RuntimeWarning, stacklevel=2)

    theta_hat = vc.theta
    if vc.collapsed:
        theta_hat = np.zeros(THETA_SIZE)
        boundary = 'collapsed'
        warn_list.append(
            "Random effect variances estimated as zero; "
            "hierarchical fit equals the pooled fit"
        )
        logger.info("Variance components collapsed to zero (theta=%s)", vc.theta)
    elif vc.boundary:
        boundary = 'partial'
        warn_list.append("Boundary (singular) fit: one random effect variance is zero")
    else:
        boundary = 'interior'

    with timer.section('final_solve'):
        Lambda = build_lambda(theta_hat, design.n_groups)
        pls = solve_pls(design.X, design.Z, design.y, Lambda, reml=reml)
        sigma2 = pls.sigma_sq
        Sigma = sigma2 * relative_covariance(theta_hat)

    with timer.section('conditional_covariance'):
        beta_cov, group_cov = conditional_covariances(
            design.X, design.Z, Lambda, sigma2, design.n_groups,
        )
        shrink = shrinkage_matrices(design.X, design.group_codes, theta_hat, design.n_groups)

    with timer.section('model_fit'):
        objective = deviance_from_pls(pls, design.n, design.p, reml)
        ll, aic, bic = _fit_stats(objective, design.n, design.p)
        yc = design.y - design.y.mean()
        exact_fit = pls.pwrss <= EXACT_FIT_RTOL * max(float(yc @ yc), 1.0) * design.n

    # b is term-major: [intercepts..., slopes...]
    random_effects = pls.b.reshape(N_TERMS, design.n_groups).T.copy()

    variance_components = dataclasses.replace(
        vc,
        Sigma=Sigma,
        sigma2=sigma2,
        theta=theta_hat,
        objective=objective,
    )

    timer.stop()

    params = LMMParams(
        coefficients=pls.beta,
        coefficient_names=TERM_NAMES,
        se=np.sqrt(np.maximum(np.diag(beta_cov), 0.0)),
        coefficient_covariance=beta_cov,
        variance_components=variance_components,
        var_components=tuple(_var_component_summary(Sigma)),
        residual_variance=float(sigma2),
        residual_std=float(np.sqrt(sigma2)),
        group_levels=design.levels,
        random_effects=random_effects,
        group_coefficients=pls.beta[np.newaxis, :] + random_effects,
        group_covariance=group_cov,
        shrinkage=shrink,
        group_sizes=design.group_sizes,
        log_likelihood=ll,
        reml=reml,
        aic=aic,
        bic=bic,
        n_obs=design.n,
        n_groups=design.n_groups,
        exact_fit=bool(exact_fit),
        converged=vc.converged,
        n_iter=vc.n_iter,
        boundary=boundary,
        fitted_values=pls.fitted,
        residuals=pls.residuals,
        theta=theta_hat,
    )

    result = Result(
        params=params,
        info={
            'method': 'REML' if reml else 'ML',
            'algorithm': algorithm,
            'boundary': boundary,
            'variance_solver': vc_result.info,
            'tol': tol,
            'max_iter': max_iter,
        },
        timing=timer.result(),
        backend_name=vc_result.backend_name,
        warnings=tuple(warn_list),
    )

    return LMMSolution(_result=result)


def _var_component_summary(Sigma: np.ndarray) -> list[VarCompSummary]:
    """Variance, SD and intercept correlation for each random effect."""
    out = []
    for i, name in enumerate(TERM_NAMES):
        var_i = float(max(Sigma[i, i], 0.0))
        sd_i = float(np.sqrt(var_i))
        corr = None
        if i > 0 and Sigma[0, 0] > 0 and var_i > 0:
            corr = float(np.clip(Sigma[i, 0] / (np.sqrt(Sigma[0, 0]) * sd_i), -1.0, 1.0))
        out.append(VarCompSummary(name=name, variance=var_i, std_dev=sd_i, corr=corr))
    return out


def _fit_stats(deviance: float, n: int, p: int) -> tuple[float, float, float]:
    """Log-likelihood, AIC, BIC.

    Parameters counted as in lme4: p fixed effects, the 3 elements of θ
    and σ².
    """
    n_params = p + THETA_SIZE + 1
    ll = -0.5 * deviance
    aic = -2.0 * ll + 2.0 * n_params
    bic = -2.0 * ll + np.log(n) * n_params
    return float(ll), float(aic), float(bic)
