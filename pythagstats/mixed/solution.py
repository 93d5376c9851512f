"""
Solution wrapper for the hierarchical (random intercept and slope) fit.

LMMSolution wraps Result[LMMParams] and provides property accessors,
per-group CoefficientEstimates and an lme4-style summary.
"""

from __future__ import annotations

from typing import Any, Hashable

import numpy as np
from numpy.typing import NDArray

from pythagstats.core.result import Result
from pythagstats.mixed._common import LMMParams, VarCompSummary, VarianceComponents
from pythagstats.regression._common import CoefficientEstimate


class LMMSolution:
    """Fitted random-intercept/random-slope model.

    The group coefficients β̂ + b̂_j are partially pooled: each group's
    own fit is pulled toward the population line by an amount that grows
    as the group's data get thinner or noisier.
    """

    def __init__(self, _result: Result[LMMParams]):
        self._result = _result

    @property
    def params(self) -> LMMParams:
        return self._result.params

    # --- Fixed effects ---

    @property
    def coefficients(self) -> NDArray:
        return self.params.coefficients

    @property
    def fixef(self) -> dict[str, float]:
        return dict(zip(self.params.coefficient_names, self.params.coefficients.tolist()))

    @property
    def se(self) -> NDArray:
        return self.params.se

    @property
    def population_estimate(self) -> CoefficientEstimate:
        """Population-level line β̂ with the SE of the fixed slope."""
        p = self.params
        return CoefficientEstimate(
            intercept=float(p.coefficients[0]),
            slope=float(p.coefficients[1]),
            slope_standard_error=float(p.se[1]),
            degenerate=p.exact_fit,
        )

    # --- Random effects ---

    @property
    def groups(self) -> tuple[Hashable, ...]:
        return self.params.group_levels

    @property
    def ranef(self) -> dict[Hashable, NDArray]:
        """BLUP b̂_j = (intercept deviation, slope deviation) per group."""
        return dict(zip(self.params.group_levels, self.params.random_effects))

    @property
    def estimates(self) -> dict[Hashable, CoefficientEstimate]:
        """Partially pooled line for every group.

        The slope standard error is the conditional (prediction error)
        standard deviation of β̂_1 + b̂_j1.
        """
        p = self.params
        out = {}
        for j, group_id in enumerate(p.group_levels):
            out[group_id] = CoefficientEstimate(
                intercept=float(p.group_coefficients[j, 0]),
                slope=float(p.group_coefficients[j, 1]),
                slope_standard_error=float(np.sqrt(max(p.group_covariance[j, 1, 1], 0.0))),
                degenerate=p.exact_fit,
            )
        return out

    @property
    def shrinkage(self) -> dict[Hashable, NDArray]:
        """Shrinkage matrix I - W_j per group (0: none, identity: complete)."""
        return dict(zip(self.params.group_levels, self.params.shrinkage))

    @property
    def var_components(self) -> tuple[VarCompSummary, ...]:
        return self.params.var_components

    @property
    def variance_components(self) -> VarianceComponents:
        return self.params.variance_components

    @property
    def Sigma(self) -> NDArray:
        return self.params.variance_components.Sigma

    @property
    def sigma2(self) -> float:
        return self.params.residual_variance

    @property
    def collapsed(self) -> bool:
        """All random-effect variances are zero; the fit equals pooled OLS."""
        return self.params.boundary == 'collapsed'

    @property
    def boundary(self) -> str:
        return self.params.boundary

    # --- Model fit ---

    @property
    def log_likelihood(self) -> float:
        return self.params.log_likelihood

    @property
    def aic(self) -> float:
        return self.params.aic

    @property
    def bic(self) -> float:
        return self.params.bic

    @property
    def fitted_values(self) -> NDArray:
        return self.params.fitted_values

    @property
    def residuals(self) -> NDArray:
        return self.params.residuals

    @property
    def converged(self) -> bool:
        return self.params.converged

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Summary ---

    def summary(self) -> str:
        """lme4-style summary of the fit."""
        params = self.params
        method = 'REML' if params.reml else 'ML'

        lines = [f"Linear mixed model fit by {method} ({self.backend_name})", ""]

        lines.append("Random effects:")
        lines.append(f" {'Groups':<10s} {'Name':<12s} {'Variance':>12s} "
                     f"{'Std.Dev.':>12s} {'Corr':>6s}")
        for i, vc in enumerate(params.var_components):
            label = 'group' if i == 0 else ''
            corr_str = f'{vc.corr:6.2f}' if vc.corr is not None else ''
            lines.append(
                f" {label:<10s} {vc.name:<12s} {vc.variance:12.6g} "
                f"{vc.std_dev:12.6g} {corr_str}"
            )
        lines.append(
            f" {'Residual':<10s} {'':<12s} {params.residual_variance:12.6g} "
            f"{params.residual_std:12.6g}"
        )
        lines.append(f"Number of obs: {params.n_obs}, groups: {params.n_groups}")
        lines.append("")

        lines.append("Fixed effects:")
        lines.append(f" {'':>12s} {'Estimate':>12s} {'Std. Error':>12s}")
        for i, name in enumerate(params.coefficient_names):
            lines.append(
                f" {name:>12s} {params.coefficients[i]:12.6f} {params.se[i]:12.6f}"
            )
        lines.append("")

        lines.append(f"{method} criterion at convergence: {-2 * params.log_likelihood:.4f}")
        lines.append(f"AIC: {params.aic:.4f}, BIC: {params.bic:.4f}")

        if params.boundary == 'collapsed':
            lines.append("")
            lines.append("NOTE: random effect variances estimated as zero; "
                         "group lines equal the pooled line")
        elif params.boundary == 'partial':
            lines.append("")
            lines.append("NOTE: boundary (singular) fit")

        return '\n'.join(lines)

    def __repr__(self) -> str:
        method = 'REML' if self.params.reml else 'ML'
        return (
            f"LMMSolution({method}, n={self.params.n_obs}, "
            f"groups={self.params.n_groups}, boundary={self.params.boundary!r})"
        )
