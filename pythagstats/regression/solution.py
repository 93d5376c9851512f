"""
Regression solution types.

OLSSolution wraps Result[OLSParams] and exposes the fitted line as a
CoefficientEstimate plus the usual lm()-style accessors.
"""

from dataclasses import dataclass
from typing import Any, Hashable
import numpy as np
from numpy.typing import NDArray

from pythagstats.core.result import Result
from pythagstats.regression._common import OLSParams, CoefficientEstimate
from pythagstats.regression.design import RegressionDesign


@dataclass(frozen=True, eq=False)
class OLSSolution:
    """
    User-facing straight-line regression results.
    """
    _result: Result[OLSParams]
    _design: RegressionDesign

    @property
    def params(self) -> OLSParams:
        return self._result.params

    @property
    def estimate(self) -> CoefficientEstimate:
        """Intercept, slope and slope SE as a CoefficientEstimate."""
        p = self.params
        return CoefficientEstimate(
            intercept=float(p.coefficients[0]),
            slope=float(p.coefficients[1]),
            slope_standard_error=float(p.standard_errors[1]),
            degenerate=p.degenerate,
        )

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self.params.coefficients

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        return self.params.standard_errors

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self.params.fitted_values

    @property
    def rss(self) -> float:
        return self.params.rss

    @property
    def tss(self) -> float:
        return self.params.tss

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def residual_std_error(self) -> float:
        return float(np.sqrt(self.params.residual_variance))

    @property
    def df_residual(self) -> int:
        return self.params.df_residual

    @property
    def degenerate(self) -> bool:
        return self.params.degenerate

    @property
    def group_id(self) -> Hashable | None:
        return self._design.group_id

    @property
    def n(self) -> int:
        return self._design.n

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

    def summary(self) -> str:
        """Generate R-style summary output."""
        est = self.estimate
        title = "Linear Regression Results"
        if self.group_id is not None:
            title += f" (group {self.group_id})"
        lines = [
            title,
            "=" * 60,
            f"Observations: {self.n}",
            f"R-squared: {self.r_squared:.6f}",
            f"Residual Std. Error: {self.residual_std_error:.6f} on {self.df_residual} DF",
            "",
            f"{'':<12} {'Estimate':>14} {'Std.Error':>12}",
            "-" * 60,
            f"{'(Intercept)':<12} {self.coefficients[0]:14.6f} {self.standard_errors[0]:12.6f}",
            f"{'x':<12} {self.coefficients[1]:14.6f} {self.standard_errors[1]:12.6f}",
            "-" * 60,
            f"Slope interval (±2 SE): [{est.slope_lower:.6f}, {est.slope_upper:.6f}]",
        ]
        if self.degenerate:
            lines.append("WARNING: exact fit, standard errors are not identified")
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"OLSSolution(n={self.n}, intercept={self.coefficients[0]:.4f}, "
            f"slope={self.coefficients[1]:.4f})"
        )
