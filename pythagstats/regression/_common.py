"""
Common data types for the OLS fitter.

Contains the frozen parameter payloads that go inside Result[P] envelopes
and the CoefficientEstimate shared by every estimator.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

# Normal-approximation interval: slope ± 2·SE. Kept as a deliberate
# simplification; it is narrower than a t interval for small groups.
CI_MULTIPLIER = 2.0


@dataclass(frozen=True)
class CoefficientEstimate:
    """Intercept/slope estimate with a ±2·SE interval on the slope.

    Attributes:
        intercept: Estimated intercept.
        slope: Estimated slope on x.
        slope_standard_error: Standard error of the slope.
        degenerate: True when the sample is fitted exactly (no residual
            variance or no residual degrees of freedom); the standard
            error is then reported as 0.0.
    """
    intercept: float
    slope: float
    slope_standard_error: float
    degenerate: bool = False

    @property
    def slope_lower(self) -> float:
        return self.slope - CI_MULTIPLIER * self.slope_standard_error

    @property
    def slope_upper(self) -> float:
        return self.slope + CI_MULTIPLIER * self.slope_standard_error

    @property
    def ci_width(self) -> float:
        """slope_upper - slope_lower (= 4·SE)."""
        return self.slope_upper - self.slope_lower

    def contains(self, value: float) -> bool:
        """Whether value lies inside [slope_lower, slope_upper]."""
        return self.slope_lower <= value <= self.slope_upper


@dataclass(frozen=True)
class OLSParams:
    """
    Parameter payload for a straight-line least-squares fit.

    This is the immutable data computed by backends.
    """
    coefficients: NDArray[np.floating[Any]]      # (β0, β1)
    standard_errors: NDArray[np.floating[Any]]   # (se0, se1)
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    rss: float
    tss: float
    rank: int
    df_residual: int
    residual_variance: float
    degenerate: bool
