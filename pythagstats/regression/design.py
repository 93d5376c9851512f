"""
Regression Design.

Builds the straight-line design matrix X = [1, x] and response y for one
sample (the full dataset or one group's subset) and checks that the fit
is solvable before any backend sees it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pythagstats.core.exceptions import SingularDesignError
from pythagstats.core.validation import (
    check_array, check_finite, check_1d, check_consistent_length,
)


@dataclass(frozen=True, eq=False)
class RegressionDesign:
    """
    Straight-line regression design. Immutable after construction.

    Construction:
        RegressionDesign.build(x, y)                   # pooled sample
        RegressionDesign.build(x, y, group_id='BOS')   # one group's sample
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _group_id: Hashable | None = None

    @classmethod
    def build(
        cls,
        x: ArrayLike,
        y: ArrayLike,
        *,
        group_id: Hashable | None = None,
    ) -> RegressionDesign:
        """Validate a sample and build its design.

        Raises:
            ValidationError: On non-numeric, non-finite or mismatched input.
            SingularDesignError: If n < 2 or all x values are identical.
        """
        x_arr = check_array(x, 'x')
        y_arr = check_array(y, 'y')
        check_1d(x_arr, 'x')
        check_1d(y_arr, 'y')
        check_consistent_length(x_arr, y_arr, names=('x', 'y'))
        check_finite(x_arr, 'x')
        check_finite(y_arr, 'y')

        n = len(x_arr)
        label = 'pooled sample' if group_id is None else f'group {group_id!r}'

        if n < 2:
            raise SingularDesignError(
                f"{label}: need at least 2 observations for intercept and "
                f"slope, got {n}",
                group_id=group_id,
                n_obs=n,
                reason='too_few_observations',
                rank=n,
            )
        if np.ptp(x_arr) == 0.0:
            raise SingularDesignError(
                f"{label}: predictor has zero variance "
                f"(all {n} x values equal {x_arr[0]!r})",
                group_id=group_id,
                n_obs=n,
                reason='zero_predictor_variance',
                rank=1,
            )

        X = np.column_stack([np.ones(n), x_arr])
        return cls(_X=X, _y=y_arr, _n=n, _group_id=group_id)

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x 2)."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of coefficients (intercept, slope)."""
        return 2

    @property
    def group_id(self) -> Hashable | None:
        """Group this sample belongs to, or None for the pooled sample."""
        return self._group_id

    def XtX(self) -> NDArray[np.floating[Any]]:
        """Compute X'X (for standard errors)."""
        return self._X.T @ self._X
