"""
Exception hierarchy for pythagstats.

All exceptions inherit from PythagStatsError to allow catching any
library-specific error. Domain-specific exceptions inherit from the
appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any


class PythagStatsError(Exception):
    """Base exception for all pythagstats errors."""
    pass


class ValidationError(PythagStatsError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class DegenerateGroupingError(ValidationError):
    """
    Grouping structure cannot identify the random-effects covariance.

    Raised by the hierarchical fit when fewer than 2 groups are present.

    Attributes:
        n_groups: Number of distinct groups found
        min_groups: Number of groups required
    """

    def __init__(self, message: str, n_groups: int, min_groups: int = 2):
        super().__init__(message)
        self.n_groups = n_groups
        self.min_groups = min_groups


class NumericalError(PythagStatsError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a matrix operation requires invertibility but the matrix
    is singular or numerically rank-deficient.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically min(n, p))
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class SingularDesignError(SingularMatrixError):
    """
    Straight-line OLS design [1, x] cannot be solved.

    Raised when a pooled or per-group fit has fewer than 2 observations
    or no spread in the predictor.

    Attributes:
        group_id: Group whose fit failed, or None for the pooled fit
        n_obs: Number of observations in the failing sample
        reason: 'too_few_observations' or 'zero_predictor_variance'
    """

    def __init__(
        self,
        message: str,
        group_id: Any = None,
        n_obs: int | None = None,
        reason: str | None = None,
        rank: int | None = None,
    ):
        super().__init__(message, matrix_name='X', rank=rank, expected_rank=2)
        self.group_id = group_id
        self.n_obs = n_obs
        self.reason = reason


class NotPositiveDefiniteError(NumericalError):
    """
    Matrix is not positive definite.

    Raised when an operation requires a positive definite matrix
    (e.g., Cholesky decomposition) but the matrix fails this requirement.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        min_eigenvalue: Minimum eigenvalue, if computed
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        min_eigenvalue: float | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.min_eigenvalue = min_eigenvalue


class ConvergenceError(PythagStatsError):
    """
    Iterative algorithm failed to converge.

    Raised when the variance-component optimizer (L-BFGS-B or EM) exhausts
    its iteration budget without meeting the convergence tolerance.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final parameter or objective change
        reason: Why convergence failed (e.g., 'max_iterations', 'diverging')
        threshold: The convergence threshold that was not met
        objective: Last objective (deviance) value, if available
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None,
        objective: float | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
        self.objective = objective
