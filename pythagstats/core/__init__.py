"""
Core infrastructure for pythagstats.

This module provides shared abstractions and utilities used by the
estimators (regression, mixed) and the comparison assembler.

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra kernels
"""

from pythagstats.core.result import Result
from pythagstats.core.exceptions import (
    PythagStatsError,
    ValidationError,
    DimensionError,
    DegenerateGroupingError,
    NumericalError,
    SingularMatrixError,
    SingularDesignError,
    NotPositiveDefiniteError,
    ConvergenceError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PythagStatsError",
    "ValidationError",
    "DimensionError",
    "DegenerateGroupingError",
    "NumericalError",
    "SingularMatrixError",
    "SingularDesignError",
    "NotPositiveDefiniteError",
    "ConvergenceError",
]
