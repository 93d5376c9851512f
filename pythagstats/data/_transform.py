"""
Pythagorean expectation transform.

Maps two positive counts (runs scored a, runs allowed b) to the predictor

    x = a^p / (a^p + b^p)

for a fixed exponent p. The default p = 1.83 is the usual baseball value.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pythagstats.core.exceptions import ValidationError
from pythagstats.core.validation import (
    check_array, check_finite, check_positive, check_consistent_length,
)

DEFAULT_EXPONENT = 1.83


def pythagorean_expectation(
    count_a: ArrayLike,
    count_b: ArrayLike,
    exponent: float = DEFAULT_EXPONENT,
) -> NDArray:
    """Compute a^p / (a^p + b^p) elementwise.

    Evaluated as 1 / (1 + (b/a)^p), which avoids overflow for large counts.

    Args:
        count_a: Runs scored (strictly positive).
        count_b: Runs allowed (strictly positive).
        exponent: Exponent p (finite, strictly positive).

    Returns:
        Array of expectations in (0, 1), same shape as the inputs.

    Raises:
        ValidationError: On non-positive or non-finite counts or exponent.
    """
    if not np.isfinite(exponent) or exponent <= 0:
        raise ValidationError(
            f"exponent: must be finite and > 0, got {exponent!r}"
        )

    a = np.atleast_1d(check_array(count_a, 'count_a'))
    b = np.atleast_1d(check_array(count_b, 'count_b'))
    check_consistent_length(a, b, names=('count_a', 'count_b'))
    check_finite(a, 'count_a')
    check_finite(b, 'count_b')
    check_positive(a, 'count_a')
    check_positive(b, 'count_b')

    return 1.0 / (1.0 + (b / a) ** exponent)


def win_fraction(wins: ArrayLike, losses: ArrayLike) -> NDArray:
    """Compute wins / (wins + losses) elementwise.

    Raises:
        ValidationError: On negative counts or a zero games total.
    """
    w = np.atleast_1d(check_array(wins, 'wins'))
    l = np.atleast_1d(check_array(losses, 'losses'))
    check_consistent_length(w, l, names=('wins', 'losses'))
    check_finite(w, 'wins')
    check_finite(l, 'losses')
    if np.any(w < 0) or np.any(l < 0):
        raise ValidationError("wins/losses: counts must be non-negative")
    check_positive(w + l, 'wins + losses')
    return w / (w + l)
