"""Tests for input validators."""

import numpy as np
import pytest

from pythagstats.core.exceptions import DimensionError, ValidationError
from pythagstats.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_finite,
    check_min_samples,
    check_positive,
)


class TestCheckArray:

    def test_int_converted_to_float(self):
        out = check_array([1, 2, 3], 'x')
        assert out.dtype == np.float64

    def test_float32_kept_floating(self):
        out = check_array(np.ones(3, dtype=np.float32), 'x')
        assert np.issubdtype(out.dtype, np.floating)

    def test_strings_rejected(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(['a', 'b'], 'x')

    def test_mixed_types_rejected(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array([1, 'a', None], 'x')


class TestChecks:

    def test_finite(self):
        check_finite(np.array([0.1, 0.2]), 'x')
        with pytest.raises(ValidationError, match="1 NaN, 1 Inf"):
            check_finite(np.array([np.nan, np.inf, 0.0]), 'x')

    def test_positive(self):
        check_positive(np.array([1e-9, 3.0]), 'runs')
        with pytest.raises(ValidationError, match="index 1"):
            check_positive(np.array([1.0, 0.0]), 'runs')

    def test_positive_rejects_nan(self):
        with pytest.raises(ValidationError):
            check_positive(np.array([np.nan]), 'runs')

    def test_1d(self):
        check_1d(np.zeros(3), 'x')
        with pytest.raises(DimensionError):
            check_1d(np.zeros((3, 1)), 'x')

    def test_consistent_length(self):
        check_consistent_length(np.zeros(3), np.zeros(3), names=('x', 'y'))
        with pytest.raises(DimensionError, match="x=3, y=4"):
            check_consistent_length(np.zeros(3), np.zeros(4), names=('x', 'y'))

    def test_consistent_length_name_mismatch(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(3), np.zeros(3), names=('x',))

    def test_min_samples(self):
        check_min_samples(np.zeros(3), 3, 'dataset')
        with pytest.raises(ValidationError, match="at least 3"):
            check_min_samples(np.zeros(2), 3, 'dataset')
