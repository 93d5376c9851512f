"""Tests for ComparisonConfig."""

import pytest

from pythagstats.comparison import ComparisonConfig
from pythagstats.core.exceptions import ValidationError
from pythagstats.data._transform import DEFAULT_EXPONENT


class TestDefaults:

    def test_defaults(self):
        config = ComparisonConfig()
        assert config.exponent == DEFAULT_EXPONENT
        assert config.min_group_size == 2
        assert config.reml_tolerance == 1e-8
        assert config.reml_max_iter is None
        assert config.reml is True
        assert config.algorithm == 'direct'
        assert config.n_jobs == 1

    def test_frozen(self):
        config = ComparisonConfig()
        with pytest.raises(AttributeError):
            config.n_jobs = 4


class TestValidation:

    @pytest.mark.parametrize("kwargs", [
        {'exponent': 0.0},
        {'exponent': float('nan')},
        {'min_group_size': 1},
        {'min_group_size': 2.5},
        {'reml_tolerance': 0.0},
        {'reml_max_iter': 0},
        {'algorithm': 'newton'},
        {'n_jobs': 0},
    ])
    def test_rejects(self, kwargs):
        with pytest.raises(ValidationError):
            ComparisonConfig(**kwargs)


class TestMapping:

    def test_round_trip(self):
        config = ComparisonConfig(min_group_size=4, algorithm='em', n_jobs=2)
        assert ComparisonConfig.from_mapping(config.to_dict()) == config

    def test_partial_mapping(self):
        config = ComparisonConfig.from_mapping({'reml': False})
        assert config.reml is False
        assert config.min_group_size == 2

    def test_unknown_key(self):
        with pytest.raises(ValidationError, match="max_iterations"):
            ComparisonConfig.from_mapping({'max_iterations': 10})
