"""Tests for Observation, Dataset and the Pythagorean transform."""

import numpy as np
import pandas as pd
import pytest

from pythagstats.core.exceptions import DimensionError, ValidationError
from pythagstats.data import (
    DEFAULT_EXPONENT,
    Dataset,
    Observation,
    pythagorean_expectation,
    win_fraction,
)


@pytest.fixture
def small_frame():
    return pd.DataFrame({
        'team': ['BOS', 'BOS', 'NYY', 'NYY', 'TOR'],
        'season': [2019, 2020, 2019, 2020, 2019],
        'runs_scored': [901, 292, 943, 315, 726],
        'runs_allowed': [828, 351, 739, 270, 828],
        'wins': [84, 24, 103, 33, 67],
        'losses': [78, 36, 59, 27, 95],
    })


class TestPythagoreanExpectation:

    def test_equal_counts_give_half(self):
        np.testing.assert_allclose(pythagorean_expectation(700, 700), [0.5])

    def test_matches_definition(self):
        a = np.array([800.0, 650.0])
        b = np.array([700.0, 720.0])
        p = 1.83
        expected = a ** p / (a ** p + b ** p)
        np.testing.assert_allclose(pythagorean_expectation(a, b, p), expected, rtol=1e-12)

    def test_exponent_two(self):
        np.testing.assert_allclose(pythagorean_expectation(3.0, 4.0, 2.0), [9.0 / 25.0])

    def test_symmetry(self):
        x = pythagorean_expectation([750.0], [680.0])
        x_swapped = pythagorean_expectation([680.0], [750.0])
        np.testing.assert_allclose(x + x_swapped, [1.0])

    def test_no_overflow_for_large_counts(self):
        x = pythagorean_expectation([1e200], [2e200], 10.0)
        assert np.isfinite(x).all()
        assert 0.0 < x[0] < 1.0

    @pytest.mark.parametrize("a, b", [(0.0, 700.0), (700.0, -1.0), (np.nan, 700.0)])
    def test_rejects_non_positive_or_non_finite(self, a, b):
        with pytest.raises(ValidationError):
            pythagorean_expectation(a, b)

    @pytest.mark.parametrize("exponent", [0.0, -1.83, np.inf])
    def test_rejects_bad_exponent(self, exponent):
        with pytest.raises(ValidationError, match="exponent"):
            pythagorean_expectation(700.0, 650.0, exponent)

    def test_length_mismatch(self):
        with pytest.raises(DimensionError):
            pythagorean_expectation([700.0, 650.0], [700.0])


class TestWinFraction:

    def test_basic(self):
        np.testing.assert_allclose(win_fraction([81, 100], [81, 62]), [0.5, 100 / 162])

    def test_rejects_zero_games(self):
        with pytest.raises(ValidationError):
            win_fraction([0], [0])

    def test_rejects_negative(self):
        with pytest.raises(ValidationError):
            win_fraction([-1], [10])


class TestObservation:

    def test_from_counts(self):
        obs = Observation.from_counts('BOS', 2019, 901, 828, 84, 78)
        assert obs.group_id == 'BOS'
        assert obs.period == 2019
        assert obs.x == pytest.approx(float(pythagorean_expectation(901, 828)[0]))
        assert obs.y == pytest.approx(84 / 162)


class TestDatasetConstruction:

    def test_from_arrays(self):
        ds = Dataset.from_arrays(['a', 'a', 'b'], [1, 2, 1], [0.4, 0.5, 0.6], [0.45, 0.5, 0.55])
        assert ds.n == 3
        assert len(ds) == 3
        assert ds.groups == ('a', 'b')
        assert ds.exponent is None

    def test_from_counts_records_exponent(self, small_frame):
        ds = Dataset.from_counts(
            small_frame.team, small_frame.season,
            small_frame.runs_scored, small_frame.runs_allowed,
            small_frame.wins, small_frame.losses, exponent=2.0,
        )
        assert ds.exponent == 2.0
        np.testing.assert_allclose(
            ds.x, pythagorean_expectation(small_frame.runs_scored, small_frame.runs_allowed, 2.0)
        )

    def test_from_dataframe(self, small_frame):
        ds = Dataset.from_dataframe(small_frame)
        assert ds.exponent == DEFAULT_EXPONENT
        assert ds.groups == ('BOS', 'NYY', 'TOR')
        assert ds.group_sizes() == {'BOS': 2, 'NYY': 2, 'TOR': 1}
        np.testing.assert_allclose(ds.y, small_frame.wins / (small_frame.wins + small_frame.losses))

    def test_from_dataframe_missing_column(self, small_frame):
        with pytest.raises(ValidationError, match="runs_allowed"):
            Dataset.from_dataframe(small_frame.drop(columns='runs_allowed'))

    def test_from_dataframe_custom_columns(self, small_frame):
        renamed = small_frame.rename(columns={'team': 'franchise', 'season': 'year'})
        ds = Dataset.from_dataframe(renamed, group='franchise', period='year')
        assert ds.n_groups == 3

    def test_from_file_csv(self, small_frame, tmp_path):
        path = tmp_path / "league.csv"
        small_frame.to_csv(path, index=False)
        ds = Dataset.from_file(path)
        assert ds.n == 5
        assert ds.metadata['source_path'] == str(path)

    def test_from_file_unknown_suffix(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown file format"):
            Dataset.from_file(tmp_path / "league.xlsx")

    def test_from_observations_round_trip(self, small_frame):
        ds = Dataset.from_dataframe(small_frame)
        rebuilt = Dataset.from_observations(ds.observations())
        np.testing.assert_array_equal(rebuilt.x, ds.x)
        np.testing.assert_array_equal(rebuilt.y, ds.y)
        assert rebuilt.groups == ds.groups

    def test_duplicate_group_period_rejected(self):
        with pytest.raises(ValidationError, match="duplicate"):
            Dataset.from_arrays(['a', 'a', 'b'], [1, 1, 1], [0.4, 0.5, 0.6], [0.4, 0.5, 0.6])

    def test_too_few_observations(self):
        with pytest.raises(ValidationError, match="at least 3"):
            Dataset.from_arrays(['a', 'b'], [1, 1], [0.4, 0.5], [0.4, 0.5])

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError):
            Dataset.from_arrays(['a', 'a', 'b'], [1, 2, 1], [0.4, np.nan, 0.6], [0.4, 0.5, 0.6])

    def test_length_mismatch(self):
        with pytest.raises(DimensionError):
            Dataset.from_arrays(['a', 'a', 'b'], [1, 2, 1], [0.4, 0.5], [0.4, 0.5, 0.6])

    def test_singleton_group_allowed(self):
        ds = Dataset.from_arrays(['a', 'a', 'b'], [1, 2, 1], [0.4, 0.5, 0.6], [0.4, 0.5, 0.6])
        assert ds.group_sizes()['b'] == 1


class TestDatasetAccess:

    def test_arrays_read_only(self, heterogeneous_league):
        with pytest.raises(ValueError):
            heterogeneous_league.x[0] = 1.0

    def test_input_not_aliased(self):
        x = np.array([0.4, 0.5, 0.6])
        ds = Dataset.from_arrays(['a', 'a', 'b'], [1, 2, 1], x, [0.4, 0.5, 0.6])
        x[0] = 0.9
        assert ds.x[0] == 0.4

    def test_group_indices_partition_rows(self, heterogeneous_league):
        idx = heterogeneous_league.group_indices()
        rows = np.sort(np.concatenate(list(idx.values())))
        np.testing.assert_array_equal(rows, np.arange(heterogeneous_league.n))

    def test_subset(self, heterogeneous_league):
        x, y = heterogeneous_league.subset('T00')
        assert len(x) == len(y) == 3

    def test_subset_unknown_group(self, heterogeneous_league):
        with pytest.raises(KeyError, match="Available"):
            heterogeneous_league.subset('XXX')

    def test_group_keys_are_plain_python(self, sleepstudy_like):
        assert all(type(g) is int for g in sleepstudy_like.groups)

    def test_repr(self, exact_lines_league):
        assert repr(exact_lines_league) == "Dataset(n=15, groups=3)"
