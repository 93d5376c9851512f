"""Tests for Z construction and the θ parameterization."""

import numpy as np
import pytest

from pythagstats.core.exceptions import DegenerateGroupingError
from pythagstats.data import Dataset
from pythagstats.mixed._random_effects import (
    THETA_MAX,
    build_lambda,
    build_z_matrix,
    relative_covariance,
    theta_bounds,
    theta_from_covariance,
    theta_starts,
    theta_to_factor,
)
from pythagstats.mixed.design import MixedDesign


class TestBuildZ:

    def test_term_major_layout(self):
        x = np.array([0.4, 0.5, 0.6, 0.45])
        codes = np.array([0, 0, 1, 1])
        Z = build_z_matrix(x, codes, 2)
        expected = np.array([
            [1, 0, 0.4, 0.0],
            [1, 0, 0.5, 0.0],
            [0, 1, 0.0, 0.6],
            [0, 1, 0.0, 0.45],
        ])
        np.testing.assert_array_equal(Z, expected)

    def test_one_indicator_per_row(self):
        codes = np.array([2, 0, 1, 2, 0])
        Z = build_z_matrix(np.linspace(0.4, 0.6, 5), codes, 3)
        np.testing.assert_array_equal(Z[:, :3].sum(axis=1), 1.0)


class TestLambda:

    def test_kron_structure(self):
        theta = np.array([2.0, 0.5, 1.5])
        Lam = build_lambda(theta, 3)
        assert Lam.shape == (6, 6)
        np.testing.assert_array_equal(Lam[:3, :3], 2.0 * np.eye(3))
        np.testing.assert_array_equal(Lam[3:, :3], 0.5 * np.eye(3))
        np.testing.assert_array_equal(Lam[3:, 3:], 1.5 * np.eye(3))
        np.testing.assert_array_equal(Lam[:3, 3:], 0.0)

    def test_relative_covariance(self):
        theta = np.array([2.0, 0.5, 1.5])
        R = relative_covariance(theta)
        np.testing.assert_allclose(R, [[4.0, 1.0], [1.0, 2.5]])

    def test_factor_lower_triangular(self):
        T = theta_to_factor(np.array([1.0, -0.3, 0.7]))
        assert T[0, 1] == 0.0


class TestThetaFromCovariance:

    def test_positive_definite(self):
        theta = np.array([1.2, -0.4, 0.8])
        sigma2 = 0.01
        Sigma = sigma2 * relative_covariance(theta)
        np.testing.assert_allclose(theta_from_covariance(Sigma, sigma2), theta, rtol=1e-12)

    def test_zero_matrix(self):
        np.testing.assert_array_equal(theta_from_covariance(np.zeros((2, 2)), 1.0), 0.0)

    def test_singular_rank_one(self):
        v = np.array([1.0, 2.0])
        Sigma = np.outer(v, v)
        theta = theta_from_covariance(Sigma, 1.0)
        assert theta[2] == pytest.approx(0.0, abs=1e-7)
        np.testing.assert_allclose(relative_covariance(theta), Sigma, atol=1e-12)

    def test_zero_intercept_variance(self):
        Sigma = np.array([[0.0, 0.0], [0.0, 4.0]])
        theta = theta_from_covariance(Sigma, 1.0)
        np.testing.assert_allclose(relative_covariance(theta), Sigma)

    def test_rejects_non_positive_sigma2(self):
        with pytest.raises(ValueError):
            theta_from_covariance(np.eye(2), 0.0)


class TestBoundsAndStarts:

    def test_bounds(self):
        bounds = theta_bounds()
        assert bounds[0] == (0.0, THETA_MAX)
        assert bounds[1] == (-THETA_MAX, THETA_MAX)
        assert bounds[2] == (0.0, THETA_MAX)

    def test_starts_inside_bounds(self):
        for start in theta_starts():
            for value, (lo, hi) in zip(start, theta_bounds()):
                assert lo <= value <= hi


class TestMixedDesign:

    def test_from_dataset(self, heterogeneous_league):
        d = MixedDesign.from_dataset(heterogeneous_league)
        assert d.n == heterogeneous_league.n
        assert d.p == 2
        assert d.n_groups == 20
        assert d.levels == heterogeneous_league.groups
        assert d.Z.shape == (d.n, 40)
        assert d.group_sizes[0] == 3

    def test_codes_follow_dataset_groups(self, heterogeneous_league):
        d = MixedDesign.from_dataset(heterogeneous_league)
        for j, rows in enumerate(heterogeneous_league.group_indices().values()):
            np.testing.assert_array_equal(d.group_rows(j), rows)

    def test_from_arrays(self):
        d = MixedDesign.from_arrays([0.4, 0.5, 0.6, 0.55], [0.4, 0.5, 0.6, 0.5], ['b', 'a', 'b', 'a'])
        assert d.levels == ('a', 'b')
        np.testing.assert_array_equal(d.group_codes, [1, 0, 1, 0])

    def test_single_group_raises(self):
        ds = Dataset.from_arrays(['a'] * 4, [1, 2, 3, 4], [0.4, 0.5, 0.6, 0.55], [0.4, 0.5, 0.6, 0.5])
        with pytest.raises(DegenerateGroupingError) as exc_info:
            MixedDesign.from_dataset(ds)
        assert exc_info.value.n_groups == 1
        assert exc_info.value.min_groups == 2
