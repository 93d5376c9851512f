"""Tests for the penalized least squares solver and the deviance."""

import numpy as np
import pytest

from pythagstats.mixed._deviance import (
    deviance_from_pls, marginal_deviance, profiled_deviance,
)
from pythagstats.mixed._pls import solve_pls
from pythagstats.mixed._random_effects import build_lambda, relative_covariance
from pythagstats.mixed.design import MixedDesign


@pytest.fixture
def design(heterogeneous_league):
    return MixedDesign.from_dataset(heterogeneous_league)


def _groups(design):
    return [(design.X[design.group_rows(j)], design.y[design.group_rows(j)])
            for j in range(design.n_groups)]


class TestSolvePLS:

    def test_reconstructs_y(self, design):
        Lam = build_lambda(np.array([1.0, 0.0, 1.0]), design.n_groups)
        pls = solve_pls(design.X, design.Z, design.y, Lam)
        np.testing.assert_allclose(pls.fitted + pls.residuals, design.y, atol=1e-12)
        assert pls.pwrss > 0
        assert pls.sigma_sq == pytest.approx(pls.pwrss / (design.n - 2))

    def test_ml_divides_by_n(self, design):
        Lam = build_lambda(np.array([1.0, 0.0, 1.0]), design.n_groups)
        pls = solve_pls(design.X, design.Z, design.y, Lam, reml=False)
        assert pls.sigma_sq == pytest.approx(pls.pwrss / design.n)

    def test_zero_lambda_is_ols(self, design):
        Lam = build_lambda(np.zeros(3), design.n_groups)
        pls = solve_pls(design.X, design.Z, design.y, Lam)
        beta = np.linalg.lstsq(design.X, design.y, rcond=None)[0]
        np.testing.assert_allclose(pls.beta, beta, rtol=1e-10)
        np.testing.assert_array_equal(pls.b, 0.0)
        resid = design.y - design.X @ beta
        assert pls.pwrss == pytest.approx(float(resid @ resid), rel=1e-10)

    def test_b_equals_lambda_u(self, design):
        Lam = build_lambda(np.array([0.8, 0.3, 1.1]), design.n_groups)
        pls = solve_pls(design.X, design.Z, design.y, Lam)
        np.testing.assert_allclose(pls.b, Lam @ pls.u)

    def test_solves_normal_equations(self, design):
        Lam = build_lambda(np.array([0.8, 0.3, 1.1]), design.n_groups)
        pls = solve_pls(design.X, design.Z, design.y, Lam)
        ZLam = design.Z @ Lam
        q = ZLam.shape[1]
        A = np.block([
            [ZLam.T @ ZLam + np.eye(q), ZLam.T @ design.X],
            [design.X.T @ ZLam, design.X.T @ design.X],
        ])
        rhs = np.concatenate([ZLam.T @ design.y, design.X.T @ design.y])
        np.testing.assert_allclose(A @ np.concatenate([pls.u, pls.beta]), rhs, atol=1e-9)


class TestDeviance:

    @pytest.mark.parametrize("reml", [True, False])
    def test_profiled_matches_marginal(self, design, reml):
        theta = np.array([0.9, -0.2, 0.6])
        pls = solve_pls(design.X, design.Z, design.y,
                        build_lambda(theta, design.n_groups), reml=reml)
        Sigma = pls.sigma_sq * relative_covariance(theta)
        marginal, beta = marginal_deviance(Sigma, pls.sigma_sq, _groups(design), reml)
        profiled = profiled_deviance(theta, design.X, design.Z, design.y, design.n_groups, reml)
        assert profiled == pytest.approx(marginal, rel=1e-9)
        np.testing.assert_allclose(beta, pls.beta, rtol=1e-8)

    def test_deviance_from_pls_matches_profiled(self, design):
        theta = np.array([0.5, 0.1, 0.4])
        pls = solve_pls(design.X, design.Z, design.y, build_lambda(theta, design.n_groups))
        assert deviance_from_pls(pls, design.n, design.p, True) == pytest.approx(
            profiled_deviance(theta, design.X, design.Z, design.y, design.n_groups, True)
        )

    def test_reml_differs_from_ml(self, design):
        theta = np.array([1.0, 0.0, 1.0])
        args = (design.X, design.Z, design.y, design.n_groups)
        assert profiled_deviance(theta, *args, True) != profiled_deviance(theta, *args, False)

    def test_finite_when_all_points_on_one_line(self):
        x = np.array([0.4, 0.45, 0.5, 0.55, 0.6, 0.42])
        d = MixedDesign.from_arrays(x, 0.1 + 0.8 * x, ['a', 'a', 'a', 'b', 'b', 'b'])
        value = profiled_deviance(np.zeros(3), d.X, d.Z, d.y, d.n_groups, True)
        assert np.isfinite(value)
