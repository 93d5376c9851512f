"""
pytest configuration and shared fixtures.

Synthetic leagues with known structure: one record per team and season,
x = Pythagorean expectation, y = winning fraction.
"""

import numpy as np
import pytest

from pythagstats.data import Dataset


def _league(group_ids, periods, x, y):
    return Dataset.from_arrays(np.asarray(group_ids), np.asarray(periods), x, y)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def heterogeneous_league(rng):
    """20 teams × 12 seasons with genuinely different lines per team.

    True β = (0.0, 1.0); team intercept SD 0.03, slope SD 0.3,
    residual SD 0.015. Team T00 has only its first 3 seasons.
    """
    n_teams, n_seasons = 20, 12
    beta = np.array([0.0, 1.0])
    slopes = rng.normal(0.0, 0.3, n_teams)
    intercepts = rng.normal(0.0, 0.03, n_teams) - 0.5 * slopes

    teams, seasons, xs, ys = [], [], [], []
    for j in range(n_teams):
        x_j = rng.uniform(0.38, 0.62, n_seasons)
        y_j = (beta[0] + intercepts[j]) + (beta[1] + slopes[j]) * x_j
        y_j = y_j + rng.normal(0.0, 0.015, n_seasons)
        keep = 3 if j == 0 else n_seasons
        teams += [f"T{j:02d}"] * keep
        seasons += list(range(2000, 2000 + keep))
        xs.append(x_j[:keep])
        ys.append(y_j[:keep])

    return _league(teams, seasons, np.concatenate(xs), np.concatenate(ys))


def _homogeneous_league(rng, n_teams, n_seasons=8):
    """Teams sharing one line whose own fits barely deviate from it.

    Noise is drawn per team, then the part of it that a per-team line
    would absorb is scaled down to 10%. Between-team spread is then far
    below what σ² alone would produce, so the variance components
    estimate to zero.
    """
    x_base = np.linspace(0.40, 0.60, n_seasons)
    teams, seasons, xs, ys = [], [], [], []
    for j in range(n_teams):
        x_j = x_base + rng.uniform(-0.01, 0.01, n_seasons)
        X_j = np.column_stack([np.ones(n_seasons), x_j])
        e = rng.normal(0.0, 0.02, n_seasons)
        own = X_j @ np.linalg.lstsq(X_j, e, rcond=None)[0]
        e = e - 0.9 * own
        teams += [f"T{j:02d}"] * n_seasons
        seasons += list(range(n_seasons))
        xs.append(x_j)
        ys.append(0.02 + 0.95 * x_j + e)
    return _league(teams, seasons, np.concatenate(xs), np.concatenate(ys))


@pytest.fixture
def homogeneous_league(rng):
    """10 teams × 8 seasons, no between-team variation."""
    return _homogeneous_league(rng, n_teams=10)


@pytest.fixture
def make_homogeneous_league(rng):
    """Factory for homogeneous leagues of a chosen size."""
    def make(n_teams, n_seasons=8):
        return _homogeneous_league(rng, n_teams, n_seasons)
    return make


@pytest.fixture
def exact_lines_league():
    """Three teams, five seasons, each exactly on its own line.

    A: y = 0.3 + 0.4x, B: y = 0.5 + 0.4x, C: y = 0.4 + 0.4x, same x values.
    """
    x = np.array([0.42, 0.46, 0.50, 0.55, 0.61])
    teams, seasons, xs, ys = [], [], [], []
    for team, intercept in (('A', 0.3), ('B', 0.5), ('C', 0.4)):
        teams += [team] * len(x)
        seasons += list(range(2010, 2015))
        xs.append(x)
        ys.append(intercept + 0.4 * x)
    return _league(teams, seasons, np.concatenate(xs), np.concatenate(ys))


@pytest.fixture
def league_with_singleton(rng):
    """Four teams × 6 seasons plus team 'SOLO' with a single season."""
    teams, seasons, xs, ys = [], [], [], []
    for j in range(4):
        x_j = rng.uniform(0.4, 0.6, 6)
        teams += [f"T{j}"] * 6
        seasons += list(range(6))
        xs.append(x_j)
        ys.append(0.05 * j + 0.9 * x_j + rng.normal(0.0, 0.02, 6))
    teams.append('SOLO')
    seasons.append(0)
    xs.append(np.array([0.55]))
    ys.append(np.array([0.57]))
    return _league(teams, seasons, np.concatenate(xs), np.concatenate(ys))


@pytest.fixture
def sleepstudy_like(rng):
    """Sleepstudy-like design: 18 subjects × 10 days, (1 + days | subject).

    Random intercept SD 25, slope SD 6, correlation 0.07, residual SD 25.
    """
    n_subjects, n_days = 18, 10
    cov = np.array([
        [25.0 ** 2, 0.07 * 25.0 * 6.0],
        [0.07 * 25.0 * 6.0, 6.0 ** 2],
    ])
    re = rng.multivariate_normal([0.0, 0.0], cov, size=n_subjects)
    subject = np.repeat(np.arange(n_subjects), n_days)
    days = np.tile(np.arange(n_days, dtype=float), n_subjects)
    y = (250.0 + re[subject, 0] + (10.0 + re[subject, 1]) * days
         + rng.normal(0.0, 25.0, n_subjects * n_days))
    return _league(subject, days.astype(int), days, y)
