"""
Random-effects design matrix Z and the Λ_θ parameterization.

The model has one grouping factor with two correlated random effects per
group: an intercept and a slope on x. This module handles:
1. Building the random effects design matrix Z
2. Constructing the relative covariance factor Λ_θ from θ
3. Converting between θ and an absolute covariance matrix
4. Bounds and starting values for the optimizer

The θ parameterization follows Bates et al. (2015): θ holds the elements
of the lower-triangular Cholesky factor T of the *relative* covariance
Σ/σ², packed row-wise as (t00, t10, t11).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

TERM_NAMES = ('(Intercept)', 'x')
N_TERMS = 2
THETA_SIZE = N_TERMS * (N_TERMS + 1) // 2

# Upper limit on |θ|. When the groups are fitted exactly the deviance keeps
# falling as σ² → 0 (θ → ∞); the bound stops the optimizer there.
THETA_MAX = 1e4


def build_z_matrix(x: NDArray, group_codes: NDArray, n_groups: int) -> NDArray:
    """Build Z for random intercept + slope on x.

    Layout: columns are term-major, [int_g0, int_g1, ..., x_g0, x_g1, ...].
    Z[i, g_i] = 1 and Z[i, J + g_i] = x_i.

    Args:
        x: Predictor (n,).
        group_codes: 0-indexed group code per observation (n,).
        n_groups: Number of groups (J).

    Returns:
        Z of shape (n, 2J).
    """
    n = len(x)
    rows = np.arange(n)
    Z = np.zeros((n, N_TERMS * n_groups), dtype=np.float64)
    Z[rows, group_codes] = 1.0
    Z[rows, n_groups + group_codes] = x
    return Z


def theta_to_factor(theta: NDArray) -> NDArray:
    """Unpack θ = (t00, t10, t11) into the 2×2 lower-triangular T."""
    return np.array([[theta[0], 0.0], [theta[1], theta[2]]], dtype=np.float64)


def relative_covariance(theta: NDArray) -> NDArray:
    """Σ/σ² = T Tᵗ."""
    T = theta_to_factor(theta)
    return T @ T.T


def build_lambda(theta: NDArray, n_groups: int) -> NDArray:
    """Build Λ_θ = T ⊗ I_J.

    The Z matrix uses term-major ordering, so b = Λu is term-major too
    and Λ must be T ⊗ I_J (not I_J ⊗ T).

    Args:
        theta: Parameter vector (3,).
        n_groups: Number of groups (J).

    Returns:
        Λ of shape (2J, 2J).
    """
    return np.kron(theta_to_factor(theta), np.eye(n_groups))


def theta_from_covariance(Sigma: NDArray, sigma2: float) -> NDArray:
    """Convert an absolute covariance Σ and σ² back to θ.

    Works for positive semi-definite Σ: the Cholesky factor of a singular
    2×2 matrix is formed directly, with a zero diagonal entry.
    """
    if sigma2 <= 0:
        raise ValueError(f"sigma2 must be positive, got {sigma2}")
    R = 0.5 * (Sigma + Sigma.T) / sigma2
    a, c, d = R[0, 0], R[1, 0], R[1, 1]
    if a > 0:
        t00 = np.sqrt(a)
        t10 = c / t00
        t11 = np.sqrt(max(d - t10 * t10, 0.0))
    else:
        t00, t10, t11 = 0.0, 0.0, np.sqrt(max(d, 0.0))
    return np.array([t00, t10, t11], dtype=np.float64)


def theta_bounds() -> list[tuple[float, float]]:
    """Bounds on θ for the L-BFGS-B optimizer.

    Diagonal elements of T lie in [0, THETA_MAX] (variances are
    non-negative); the off-diagonal element may be negative.
    """
    return [(0.0, THETA_MAX), (-THETA_MAX, THETA_MAX), (0.0, THETA_MAX)]


def theta_starts() -> list[NDArray]:
    """Starting values for θ.

    The default [1, 0, 1] (σ_b/σ = 1, no correlation) plus variants with
    a smaller slope term: the profiled deviance can have local minima
    when there is more than one random effect per group.
    """
    starts = [np.array([1.0, 0.0, 1.0])]
    for scale in (0.2, 0.5):
        starts.append(np.array([1.0, 0.0, scale]))
    return starts
