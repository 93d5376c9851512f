"""
Conditional (posterior) uncertainty of the group-level coefficients.

With u ~ N(0, σ² I) and a flat prior on β, the joint precision of (u, β)
given the data is A / σ², where A is the coefficient matrix of the PLS
normal equations:

    A = [Λᵗ Zᵗ Z Λ + I   Λᵗ Zᵗ X]
        [Xᵗ Z Λ          Xᵗ X   ]

A group coefficient c_j = β + b_j = M_j (u, β) is linear in (u, β), so its
prediction error covariance is σ² M_j A⁻¹ M_jᵗ (Henderson, 1975). It
carries both the uncertainty in the BLUP and in the fixed effects.

References:
    Henderson, C. R. (1975). Best linear unbiased estimation and prediction
    under a selection model. Biometrics, 31(2), 423-447.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
import scipy.linalg as sla

from pythagstats.core.exceptions import NotPositiveDefiniteError
from pythagstats.mixed._random_effects import N_TERMS, relative_covariance


def conditional_covariances(
    X: NDArray,
    Z: NDArray,
    Lambda: NDArray,
    sigma2: float,
    n_groups: int,
) -> tuple[NDArray, NDArray]:
    """Covariance of β̂ and of each group's β̂ + b̂_j.

    Args:
        X: Fixed effects design matrix (n, p).
        Z: Random effects design matrix (n, 2J), term-major.
        Lambda: Relative covariance factor at the estimate (2J, 2J).
        sigma2: Residual variance at the estimate.
        n_groups: J.

    Returns:
        (beta_cov (p, p), group_cov (J, 2, 2)).

    Raises:
        NotPositiveDefiniteError: If A cannot be factored.
    """
    p = X.shape[1]
    q = Z.shape[1]

    ZLam = Z @ Lambda
    A = np.block([
        [ZLam.T @ ZLam + np.eye(q), ZLam.T @ X],
        [X.T @ ZLam, X.T @ X],
    ])

    try:
        factor = sla.cho_factor(A, lower=True)
    except np.linalg.LinAlgError:
        raise NotPositiveDefiniteError(
            "PLS coefficient matrix is not positive definite; "
            "group coefficient covariances are undefined",
            matrix_name="A",
            min_eigenvalue=float(np.linalg.eigvalsh(A)[0]),
        )
    A_inv = sla.cho_solve(factor, np.eye(q + p))

    # Row k of M_j picks b_jk = (Λu)[k*J + j] and β_k
    M = np.zeros((n_groups, N_TERMS, q + p))
    for k in range(N_TERMS):
        M[:, k, :q] = Lambda[k * n_groups:(k + 1) * n_groups, :]
        M[:, k, q + k] = 1.0

    group_cov = sigma2 * np.einsum('jka,ab,jlb->jkl', M, A_inv, M)
    beta_cov = sigma2 * A_inv[q:, q:]
    return beta_cov, group_cov


def shrinkage_matrices(
    X: NDArray,
    group_codes: NDArray,
    theta: NDArray,
    n_groups: int,
) -> NDArray:
    """Per-group shrinkage toward the population line.

    The BLUP is b̂_j = W_j b̃_j, where b̃_j is the group's own least
    squares deviation from β̂ and W_j = R Z_jᵗ (Z_j R Z_jᵗ + I)⁻¹ Z_j with
    R = Σ/σ². The shrinkage is S_j = I - W_j: zero means no pooling, the
    identity means the group is pulled all the way onto β̂. Groups with
    fewer observations are shrunk harder.

    Returns:
        Array (J, 2, 2).
    """
    R = relative_covariance(theta)
    S = np.empty((n_groups, N_TERMS, N_TERMS))
    eye = np.eye(N_TERMS)
    for j in range(n_groups):
        Z_j = X[group_codes == j]
        V_j = Z_j @ R @ Z_j.T + np.eye(len(Z_j))
        W_j = R @ Z_j.T @ np.linalg.solve(V_j, Z_j)
        S[j] = eye - W_j
    return S
