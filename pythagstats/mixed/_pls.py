"""
Penalized least squares (PLS) for a fixed relative covariance factor.

For fixed θ (and hence fixed Λ_θ) the conditional modes of the spherical
random effects u = Λ⁻¹b and the profiled fixed effects β solve

    minimize ‖y - Xβ - ZΛu‖² + ‖u‖²

and σ² is profiled out in closed form from the penalized RSS.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48. Section 2.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray
import scipy.linalg as sla


@dataclass(frozen=True, eq=False)
class PLSResult:
    """Result of one penalized least squares solve.

    Attributes:
        beta: Fixed effects (p,).
        u: Spherical random effects (q,).
        b: Conditional modes b = Λu (q,), term-major.
        sigma_sq: Profiled residual variance.
        pwrss: ‖y - Xβ - Zb‖² + ‖u‖².
        L: Lower Cholesky factor of Λᵗ Zᵗ Z Λ + I (q, q).
        RX: Lower Cholesky factor of the Schur complement for X (p, p).
        fitted: Xβ + Zb (n,).
        residuals: y - fitted (n,).
    """
    beta: NDArray
    u: NDArray
    b: NDArray
    sigma_sq: float
    pwrss: float
    L: NDArray
    RX: NDArray
    fitted: NDArray
    residuals: NDArray


def solve_pls(
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    Lambda: NDArray,
    reml: bool = True,
) -> PLSResult:
    """Solve the penalized least squares problem at fixed Λ.

    The normal equations of the penalized system are

        [Λᵗ Zᵗ Z Λ + I   Λᵗ Zᵗ X] [u]   [Λᵗ Zᵗ y]
        [Xᵗ Z Λ          Xᵗ X   ] [β] = [Xᵗ y   ]

    u is eliminated with L = chol(Λᵗ Zᵗ Z Λ + I), leaving the Schur
    complement RX RXᵗ = Xᵗ X - CXᵗ CX for β.

    Args:
        X: Fixed effects design matrix (n, p).
        Z: Random effects design matrix (n, q).
        y: Response vector (n,).
        Lambda: Relative covariance factor (q, q).
        reml: If True σ² = pwrss/(n-p), otherwise pwrss/n.

    Returns:
        PLSResult.
    """
    n, p = X.shape
    q = Z.shape[1]

    ZLam = Z @ Lambda

    # Λᵗ Zᵗ Z Λ + I is positive definite for every Λ
    L = np.linalg.cholesky(ZLam.T @ ZLam + np.eye(q))

    ZLam_t_y = ZLam.T @ y
    ZLam_t_X = ZLam.T @ X

    cu = sla.solve_triangular(L, ZLam_t_y, lower=True)
    CX = sla.solve_triangular(L, ZLam_t_X, lower=True)

    schur = X.T @ X - CX.T @ CX
    rhs = X.T @ y - CX.T @ cu

    try:
        RX = np.linalg.cholesky(schur)
        beta = sla.solve_triangular(
            RX.T, sla.solve_triangular(RX, rhs, lower=True), lower=False,
        )
    except np.linalg.LinAlgError:
        # Schur complement lost definiteness in floating point (Λ very large)
        beta = np.linalg.lstsq(schur, rhs, rcond=None)[0]
        eigvals = np.maximum(np.linalg.eigvalsh(schur), 1e-20)
        RX = np.diag(np.sqrt(eigvals))

    # L Lᵗ u = Λᵗ Zᵗ (y - Xβ)
    tmp = sla.solve_triangular(L, ZLam_t_y - ZLam_t_X @ beta, lower=True)
    u = sla.solve_triangular(L.T, tmp, lower=False)
    b = Lambda @ u

    fitted = X @ beta + Z @ b
    residuals = y - fitted
    pwrss = float(residuals @ residuals) + float(u @ u)

    sigma_sq = pwrss / (n - p) if reml else pwrss / n

    return PLSResult(
        beta=beta,
        u=u,
        b=b,
        sigma_sq=sigma_sq,
        pwrss=pwrss,
        L=L,
        RX=RX,
        fitted=fitted,
        residuals=residuals,
    )
