"""
EM backend for the random-intercept/random-slope variance components.

Treats the group effects b_j as missing data (Laird, Lange & Stram, 1987).
Each iteration replaces Σ and σ² by the expected complete-data estimates
given the current values; the REML (or ML) deviance never increases.
Converges to the same estimate as the direct backend, more slowly.

References:
    Laird, N., Lange, N., & Stram, D. (1987). Maximum likelihood
    computations with repeated measures: application of the EM algorithm.
    Journal of the American Statistical Association, 82(397), 97-105.
"""

from __future__ import annotations

import logging
import numpy as np
from numpy.typing import NDArray

from pythagstats.core.compute.timing import Timer
from pythagstats.core.exceptions import ConvergenceError
from pythagstats.core.result import Result
from pythagstats.mixed._common import VarianceComponents
from pythagstats.mixed._deviance import marginal_deviance, profiled_deviance
from pythagstats.mixed._pls import solve_pls
from pythagstats.mixed._random_effects import (
    N_TERMS, THETA_SIZE, build_lambda, theta_from_covariance,
)
from pythagstats.mixed.design import MixedDesign

logger = logging.getLogger(__name__)


class EMBackend:
    """
    EM backend for the variance components.

    Convergence uses the same tolerance meaning as the direct backend:
    stop once the relative reduction of the deviance in one iteration,
    (d_k - d_k+1) / max(|d_k|, |d_k+1|, 1), is at most tol.

    EM slows to a crawl when a variance heads to zero, so once the loop
    ends the zero-variance fit is evaluated directly and kept if its
    deviance is no worse.
    """

    @property
    def name(self) -> str:
        return 'cpu_em'

    def solve(
        self,
        design: MixedDesign,
        *,
        reml: bool = True,
        tol: float = 1e-8,
        max_iter: int = 10000,
    ) -> Result[VarianceComponents]:
        """
        Estimate Σ and σ² by EM.

        Raises:
            ConvergenceError: If the deviance is still moving after max_iter.
        """
        timer = Timer()
        timer.start()

        with timer.section('initialization'):
            groups = [
                (design.X[rows], design.y[rows])
                for rows in (design.group_rows(j) for j in range(design.n_groups))
            ]
            beta0 = np.linalg.lstsq(design.X, design.y, rcond=None)[0]
            resid = design.y - design.X @ beta0
            sigma2 = max(float(resid @ resid) / (design.n - design.p), 1e-8)
            Sigma = sigma2 * np.eye(design.p)

        converged = False
        n_iter = 0
        change = float('inf')
        history = []

        with timer.section('em_iterations'):
            objective = marginal_deviance(Sigma, sigma2, groups, reml)[0]
            for iteration in range(max_iter):
                Sigma, sigma2 = self._step(Sigma, sigma2, groups, design.n, reml)
                new_objective = marginal_deviance(Sigma, sigma2, groups, reml)[0]

                change = objective - new_objective
                scale = max(abs(objective), abs(new_objective), 1.0)
                objective = new_objective
                n_iter = iteration + 1
                history.append(objective)

                if change <= tol * scale:
                    converged = True
                    break

        # EM creeps toward a zero-variance optimum; check it directly
        with timer.section('boundary_check'):
            zero = np.zeros(THETA_SIZE)
            zero_objective = float(profiled_deviance(
                zero, design.X, design.Z, design.y, design.n_groups, reml,
            ))
            collapsed = zero_objective <= objective + tol * max(abs(objective), 1.0)
            if collapsed:
                pls = solve_pls(
                    design.X, design.Z, design.y,
                    build_lambda(zero, design.n_groups), reml=reml,
                )
                Sigma = np.zeros((N_TERMS, N_TERMS))
                sigma2 = pls.sigma_sq
                objective = zero_objective
                converged = True

        timer.stop()
        logger.debug(
            "EM finished after %d iterations: deviance=%.8f change=%.3e "
            "zero-variance deviance=%.8f",
            n_iter, objective, change, zero_objective,
        )

        if not converged:
            raise ConvergenceError(
                f"EM did not converge after {max_iter} iterations "
                f"(last deviance change {change:.2e}, tol {tol:.2e})",
                iterations=n_iter,
                final_change=float(change),
                reason='max_iterations',
                threshold=tol,
                objective=float(objective),
            )

        params = VarianceComponents(
            Sigma=Sigma,
            sigma2=sigma2,
            theta=theta_from_covariance(Sigma, sigma2),
            objective=float(objective),
            n_iter=n_iter,
            converged=True,
            reml=reml,
            algorithm='em',
        )

        return Result(
            params=params,
            info={
                'algorithm': 'em',
                'convergence_criterion': 'objective',
                'final_change': float(change),
                'deviance_history': history,
                'zero_variance_objective': zero_objective,
                'collapsed_to_zero': bool(collapsed),
            },
            timing=timer.result(),
            backend_name=self.name,
        )

    def _step(
        self,
        Sigma: NDArray,
        sigma2: float,
        groups: list[tuple[NDArray, NDArray]],
        n: int,
        reml: bool,
    ) -> tuple[NDArray, float]:
        """One E-step and M-step.

        With V_j = Z_j Σ Z_jᵗ + σ² I and P_j the block of the REML
        projection (V_j⁻¹ for ML):

            Σ  ← (1/J) Σ_j [b̂_j b̂_jᵗ + Σ - Σ Z_jᵗ P_j Z_j Σ]
            σ² ← (1/n) Σ_j [ê_jᵗ ê_j + σ² (n_j - σ² tr P_j)]
        """
        p = Sigma.shape[0]
        n_groups = len(groups)

        Vinv = []
        XtVX = np.zeros((p, p))
        XtVy = np.zeros(p)
        for X_j, y_j in groups:
            V_j = X_j @ Sigma @ X_j.T + sigma2 * np.eye(len(y_j))
            Vinv_j = np.linalg.inv(V_j)
            Vinv.append(Vinv_j)
            XtVX += X_j.T @ Vinv_j @ X_j
            XtVy += X_j.T @ Vinv_j @ y_j

        XtVX_inv = np.linalg.inv(XtVX)
        beta = XtVX_inv @ XtVy

        Sigma_sum = np.zeros((p, p))
        sigma2_sum = 0.0
        for (X_j, y_j), Vinv_j in zip(groups, Vinv):
            r_j = y_j - X_j @ beta
            P_j = Vinv_j
            if reml:
                VX = Vinv_j @ X_j
                P_j = Vinv_j - VX @ XtVX_inv @ VX.T

            b_j = Sigma @ X_j.T @ Vinv_j @ r_j
            Sigma_sum += np.outer(b_j, b_j) + Sigma - Sigma @ X_j.T @ P_j @ X_j @ Sigma

            e_j = r_j - X_j @ b_j
            sigma2_sum += float(e_j @ e_j) + sigma2 * (len(y_j) - sigma2 * np.trace(P_j))

        Sigma_new = Sigma_sum / n_groups
        Sigma_new = 0.5 * (Sigma_new + Sigma_new.T)
        return Sigma_new, sigma2_sum / n
