"""
Direct backend: minimize the profiled deviance over θ with L-BFGS-B.

β and σ² are profiled out in closed form by the PLS solve, so the outer
optimizer sees a smooth bounded problem in the three elements of θ.
"""

from __future__ import annotations

import logging
import numpy as np
from scipy.optimize import minimize

from pythagstats.core.compute.timing import Timer
from pythagstats.core.exceptions import ConvergenceError
from pythagstats.core.result import Result
from pythagstats.mixed._common import VarianceComponents
from pythagstats.mixed._deviance import profiled_deviance
from pythagstats.mixed._pls import solve_pls
from pythagstats.mixed._random_effects import (
    build_lambda, relative_covariance, theta_bounds, theta_starts,
)
from pythagstats.mixed.design import MixedDesign

logger = logging.getLogger(__name__)

# scipy L-BFGS-B status for "iteration or evaluation budget exhausted"
_STATUS_BUDGET = 1


class ProfiledDevianceBackend:
    """Variance components by direct optimization of the profiled deviance."""

    @property
    def name(self) -> str:
        return 'cpu_lbfgsb'

    def solve(
        self,
        design: MixedDesign,
        *,
        reml: bool = True,
        tol: float = 1e-8,
        max_iter: int = 200,
    ) -> Result[VarianceComponents]:
        """
        Run L-BFGS-B from several starting points and keep the best.

        Args:
            design: Validated mixed design.
            reml: REML (True) or ML (False) criterion.
            tol: Relative reduction in the deviance below which the
                optimizer stops (scipy's ftol); gtol is 10 × tol.
            max_iter: Iteration budget per starting point.

        Returns:
            Result[VarianceComponents]

        Raises:
            ConvergenceError: If no starting point finishes within max_iter.
        """
        timer = Timer()
        timer.start()
        warnings_list: list[str] = []

        args = (design.X, design.Z, design.y, design.n_groups, reml)
        starts = theta_starts()

        with timer.section('optimization'):
            runs = []
            for theta0 in starts:
                res = minimize(
                    profiled_deviance,
                    theta0,
                    args=args,
                    method='L-BFGS-B',
                    bounds=theta_bounds(),
                    options={'maxiter': max_iter, 'ftol': tol, 'gtol': tol * 10},
                )
                logger.debug(
                    "L-BFGS-B from theta0=%s: deviance=%.8f nit=%d status=%d",
                    theta0, res.fun, res.nit, res.status,
                )
                runs.append(res)

        finished = [r for r in runs if r.status != _STATUS_BUDGET]
        if not finished:
            best = min(runs, key=lambda r: r.fun)
            timer.stop()
            raise ConvergenceError(
                f"Variance component optimizer did not converge within "
                f"{max_iter} iterations (deviance {best.fun:.6f})",
                iterations=int(best.nit),
                reason='max_iterations',
                threshold=tol,
                objective=float(best.fun),
            )

        best = min(finished, key=lambda r: r.fun)
        if best.status != 0:
            warnings_list.append(f"L-BFGS-B stopped early: {best.message}")

        theta = np.asarray(best.x, dtype=np.float64)

        with timer.section('final_solve'):
            pls = solve_pls(
                design.X, design.Z, design.y,
                build_lambda(theta, design.n_groups), reml=reml,
            )

        timer.stop()

        params = VarianceComponents(
            Sigma=pls.sigma_sq * relative_covariance(theta),
            sigma2=pls.sigma_sq,
            theta=theta,
            objective=float(best.fun),
            n_iter=int(best.nit),
            converged=True,
            reml=reml,
            algorithm='direct',
        )

        return Result(
            params=params,
            info={
                'optimizer': 'L-BFGS-B',
                'n_starts': len(starts),
                'status': int(best.status),
                'message': str(best.message),
                'n_evaluations': int(sum(r.nfev for r in runs)),
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )
