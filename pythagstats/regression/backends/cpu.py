"""
CPU reference backend for the straight-line OLS fit.

Uses QR decomposition via LAPACK (through NumPy/SciPy) to solve the
least-squares problem; standard errors come from (X'X)⁻¹.
"""

from typing import Any
import numpy as np

from pythagstats.core.result import Result
from pythagstats.core.exceptions import SingularMatrixError, SingularDesignError
from pythagstats.core.compute.timing import Timer
from pythagstats.core.compute.tolerances import EXACT_FIT_RTOL
from pythagstats.core.compute.linalg.qr import qr_solve_cpu
from pythagstats.regression.design import RegressionDesign
from pythagstats.regression._common import OLSParams


class CPUQRBackend:
    """
    CPU backend using QR decomposition.

    Solves RegressionDesign -> Result[OLSParams].
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: RegressionDesign) -> Result[OLSParams]:
        """
        Solve OLS via QR decomposition.

        Algorithm:
            1. Compute QR decomposition: X = QR
            2. Solve: β = R⁻¹ Q'y
            3. Residual variance s² = RSS / (n - 2)
            4. SE(β) = sqrt(diag(s² (X'X)⁻¹))

        An exact fit (RSS at floating-point zero, or n == 2 leaving no
        residual degrees of freedom) is flagged degenerate and given zero
        standard errors.

        Raises:
            SingularDesignError: If X is numerically rank-deficient
        """
        timer = Timer()
        timer.start()

        X = design.X
        y = design.y
        n, p = design.n, design.p

        with timer.section('solve'):
            try:
                coefficients, qr_result = qr_solve_cpu(X, y, check_rank=True)
            except SingularMatrixError as e:
                raise SingularDesignError(
                    f"{e} (group {design.group_id!r})",
                    group_id=design.group_id,
                    n_obs=n,
                    reason='zero_predictor_variance',
                    rank=e.rank,
                ) from e

        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values

        with timer.section('statistics'):
            rss = float(residuals @ residuals)
            tss = float(np.sum((y - np.mean(y)) ** 2))
            df_residual = n - qr_result.rank

            warn_list = []
            degenerate = (
                df_residual <= 0
                or rss <= EXACT_FIT_RTOL * max(tss, 1.0) * n
            )
            if degenerate:
                residual_variance = 0.0
                standard_errors = np.zeros(p, dtype=np.float64)
                warn_list.append(
                    f"Exact fit (n={n}, rss={rss:.3e}): standard errors set to 0"
                )
            else:
                residual_variance = rss / df_residual
                XtX_inv = np.linalg.inv(design.XtX())
                standard_errors = np.sqrt(residual_variance * np.diag(XtX_inv))

        timer.stop()

        params = OLSParams(
            coefficients=coefficients,
            standard_errors=standard_errors,
            residuals=residuals,
            fitted_values=fitted_values,
            rss=rss,
            tss=tss,
            rank=qr_result.rank,
            df_residual=df_residual,
            residual_variance=residual_variance,
            degenerate=degenerate,
        )

        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr_result.rank,
            'group_id': design.group_id,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warn_list),
        )
