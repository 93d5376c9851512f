"""
Solver dispatch for the OLS fitter.

Public API:
    fit_ols()       - straight-line fit on one (x, y) sample
    fit_pooled()    - one fit over the whole dataset, ignoring groups
    fit_unpooled()  - one independent fit per group
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Hashable
from numpy.typing import ArrayLike

from pythagstats.core.exceptions import SingularDesignError
from pythagstats.data.dataset import Dataset
from pythagstats.regression.design import RegressionDesign
from pythagstats.regression.solution import OLSSolution
from pythagstats.regression._common import CoefficientEstimate
from pythagstats.regression.backends.cpu import CPUQRBackend

logger = logging.getLogger(__name__)


def fit_ols(
    x: ArrayLike,
    y: ArrayLike,
    *,
    group_id: Hashable | None = None,
) -> OLSSolution:
    """
    Fit y = β0 + β1·x + ε by ordinary least squares.

    Args:
        x: Predictor values (n,).
        y: Response values (n,).
        group_id: Optional group label, carried into errors and results.

    Returns:
        OLSSolution with coefficients, standard errors and summary().

    Raises:
        ValidationError: If inputs are invalid
        SingularDesignError: If n < 2 or all x values are identical

    Example:
        >>> sol = fit_ols(x, y)
        >>> sol.estimate.slope, sol.estimate.slope_standard_error
    """
    # This is the boundary - validate here, trust everywhere else
    design = RegressionDesign.build(x, y, group_id=group_id)
    result = CPUQRBackend().solve(design)
    return OLSSolution(_result=result, _design=design)


def fit_pooled(dataset: Dataset) -> OLSSolution:
    """Fit one line to every observation in the dataset, ignoring groups."""
    return fit_ols(dataset.x, dataset.y)


@dataclass(frozen=True)
class UnpooledFits:
    """Per-group OLS results keyed by group_id.

    Attributes:
        solutions: group_id → OLSSolution for every group that could be fit.
        failures: group_id → SingularDesignError for every group that
            could not (too few observations, or no spread in x).
    """
    solutions: dict[Hashable, OLSSolution] = field(default_factory=dict)
    failures: dict[Hashable, SingularDesignError] = field(default_factory=dict)

    @property
    def estimates(self) -> dict[Hashable, CoefficientEstimate]:
        return {g: sol.estimate for g, sol in self.solutions.items()}


def _fit_group(task: tuple) -> tuple:
    """Top-level wrapper for ProcessPoolExecutor."""
    group_id, x, y = task
    try:
        return group_id, fit_ols(x, y, group_id=group_id), None
    except SingularDesignError as e:
        return group_id, None, e


def fit_unpooled(
    dataset: Dataset,
    *,
    min_group_size: int = 2,
    n_jobs: int = 1,
) -> UnpooledFits:
    """
    Fit an independent line to each group.

    Groups are independent, so with n_jobs > 1 the fits run in a process
    pool; results are collected by group_id and do not depend on
    completion order. A failure in one group is recorded for that group
    and never stops the others.

    Args:
        dataset: The validated dataset.
        min_group_size: Groups with fewer observations are not fitted and
            are recorded as a SingularDesignError.
        n_jobs: Number of worker processes. 1 runs sequentially.

    Returns:
        UnpooledFits with per-group solutions and failures.
    """
    if min_group_size < 2:
        raise ValueError(
            f"min_group_size must be >= 2 for an intercept and slope, got {min_group_size}"
        )

    solutions: dict[Hashable, OLSSolution] = {}
    failures: dict[Hashable, SingularDesignError] = {}
    tasks = []

    for group_id, rows in dataset.group_indices().items():
        if len(rows) < min_group_size:
            failures[group_id] = SingularDesignError(
                f"group {group_id!r}: {len(rows)} observation(s), "
                f"below min_group_size={min_group_size}",
                group_id=group_id,
                n_obs=int(len(rows)),
                reason='too_few_observations',
            )
            logger.debug(
                "Excluding group %r from per-group fit: %d observation(s)",
                group_id, len(rows),
            )
            continue
        tasks.append((group_id, dataset.x[rows], dataset.y[rows]))

    if n_jobs > 1 and len(tasks) > 1:
        with ProcessPoolExecutor(max_workers=n_jobs) as executor:
            futures = [executor.submit(_fit_group, task) for task in tasks]
            outcomes = [future.result() for future in as_completed(futures)]
    else:
        outcomes = [_fit_group(task) for task in tasks]

    for group_id, solution, error in outcomes:
        if error is not None:
            logger.debug("Per-group fit failed for %r: %s", group_id, error)
            failures[group_id] = error
        else:
            solutions[group_id] = solution

    return UnpooledFits(solutions=solutions, failures=failures)
