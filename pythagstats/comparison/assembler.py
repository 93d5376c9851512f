"""
Runs the three estimators over one dataset and assembles the comparison.

Public API:
    compare(dataset, config=None) -> Comparison
"""

from __future__ import annotations

import logging

from pythagstats.comparison._common import ComparisonRow, EstimatorType, GroupContrast
from pythagstats.comparison.config import ComparisonConfig
from pythagstats.comparison.solution import Comparison
from pythagstats.core.compute.timing import Timer
from pythagstats.core.exceptions import ValidationError
from pythagstats.data.dataset import Dataset
from pythagstats.mixed.solvers import lmm
from pythagstats.regression.solvers import fit_pooled, fit_unpooled

logger = logging.getLogger(__name__)


def compare(dataset: Dataset, config: ComparisonConfig | None = None) -> Comparison:
    """
    Fit pooled, per-group and hierarchical lines and compare them.

    A failed per-group fit is recorded in Comparison.failures and leaves
    the rest of the run untouched. Errors from the pooled or hierarchical
    fit (SingularDesignError, DegenerateGroupingError, ConvergenceError)
    propagate: neither has a meaningful partial result.

    Args:
        dataset: The validated dataset. Never modified.
        config: Run settings; defaults to ComparisonConfig().

    Returns:
        Comparison

    Raises:
        ValidationError: If the dataset's x was derived with a different
            exponent than config.exponent.
    """
    config = config or ComparisonConfig()

    if dataset.exponent is not None and dataset.exponent != config.exponent:
        raise ValidationError(
            f"Dataset x was derived with exponent {dataset.exponent}, "
            f"config expects {config.exponent}"
        )

    timer = Timer()
    timer.start()

    with timer.section('pooled'):
        pooled = fit_pooled(dataset).estimate

    with timer.section('unpooled'):
        unpooled = fit_unpooled(
            dataset, min_group_size=config.min_group_size, n_jobs=config.n_jobs,
        )

    with timer.section('hierarchical'):
        hierarchical = lmm(
            dataset,
            reml=config.reml,
            algorithm=config.algorithm,
            tol=config.reml_tolerance,
            max_iter=config.reml_max_iter,
        )

    with timer.section('assemble'):
        rows = []
        contrasts = {}
        unpooled_estimates = unpooled.estimates
        for group_id, hier in hierarchical.estimates.items():
            rows.append(ComparisonRow(group_id, EstimatorType.POOLED, pooled, pooled))
            rows.append(ComparisonRow(group_id, EstimatorType.HIERARCHICAL, hier, pooled))
            own = unpooled_estimates.get(group_id)
            if own is None:
                continue
            rows.append(ComparisonRow(group_id, EstimatorType.UNPOOLED, own, pooled))
            contrasts[group_id] = GroupContrast.between(group_id, own, hier, pooled)

    timer.stop()

    for group_id, error in unpooled.failures.items():
        logger.info("Group %r excluded from per-group fits: %s", group_id, error)

    return Comparison(
        rows=tuple(rows),
        pooled=pooled,
        contrasts=contrasts,
        failures=dict(unpooled.failures),
        hierarchical=hierarchical,
        config=config,
        timing=timer.result(),
    )
