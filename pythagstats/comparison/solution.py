"""
The assembled comparison of pooled, unpooled and hierarchical fits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable

from pythagstats.comparison._common import ComparisonRow, EstimatorType, GroupContrast
from pythagstats.comparison.config import ComparisonConfig
from pythagstats.core.exceptions import SingularDesignError
from pythagstats.mixed.solution import LMMSolution
from pythagstats.regression._common import CoefficientEstimate


@dataclass(frozen=True, eq=False)
class Comparison:
    """
    Read-only result of compare().

    rows holds one ComparisonRow per (group, estimator); groups whose
    per-group fit failed have a HIERARCHICAL row but no UNPOOLED row and
    appear in failures. Row order carries no meaning.
    """
    rows: tuple[ComparisonRow, ...]
    pooled: CoefficientEstimate
    contrasts: dict[Hashable, GroupContrast]
    failures: dict[Hashable, SingularDesignError]
    hierarchical: LMMSolution
    config: ComparisonConfig
    timing: dict[str, float] = field(default_factory=dict)

    @property
    def n_widened(self) -> int:
        """Groups whose interval is wider under partial pooling."""
        return sum(c.interval_widened for c in self.contrasts.values())

    @property
    def n_crossed(self) -> int:
        """Groups whose estimate moved across the pooled slope."""
        return sum(c.crossed_pooled for c in self.contrasts.values())

    @property
    def groups(self) -> tuple[Hashable, ...]:
        return self.hierarchical.groups

    def rows_for(self, group_id: Hashable) -> tuple[ComparisonRow, ...]:
        return tuple(r for r in self.rows if r.group_id == group_id)

    def estimate(
        self,
        group_id: Hashable,
        estimator_type: EstimatorType | str,
    ) -> CoefficientEstimate:
        """Look up one estimate.

        Raises:
            KeyError: If the group has no row for that estimator.
        """
        estimator_type = EstimatorType(estimator_type)
        if estimator_type is EstimatorType.POOLED:
            return self.pooled
        for row in self.rows:
            if row.group_id == group_id and row.estimator_type is estimator_type:
                return row.estimate
        raise KeyError(f"No {estimator_type.value} estimate for group {group_id!r}")

    def to_dataframe(self):
        """The row table as a pandas DataFrame (one row per ComparisonRow)."""
        import pandas as pd

        records: list[dict[str, Any]] = []
        for row in self.rows:
            est = row.estimate
            records.append({
                'group_id': row.group_id,
                'estimator': row.estimator_type.value,
                'intercept': est.intercept,
                'slope': est.slope,
                'slope_se': est.slope_standard_error,
                'slope_lower': est.slope_lower,
                'slope_upper': est.slope_upper,
                'degenerate': est.degenerate,
                'pooled_slope': row.pooled.slope,
                'pooled_slope_lower': row.pooled.slope_lower,
                'pooled_slope_upper': row.pooled.slope_upper,
            })
        return pd.DataFrame.from_records(records)

    def summary(self) -> str:
        pooled = self.pooled
        population = self.hierarchical.population_estimate
        lines = [
            "Pooled / Unpooled / Hierarchical Comparison",
            "=" * 72,
            f"Pooled slope: {pooled.slope:.4f} "
            f"[{pooled.slope_lower:.4f}, {pooled.slope_upper:.4f}]",
            f"Groups: {len(self.groups)}, per-group fits: {len(self.contrasts)}, "
            f"failures: {len(self.failures)}",
            f"Population slope (hierarchical): {population.slope:.4f} "
            f"[{population.slope_lower:.4f}, {population.slope_upper:.4f}]",
            f"Hierarchical fit: {self.hierarchical.boundary}",
            "",
            f"{'group':<14} {'unpooled':>10} {'width':>8} {'hier.':>10} {'width':>8} {'':>10}",
            "-" * 72,
        ]
        for group_id in self.groups:
            hier = self.estimate(group_id, EstimatorType.HIERARCHICAL)
            if group_id in self.failures:
                lines.append(
                    f"{str(group_id):<14} {'--':>10} {'--':>8} "
                    f"{hier.slope:10.4f} {hier.ci_width:8.4f} {'excluded':>10}"
                )
                continue
            c = self.contrasts[group_id]
            unp = self.estimate(group_id, EstimatorType.UNPOOLED)
            flags = ('W' if c.interval_widened else '') + ('X' if c.crossed_pooled else '')
            lines.append(
                f"{str(group_id):<14} {unp.slope:10.4f} {c.unpooled_ci_width:8.4f} "
                f"{hier.slope:10.4f} {c.hierarchical_ci_width:8.4f} {flags:>10}"
            )
        lines.append("-" * 72)
        lines.append(f"Intervals widened under pooling: {self.n_widened}")
        lines.append(f"Estimates crossing the pooled slope: {self.n_crossed}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Comparison(groups={len(self.groups)}, rows={len(self.rows)}, "
            f"failures={len(self.failures)}, widened={self.n_widened}, "
            f"crossed={self.n_crossed})"
        )
