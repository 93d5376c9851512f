"""
Row and contrast types of the comparison table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Hashable

from pythagstats.regression._common import CoefficientEstimate


class EstimatorType(Enum):
    POOLED = 'pooled'
    UNPOOLED = 'unpooled'
    HIERARCHICAL = 'hierarchical'


@dataclass(frozen=True)
class ComparisonRow:
    """One (group, estimator) estimate, with the pooled line for reference."""
    group_id: Hashable
    estimator_type: EstimatorType
    estimate: CoefficientEstimate
    pooled: CoefficientEstimate


@dataclass(frozen=True)
class GroupContrast:
    """Per-group contrast between the unpooled and hierarchical estimates.

    Attributes:
        group_id: Group label.
        unpooled_ci_width: Interval width of the group's own fit.
        hierarchical_ci_width: Interval width of the partially pooled fit.
        interval_widened: The hierarchical interval is wider.
        crossed_pooled: The unpooled and hierarchical slopes lie on
            opposite sides of the pooled slope.
    """
    group_id: Hashable
    unpooled_ci_width: float
    hierarchical_ci_width: float
    interval_widened: bool
    crossed_pooled: bool

    @property
    def ci_width_change(self) -> float:
        """hierarchical_ci_width - unpooled_ci_width."""
        return self.hierarchical_ci_width - self.unpooled_ci_width

    @classmethod
    def between(
        cls,
        group_id: Hashable,
        unpooled: CoefficientEstimate,
        hierarchical: CoefficientEstimate,
        pooled: CoefficientEstimate,
    ) -> 'GroupContrast':
        side_unpooled = unpooled.slope - pooled.slope
        side_hierarchical = hierarchical.slope - pooled.slope
        return cls(
            group_id=group_id,
            unpooled_ci_width=unpooled.ci_width,
            hierarchical_ci_width=hierarchical.ci_width,
            interval_widened=hierarchical.ci_width > unpooled.ci_width,
            crossed_pooled=side_unpooled * side_hierarchical < 0,
        )
