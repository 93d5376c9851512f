"""
Side-by-side comparison of pooled, unpooled and hierarchical fits.

Usage:
    from pythagstats.comparison import compare, ComparisonConfig

    result = compare(dataset, ComparisonConfig(min_group_size=3))
    result.n_widened, result.n_crossed
    result.to_dataframe()
"""

from pythagstats.comparison._common import ComparisonRow, EstimatorType, GroupContrast
from pythagstats.comparison.assembler import compare
from pythagstats.comparison.config import ComparisonConfig
from pythagstats.comparison.solution import Comparison

__all__ = [
    'compare',
    'Comparison',
    'ComparisonConfig',
    'ComparisonRow',
    'EstimatorType',
    'GroupContrast',
]
