"""
pythagstats: pooled, unpooled and hierarchical fits of actual win
fraction against Pythagorean expectation.

Submodules:
    data: Observations, Dataset and the Pythagorean transform
    regression: Straight-line OLS, pooled and per group
    mixed: Random intercept and slope model (REML/ML)
    comparison: Side-by-side comparison of the three estimators
"""

__version__ = "0.1.0"

from pythagstats import data
from pythagstats import regression
from pythagstats import mixed
from pythagstats import comparison
from pythagstats.comparison import ComparisonConfig, compare
from pythagstats.data import Dataset, pythagorean_expectation
from pythagstats.mixed import lmm
from pythagstats.regression import fit_ols, fit_pooled, fit_unpooled

__all__ = [
    "__version__",
    "data",
    "regression",
    "mixed",
    "comparison",
    "Dataset",
    "pythagorean_expectation",
    "fit_ols",
    "fit_pooled",
    "fit_unpooled",
    "lmm",
    "compare",
    "ComparisonConfig",
]
