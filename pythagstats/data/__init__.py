"""
Input data model: observations, datasets and the Pythagorean transform.

Public API:
    Dataset                  - immutable, validated group-period table
    Observation              - one group-period record
    pythagorean_expectation  - a^p / (a^p + b^p)
    win_fraction             - wins / (wins + losses)
"""

from pythagstats.data._transform import (
    DEFAULT_EXPONENT, pythagorean_expectation, win_fraction,
)
from pythagstats.data.dataset import Dataset, Observation, N_FIXED_EFFECTS

__all__ = [
    "DEFAULT_EXPONENT",
    "N_FIXED_EFFECTS",
    "Dataset",
    "Observation",
    "pythagorean_expectation",
    "win_fraction",
]
