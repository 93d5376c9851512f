"""
Configuration for the comparison run.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from pythagstats.core.exceptions import ValidationError
from pythagstats.data._transform import DEFAULT_EXPONENT

_ALGORITHMS = ('direct', 'em')


@dataclass(frozen=True)
class ComparisonConfig:
    """Settings recognized by compare().

    Attributes:
        exponent: Exponent p of the Pythagorean transform used to derive x.
        min_group_size: Groups with fewer observations are left out of the
            per-group fits and reported as failures.
        reml_tolerance: Convergence threshold of the variance component
            optimizer (relative deviance reduction).
        reml_max_iter: Iteration cap of that optimizer; None uses the
            algorithm's default.
        reml: REML (True) or ML (False) variance components.
        algorithm: 'direct' or 'em'.
        n_jobs: Worker processes for the per-group fits.
    """
    exponent: float = DEFAULT_EXPONENT
    min_group_size: int = 2
    reml_tolerance: float = 1e-8
    reml_max_iter: int | None = None
    reml: bool = True
    algorithm: str = 'direct'
    n_jobs: int = 1

    def __post_init__(self):
        if not np.isfinite(self.exponent) or self.exponent <= 0:
            raise ValidationError(f"exponent must be positive and finite, got {self.exponent}")
        if int(self.min_group_size) != self.min_group_size or self.min_group_size < 2:
            raise ValidationError(
                f"min_group_size must be an integer >= 2, got {self.min_group_size}"
            )
        if not self.reml_tolerance > 0:
            raise ValidationError(f"reml_tolerance must be positive, got {self.reml_tolerance}")
        if self.reml_max_iter is not None and self.reml_max_iter < 1:
            raise ValidationError(f"reml_max_iter must be >= 1, got {self.reml_max_iter}")
        if self.algorithm not in _ALGORITHMS:
            raise ValidationError(
                f"algorithm must be one of {_ALGORITHMS}, got {self.algorithm!r}"
            )
        if self.n_jobs < 1:
            raise ValidationError(f"n_jobs must be >= 1, got {self.n_jobs}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ComparisonConfig:
        """Build from a plain mapping; unknown keys are an error."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError(
                f"Unknown configuration keys: {unknown}. Known keys: {sorted(known)}"
            )
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
