"""
Design validation for the random-intercept/random-slope model.

MixedDesign organizes the inputs for the hierarchical fit: the response y,
the fixed-effects matrix X = [1, x], the group codes, and the
random-effects matrix Z built from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pythagstats.core.exceptions import DegenerateGroupingError
from pythagstats.data.dataset import Dataset
from pythagstats.mixed._random_effects import build_z_matrix

MIN_GROUPS = 2


@dataclass(frozen=True, eq=False)
class MixedDesign:
    """Validated design for the hierarchical fit.

    Attributes:
        y: Response vector (n,).
        X: Fixed effects design matrix [1, x] (n, 2).
        Z: Random effects design matrix (n, 2J), term-major columns.
        group_codes: 0-indexed group code per observation (n,).
        levels: Group label for each code, in code order.
        n: Number of observations.
        p: Number of fixed effect columns (2).
        n_groups: Number of groups (J).
    """
    y: NDArray
    X: NDArray
    Z: NDArray
    group_codes: NDArray
    levels: tuple[Hashable, ...]
    n: int
    p: int
    n_groups: int

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> MixedDesign:
        """Build the design from a Dataset, keeping every observation.

        Groups with a single observation stay in: they still contribute
        to the marginal likelihood.

        Raises:
            DegenerateGroupingError: If fewer than 2 groups are present.
        """
        levels = dataset.groups
        codes = np.empty(dataset.n, dtype=np.intp)
        for j, rows in enumerate(dataset.group_indices().values()):
            codes[rows] = j
        return cls._build(dataset.x, dataset.y, codes, levels)

    @classmethod
    def from_arrays(
        cls,
        x: ArrayLike,
        y: ArrayLike,
        groups: ArrayLike,
    ) -> MixedDesign:
        """Build the design from raw arrays (group labels are sorted)."""
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y, dtype=np.float64).ravel()
        g = np.asarray(groups)
        if not (len(x) == len(y) == len(g)):
            raise ValueError(
                f"x, y and groups must have equal length, got "
                f"{len(x)}, {len(y)}, {len(g)}"
            )
        unique, codes = np.unique(g, return_inverse=True)
        levels = tuple(u.item() if isinstance(u, np.generic) else u for u in unique)
        return cls._build(x, y, codes, levels)

    @classmethod
    def _build(
        cls,
        x: NDArray,
        y: NDArray,
        codes: NDArray,
        levels: tuple[Hashable, ...],
    ) -> MixedDesign:
        n = len(y)
        n_groups = len(levels)

        if n_groups < MIN_GROUPS:
            raise DegenerateGroupingError(
                f"Hierarchical fit needs at least {MIN_GROUPS} groups to "
                f"identify the random-effects covariance, got {n_groups}",
                n_groups=n_groups,
                min_groups=MIN_GROUPS,
            )
        if n < 3:
            raise ValueError(f"Need at least 3 observations, got {n}")
        if not np.all(np.isfinite(y)):
            raise ValueError("y contains non-finite values (NaN or Inf)")
        if not np.all(np.isfinite(x)):
            raise ValueError("x contains non-finite values (NaN or Inf)")

        X = np.column_stack([np.ones(n), x])
        Z = build_z_matrix(x, codes, n_groups)

        return cls(
            y=np.asarray(y, dtype=np.float64),
            X=X,
            Z=Z,
            group_codes=np.asarray(codes, dtype=np.intp),
            levels=tuple(levels),
            n=n,
            p=X.shape[1],
            n_groups=n_groups,
        )

    def group_rows(self, j: int) -> NDArray:
        """Row indices of group code j."""
        return np.flatnonzero(self.group_codes == j)

    @property
    def group_sizes(self) -> NDArray:
        return np.bincount(self.group_codes, minlength=self.n_groups)
