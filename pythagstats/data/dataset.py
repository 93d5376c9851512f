"""
Observation and Dataset: the validated input to every estimator.

A Dataset is the immutable table of group-period records that the pooled,
per-group and hierarchical fits all read. It owns the mapping from
group_id to the row indices of that group, so per-group work is keyed by
a stable group label rather than by array position.

Usage:
    ds = Dataset.from_counts(teams, seasons, runs_scored, runs_allowed,
                             wins, losses, exponent=1.83)
    ds = Dataset.from_dataframe(df, group='team', period='season', ...)
    ds = Dataset.from_arrays(group_ids, periods, x, y)

    ds.group_indices()   # {'BOS': array([0, 1, ...]), ...}
    x, y = ds.subset('BOS')
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, Hashable, Iterable, Iterator, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pythagstats.core.exceptions import ValidationError
from pythagstats.core.validation import (
    check_array, check_finite, check_1d, check_consistent_length,
    check_min_samples,
)
from pythagstats.data._transform import (
    DEFAULT_EXPONENT, pythagorean_expectation, win_fraction,
)

if TYPE_CHECKING:
    import pandas as pd

# Fixed effects in y = β0 + β1·x: intercept and slope
N_FIXED_EFFECTS = 2


def _key(value: Any) -> Hashable:
    """Convert a numpy scalar label to its plain Python value."""
    if isinstance(value, np.generic):
        return value.item()
    return value


@dataclass(frozen=True)
class Observation:
    """One group-period record.

    Attributes:
        group_id: Categorical group label (e.g. team).
        period: Ordinal period label (e.g. season).
        x: Predictor (Pythagorean expectation).
        y: Response (winning fraction).
    """
    group_id: Hashable
    period: Hashable
    x: float
    y: float

    @classmethod
    def from_counts(
        cls,
        group_id: Hashable,
        period: Hashable,
        count_a: float,
        count_b: float,
        wins: float,
        losses: float,
        exponent: float = DEFAULT_EXPONENT,
    ) -> Observation:
        """Build an observation from runs scored/allowed and wins/losses."""
        x = pythagorean_expectation(count_a, count_b, exponent)
        y = win_fraction(wins, losses)
        return cls(group_id=group_id, period=period, x=float(x[0]), y=float(y[0]))


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Immutable collection of observations sharing one schema.

    Construct via the factory classmethods, not directly. All arrays are
    marked read-only; estimators never modify the dataset.

    Invariants (checked at construction):
        - group_ids, periods, x, y have equal length
        - x and y are finite
        - (group_id, period) pairs are unique
        - at least N_FIXED_EFFECTS + 1 observations

    Groups with fewer than 2 observations are allowed here; the per-group
    fit reports them as failures instead.
    """
    _group_ids: NDArray
    _periods: NDArray
    _x: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _exponent: float | None = None
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Factory Methods ===

    @classmethod
    def from_arrays(
        cls,
        group_ids: ArrayLike,
        periods: ArrayLike,
        x: ArrayLike,
        y: ArrayLike,
        *,
        exponent: float | None = None,
    ) -> Dataset:
        """Construct from already-derived predictor and response arrays."""
        return cls._build(group_ids, periods, x, y, exponent, {'source': 'arrays'})

    @classmethod
    def from_counts(
        cls,
        group_ids: ArrayLike,
        periods: ArrayLike,
        count_a: ArrayLike,
        count_b: ArrayLike,
        wins: ArrayLike,
        losses: ArrayLike,
        *,
        exponent: float = DEFAULT_EXPONENT,
    ) -> Dataset:
        """Construct from runs scored/allowed and wins/losses counts."""
        x = pythagorean_expectation(count_a, count_b, exponent)
        y = win_fraction(wins, losses)
        return cls._build(group_ids, periods, x, y, exponent, {'source': 'counts'})

    @classmethod
    def from_observations(cls, observations: Iterable[Observation]) -> Dataset:
        """Construct from Observation records."""
        obs = list(observations)
        return cls._build(
            [o.group_id for o in obs],
            [o.period for o in obs],
            [o.x for o in obs],
            [o.y for o in obs],
            None,
            {'source': 'observations'},
        )

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        group: str = 'team',
        period: str = 'season',
        runs_scored: str = 'runs_scored',
        runs_allowed: str = 'runs_allowed',
        wins: str = 'wins',
        losses: str = 'losses',
        exponent: float = DEFAULT_EXPONENT,
    ) -> Dataset:
        """Construct from a pandas DataFrame with one row per group/period."""
        required = [group, period, runs_scored, runs_allowed, wins, losses]
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise ValidationError(
                f"DataFrame is missing column(s) {missing}. "
                f"Available: {list(df.columns)}"
            )

        x = pythagorean_expectation(
            df[runs_scored].to_numpy(dtype=np.float64),
            df[runs_allowed].to_numpy(dtype=np.float64),
            exponent,
        )
        y = win_fraction(
            df[wins].to_numpy(dtype=np.float64),
            df[losses].to_numpy(dtype=np.float64),
        )
        return cls._build(
            df[group].to_numpy(),
            df[period].to_numpy(),
            x, y, exponent,
            {'source': 'dataframe', 'columns': required},
        )

    @classmethod
    def from_file(cls, path: str | Path, **columns: Any) -> Dataset:
        """Construct from a CSV/TSV file via pandas."""
        import pandas as pd

        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == '.csv':
            df = pd.read_csv(path)
        elif suffix == '.tsv':
            df = pd.read_csv(path, sep='\t')
        else:
            raise ValidationError(f"Unknown file format: {suffix}")
        ds = cls.from_dataframe(df, **columns)
        ds._metadata['source_path'] = str(path)
        return ds

    @classmethod
    def _build(
        cls,
        group_ids: ArrayLike,
        periods: ArrayLike,
        x: ArrayLike,
        y: ArrayLike,
        exponent: float | None,
        metadata: dict[str, Any],
    ) -> Dataset:
        """Internal builder with validation."""
        g = np.asarray(group_ids)
        t = np.asarray(periods)
        x_arr = check_array(x, 'x').astype(np.float64, copy=True)
        y_arr = check_array(y, 'y').astype(np.float64, copy=True)

        check_1d(g, 'group_ids')
        check_1d(t, 'periods')
        check_1d(x_arr, 'x')
        check_1d(y_arr, 'y')
        check_consistent_length(
            g, t, x_arr, y_arr, names=('group_ids', 'periods', 'x', 'y')
        )
        check_finite(x_arr, 'x')
        check_finite(y_arr, 'y')
        check_min_samples(x_arr, N_FIXED_EFFECTS + 1, 'dataset')

        seen: set[tuple[Hashable, Hashable]] = set()
        for gid, per in zip(g, t):
            pair = (_key(gid), _key(per))
            if pair in seen:
                raise ValidationError(
                    f"dataset: duplicate (group_id, period) pair {pair!r}"
                )
            seen.add(pair)

        g = g.copy()
        t = t.copy()
        for arr in (g, t, x_arr, y_arr):
            arr.setflags(write=False)

        metadata = dict(metadata)
        metadata['n_observations'] = int(len(x_arr))
        return cls(
            _group_ids=g, _periods=t, _x=x_arr, _y=y_arr,
            _exponent=exponent, _metadata=metadata,
        )

    # === Properties ===

    @property
    def group_ids(self) -> NDArray:
        """Group label per observation (n,)."""
        return self._group_ids

    @property
    def periods(self) -> NDArray:
        """Period label per observation (n,)."""
        return self._periods

    @property
    def x(self) -> NDArray[np.floating[Any]]:
        """Predictor (n,)."""
        return self._x

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response (n,)."""
        return self._y

    @property
    def exponent(self) -> float | None:
        """Exponent used to derive x, if the dataset was built from counts."""
        return self._exponent

    @property
    def n(self) -> int:
        """Number of observations."""
        return int(len(self._x))

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    @cached_property
    def _index(self) -> dict[Hashable, NDArray]:
        levels, inverse = np.unique(self._group_ids, return_inverse=True)
        index = {}
        for j, level in enumerate(levels):
            rows = np.flatnonzero(inverse == j)
            rows.setflags(write=False)
            index[_key(level)] = rows
        return index

    @property
    def groups(self) -> tuple[Hashable, ...]:
        """Distinct group labels, sorted."""
        return tuple(self._index.keys())

    @property
    def n_groups(self) -> int:
        return len(self._index)

    def group_indices(self) -> dict[Hashable, NDArray]:
        """Mapping group_id → row indices of that group's observations."""
        return dict(self._index)

    def group_sizes(self) -> dict[Hashable, int]:
        """Mapping group_id → number of observations."""
        return {g: int(len(rows)) for g, rows in self._index.items()}

    def subset(self, group_id: Hashable) -> tuple[NDArray, NDArray]:
        """Return (x, y) for one group.

        Raises:
            KeyError: If the group is not present, listing available groups.
        """
        if group_id not in self._index:
            raise KeyError(
                f"Dataset has no group {group_id!r}. Available: {self.groups}"
            )
        rows = self._index[group_id]
        return self._x[rows], self._y[rows]

    def observations(self) -> Iterator[Observation]:
        """Iterate over the records as Observation objects."""
        for gid, per, xi, yi in zip(self._group_ids, self._periods, self._x, self._y):
            yield Observation(
                group_id=_key(gid), period=_key(per), x=float(xi), y=float(yi)
            )

    def __len__(self) -> int:
        return self.n

    def __repr__(self) -> str:
        return f"Dataset(n={self.n}, groups={self.n_groups})"
