"""
Complexity dimensions and the tables they are correlated from.

Each case study is rated 1-5 on five ordinal dimensions. The analysis also
looks at two boolean views of those ratings: high (>= 4) and low (<= 2).
"""
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from drr_complexity.errors import ShapeMismatchError

DIMENSIONS = ("uncertainty", "interdependency", "multi_levels", "volatility", "overlaps")

HIGH_THRESHOLD = 4
LOW_THRESHOLD = 2


def is_high(values: pd.Series | Sequence, threshold: int = HIGH_THRESHOLD) -> pd.Series:
    """Per-cell value >= threshold. Missing ratings stay missing."""
    s = pd.Series(values, dtype="Float64")
    return (s >= threshold).astype("boolean")


def is_low(values: pd.Series | Sequence, threshold: int = LOW_THRESHOLD) -> pd.Series:
    """Per-cell value <= threshold. Missing ratings stay missing."""
    s = pd.Series(values, dtype="Float64")
    return (s <= threshold).astype("boolean")


def _as_float_array(values) -> np.ndarray:
    # Nullable pandas dtypes carry pd.NA, which numpy cannot cast directly
    if isinstance(values, pd.Series):
        values = values.astype("Float64").to_numpy(dtype=float, na_value=np.nan)
    arr = np.asarray(values, dtype=float).copy()
    arr.setflags(write=False)
    return arr


class DimensionTable:
    """
    Read-only, ordered set of equally long columns sharing one row order.

    Values are stored as float; booleans become 0/1 and missing cells NaN.
    """

    def __init__(self, columns: Mapping[str, Iterable]):
        data = {str(name): _as_float_array(values) for name, values in columns.items()}
        lengths = {name: len(arr) for name, arr in data.items()}
        if len(set(lengths.values())) > 1:
            first = next(iter(lengths))
            odd = next(n for n, length in lengths.items() if length != lengths[first])
            raise ShapeMismatchError(
                f"column '{odd}' has {lengths[odd]} rows, column '{first}' has {lengths[first]}"
            )
        self._columns = MappingProxyType(data)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, columns: Sequence[str] = DIMENSIONS) -> "DimensionTable":
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise KeyError(f"columns not in frame: {missing}")
        return cls({c: df[c] for c in columns})

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._columns)

    @property
    def n_rows(self) -> int:
        return len(next(iter(self._columns.values()))) if self._columns else 0

    def column(self, name: str) -> np.ndarray:
        return self._columns[name]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({name: np.array(arr) for name, arr in self._columns.items()})

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f"DimensionTable(columns={list(self.names)}, n_rows={self.n_rows})"


def high_low_tables(
    df: pd.DataFrame,
    dimensions: Sequence[str] = DIMENSIONS,
    high_threshold: int = HIGH_THRESHOLD,
    low_threshold: int = LOW_THRESHOLD,
) -> tuple[DimensionTable, DimensionTable]:
    """Build the high-rating and low-rating views as two separate tables."""
    high = DimensionTable({d: is_high(df[d], high_threshold) for d in dimensions})
    low = DimensionTable({d: is_low(df[d], low_threshold) for d in dimensions})
    return high, low
