"""
Pairwise Spearman correlation matrix across complexity dimensions.

Used once per boolean view (high-rating and low-rating co-occurrence) and
optionally on the raw ratings.

Coefficient: Pearson correlation of average ranks (ties share the mean rank).

p-value, two-sided:
  * exact permutation null (all N! orderings of one column) when N is at
    most ``exact_max_n`` and neither column has ties;
  * otherwise the t-approximation t = rho * sqrt((N - 2) / (1 - rho**2)) with
    N - 2 degrees of freedom, as in scipy.stats.spearmanr.
The two disagree noticeably at small N, so each result records which one
was used.

Each unordered pair is computed once and the same PairwiseResult object is
stored under (a, b) and (b, a). Self pairs are fixed at rho = 1, p = 0.
"""
import itertools
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator

import numpy as np
import pandas as pd
from scipy import stats

from drr_complexity.dimensions import DimensionTable
from drr_complexity.errors import DegenerateInputError
from drr_complexity.significance import SignificanceBucket, classify

MIN_OBSERVATIONS = 3
EXACT_MAX_N = 8

METHOD_SELF = "self"
METHOD_EXACT = "exact"
METHOD_T = "t-approx"

LONG_TABLE_COLUMNS = ["dim_a", "dim_b", "coefficient", "p_value", "significance_bucket", "method"]


@dataclass(frozen=True)
class PairwiseResult:
    dim_a: str
    dim_b: str
    coefficient: float
    p_value: float
    method: str

    @property
    def bucket(self) -> SignificanceBucket:
        return classify(self.p_value)


class CorrelationMatrix:
    """Fully populated, read-only mapping (dim, dim) -> PairwiseResult."""

    def __init__(self, names: tuple[str, ...], cells: dict[tuple[str, str], PairwiseResult]):
        expected = {(a, b) for a in names for b in names}
        if set(cells) != expected:
            raise ValueError("correlation matrix must cover every dimension pair")
        self._names = tuple(names)
        self._cells = MappingProxyType(dict(cells))

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def __getitem__(self, key: tuple[str, str]) -> PairwiseResult:
        return self._cells[key]

    def __iter__(self) -> Iterator[tuple[str, str]]:
        """Ordered pairs, row-major in dimension order."""
        for a in self._names:
            for b in self._names:
                yield a, b

    def __len__(self) -> int:
        return len(self._cells)

    def pairs(self) -> Iterator[tuple[str, str, PairwiseResult]]:
        """Each unordered pair of distinct dimensions once, in dimension order."""
        for a, b in itertools.combinations(self._names, 2):
            yield a, b, self._cells[a, b]

    def _square(self, attr: str) -> pd.DataFrame:
        return pd.DataFrame(
            [[getattr(self._cells[a, b], attr) for b in self._names] for a in self._names],
            index=list(self._names),
            columns=list(self._names),
        )

    def coefficients(self) -> pd.DataFrame:
        return self._square("coefficient")

    def p_values(self) -> pd.DataFrame:
        return self._square("p_value")


def _check_column(name: str, values: np.ndarray) -> None:
    observed = values[~np.isnan(values)]
    if len(observed) < MIN_OBSERVATIONS:
        raise DegenerateInputError(
            f"column '{name}' has {len(observed)} observations, need at least {MIN_OBSERVATIONS}"
        )
    if np.all(observed == observed[0]):
        raise DegenerateInputError(
            f"column '{name}' is constant ({observed[0]:g}); Spearman correlation is undefined"
        )


def _exact_p_value(rx: np.ndarray, ry: np.ndarray) -> float:
    """Share of all orderings of ry at least as extreme as the observed one."""
    dx = rx - rx.mean()
    dy = ry - ry.mean()
    observed = abs(float(dx @ dy))
    perms = np.array(list(itertools.permutations(dy)))
    extreme = np.abs(perms @ dx) >= observed - 1e-9
    return float(extreme.mean())


def _t_approx_p_value(rho: float, n: int) -> float:
    if abs(rho) >= 1.0:
        return 0.0
    t = rho * math.sqrt((n - 2) / (1.0 - rho * rho))
    return float(2.0 * stats.t.sf(abs(t), n - 2))


def spearman_pair(
    a: str, b: str, x: np.ndarray, y: np.ndarray, exact_max_n: int = EXACT_MAX_N
) -> PairwiseResult:
    """Spearman rho and two-sided p-value for one pair of columns."""
    mask = ~(np.isnan(x) | np.isnan(y))
    x, y = x[mask], y[mask]
    n = len(x)
    if n < MIN_OBSERVATIONS:
        raise DegenerateInputError(
            f"pair ({a}, {b}) has {n} complete observations, need at least {MIN_OBSERVATIONS}"
        )

    rx = stats.rankdata(x, method="average")
    ry = stats.rankdata(y, method="average")
    dx = rx - rx.mean()
    dy = ry - ry.mean()
    denom = math.sqrt(float(dx @ dx) * float(dy @ dy))
    if denom == 0.0:
        raise DegenerateInputError(
            f"pair ({a}, {b}) is constant on its {n} complete observations"
        )
    rho = float(np.clip(float(dx @ dy) / denom, -1.0, 1.0))

    has_ties = len(np.unique(x)) < n or len(np.unique(y)) < n
    if n <= exact_max_n and not has_ties:
        p_value, method = _exact_p_value(rx, ry), METHOD_EXACT
    else:
        p_value, method = _t_approx_p_value(rho, n), METHOD_T

    return PairwiseResult(a, b, rho, float(np.clip(p_value, 0.0, 1.0)), method)


def build(table: DimensionTable, exact_max_n: int = EXACT_MAX_N) -> CorrelationMatrix:
    """
    Build the symmetric Spearman matrix for every pair of columns in ``table``.

    Raises DegenerateInputError for fewer than two columns, fewer than three
    rows, or a constant column.
    """
    names = table.names
    if len(names) < 2:
        raise DegenerateInputError(f"need at least 2 dimensions, got {len(names)}")
    if table.n_rows < MIN_OBSERVATIONS:
        raise DegenerateInputError(
            f"need at least {MIN_OBSERVATIONS} cases, got {table.n_rows}"
        )
    for name in names:
        _check_column(name, table.column(name))

    cells: dict[tuple[str, str], PairwiseResult] = {}
    for name in names:
        cells[name, name] = PairwiseResult(name, name, 1.0, 0.0, METHOD_SELF)

    for a, b in itertools.combinations(names, 2):
        result = spearman_pair(a, b, table.column(a), table.column(b), exact_max_n)
        cells[a, b] = result
        cells[b, a] = result

    return CorrelationMatrix(names, cells)


def to_long_table(matrix: CorrelationMatrix) -> pd.DataFrame:
    """One row per ordered pair, both (a, b) and (b, a), self pairs included."""
    rows = []
    for a, b in matrix:
        result = matrix[a, b]
        rows.append(
            {
                "dim_a": a,
                "dim_b": b,
                "coefficient": result.coefficient,
                "p_value": result.p_value,
                "significance_bucket": result.bucket.label,
                "method": result.method,
            }
        )
    return pd.DataFrame(rows, columns=LONG_TABLE_COLUMNS)
