"""
Non-parametric group comparisons.

Kruskal-Wallis across all groups per dimension, then pairwise Wilcoxon
rank-sum (Mann-Whitney U) tests between groups with Bonferroni adjustment.
"""
import itertools
from typing import Sequence

import pandas as pd
from scipy import stats
from statsmodels.stats.multitest import multipletests

from drr_complexity.dimensions import DIMENSIONS
from drr_complexity.significance import classify

MIN_GROUP_SIZE = 3


def _groups(df: pd.DataFrame, value_col: str, group_col: str, min_group_size: int) -> dict:
    data = df[[group_col, value_col]].dropna()
    groups = {}
    for name, sub in data.groupby(group_col):
        values = sub[value_col].astype(float).to_numpy()
        if len(values) >= min_group_size:
            groups[name] = values
    return groups


def kruskal_by_group(
    df: pd.DataFrame,
    group_col: str,
    dimensions: Sequence[str] = DIMENSIONS,
    min_group_size: int = MIN_GROUP_SIZE,
) -> pd.DataFrame:
    """
    Kruskal-Wallis H test per dimension across groups of ``group_col``.

    Groups smaller than min_group_size are left out. Dimensions with fewer
    than two usable groups, or identical values everywhere, get NaN
    statistics.
    """
    rows = []
    for dim in dimensions:
        groups = _groups(df, dim, group_col, min_group_size)
        row = {
            "dimension": dim,
            "h_statistic": float("nan"),
            "p_value": float("nan"),
            "n_groups": len(groups),
            "n": int(sum(len(v) for v in groups.values())),
            "significance_bucket": None,
        }
        if len(groups) >= 2:
            try:
                h, p = stats.kruskal(*groups.values())
            except ValueError:
                # all values identical
                h, p = float("nan"), float("nan")
            if pd.notna(p):
                row.update(h_statistic=float(h), p_value=float(p), significance_bucket=classify(p).label)
        rows.append(row)
    return pd.DataFrame(rows)


def pairwise_wilcoxon(
    df: pd.DataFrame,
    dimension: str,
    group_col: str,
    min_group_size: int = MIN_GROUP_SIZE,
    alpha: float = 0.05,
) -> pd.DataFrame:
    """
    Two-sided Wilcoxon rank-sum test for every pair of groups on one dimension.

    p_adjusted is Bonferroni-corrected over the pairs tested here.
    """
    columns = ["dimension", "group_a", "group_b", "n_a", "n_b", "u_statistic", "p_value", "p_adjusted", "significant"]
    groups = _groups(df, dimension, group_col, min_group_size)
    rows = []
    for a, b in itertools.combinations(sorted(groups), 2):
        u, p = stats.mannwhitneyu(groups[a], groups[b], alternative="two-sided")
        rows.append(
            {
                "dimension": dimension,
                "group_a": a,
                "group_b": b,
                "n_a": len(groups[a]),
                "n_b": len(groups[b]),
                "u_statistic": float(u),
                "p_value": float(p),
            }
        )

    result = pd.DataFrame(rows, columns=columns[:7])
    if result.empty:
        return pd.DataFrame(columns=columns)

    reject, p_adj, _, _ = multipletests(result["p_value"].to_numpy(), alpha=alpha, method="bonferroni")
    result["p_adjusted"] = p_adj
    result["significant"] = reject
    return result


def spearman_summary(df: pd.DataFrame, x: str, y: str) -> dict:
    """Spearman rho between two numeric columns on complete cases."""
    data = df[[x, y]].astype("Float64").dropna().astype(float)
    rho, p = stats.spearmanr(data[x], data[y])
    return {"x": x, "y": y, "n": len(data), "rho": float(rho), "p_value": float(p)}
