"""Descriptive statistics for the complexity ratings."""
from typing import Sequence

import pandas as pd

from drr_complexity.dimensions import DIMENSIONS, HIGH_THRESHOLD, LOW_THRESHOLD


def describe_dimensions(
    df: pd.DataFrame,
    dimensions: Sequence[str] = DIMENSIONS,
    high_threshold: int = HIGH_THRESHOLD,
    low_threshold: int = LOW_THRESHOLD,
) -> pd.DataFrame:
    """
    One row per dimension: n, mean, sd, median, quartiles, range, and the
    share of rated cases that are high / low.
    """
    rows = []
    for dim in dimensions:
        values = df[dim].astype("Float64").dropna().astype(float)
        n = len(values)
        rows.append(
            {
                "dimension": dim,
                "n": n,
                "mean": values.mean(),
                "sd": values.std(ddof=1),
                "median": values.median(),
                "q1": values.quantile(0.25),
                "q3": values.quantile(0.75),
                "min": values.min(),
                "max": values.max(),
                "share_high": (values >= high_threshold).mean() if n else float("nan"),
                "share_low": (values <= low_threshold).mean() if n else float("nan"),
            }
        )
    return pd.DataFrame(rows)


def group_profile(
    df: pd.DataFrame, group_col: str, dimensions: Sequence[str] = DIMENSIONS
) -> pd.DataFrame:
    """Mean rating per dimension for each group (rows: groups, columns: dimensions)."""
    ratings = df[[group_col, *dimensions]].dropna(subset=[group_col])
    ratings = ratings.astype({d: "Float64" for d in dimensions})
    profile = ratings.groupby(group_col)[list(dimensions)].mean().astype(float)
    profile["n"] = ratings.groupby(group_col).size()
    return profile.sort_index()
