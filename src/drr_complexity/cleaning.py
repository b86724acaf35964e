"""
Survey table cleaning, rating flags, summary scores and outlier flagging.
"""
import logging
from typing import Mapping, Sequence

import pandas as pd

from drr_complexity.dimensions import DIMENSIONS, HIGH_THRESHOLD, LOW_THRESHOLD, is_high, is_low

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 5


def _strip_text(value):
    """Strip surrounding whitespace; blank strings become missing."""
    if not isinstance(value, str):
        return value
    value = value.strip()
    return value if value else pd.NA


def clean_survey(
    raw: pd.DataFrame,
    column_map: Mapping[str, str],
    dimensions: Sequence[str] = DIMENSIONS,
    rating_range: tuple[int, int] = (RATING_MIN, RATING_MAX),
) -> pd.DataFrame:
    """
    Rename raw survey headers and normalise values.

    - keeps only mapped columns, renamed to analysis names
    - strips surrounding whitespace from text fields
    - drops rows with no case_id and duplicate case_ids (first kept)
    - ratings become nullable integers; values outside rating_range become null
    """
    missing = [c for c in column_map if c not in raw.columns]
    if missing:
        raise KeyError(f"raw survey is missing columns: {missing}")

    df = raw[list(column_map)].rename(columns=dict(column_map)).copy()

    # Text may be object, "string" or (pandas 3) "str" dtype
    for col in df.columns:
        if pd.api.types.is_string_dtype(df[col]) or df[col].dtype == object:
            df[col] = df[col].map(_strip_text, na_action="ignore").astype(object)

    if "case_id" in df.columns:
        no_id = df["case_id"].isna()
        if no_id.any():
            logger.warning(f"Dropping {int(no_id.sum())} rows without a case_id")
        df = df[~no_id]

        dupes = df["case_id"].duplicated(keep="first")
        if dupes.any():
            logger.warning(f"Dropping duplicate case_ids: {sorted(df.loc[dupes, 'case_id'].astype(str))}")
        df = df[~dupes]

    lo, hi = rating_range
    for dim in dimensions:
        values = pd.to_numeric(df[dim], errors="coerce")
        out_of_range = values.notna() & ((values < lo) | (values > hi) | (values % 1 != 0))
        if out_of_range.any():
            logger.warning(
                f"{dim}: {int(out_of_range.sum())} ratings outside {lo}-{hi} set to null"
            )
        df[dim] = values.mask(out_of_range).round().astype("Int64")

    return df.reset_index(drop=True)


def add_rating_flags(
    df: pd.DataFrame,
    dimensions: Sequence[str] = DIMENSIONS,
    high_threshold: int = HIGH_THRESHOLD,
    low_threshold: int = LOW_THRESHOLD,
) -> pd.DataFrame:
    """Add <dim>_high and <dim>_low boolean columns."""
    df = df.copy()
    for dim in dimensions:
        df[f"{dim}_high"] = is_high(df[dim], high_threshold)
        df[f"{dim}_low"] = is_low(df[dim], low_threshold)
    return df


def add_summary_scores(
    df: pd.DataFrame,
    dimensions: Sequence[str] = DIMENSIONS,
    high_threshold: int = HIGH_THRESHOLD,
    low_threshold: int = LOW_THRESHOLD,
) -> pd.DataFrame:
    """
    Add per-case summary scores.

    complexity_sum / complexity_mean are over rated dimensions only; a case
    with no ratings gets null for both.
    """
    df = df.copy()
    ratings = df[list(dimensions)].astype("Float64")

    df["n_rated"] = ratings.notna().sum(axis=1).astype(int)
    df["complexity_sum"] = ratings.sum(axis=1, min_count=1)
    df["complexity_mean"] = ratings.mean(axis=1)
    df["n_high"] = (ratings >= high_threshold).sum(axis=1).astype(int)
    df["n_low"] = (ratings <= low_threshold).sum(axis=1).astype(int)
    return df


def iqr_fences(values: pd.Series, k: float = 1.5) -> tuple[float, float]:
    """Tukey fences (Q1 - k*IQR, Q3 + k*IQR)."""
    values = pd.Series(values, dtype="Float64").dropna()
    q1, q3 = values.quantile(0.25), values.quantile(0.75)
    iqr = q3 - q1
    return float(q1 - k * iqr), float(q3 + k * iqr)


def flag_outliers(df: pd.DataFrame, column: str, k: float = 1.5) -> pd.DataFrame:
    """Add an is_outlier column: True where column falls outside the Tukey fences."""
    df = df.copy()
    lower, upper = iqr_fences(df[column], k)
    values = df[column].astype("Float64")
    df["is_outlier"] = ((values < lower) | (values > upper)).fillna(False).astype(bool)

    for _, row in df[df["is_outlier"]].iterrows():
        logger.info(
            f"Outlier: case {row.get('case_id')} {column}={row[column]} "
            f"(fences {lower:.2f} - {upper:.2f})"
        )
    return df
