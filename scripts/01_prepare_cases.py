#!/usr/bin/env python3
"""
Script 01: Clean and Geocode Case Studies

Inputs:
    - data/raw/case_survey.csv
    - data/geo/admin1_boundaries.shp
    - data/geo/admin0_boundaries.shp

Outputs:
    - data/processed/cases_clean.csv
    - data/processed/cases_geocoded.geojson

This script:
1. Cleans the raw survey table (column names, ratings, duplicates)
2. Adds high/low rating flags and summary complexity scores
3. Flags the complexity-sum outlier (Tukey IQR fence)
4. Places each case at its region or country centroid
"""
import geopandas as gpd
import pandas as pd

from drr_complexity.cleaning import add_rating_flags, add_summary_scores, clean_survey, flag_outliers
from drr_complexity.config import get_param, load_params
from drr_complexity.geocoding import boundary_centroids, geocode_cases, to_geodataframe
from drr_complexity.io_utils import atomic_write_csv, atomic_write_geojson, write_metadata_sidecar
from drr_complexity.logging_utils import (
    get_logger,
    get_run_id,
    log_output_written,
    log_qa_check,
    log_step_end,
    log_step_start,
)
from drr_complexity.paths import DATA_DIR, PROCESSED_DIR


def main():
    """Main entry point."""
    logger = get_logger("01_prepare_cases")
    run_id = get_run_id()

    params = load_params()
    dimensions = params["dimensions"]
    ratings = params["ratings"]
    high, low = ratings["high_threshold"], ratings["low_threshold"]

    # Load and clean survey
    log_step_start(logger, "clean_survey")

    survey_path = DATA_DIR / params["inputs"]["survey"]
    raw = pd.read_csv(survey_path)
    logger.info(f"Loaded {len(raw)} survey rows from {survey_path}")

    cases = clean_survey(raw, params["columns"], dimensions, (ratings["min"], ratings["max"]))
    cases = add_rating_flags(cases, dimensions, high, low)
    cases = add_summary_scores(cases, dimensions, high, low)

    logger.info(f"Cleaned table has {len(cases)} cases")
    log_step_end(logger, "clean_survey", rows_in=len(raw), rows_out=len(cases))

    # Outlier
    log_step_start(logger, "flag_outliers")

    outlier_col = get_param(params, "outliers.column")
    iqr_k = get_param(params, "outliers.iqr_k")
    cases = flag_outliers(cases, outlier_col, iqr_k)
    n_outliers = int(cases["is_outlier"].sum())

    log_step_end(logger, "flag_outliers", column=outlier_col, count=n_outliers)

    # Geocode to boundary centroids
    log_step_start(logger, "geocode_cases")

    bounds = params["boundaries"]
    admin1 = gpd.read_file(DATA_DIR / params["inputs"]["admin1"])
    admin0 = gpd.read_file(DATA_DIR / params["inputs"]["admin0"])
    admin1_centroids = boundary_centroids(admin1, [bounds["admin1_country"], bounds["admin1_region"]])
    admin0_centroids = boundary_centroids(admin0, [bounds["admin0_country"]])
    logger.info(f"Computed {len(admin1_centroids)} admin-1 and {len(admin0_centroids)} admin-0 centroids")

    cases = geocode_cases(cases, admin1_centroids, admin0_centroids)
    level_counts = cases["geocode_level"].value_counts(dropna=False).to_dict()
    for level, count in level_counts.items():
        logger.info(f"  {level}: {count} cases")

    log_step_end(logger, "geocode_cases", levels={str(k): int(v) for k, v in level_counts.items()})

    # QA checks
    geocoded = int(cases["geocode_level"].notna().sum())
    log_qa_check(
        logger,
        "all_cases_geocoded",
        passed=geocoded == len(cases),
        details=f"{geocoded}/{len(cases)} cases have coordinates",
    )

    complete = int((cases["n_rated"] == len(dimensions)).sum())
    log_qa_check(
        logger,
        "all_dimensions_rated",
        passed=complete == len(cases),
        details=f"{complete}/{len(cases)} cases rated on all {len(dimensions)} dimensions",
    )

    log_qa_check(
        logger,
        "single_outlier",
        passed=n_outliers <= 1,
        details=f"{n_outliers} case(s) outside IQR fences on {outlier_col}",
    )

    # Write outputs
    clean_path = PROCESSED_DIR / params["outputs"]["cases_clean"]
    atomic_write_csv(clean_path, cases)
    log_output_written(logger, clean_path, row_count=len(cases))

    write_metadata_sidecar(
        data_path=clean_path,
        script_name="01_prepare_cases.py",
        run_id=run_id,
        description="Cleaned case studies with rating flags, summary scores, outlier flag and centroids",
        inputs=[str(survey_path), params["inputs"]["admin1"], params["inputs"]["admin0"]],
        table=cases,
        parameters={
            "dimensions": list(dimensions),
            "rating_range": [ratings["min"], ratings["max"]],
            "high_threshold": high,
            "low_threshold": low,
            "outlier_column": outlier_col,
            "iqr_k": iqr_k,
        },
        outliers={"count": n_outliers,
                  "case_ids": cases.loc[cases["is_outlier"], "case_id"].astype(str).tolist()},
    )

    points = to_geodataframe(cases)
    geo_path = PROCESSED_DIR / params["outputs"]["cases_geocoded"]
    atomic_write_geojson(geo_path, points)
    log_output_written(logger, geo_path, row_count=len(points))

    logger.info(f"✓ Completed: {len(cases)} cases cleaned, {geocoded} geocoded, {n_outliers} outlier(s)")


if __name__ == "__main__":
    main()
