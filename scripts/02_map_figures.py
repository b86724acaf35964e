#!/usr/bin/env python3
"""
Script 02: Case Study Map Figures

Inputs:
    - data/processed/cases_geocoded.geojson
    - data/geo/admin0_boundaries.shp

Outputs:
    - outputs/figures/fig1_map_hazard_type.svg
    - outputs/figures/fig2_map_complexity.svg

Two map panels: cases by hazard type, and cases by summed complexity score.
"""
import geopandas as gpd
import matplotlib.pyplot as plt

from drr_complexity.config import load_params
from drr_complexity.io_utils import atomic_write_figure
from drr_complexity.logging_utils import (
    get_logger,
    log_output_written,
    log_step_end,
    log_step_start,
)
from drr_complexity.paths import DATA_DIR, FIGURES_DIR, PROCESSED_DIR
from drr_complexity.plotting import plot_case_map

PANELS = [
    ("fig1_map_hazard_type.svg", "hazard_type", True, "(a) Case studies by hazard type"),
    ("fig2_map_complexity.svg", "complexity_sum", False, "(b) Case studies by overall complexity"),
]


def main():
    """Main entry point."""
    logger = get_logger("02_map_figures")
    params = load_params()

    log_step_start(logger, "load_data")
    cases = gpd.read_file(PROCESSED_DIR / params["outputs"]["cases_geocoded"])
    world = gpd.read_file(DATA_DIR / params["inputs"]["admin0"]).to_crs(cases.crs)
    logger.info(f"Loaded {len(cases)} geocoded cases and {len(world)} country polygons")
    log_step_end(logger, "load_data", cases=len(cases))

    for filename, column, categorical, title in PANELS:
        log_step_start(logger, "plot_map", column=column)
        fig = plot_case_map(world, cases, column, title=title, colors=params.get("colors"),
                            categorical=categorical)
        path = FIGURES_DIR / filename
        atomic_write_figure(path, fig)
        plt.close(fig)
        log_output_written(logger, path)
        log_step_end(logger, "plot_map", column=column)

    logger.info(f"✓ Completed: {len(PANELS)} map panels")


if __name__ == "__main__":
    main()
