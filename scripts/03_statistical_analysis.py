#!/usr/bin/env python3
"""
Script 03: Statistical Analysis of Complexity Dimensions

Input:  data/processed/cases_clean.csv
Outputs (outputs/tables, outputs/figures):
    - descriptives.csv, fig3_dimension_shares.svg
    - kruskal_wallis.csv, pairwise_wilcoxon.csv
    - spearman_high.csv + fig4_spearman_high.svg
    - spearman_low.csv + fig5_spearman_low.svg
    - group_profiles.csv + fig6_radar.svg
    - fig7_scatter.svg
    - analysis_summary.json

The flagged outlier is excluded from every test and figure here.
"""
import matplotlib.pyplot as plt
import pandas as pd

from drr_complexity import correlation
from drr_complexity.config import get_param, load_params
from drr_complexity.descriptives import describe_dimensions, group_profile
from drr_complexity.dimensions import DimensionTable, high_low_tables
from drr_complexity.hypothesis import kruskal_by_group, pairwise_wilcoxon, spearman_summary
from drr_complexity.io_utils import atomic_write_csv, atomic_write_figure, atomic_write_json, write_metadata_sidecar
from drr_complexity.logging_utils import (
    get_logger,
    get_run_id,
    log_output_written,
    log_qa_check,
    log_step_end,
    log_step_start,
    log_test_result,
)
from drr_complexity.paths import FIGURES_DIR, PROCESSED_DIR, TABLES_DIR
from drr_complexity.plotting import (
    plot_correlation_heatmap,
    plot_dimension_bars,
    plot_radar,
    plot_scatter,
)

SCRIPT = "03_statistical_analysis.py"


def save_figure(logger, fig, filename: str):
    path = FIGURES_DIR / filename
    atomic_write_figure(path, fig)
    plt.close(fig)
    log_output_written(logger, path)
    return path


def save_table(logger, df: pd.DataFrame, filename: str, run_id: str, description: str, inputs: list[str],
               parameters: dict):
    path = TABLES_DIR / filename
    atomic_write_csv(path, df)
    log_output_written(logger, path, row_count=len(df))
    write_metadata_sidecar(
        data_path=path,
        script_name=SCRIPT,
        run_id=run_id,
        description=description,
        inputs=inputs,
        table=df,
        parameters=parameters,
    )
    return path


def correlation_pass(logger, table: DimensionTable, view: str, exact_max_n: int, alpha: float):
    """Build and log one correlation matrix (high or low view); returns (long table, significant pairs)."""
    log_step_start(logger, f"spearman_{view}", n_cases=table.n_rows)
    matrix = correlation.build(table, exact_max_n=exact_max_n)
    long_table = correlation.to_long_table(matrix)

    n_significant = 0
    for a, b, result in matrix.pairs():
        log_test_result(
            logger,
            f"spearman[{view}] {a} ~ {b}",
            result.coefficient,
            result.p_value,
            method=result.method,
        )
        n_significant += result.p_value <= alpha

    log_qa_check(
        logger,
        f"spearman_{view}_no_nan",
        passed=bool(long_table[["coefficient", "p_value"]].notna().all().all()),
        details=f"{len(long_table)} cells",
    )
    log_step_end(logger, f"spearman_{view}", significant=n_significant)
    return long_table, n_significant


def main():
    """Main entry point."""
    logger = get_logger("03_statistical_analysis")
    run_id = get_run_id()

    params = load_params()
    dimensions = params["dimensions"]
    ratings = params["ratings"]
    high, low = ratings["high_threshold"], ratings["low_threshold"]
    group_col = get_param(params, "hypothesis.group_column")
    min_group = get_param(params, "hypothesis.min_group_size")
    alpha = get_param(params, "hypothesis.alpha")
    exact_max_n = get_param(params, "correlation.exact_max_n")
    colors = params.get("colors")
    analysis = {
        "dimensions": list(dimensions),
        "high_threshold": high,
        "low_threshold": low,
        "group_column": group_col,
        "min_group_size": min_group,
        "alpha": alpha,
        "exact_max_n": exact_max_n,
        "multiple_comparisons": "bonferroni",
        "outliers_excluded": True,
    }

    # Load
    log_step_start(logger, "load_data")
    input_path = PROCESSED_DIR / params["outputs"]["cases_clean"]
    cases = pd.read_csv(input_path)
    for dim in dimensions:
        cases[dim] = cases[dim].astype("Int64")

    excluded = cases[cases["is_outlier"].astype(bool)]
    cases = cases[~cases["is_outlier"].astype(bool)].reset_index(drop=True)
    logger.info(f"Loaded {len(cases) + len(excluded)} cases, excluded {len(excluded)} outlier(s): "
                f"{excluded['case_id'].astype(str).tolist()}")
    log_step_end(logger, "load_data", n_cases=len(cases), n_excluded=len(excluded))
    inputs = [str(input_path)]

    # Descriptives
    log_step_start(logger, "descriptives")
    summary = describe_dimensions(cases, dimensions, high, low)
    for _, row in summary.iterrows():
        logger.info(f"  {row['dimension']}: mean={row['mean']:.2f}, median={row['median']:.1f}, "
                    f"high={row['share_high']:.0%}, low={row['share_low']:.0%}")
    save_table(logger, summary, "descriptives.csv", run_id, "Descriptive statistics per dimension", inputs, analysis)
    save_figure(logger, plot_dimension_bars(summary, colors), "fig3_dimension_shares.svg")
    log_step_end(logger, "descriptives")

    # Kruskal-Wallis + pairwise Wilcoxon
    log_step_start(logger, "group_tests", group_column=group_col)
    kw = kruskal_by_group(cases, group_col, dimensions, min_group)
    for _, row in kw.dropna(subset=["p_value"]).iterrows():
        log_test_result(logger, f"kruskal {row['dimension']} by {group_col}", row["h_statistic"], row["p_value"],
                        n_groups=int(row["n_groups"]))
    save_table(logger, kw, "kruskal_wallis.csv", run_id, f"Kruskal-Wallis tests by {group_col}", inputs, analysis)

    pairwise = pd.concat(
        [pairwise_wilcoxon(cases, dim, group_col, min_group, alpha) for dim in dimensions],
        ignore_index=True,
    )
    n_sig = int(pairwise["significant"].astype(bool).sum()) if len(pairwise) else 0
    logger.info(f"Pairwise Wilcoxon: {n_sig}/{len(pairwise)} comparisons significant after Bonferroni")
    save_table(logger, pairwise, "pairwise_wilcoxon.csv", run_id,
               "Pairwise Wilcoxon rank-sum tests, Bonferroni-adjusted per dimension", inputs, analysis)
    log_step_end(logger, "group_tests", kruskal=len(kw), pairwise=len(pairwise))

    # Spearman co-occurrence matrices, one independent pass per view
    high_table, low_table = high_low_tables(cases, dimensions, high, low)
    views = {}
    for view, table, title in [
        ("high", high_table, f"Co-occurrence of high ratings (≥ {high})"),
        ("low", low_table, f"Co-occurrence of low ratings (≤ {low})"),
    ]:
        long_table, n_significant = correlation_pass(logger, table, view, exact_max_n, alpha)
        save_table(logger, long_table, f"spearman_{view}.csv", run_id,
                   f"Pairwise Spearman correlations, {view}-rating view", inputs, analysis)
        fig_no = 4 if view == "high" else 5
        save_figure(logger, plot_correlation_heatmap(long_table, title, colors), f"fig{fig_no}_spearman_{view}.svg")
        views[view] = n_significant

    # Radar profiles
    log_step_start(logger, "radar")
    profile = group_profile(cases, group_col, dimensions)
    profile = profile[profile["n"] >= min_group]
    save_table(logger, profile.reset_index(), "group_profiles.csv", run_id,
               f"Mean rating per dimension by {group_col}", inputs, analysis)
    save_figure(logger, plot_radar(profile, dimensions, ratings["max"]), "fig6_radar.svg")
    log_step_end(logger, "radar", groups=len(profile))

    # Scatter: number of high vs low dimensions per case
    scatter_stats = spearman_summary(cases, "n_high", "n_low")
    log_test_result(logger, "spearman n_high ~ n_low", scatter_stats["rho"], scatter_stats["p_value"])
    save_figure(logger, plot_scatter(cases, "n_high", "n_low", group_col, scatter_stats), "fig7_scatter.svg")

    # Summary
    summary_path = TABLES_DIR / "analysis_summary.json"
    atomic_write_json(summary_path, {
        "run_id": run_id,
        "n_cases": len(cases),
        "excluded_outliers": excluded["case_id"].astype(str).tolist(),
        "group_column": group_col,
        "kruskal_significant": kw.loc[kw["p_value"] <= alpha, "dimension"].tolist(),
        "pairwise_significant": n_sig,
        "spearman_significant_pairs": views,
        "scatter": scatter_stats,
    })
    log_output_written(logger, summary_path)

    logger.info(f"✓ Completed: statistical analysis of {len(cases)} cases")


if __name__ == "__main__":
    main()
