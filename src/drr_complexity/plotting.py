"""
Figures for the article: case maps, rating bars, correlation heatmaps,
radar profiles and a scatter plot.

Functions return the matplotlib Figure; scripts save it with
io_utils.atomic_write_figure.
"""
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from drr_complexity.significance import legend

DEFAULT_COLORS = {
    "high": "#c0392b",
    "low": "#2e86c1",
    "map_land": "#e5e5e5",
    "map_edge": "#ffffff",
    "heatmap_cmap": "RdBu_r",
}


def _label(name: str) -> str:
    return name.replace("_", " ").capitalize()


def plot_case_map(world, cases, column: str, ax=None, title: str | None = None, colors: dict | None = None,
                  categorical: bool = True):
    """Admin-0 base map with case points coloured by ``column``."""
    colors = {**DEFAULT_COLORS, **(colors or {})}
    if ax is None:
        fig, ax = plt.subplots(figsize=(12, 6))
    else:
        fig = ax.figure

    world.plot(ax=ax, color=colors["map_land"], edgecolor=colors["map_edge"], linewidth=0.4)
    cases.plot(
        ax=ax,
        column=column,
        categorical=categorical,
        cmap="tab10" if categorical else "viridis",
        markersize=40,
        edgecolor="black",
        linewidth=0.4,
        legend=True,
        legend_kwds={"loc": "lower left", "fontsize": 8, "title": _label(column)} if categorical
        else {"label": _label(column), "shrink": 0.6},
    )
    ax.set_axis_off()
    if title:
        ax.set_title(title, loc="left", fontsize=12, fontweight="bold")
    return fig


def plot_dimension_bars(summary: pd.DataFrame, colors: dict | None = None):
    """Grouped bars: share of high and low ratings per dimension."""
    colors = {**DEFAULT_COLORS, **(colors or {})}
    fig, ax = plt.subplots(figsize=(8, 5))

    x = np.arange(len(summary))
    width = 0.38
    ax.bar(x - width / 2, summary["share_high"] * 100, width, label="High (4-5)", color=colors["high"])
    ax.bar(x + width / 2, summary["share_low"] * 100, width, label="Low (1-2)", color=colors["low"])

    ax.set_xticks(x)
    ax.set_xticklabels([_label(d) for d in summary["dimension"]], rotation=20, ha="right")
    ax.set_ylabel("Share of cases (%)")
    ax.set_ylim(0, 100)
    ax.legend(frameon=False)
    sns.despine(ax=ax)
    fig.tight_layout()
    return fig


def plot_correlation_heatmap(long_table: pd.DataFrame, title: str, colors: dict | None = None):
    """
    Heatmap of rho from a long correlation table, annotated with the
    coefficient and its significance marker.
    """
    colors = {**DEFAULT_COLORS, **(colors or {})}
    order = list(dict.fromkeys(long_table["dim_a"]))
    rho = long_table.pivot(index="dim_a", columns="dim_b", values="coefficient").loc[order, order]

    markers = {label: marker for marker, label in legend()}
    stars = long_table.assign(marker=long_table["significance_bucket"].map(markers)).pivot(
        index="dim_a", columns="dim_b", values="marker"
    ).loc[order, order]
    annot = rho.map("{:.2f}".format) + stars.fillna("")

    fig, ax = plt.subplots(figsize=(7, 6))
    sns.heatmap(
        rho,
        annot=annot.to_numpy(),
        fmt="",
        cmap=colors["heatmap_cmap"],
        vmin=-1,
        vmax=1,
        center=0,
        square=True,
        linewidths=0.5,
        cbar_kws={"label": "Spearman ρ", "shrink": 0.8},
        ax=ax,
    )
    labels = [_label(d) for d in order]
    ax.set_xticklabels(labels, rotation=30, ha="right")
    ax.set_yticklabels(labels, rotation=0)
    ax.set_xlabel("")
    ax.set_ylabel("")
    ax.set_title(title)

    note = "   ".join(f"{m or 'n.s.'}: {label}" for m, label in legend())
    fig.text(0.01, 0.01, note, fontsize=7)
    fig.tight_layout(rect=(0, 0.03, 1, 1))
    return fig


def plot_radar(profile: pd.DataFrame, dimensions, rating_max: int = 5):
    """One polygon per group (profile rows) over the rating dimensions."""
    dimensions = list(dimensions)
    angles = np.linspace(0, 2 * np.pi, len(dimensions), endpoint=False).tolist()
    angles += angles[:1]

    fig, ax = plt.subplots(figsize=(7, 7), subplot_kw={"projection": "polar"})
    palette = sns.color_palette("tab10", n_colors=max(len(profile), 1))

    for color, (group, row) in zip(palette, profile.iterrows()):
        values = [float(row[d]) for d in dimensions]
        values += values[:1]
        label = f"{group} (n={int(row['n'])})" if "n" in row else str(group)
        ax.plot(angles, values, "o-", linewidth=2, color=color, label=label)
        ax.fill(angles, values, alpha=0.15, color=color)

    ax.set_xticks(angles[:-1])
    ax.set_xticklabels([_label(d) for d in dimensions])
    ax.set_ylim(0, rating_max)
    ax.set_yticks(range(1, rating_max + 1))
    ax.legend(loc="upper right", bbox_to_anchor=(1.3, 1.1), fontsize=8, frameon=False)
    fig.tight_layout()
    return fig


def plot_scatter(df: pd.DataFrame, x: str, y: str, hue: str | None = None, spearman: dict | None = None):
    """Scatter of two case-level scores, optionally annotated with Spearman rho."""
    fig, ax = plt.subplots(figsize=(7, 5))
    sns.scatterplot(data=df, x=x, y=y, hue=hue, s=60, edgecolor="black", linewidth=0.4, ax=ax)
    if spearman:
        ax.text(
            0.02,
            0.97,
            f"Spearman ρ = {spearman['rho']:.2f}, p = {spearman['p_value']:.3g} (n = {spearman['n']})",
            transform=ax.transAxes,
            va="top",
            fontsize=9,
        )
    ax.set_xlabel(_label(x))
    ax.set_ylabel(_label(y))
    sns.despine(ax=ax)
    fig.tight_layout()
    return fig
