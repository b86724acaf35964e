"""Tests for descriptive statistics and group comparisons."""
import pandas as pd
import pytest
from scipy import stats

from drr_complexity.descriptives import describe_dimensions, group_profile
from drr_complexity.hypothesis import kruskal_by_group, pairwise_wilcoxon, spearman_summary


def test_describe_dimensions(rated_cases):
    summary = describe_dimensions(rated_cases).set_index("dimension")

    u = summary.loc["uncertainty"]
    assert u["n"] == 12
    assert u["mean"] == pytest.approx(40 / 12)
    assert u["median"] == 3.5
    assert u["min"] == 1 and u["max"] == 5
    assert u["share_high"] == pytest.approx(6 / 12)
    assert u["share_low"] == pytest.approx(4 / 12)


def test_describe_ignores_missing(rated_cases):
    df = rated_cases.copy()
    df.loc[0, "uncertainty"] = pd.NA
    summary = describe_dimensions(df, ["uncertainty"]).iloc[0]

    assert summary["n"] == 11
    assert summary["share_high"] == pytest.approx(5 / 11)


def test_group_profile(rated_cases):
    profile = group_profile(rated_cases, "hazard_type")

    assert profile.index.tolist() == ["drought", "flood", "storm"]
    assert profile.loc["flood", "uncertainty"] == pytest.approx(4.5)
    assert profile.loc["drought", "n"] == 4


def test_kruskal_by_group(rated_cases):
    kw = kruskal_by_group(rated_cases, "hazard_type").set_index("dimension")

    groups = [g["uncertainty"].astype(float) for _, g in rated_cases.groupby("hazard_type")]
    h, p = stats.kruskal(*groups)

    assert kw.loc["uncertainty", "n_groups"] == 3
    assert kw.loc["uncertainty", "n"] == 12
    assert kw.loc["uncertainty", "h_statistic"] == pytest.approx(h)
    assert kw.loc["uncertainty", "p_value"] == pytest.approx(p)
    assert kw.loc["uncertainty", "significance_bucket"] is not None


def test_kruskal_skips_small_groups(rated_cases):
    kw = kruskal_by_group(rated_cases, "hazard_type", min_group_size=5)

    assert (kw["n_groups"] == 0).all()
    assert kw["p_value"].isna().all()


def test_pairwise_wilcoxon_bonferroni(rated_cases):
    result = pairwise_wilcoxon(rated_cases, "volatility", "hazard_type")

    assert list(zip(result["group_a"], result["group_b"])) == [
        ("drought", "flood"),
        ("drought", "storm"),
        ("flood", "storm"),
    ]
    expected = (result["p_value"] * 3).clip(upper=1.0)
    assert result["p_adjusted"].tolist() == pytest.approx(expected.tolist())
    assert (result["significant"] == (result["p_adjusted"] <= 0.05)).all()

    drought = rated_cases.loc[rated_cases["hazard_type"] == "drought", "volatility"].astype(float)
    flood = rated_cases.loc[rated_cases["hazard_type"] == "flood", "volatility"].astype(float)
    u, p = stats.mannwhitneyu(drought, flood, alternative="two-sided")
    assert result.loc[0, "u_statistic"] == pytest.approx(u)
    assert result.loc[0, "p_value"] == pytest.approx(p)


def test_pairwise_wilcoxon_empty_when_one_group(rated_cases):
    result = pairwise_wilcoxon(rated_cases[rated_cases["hazard_type"] == "flood"], "volatility", "hazard_type")

    assert result.empty
    assert "p_adjusted" in result.columns


def test_spearman_summary(rated_cases):
    result = spearman_summary(rated_cases, "uncertainty", "volatility")
    rho, p = stats.spearmanr(rated_cases["uncertainty"].astype(float), rated_cases["volatility"].astype(float))

    assert result["n"] == 12
    assert result["rho"] == pytest.approx(rho)
    assert result["p_value"] == pytest.approx(p)
