"""Tests for centroid geocoding."""
import pandas as pd
import pytest

from drr_complexity.geocoding import (
    LEVEL_ADMIN0,
    LEVEL_ADMIN1,
    boundary_centroids,
    geocode_cases,
    normalise_name,
    to_geodataframe,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  Biobío ", "biobio"),
        ("Emilia-Romagna", "emilia romagna"),
        ("NORTH   Côte", "north cote"),
        (None, None),
        (float("nan"), None),
        ("", None),
    ],
)
def test_normalise_name(raw, expected):
    assert normalise_name(raw) == expected


def test_boundary_centroids(admin_layers):
    admin0, admin1 = admin_layers
    centroids = boundary_centroids(admin1, ["admin", "name"])

    north = centroids[centroids["name_key"] == "north cote"].iloc[0]
    assert north["admin_key"] == "atlantis"
    assert north["lon"] == pytest.approx(2.0, abs=1e-6)
    assert north["lat"] == pytest.approx(3.0, abs=0.05)

    countries = boundary_centroids(admin0, ["ADMIN"])
    assert list(countries.columns) == ["ADMIN_key", "lon", "lat"]
    assert len(countries) == 2


def test_geocode_prefers_region_then_country(admin_layers):
    admin0, admin1 = admin_layers
    cases = pd.DataFrame(
        {
            "case_id": ["C1", "C2", "C3", "C4"],
            "country": ["Atlantis", "atlantis", "Lemuria", "Mu"],
            "region": ["North Côte", "Nowhere", None, "Somewhere"],
        },
        index=[10, 11, 12, 13],
    )

    out = geocode_cases(
        cases,
        boundary_centroids(admin1, ["admin", "name"]),
        boundary_centroids(admin0, ["ADMIN"]),
    )

    assert out.index.tolist() == [10, 11, 12, 13]
    assert out.loc[10, "geocode_level"] == LEVEL_ADMIN1
    assert out.loc[10, "lat"] == pytest.approx(3.0, abs=0.05)
    assert out.loc[11, "geocode_level"] == LEVEL_ADMIN0
    assert out.loc[11, "lon"] == pytest.approx(2.0, abs=1e-6)
    assert out.loc[12, "geocode_level"] == LEVEL_ADMIN0
    assert out.loc[12, "lon"] == pytest.approx(11.0, abs=1e-6)
    assert pd.isna(out.loc[13, "geocode_level"])
    assert pd.isna(out.loc[13, "lon"])


def test_to_geodataframe_keeps_located_cases():
    df = pd.DataFrame({"case_id": ["A", "B"], "lon": [2.0, None], "lat": [3.0, None]})
    gdf = to_geodataframe(df)

    assert len(gdf) == 1
    assert gdf.crs.to_epsg() == 4326
    assert gdf.geometry.iloc[0].x == 2.0
