"""Pytest configuration and shared fixtures."""
import geopandas as gpd
import pandas as pd
import pytest
from pathlib import Path
from shapely.geometry import box


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def column_map():
    """Raw survey header -> analysis column name, as in configs/params.yml."""
    return {
        "Case ID": "case_id",
        "Case study": "case_name",
        "Country": "country",
        "Region": "region",
        "Hazard type": "hazard_type",
        "Uncertainty": "uncertainty",
        "Interdependency": "interdependency",
        "Multi-levels": "multi_levels",
        "Volatility": "volatility",
        "Overlaps": "overlaps",
    }


@pytest.fixture
def raw_survey():
    """Raw survey rows with the usual problems: padding, a duplicate, a bad rating."""
    return pd.DataFrame(
        {
            "Case ID": ["C01", "C02", "C03", "C03", None, "C04"],
            "Case study": [" Flood response ", "Drought plan", "Cyclone", "Cyclone (dup)", "No id", "Quake"],
            "Country": ["Italy", "Kenya", "Philippines", "Philippines", "Chile", "Chile"],
            "Region": ["Emilia-Romagna", "Turkana", "", "", "Biobío", "Biobío"],
            "Hazard type": ["flood", "drought", "storm", "storm", "earthquake", "earthquake"],
            "Uncertainty": [4, 5, 2, 2, 3, 1],
            "Interdependency": [3, 4, 2, 2, 3, 7],
            "Multi-levels": [5, 4, 1, 1, 3, 2],
            "Volatility": [2, 5, 3, 3, 3, 1],
            "Overlaps": [4, 4, 1, 1, 3, 2],
            "Ignored column": ["x"] * 6,
        }
    )


@pytest.fixture
def rated_cases():
    """Twelve cleaned cases across three hazard types."""
    return pd.DataFrame(
        {
            "case_id": [f"C{i:02d}" for i in range(1, 13)],
            "hazard_type": ["flood"] * 4 + ["drought"] * 4 + ["storm"] * 4,
            "uncertainty": pd.array([5, 4, 5, 4, 2, 1, 2, 3, 3, 4, 2, 5], dtype="Int64"),
            "interdependency": pd.array([4, 5, 4, 5, 1, 2, 2, 1, 3, 3, 4, 2], dtype="Int64"),
            "multi_levels": pd.array([3, 4, 5, 5, 2, 2, 1, 3, 4, 1, 3, 4], dtype="Int64"),
            "volatility": pd.array([5, 5, 4, 3, 1, 1, 2, 2, 3, 4, 5, 3], dtype="Int64"),
            "overlaps": pd.array([2, 4, 4, 5, 1, 3, 1, 2, 5, 2, 3, 2], dtype="Int64"),
        }
    )


@pytest.fixture
def admin_layers():
    """Synthetic admin-0 and admin-1 boundaries in EPSG:4326."""
    admin0 = gpd.GeoDataFrame(
        {"ADMIN": ["Atlantis", "Lemuria"]},
        geometry=[box(0, 0, 4, 4), box(10, -2, 12, 2)],
        crs="EPSG:4326",
    )
    admin1 = gpd.GeoDataFrame(
        {"admin": ["Atlantis", "Atlantis"], "name": ["North Côte", "South"]},
        geometry=[box(0, 2, 4, 4), box(0, 0, 4, 2)],
        crs="EPSG:4326",
    )
    return admin0, admin1
