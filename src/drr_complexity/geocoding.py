"""
Geocode case studies to administrative-boundary centroids.

Cases carry a country and (usually) a first-level region name. A case is
placed at its region's centroid when the region matches an admin-1
polygon, otherwise at its country's centroid.
"""
import logging
import re
import unicodedata
from typing import Sequence

import geopandas as gpd
import pandas as pd
from shapely.geometry import Point

logger = logging.getLogger(__name__)

# Equal-area projection for centroid computation
EQUAL_AREA_CRS = "EPSG:6933"
GEOGRAPHIC_CRS = "EPSG:4326"

LEVEL_ADMIN1 = "admin1"
LEVEL_ADMIN0 = "admin0"


def normalise_name(name) -> str | None:
    """Lower-case, accent-free, single-spaced name for joining; None for missing."""
    if name is None or (isinstance(name, float) and pd.isna(name)) or name is pd.NA:
        return None
    text = unicodedata.normalize("NFKD", str(name))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^\w\s]", " ", text.casefold())
    text = re.sub(r"\s+", " ", text).strip()
    return text or None


def boundary_centroids(gdf: gpd.GeoDataFrame, name_cols: Sequence[str]) -> pd.DataFrame:
    """
    Centroid lon/lat per boundary polygon, keyed by normalised name columns.

    Polygons sharing a key (multi-part units split across rows) are dissolved
    first.
    """
    if gdf.crs is None:
        gdf = gdf.set_crs(GEOGRAPHIC_CRS)

    keyed = gdf[list(name_cols) + ["geometry"]].copy()
    key_cols = [f"{c}_key" for c in name_cols]
    for col, key in zip(name_cols, key_cols):
        keyed[key] = keyed[col].map(normalise_name)
    keyed = keyed.dropna(subset=key_cols).dissolve(by=key_cols, as_index=False)

    centroids = keyed.to_crs(EQUAL_AREA_CRS).geometry.centroid.to_crs(GEOGRAPHIC_CRS)
    out = pd.DataFrame(keyed[key_cols])
    out["lon"] = centroids.x.to_numpy()
    out["lat"] = centroids.y.to_numpy()
    return out.reset_index(drop=True)


def geocode_cases(
    cases: pd.DataFrame,
    admin1: pd.DataFrame,
    admin0: pd.DataFrame,
    country_col: str = "country",
    region_col: str = "region",
) -> pd.DataFrame:
    """
    Add lon, lat and geocode_level to each case.

    ``admin1`` has columns (<country>_key, <region>_key, lon, lat) and
    ``admin0`` (<country>_key, lon, lat), as returned by boundary_centroids.
    """
    df = cases.copy()
    country_key = df[country_col].map(normalise_name)
    region_key = df[region_col].map(normalise_name) if region_col in df.columns else pd.Series(None, index=df.index)

    a1 = admin1.copy()
    a1.columns = ["country_key", "region_key", "lon", "lat"]
    a0 = admin0.copy()
    a0.columns = ["country_key", "lon", "lat"]

    # Centroid tables are unique per key, so left merges keep row count and order
    lookup = pd.DataFrame({"country_key": country_key.to_numpy(), "region_key": region_key.to_numpy()})
    by_region = lookup.merge(a1, on=["country_key", "region_key"], how="left")
    by_country = lookup.merge(a0, on="country_key", how="left")

    has_region = by_region["lon"].notna().to_numpy()
    has_country = by_country["lon"].notna().to_numpy()

    df["lon"] = by_region["lon"].where(has_region, by_country["lon"]).to_numpy()
    df["lat"] = by_region["lat"].where(has_region, by_country["lat"]).to_numpy()
    level = pd.Series(pd.NA, index=df.index, dtype="string")
    level[has_country & ~has_region] = LEVEL_ADMIN0
    level[has_region] = LEVEL_ADMIN1
    df["geocode_level"] = level

    unmatched = df["geocode_level"].isna()
    if unmatched.any():
        logger.warning(
            f"{int(unmatched.sum())} cases could not be geocoded: "
            f"{sorted(df.loc[unmatched, country_col].astype(str).unique())}"
        )
    return df


def to_geodataframe(df: pd.DataFrame) -> gpd.GeoDataFrame:
    """Point GeoDataFrame (EPSG:4326) of the geocoded cases."""
    located = df[df["lon"].notna() & df["lat"].notna()].copy()
    geometry = [Point(lon, lat) for lon, lat in zip(located["lon"], located["lat"])]
    return gpd.GeoDataFrame(located, geometry=geometry, crs=GEOGRAPHIC_CRS)
