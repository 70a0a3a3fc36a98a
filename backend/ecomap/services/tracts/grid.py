# backend/ecomap/services/tracts/grid.py
import logging
import math
from typing import Dict, List, Literal, Optional

import geopandas as gpd
from shapely.geometry import box, mapping, shape

from ecomap.schemas.geo import Bounds, Tract, TractProperties

logger = logging.getLogger(__name__)

Density = Literal["high", "medium", "low"]

# Cell size in degrees
DENSITY_STEPS: Dict[str, float] = {"high": 0.05, "medium": 0.1, "low": 0.2}

# Sonoma County, CA - test region
SONOMA_BOUNDS = Bounds(min_lat=38.2, max_lat=38.8, min_lon=-123.5, max_lon=-122.5)


def _step_count(start: float, stop: float, step: float) -> int:
    return max(0, math.ceil((stop - start) / step - 1e-9))


def _steps(start: float, stop: float, step: float) -> List[float]:
    # Index-based to avoid accumulating float error across the row
    return [start + i * step for i in range(_step_count(start, stop, step))]


def count_tracts(bounds: Bounds, density: Density = "medium") -> int:
    """Number of cells the grid would hold, without building any of them."""
    step = DENSITY_STEPS[density]
    rows = _step_count(bounds.min_lat, bounds.max_lat, step)
    cols = _step_count(bounds.min_lon, bounds.max_lon, step)
    return rows * cols


def generate_tracts(bounds: Bounds, density: Density = "medium", limit: Optional[int] = None) -> List[Tract]:
    """
    Grid of rectangular cells standing in for census tracts, row by row from
    the south-west corner. Each cell carries its centroid in properties;
    scores are filled in later. With `limit`, generation stops after that many cells.
    """
    step = DENSITY_STEPS[density]
    tracts = []

    for lat in _steps(bounds.min_lat, bounds.max_lat, step):
        for lon in _steps(bounds.min_lon, bounds.max_lon, step):
            if limit is not None and len(tracts) >= limit:
                break
            cell = box(lon, lat, lon + step, lat + step)
            centroid = cell.centroid
            tracts.append(Tract(
                id=f"tract_{lat:.2f}_{lon:.2f}",
                geometry=mapping(cell),
                properties=TractProperties(lat=centroid.y, lon=centroid.x),
            ))
        if limit is not None and len(tracts) >= limit:
            break

    logger.info(f"🧩 Generated {len(tracts)} tracts ({density}) for {bounds.min_lat},{bounds.min_lon} -> {bounds.max_lat},{bounds.max_lon}")
    return tracts


def tracts_in_bounds(tracts: List[Tract], bounds: Bounds) -> List[Tract]:
    """Viewport filter by centroid (edges inclusive)."""
    return [
        t for t in tracts
        if bounds.min_lat <= t.properties.lat <= bounds.max_lat
        and bounds.min_lon <= t.properties.lon <= bounds.max_lon
    ]


def to_geodataframe(tracts: List[Tract]) -> gpd.GeoDataFrame:
    """Flat attribute table (camelCase columns) + geometry, EPSG:4326."""
    rows = []
    for t in tracts:
        row = t.properties.model_dump(by_alias=True, exclude={"prediction"})
        row["id"] = t.id
        prediction = t.properties.prediction
        if prediction is not None:
            row["riskLevel"] = prediction.risk_level
            row["predictedScore"] = prediction.predicted_score
        row["geometry"] = shape(t.geometry)
        rows.append(row)

    if not rows:
        return gpd.GeoDataFrame(geometry=[], crs="EPSG:4326")
    return gpd.GeoDataFrame(rows, geometry="geometry", crs="EPSG:4326")
