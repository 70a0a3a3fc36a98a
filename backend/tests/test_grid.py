"""
Tests for the rectangular tract grid and its GeoDataFrame export.
"""

import pytest
from shapely.geometry import shape

from ecomap.schemas.eco import Prediction
from ecomap.schemas.geo import Bounds
from ecomap.services.tracts.grid import (
    SONOMA_BOUNDS,
    count_tracts,
    generate_tracts,
    to_geodataframe,
    tracts_in_bounds,
)


@pytest.fixture
def small_bounds():
    return Bounds(min_lat=38.0, max_lat=38.5, min_lon=-123.0, max_lon=-122.5)


class TestGenerateTracts:

    def test_medium_density_count(self, small_bounds):
        assert len(generate_tracts(small_bounds, "medium")) == 25

    def test_density_steps(self, small_bounds):
        # 0.5 / 0.05 = 10 per axis, 0.5 / 0.2 -> 3 (last cell runs past the edge)
        assert len(generate_tracts(small_bounds, "high")) == 100
        assert len(generate_tracts(small_bounds, "low")) == 9

    def test_sonoma_high_density(self):
        assert len(generate_tracts(SONOMA_BOUNDS, "high")) == 240

    def test_centroid_matches_geometry(self, small_bounds):
        first = generate_tracts(small_bounds, "medium")[0]

        assert first.id == "tract_38.00_-123.00"
        assert first.properties.lat == pytest.approx(38.05)
        assert first.properties.lon == pytest.approx(-122.95)

        polygon = shape(first.geometry)
        assert polygon.area == pytest.approx(0.01)
        assert polygon.centroid.y == pytest.approx(first.properties.lat)

    def test_ids_are_unique(self):
        tracts = generate_tracts(SONOMA_BOUNDS, "high")
        assert len({t.id for t in tracts}) == len(tracts)

    def test_count_without_building(self, small_bounds):
        assert count_tracts(small_bounds, "medium") == 25
        assert count_tracts(SONOMA_BOUNDS, "high") == 240
        world = Bounds(min_lat=-90, max_lat=90, min_lon=-180, max_lon=180)
        assert count_tracts(world, "high") == 3600 * 7200

    def test_limit_stops_generation(self, small_bounds):
        tracts = generate_tracts(small_bounds, "high", limit=15)

        assert len(tracts) == 15
        # row-major from the south-west corner: one full row of 10, then 5
        assert tracts[9].properties.lat == pytest.approx(38.025)
        assert tracts[10].properties.lat == pytest.approx(38.075)

    def test_limit_above_count_is_harmless(self, small_bounds):
        assert len(generate_tracts(small_bounds, "medium", limit=1000)) == 25

    def test_tracts_start_unscored(self, small_bounds):
        props = generate_tracts(small_bounds, "medium")[0].properties
        assert props.eco_score is None
        assert props.eco_percentile is None


class TestTractsInBounds:

    def test_filters_by_centroid(self, small_bounds):
        tracts = generate_tracts(small_bounds, "medium")
        view = Bounds(min_lat=38.0, max_lat=38.2, min_lon=-123.0, max_lon=-122.8)

        visible = tracts_in_bounds(tracts, view)

        # centroids at 38.05 / 38.15 and -122.95 / -122.85
        assert len(visible) == 4


class TestGeoDataFrame:

    def test_columns_and_crs(self, small_bounds):
        tracts = generate_tracts(small_bounds, "medium")
        tracts[0].properties.eco_score = 42.0
        tracts[0].properties.prediction = Prediction(
            current_score=42.0, predicted_score=20, years_ahead=15, annual_decline=-1.5,
            risk_level="critical", needs_action=True, trend="slight_decline",
            regional_factor=-0.5, urban_pressure=-0.3,
        )

        gdf = to_geodataframe(tracts)

        assert len(gdf) == 25
        assert gdf.crs.to_epsg() == 4326
        assert {"id", "ecoScore", "waterQuality", "ecoPercentile", "geometry"} <= set(gdf.columns)
        assert gdf.iloc[0]["riskLevel"] == "critical"
        assert gdf.iloc[0]["predictedScore"] == 20

    def test_empty(self):
        gdf = to_geodataframe([])
        assert gdf.empty
