"""
Tests for index -> score conversion, categories/colours and the two estimation strategies.
"""

import numpy as np
import pytest

from ecomap.schemas.eco import BandSample
from ecomap.services.scoring import converter
from ecomap.services.scoring.strategies import DirectEstimateStrategy, SpectralStrategy

from conftest import FixedRandom, INLAND, NYC, SONOMA


class TestNdviToGreenspace:
    """Piecewise NDVI -> coverage %."""

    @pytest.mark.parametrize("ndvi,expected", [
        (-0.5, 0.0),
        (0.0, 0.0),
        (0.2, 10.0),
        (0.3, 15.0),
        (0.5, 35.0),
        (0.6, 45.0),
        (0.8, 72.5),
        (1.0, 100.0),
    ])
    def test_breakpoints(self, ndvi, expected):
        assert converter.ndvi_to_greenspace(ndvi) == pytest.approx(expected)

    def test_range_holds_over_domain(self):
        for ndvi in np.linspace(-1, 1, 401):
            assert 0 <= converter.ndvi_to_greenspace(float(ndvi)) <= 100


class TestNdwiToWaterQuality:
    """NDWI -> water quality index with clarity bonus / dryness penalty."""

    @pytest.mark.parametrize("ndwi,expected", [
        (-1.0, 0.0),
        (-0.2, 20.0),
        (0.0, 30.0),
        (0.2, 60.0),
        (0.5, 75.0),
        (0.6, 100.0),
        (1.0, 100.0),
    ])
    def test_rules(self, ndwi, expected):
        assert converter.ndwi_to_water_quality(ndwi) == pytest.approx(expected)

    def test_range_holds_over_domain(self):
        for ndwi in np.linspace(-1, 1, 401):
            assert 0 <= converter.ndwi_to_water_quality(float(ndwi)) <= 100


class TestCategoriesAndColors:
    """Five buckets at 80/60/40/20, used by the map legend."""

    @pytest.mark.parametrize("value,category", [
        (100, "Excellent"), (80, "Excellent"), (79.9, "Good"), (60, "Good"),
        (40, "Moderate"), (20, "Poor"), (19.99, "Very Poor"), (0, "Very Poor"),
    ])
    def test_categorize(self, value, category):
        assert converter.categorize(value) == category

    def test_water_colors(self):
        assert converter.water_color(95) == "#003366"
        assert converter.water_color(5) == "#cc6666"

    def test_greenspace_colors(self):
        assert converter.greenspace_color(85) == "#004d00"
        assert converter.greenspace_color(50) == "#339933"
        assert converter.greenspace_color(0) == "#99ff99"

    def test_percentile_colors(self):
        assert converter.percentile_color(100) == "#00cc00"
        assert converter.percentile_color(10) == "#cc0000"

    def test_domain_score_is_clamped(self):
        score = converter.water_score(130)
        assert score.value == 100
        assert score.category == "Excellent"
        assert score.color == "#003366"


class TestDirectEstimateStrategy:
    """Location-only estimate (base constants + regions + jitter)."""

    def test_inland_point_uses_base_values(self):
        strategy = DirectEstimateStrategy(FixedRandom(0.5))
        assert strategy.estimate_water_quality(*INLAND) == pytest.approx(60)
        assert strategy.estimate_greenspace(*INLAND) == pytest.approx(40)

    def test_coastal_bonus(self):
        strategy = DirectEstimateStrategy(FixedRandom(0.5))
        assert strategy.estimate_water_quality(*SONOMA) == pytest.approx(70)

    def test_urban_penalties(self):
        strategy = DirectEstimateStrategy(FixedRandom(0.5))
        assert strategy.estimate_water_quality(*NYC) == pytest.approx(45)
        assert strategy.estimate_greenspace(*NYC) == pytest.approx(20)

    def test_pacific_northwest(self):
        strategy = DirectEstimateStrategy(FixedRandom(0.5))
        # Portland-ish inland point: PNW +5 water, +30 greenspace, and |lon + 122| < 5 adds +10
        assert strategy.estimate_water_quality(45.5, -120.0) == pytest.approx(75)
        assert strategy.estimate_greenspace(45.5, -120.0) == pytest.approx(70)

    def test_desert_southwest(self):
        strategy = DirectEstimateStrategy(FixedRandom(0.5))
        assert strategy.estimate_greenspace(36.0, -115.0) == pytest.approx(25)

    @pytest.mark.parametrize("u", [0.0, 0.999999])
    def test_jitter_bounds(self, u):
        strategy = DirectEstimateStrategy(FixedRandom(u))
        assert abs(strategy.estimate_water_quality(*INLAND) - 60) <= 10
        assert abs(strategy.estimate_greenspace(*INLAND) - 40) <= 7.5

    @pytest.mark.asyncio
    async def test_estimate_is_tagged_simulated(self):
        estimate = await DirectEstimateStrategy(FixedRandom(0.5)).estimate(*INLAND, date="2024-06-01")
        assert estimate.source == "simulated"
        assert estimate.provider == "direct-estimate"
        assert estimate.indices is None
        assert estimate.date == "2024-06-01"


class TestSpectralStrategy:
    """Bands -> indices -> scores."""

    @pytest.mark.asyncio
    async def test_scores_from_bands(self):
        async def fetch(lat, lon, date=None):
            # NDVI = 0.2, NDWI = (0.2 - 0.225) / 0.425
            return BandSample(blue=1000, green=2000, red=1500, nir=2250, swir=1000, source="real", provider="stub")

        estimate = await SpectralStrategy(fetch).estimate(*INLAND)

        assert estimate.indices.ndvi == pytest.approx(0.2)
        assert estimate.greenspace == pytest.approx(10.0)
        ndwi = (0.2 - 0.225) / 0.425
        assert estimate.water_quality == pytest.approx((ndwi + 1) * 50 - 20)
        assert estimate.source == "real"
        assert estimate.provider == "stub"
