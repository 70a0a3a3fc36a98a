"""
Shared fixtures: deterministic randomness and isolated orchestrators.
"""

import pytest

from ecomap.core.cache import ResultCache
from ecomap.core.config import Settings
from ecomap.schemas.geo import Tract, TractProperties
from ecomap.services.orchestrator import EcoScoreOrchestrator
from ecomap.services.satellite.sources import SimulatedSource

# Inland Kansas: not urban, not coastal, not in any regional box
INLAND = (38.5, -100.0)
# Sonoma County, CA: within 5 degrees of the -122 meridian, so coastal
SONOMA = (38.5, -122.9)
# Manhattan
NYC = (40.75, -73.99)


class FixedRandom:
    """random() always returns the same value, so jitter terms are predictable."""

    def __init__(self, value: float = 0.5):
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


def make_tract(lat: float, lon: float, eco_score=None, tract_id=None) -> Tract:
    d = 0.05
    ring = [[lon - d, lat - d], [lon + d, lat - d], [lon + d, lat + d], [lon - d, lat + d], [lon - d, lat - d]]
    return Tract(
        id=tract_id or f"tract_{lat:.2f}_{lon:.2f}",
        geometry={"type": "Polygon", "coordinates": [ring]},
        properties=TractProperties(lat=lat, lon=lon, eco_score=eco_score),
    )


@pytest.fixture
def fixed_rng():
    return FixedRandom(0.5)


@pytest.fixture
def test_settings():
    return Settings(RANDOM_SEED=42, BAND_SOURCE_URLS=[], BATCH_SIZE=4, MAX_TRACTS=500, CACHE_MAX_ENTRIES=0)


@pytest.fixture
def orchestrator(fixed_rng, test_settings):
    """Simulation-only orchestrator with mid-range bands and zero jitter."""
    return EcoScoreOrchestrator(
        source=SimulatedSource(fixed_rng),
        rng=fixed_rng,
        band_cache=ResultCache(name="test-bands"),
        config=test_settings,
    )
