# backend/ecomap/services/scoring/strategies.py
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ecomap.core import regions
from ecomap.core.random_source import RandomSource, make_rng
from ecomap.schemas.eco import BandSample, SpectralIndices
from ecomap.services.scoring.converter import clamp_score, ndvi_to_greenspace, ndwi_to_water_quality
from ecomap.services.scoring.indices import DEFAULT_SOIL_FACTOR, compute_indices

logger = logging.getLogger(__name__)


@dataclass
class DomainEstimate:
    water_quality: float
    greenspace: float
    source: str
    provider: Optional[str] = None
    indices: Optional[SpectralIndices] = None
    date: Optional[str] = None


class ScoringStrategy(ABC):
    name: str = "strategy"

    @abstractmethod
    async def estimate(self, lat: float, lon: float, date: Optional[str] = None) -> DomainEstimate:
        ...


class SpectralStrategy(ScoringStrategy):
    """Bands -> NDVI/NDWI -> greenspace % / water quality index."""

    name = "spectral"

    def __init__(self, fetch_bands, soil_factor: float = DEFAULT_SOIL_FACTOR):
        # fetch_bands: async (lat, lon, date) -> BandSample (usually the orchestrator's cached fetch)
        self.fetch_bands = fetch_bands
        self.soil_factor = soil_factor

    async def estimate(self, lat: float, lon: float, date: Optional[str] = None) -> DomainEstimate:
        bands: BandSample = await self.fetch_bands(lat, lon, date)
        indices = compute_indices(bands, self.soil_factor)
        return DomainEstimate(
            water_quality=ndwi_to_water_quality(indices.ndwi),
            greenspace=ndvi_to_greenspace(indices.ndvi),
            source=bands.source,
            provider=bands.provider,
            indices=indices,
            date=bands.date,
        )


class DirectEstimateStrategy(ScoringStrategy):
    """
    Location-only estimate, no bands involved.
    Base constants + region adjustments + uniform jitter.
    """

    name = "direct"

    WATER_BASE = 60.0
    WATER_JITTER = 20.0       # (U - 0.5) * 20 -> ±10
    GREENSPACE_BASE = 40.0
    GREENSPACE_JITTER = 15.0  # (U - 0.5) * 15 -> ±7.5

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng if rng is not None else make_rng()

    def estimate_water_quality(self, lat: float, lon: float) -> float:
        quality = self.WATER_BASE

        if regions.is_urban(lat, lon):
            quality -= 15
        if regions.is_coastal(lat, lon):
            quality += 10
        if regions.PACIFIC_NORTHWEST_WATERSHED.contains(lat, lon):
            quality += 5

        quality += (self.rng.random() - 0.5) * self.WATER_JITTER
        return clamp_score(quality)

    def estimate_greenspace(self, lat: float, lon: float) -> float:
        coverage = self.GREENSPACE_BASE

        if regions.is_urban(lat, lon):
            coverage -= 20

        if regions.PACIFIC_NORTHWEST.contains(lat, lon):
            coverage += 30
        elif regions.SOUTHEAST.contains(lat, lon):
            coverage += 10
        elif regions.DESERT_SOUTHWEST.contains(lat, lon):
            coverage -= 15

        coverage += (self.rng.random() - 0.5) * self.GREENSPACE_JITTER
        return clamp_score(coverage)

    async def estimate(self, lat: float, lon: float, date: Optional[str] = None) -> DomainEstimate:
        return DomainEstimate(
            water_quality=self.estimate_water_quality(lat, lon),
            greenspace=self.estimate_greenspace(lat, lon),
            source="simulated",
            provider="direct-estimate",
            date=date,
        )
