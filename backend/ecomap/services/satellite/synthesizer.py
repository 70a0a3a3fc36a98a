# backend/ecomap/services/satellite/synthesizer.py
import logging
from typing import Optional

from ecomap.core import regions
from ecomap.core.random_source import RandomSource, make_rng
from ecomap.schemas.eco import BandSample, REFLECTANCE_SCALE

logger = logging.getLogger(__name__)


class BandSynthesizer:
    """
    Stand-in for a Sentinel-2 pixel fetch.
    Typical surface reflectance (0-1) per band, nudged by land-cover predicates.
    """

    # (base, spread) -> base + U * spread, drawn in this order
    BASE_REFLECTANCE = (
        ("red", 0.15, 0.10),
        ("green", 0.18, 0.10),
        ("blue", 0.12, 0.10),
        ("nir", 0.25, 0.15),
        ("swir", 0.20, 0.10),
    )

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng if rng is not None else make_rng()

    def synthesize(self, lat: float, lon: float, date: Optional[str] = None) -> BandSample:
        bands = {name: base + self.rng.random() * spread for name, base, spread in self.BASE_REFLECTANCE}

        # Urban: less vegetation, more built-up surface
        if regions.is_urban(lat, lon):
            bands["nir"] *= 0.7
            bands["red"] *= 1.2

        # Vegetated: stronger NIR plateau
        if regions.is_vegetated(lat, lon):
            bands["nir"] *= 1.3
            bands["green"] *= 1.2

        # Coastal/water: greener, NIR absorbed by water
        if regions.is_coastal(lat, lon):
            bands["green"] *= 1.1
            bands["nir"] *= 0.8

        return BandSample(
            **{name: float(value * REFLECTANCE_SCALE) for name, value in bands.items()},
            date=date,
            source="simulated",
            provider="synthesizer",
        )
