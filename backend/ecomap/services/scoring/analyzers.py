# backend/ecomap/services/scoring/analyzers.py
import logging
import math
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Deque, Dict, Optional, Tuple

from ecomap.core import regions
from ecomap.core.cache import ResultCache, location_key
from ecomap.core.random_source import RandomSource, make_rng
from ecomap.schemas.eco import GreenspaceReport, PollutantBreakdown, WaterQualityReport
from ecomap.services.scoring.converter import (
    categorize,
    clamp_score,
    greenspace_color,
    ndvi_to_greenspace,
    round_half_up,
    water_color,
)

logger = logging.getLogger(__name__)

# Samples kept per location; trends only look at the last TREND_WINDOW
HISTORY_LENGTH = 24
TREND_WINDOW = 6

# Weight of each pollutant class in the impairment (100 - index)
POLLUTANT_WEIGHTS = {"nutrients": 0.3, "sediments": 0.4, "organic": 0.2, "chemicals": 0.1}


def _resolve_date(date: Optional[str]) -> Tuple[datetime, str]:
    if date:
        return datetime.fromisoformat(date.replace("Z", "+00:00")), date
    now = datetime.now(timezone.utc)
    return now, now.isoformat()


def _month_angle(moment: datetime) -> float:
    # January = 0
    return (moment.month - 1) / 12 * 2 * math.pi


def history_trend(values, threshold: float, up: str, down: str) -> str:
    """Last minus first over the recent window, against a +/- threshold."""
    recent = list(values)[-TREND_WINDOW:]
    if len(recent) < 2:
        return "stable"
    change = recent[-1] - recent[0]
    if change > threshold:
        return up
    if change < -threshold:
        return down
    return "stable"


class _LocationAnalyzer:
    """Shared plumbing: injected RNG, result cache and per-location sample history."""

    cache_name = "analysis"

    def __init__(self, rng: Optional[RandomSource] = None, cache: Optional[ResultCache] = None):
        self.rng = rng if rng is not None else make_rng()
        self.cache = cache if cache is not None else ResultCache(name=self.cache_name)
        self._history: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=HISTORY_LENGTH))

    def history(self, lat: float, lon: float) -> list:
        return list(self._history.get(location_key(lat, lon), ()))

    def _record(self, lat: float, lon: float, value: float) -> None:
        self._history[location_key(lat, lon)].append(value)


class WaterQualityAnalyzer(_LocationAnalyzer):
    """
    Water quality index for the location popup, with turbidity, a pollutant
    breakdown and a trend from earlier samples at the same place.
    """

    cache_name = "water-analysis"

    BASE_QUALITY = 70.0
    URBAN_PENALTY = 15.0
    COASTAL_BONUS = 5.0
    SEASONAL_AMPLITUDE = 5.0
    JITTER = 10.0  # (U - 0.5) * 10 -> +/-5
    TREND_THRESHOLD = 5

    def quality_index(self, lat: float, lon: float, moment: datetime) -> float:
        quality = self.BASE_QUALITY

        if regions.is_urban(lat, lon):
            quality -= self.URBAN_PENALTY
        if regions.is_coastal(lat, lon):
            quality += self.COASTAL_BONUS

        quality += math.sin(_month_angle(moment)) * self.SEASONAL_AMPLITUDE
        quality += (self.rng.random() - 0.5) * self.JITTER
        return clamp_score(quality)

    @staticmethod
    def pollutants(quality: float) -> PollutantBreakdown:
        impairment = 100 - quality
        return PollutantBreakdown(**{
            name: round_half_up(impairment * weight) for name, weight in POLLUTANT_WEIGHTS.items()
        })

    async def analyze(self, lat: float, lon: float, date: Optional[str] = None) -> WaterQualityReport:
        key = location_key(lat, lon, date)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        moment, stamp = _resolve_date(date)
        quality = self.quality_index(lat, lon, moment)
        index = round_half_up(quality)

        report = WaterQualityReport(
            lat=lat,
            lon=lon,
            index=index,
            category=categorize(quality),
            color=water_color(quality),
            turbidity=round_half_up(100 - quality),
            pollutants=self.pollutants(quality),
            trend=history_trend(self.history(lat, lon), self.TREND_THRESHOLD, "improving", "declining"),
            last_updated=stamp,
        )
        logger.debug(f"💧 Water quality {index} at {lat:.4f}, {lon:.4f} ({stamp})")
        self._record(lat, lon, index)
        self.cache.set(key, report)
        return report


class GreenspaceAnalyzer(_LocationAnalyzer):
    """
    Greenspace detail for the location popup: seasonal NDVI, coverage,
    estimated park count and tree cover.
    """

    cache_name = "greenspace-analysis"

    BASE_NDVI = 0.3
    URBAN_PENALTY = 0.2
    PARK_BONUS = 0.15
    # U above this means a park nearby (about 60% of locations)
    PARK_THRESHOLD = 0.4
    SEASONAL_AMPLITUDE = 0.2
    TREND_THRESHOLD = 3

    def seasonal_ndvi(self, lat: float, lon: float, moment: datetime) -> float:
        ndvi = self.BASE_NDVI

        if regions.is_urban(lat, lon):
            ndvi -= self.URBAN_PENALTY
        if self.rng.random() > self.PARK_THRESHOLD:
            ndvi += self.PARK_BONUS

        # Peaks in July, bottoms out in January
        ndvi += math.sin(_month_angle(moment) - math.pi / 2) * self.SEASONAL_AMPLITUDE
        ndvi += regions.regional_ndvi_offset(lat, lon)
        return max(-1.0, min(1.0, ndvi))

    def estimate_parks(self, lat: float, lon: float) -> int:
        if regions.is_urban(lat, lon):
            return int(self.rng.random() * 5) + 2  # 2-6
        return int(self.rng.random() * 3) + 1  # 1-3

    def estimate_trees(self, coverage: float) -> int:
        # Trees make up 60-80% of the green cover
        return round_half_up(coverage * (0.6 + self.rng.random() * 0.2))

    async def analyze(self, lat: float, lon: float, date: Optional[str] = None) -> GreenspaceReport:
        key = location_key(lat, lon, date)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        moment, stamp = _resolve_date(date)
        ndvi = self.seasonal_ndvi(lat, lon, moment)
        coverage = ndvi_to_greenspace(ndvi)
        rounded = round_half_up(coverage)

        report = GreenspaceReport(
            lat=lat,
            lon=lon,
            ndvi=round(ndvi, 2),
            coverage=rounded,
            category=categorize(coverage),
            color=greenspace_color(coverage),
            parks=self.estimate_parks(lat, lon),
            trees=self.estimate_trees(coverage),
            trend=history_trend(self.history(lat, lon), self.TREND_THRESHOLD, "increasing", "decreasing"),
            last_updated=stamp,
        )
        logger.debug(f"🌳 Greenspace {rounded}% at {lat:.4f}, {lon:.4f} ({stamp})")
        self._record(lat, lon, rounded)
        self.cache.set(key, report)
        return report
