# backend/ecomap/services/orchestrator.py
import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd

from ecomap.core.cache import ResultCache, location_key
from ecomap.core.config import Settings, settings as default_settings
from ecomap.core.errors import validate_coordinates
from ecomap.core.random_source import RandomSource, make_rng
from ecomap.schemas.eco import (
    BandSample,
    GreenspaceReport,
    LocationScore,
    Prediction,
    TimeSeriesPoint,
    WaterQualityReport,
)
from ecomap.schemas.geo import BatchSummary, Bounds, Location, Tract
from ecomap.services.forecast.predictor import TrendPredictor
from ecomap.services.satellite.sources import DataSource, build_band_source
from ecomap.services.scoring import aggregator
from ecomap.services.scoring.analyzers import GreenspaceAnalyzer, WaterQualityAnalyzer
from ecomap.services.scoring.converter import categorize, greenspace_color, water_color
from ecomap.services.scoring.strategies import DirectEstimateStrategy, ScoringStrategy, SpectralStrategy
from ecomap.services.tracts.grid import SONOMA_BOUNDS, Density, count_tracts, generate_tracts, tracts_in_bounds

logger = logging.getLogger(__name__)

# Two comparison points closer than this (degrees, both axes) are the same place
COMPARISON_TOLERANCE = 0.01

ProgressCallback = Callable[[float], None]


class EcoScoreOrchestrator:
    """
    Entry point used by the map: bands -> scores -> percentiles -> projections.
    Everything is awaitable so a real backend can replace the simulation
    without touching callers.
    """

    def __init__(
        self,
        source: Optional[DataSource] = None,
        rng: Optional[RandomSource] = None,
        band_cache: Optional[ResultCache] = None,
        predictor: Optional[TrendPredictor] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.rng = rng if rng is not None else make_rng(self.config.RANDOM_SEED)

        self.source = source or build_band_source(
            self.config.BAND_SOURCE_URLS, rng=self.rng, timeout=self.config.HTTP_TIMEOUT
        )
        self.band_cache = band_cache if band_cache is not None else ResultCache.from_max_entries(
            self.config.CACHE_MAX_ENTRIES, name="bands"
        )
        self.predictor = predictor or TrendPredictor(
            ResultCache.from_max_entries(self.config.CACHE_MAX_ENTRIES, name="predictions")
        )

        self.strategies: Dict[str, ScoringStrategy] = {
            "spectral": SpectralStrategy(self.fetch_bands, soil_factor=self.config.SAVI_SOIL_FACTOR),
            "direct": DirectEstimateStrategy(self.rng),
        }
        self.default_strategy = self.config.SCORING_STRATEGY

        self.water_analyzer = WaterQualityAnalyzer(
            self.rng, ResultCache.from_max_entries(self.config.CACHE_MAX_ENTRIES, name="water-analysis")
        )
        self.greenspace_analyzer = GreenspaceAnalyzer(
            self.rng, ResultCache.from_max_entries(self.config.CACHE_MAX_ENTRIES, name="greenspace-analysis")
        )

        # Base grids per density, built once and filtered per viewport
        self.grid_cache = ResultCache(name="grids")
        # Band fetches in flight, so concurrent callers for one key share a request
        self._pending: Dict[str, "asyncio.Future[BandSample]"] = {}

    def _strategy(self, name: Optional[str]) -> ScoringStrategy:
        name = name or self.default_strategy
        if name not in self.strategies:
            raise ValueError(f"Unknown scoring strategy '{name}'. Options: {sorted(self.strategies)}")
        return self.strategies[name]

    # --- BANDS ---

    async def fetch_bands(self, lat: float, lon: float, date: Optional[str] = None) -> BandSample:
        lat, lon = validate_coordinates(lat, lon)
        key = location_key(lat, lon, date)

        cached = self.band_cache.get(key)
        if cached is not None:
            return cached

        pending = self._pending.get(key)
        if pending is not None:
            return await pending

        pending = asyncio.ensure_future(self.source.fetch_bands(lat, lon, date))
        self._pending[key] = pending
        try:
            bands = await pending
        finally:
            self._pending.pop(key, None)

        self.band_cache.set(key, bands)
        return bands

    # --- SINGLE LOCATION ---

    async def score_location(self, lat: float, lon: float, date: Optional[str] = None,
                             strategy: Optional[str] = None) -> LocationScore:
        lat, lon = validate_coordinates(lat, lon)
        chosen = self._strategy(strategy)

        estimate = await chosen.estimate(lat, lon, date)
        water = estimate.water_quality
        green = estimate.greenspace

        return LocationScore(
            lat=lat,
            lon=lon,
            date=estimate.date,
            water_quality=water,
            greenspace=green,
            eco_score=aggregator.eco_score(water, green),
            water_category=categorize(water),
            greenspace_category=categorize(green),
            water_color=water_color(water),
            greenspace_color=greenspace_color(green),
            source=estimate.source,
            provider=estimate.provider,
            strategy=chosen.name,
            indices=estimate.indices,
        )

    async def compare_locations(self, locations: Iterable[Location], date: Optional[str] = None,
                                strategy: Optional[str] = None) -> List[LocationScore]:
        unique: List[Location] = []
        for loc in locations:
            duplicate = any(
                abs(u.lat - loc.lat) < COMPARISON_TOLERANCE and abs(u.lon - loc.lon) < COMPARISON_TOLERANCE
                for u in unique
            )
            if not duplicate:
                unique.append(loc)

        return [await self.score_location(loc.lat, loc.lon, date, strategy) for loc in unique]

    async def time_series(self, lat: float, lon: float, start: str, end: str,
                          strategy: Optional[str] = None) -> List[TimeSeriesPoint]:
        """Monthly scores from start to end (inclusive), same day of month."""
        dates = pd.date_range(start=start, end=end, freq=pd.DateOffset(months=1))
        series = []
        for day in dates:
            iso = day.strftime("%Y-%m-%d")
            score = await self.score_location(lat, lon, iso, strategy)
            series.append(TimeSeriesPoint(
                date=iso,
                ndvi=score.indices.ndvi if score.indices else None,
                ndwi=score.indices.ndwi if score.indices else None,
                water_quality=score.water_quality,
                greenspace=score.greenspace,
                eco_score=score.eco_score,
                source=score.source,
            ))
        return series

    # --- LOCATION DETAIL ---

    async def analyze_water_quality(self, lat: float, lon: float, date: Optional[str] = None) -> WaterQualityReport:
        lat, lon = validate_coordinates(lat, lon)
        return await self.water_analyzer.analyze(lat, lon, date)

    async def analyze_greenspace(self, lat: float, lon: float, date: Optional[str] = None) -> GreenspaceReport:
        lat, lon = validate_coordinates(lat, lon)
        return await self.greenspace_analyzer.analyze(lat, lon, date)

    # --- TRACT BATCHES ---

    def load_tracts_for_view(self, bounds: Bounds, density: Density = "medium") -> List[Tract]:
        total = count_tracts(bounds, density)
        if total > self.config.MAX_TRACTS:
            logger.warning(f"⚠️ Limiting to {self.config.MAX_TRACTS} tracts ({total} in viewport).")
        return generate_tracts(bounds, density, limit=self.config.MAX_TRACTS)

    def preview_tracts(self, density: Density = "high", bounds: Optional[Bounds] = None) -> List[Tract]:
        """Unscored Sonoma County grid, optionally cut down to a viewport."""
        grid = self.grid_cache.get(density)
        if grid is None:
            grid = generate_tracts(SONOMA_BOUNDS, density)
            self.grid_cache.set(density, grid)
        if bounds is None:
            return grid
        return tracts_in_bounds(grid, bounds)

    async def _score_tract(self, tract: Tract, strategy: Optional[str]) -> Tract:
        props = tract.properties
        score = await self.score_location(props.lat, props.lon, strategy=strategy)

        props.water_quality = score.water_quality
        props.greenspace = score.greenspace
        props.eco_score = score.eco_score
        props.water_color = score.water_color
        props.greenspace_color = score.greenspace_color
        props.source = score.source
        return tract

    async def score_batch(self, tracts: List[Tract], progress: Optional[ProgressCallback] = None,
                          strategy: Optional[str] = None) -> List[Tract]:
        """Scores every tract in place, then ranks the whole batch."""
        total = len(tracts)
        size = max(1, self.config.BATCH_SIZE)
        logger.info(f"🌿 Scoring {total} tracts...")

        for i in range(0, total, size):
            chunk = tracts[i:i + size]
            await asyncio.gather(*(self._score_tract(t, strategy) for t in chunk))
            if progress:
                progress((i + len(chunk)) / total * 100)

        aggregator.assign_percentiles(tracts)
        logger.info(f"✅ Batch scored: {total} tracts.")
        return tracts

    # --- PROJECTIONS ---

    def _horizon(self, years_ahead: Optional[int]) -> int:
        return self.config.DEFAULT_YEARS_AHEAD if years_ahead is None else years_ahead

    async def predict(self, tract: Tract, years_ahead: Optional[int] = None) -> Prediction:
        return await self.predictor.predict(tract, self._horizon(years_ahead))

    async def predict_batch(self, tracts: List[Tract], years_ahead: Optional[int] = None) -> List[Tract]:
        years = self._horizon(years_ahead)
        if years <= 0:
            raise ValueError("years_ahead must be a positive number of years")
        return await self.predictor.predict_batch(tracts, years)

    def summarize(self, tracts: List[Tract]) -> BatchSummary:
        return aggregator.summarize(tracts)
