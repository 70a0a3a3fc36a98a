# backend/ecomap/services/satellite/sources.py
import httpx
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ecomap.core.errors import DataSourceUnavailable
from ecomap.core.random_source import RandomSource
from ecomap.schemas.eco import BandSample
from ecomap.services.satellite.synthesizer import BandSynthesizer

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """Seam where real satellite fetching attaches: (lat, lon, date?) -> BandSample."""

    name: str = "source"

    @abstractmethod
    async def fetch_bands(self, lat: float, lon: float, date: Optional[str] = None) -> BandSample:
        ...


class SimulatedSource(DataSource):
    """Deterministic-given-RNG synthetic bands. Never fails."""

    name = "simulated"

    def __init__(self, rng: Optional[RandomSource] = None, synthesizer: Optional[BandSynthesizer] = None):
        self.synthesizer = synthesizer or BandSynthesizer(rng)

    async def fetch_bands(self, lat: float, lon: float, date: Optional[str] = None) -> BandSample:
        return self.synthesizer.synthesize(lat, lon, date)


class HttpBandSource(DataSource):
    """
    Client for a band proxy (COG reader behind CORS, Earth Engine export, etc).
    Expected response: JSON with blue/green/red/nir/swir or B2/B3/B4/B8/B11,
    on the 0-10000 scale.
    """

    # Sentinel-2 band names accepted as aliases
    BAND_ALIASES = {
        "blue": ("blue", "B2"),
        "green": ("green", "B3"),
        "red": ("red", "B4"),
        "nir": ("nir", "B8"),
        "swir": ("swir", "B11"),
    }

    HEADERS = {"Accept": "application/json"}

    def __init__(self, base_url: str, timeout: float = 10.0, name: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.name = name or base_url
        self.transport = transport

    async def fetch_bands(self, lat: float, lon: float, date: Optional[str] = None) -> BandSample:
        params = {"lat": lat, "lon": lon}
        if date:
            params["date"] = date

        async with httpx.AsyncClient(timeout=self.timeout, headers=self.HEADERS, transport=self.transport) as client:
            response = await client.get(self.base_url, params=params)

            if response.status_code != 200:
                raise DataSourceUnavailable(f"{self.name}: HTTP {response.status_code}")

            try:
                payload = response.json()
            except ValueError as e:
                raise DataSourceUnavailable(f"{self.name}: invalid JSON ({e})")

        return self._parse(payload, date)

    def _parse(self, payload, date: Optional[str]) -> BandSample:
        if not isinstance(payload, dict):
            raise DataSourceUnavailable(f"{self.name}: unexpected payload")

        values = {}
        for band, keys in self.BAND_ALIASES.items():
            raw = next((payload[k] for k in keys if payload.get(k) is not None), None)
            if raw is None:
                raise DataSourceUnavailable(f"{self.name}: band '{band}' missing")
            try:
                values[band] = float(raw)
            except (TypeError, ValueError):
                raise DataSourceUnavailable(f"{self.name}: band '{band}' is not numeric")

        return BandSample(**values, date=payload.get("date") or date, source="real", provider=self.name)


class FallbackChain(DataSource):
    """
    Tries each source in order. Failures are logged and skipped, so the
    result's `source`/`provider` tells which link answered.
    """

    name = "fallback-chain"

    def __init__(self, sources: Iterable[DataSource]):
        self.sources: List[DataSource] = list(sources)
        if not self.sources:
            raise ValueError("FallbackChain needs at least one source")

    async def fetch_bands(self, lat: float, lon: float, date: Optional[str] = None) -> BandSample:
        errors = []
        for source in self.sources:
            try:
                return await source.fetch_bands(lat, lon, date)
            except (DataSourceUnavailable, httpx.HTTPError) as e:
                logger.warning(f"⚠️ Source '{source.name}' failed for ({lat:.4f}, {lon:.4f}): {e}. Trying next...")
                errors.append(f"{source.name}: {e}")

        raise DataSourceUnavailable("All band sources failed: " + "; ".join(errors))


def build_band_source(urls: Iterable[str], rng: Optional[RandomSource] = None, timeout: float = 10.0) -> DataSource:
    """Real proxies (in config order) -> simulation."""
    chain: List[DataSource] = [HttpBandSource(url, timeout=timeout) for url in urls]
    chain.append(SimulatedSource(rng))
    if len(chain) == 1:
        return chain[0]
    return FallbackChain(chain)
