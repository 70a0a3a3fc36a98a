# backend/ecomap/core/config.py
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "EcoMap Insights"
    LOG_LEVEL: str = "INFO"

    # Seed for the synthetic band/jitter generator (None = fresh entropy per process)
    RANDOM_SEED: Optional[int] = None

    # "spectral" = bands -> indices -> scores | "direct" = location-based estimate
    SCORING_STRATEGY: Literal["spectral", "direct"] = "spectral"
    SAVI_SOIL_FACTOR: float = 0.5
    DEFAULT_YEARS_AHEAD: int = 15

    # Viewport processing
    BATCH_SIZE: int = 10
    MAX_TRACTS: int = 500

    # 0 = never evict
    CACHE_MAX_ENTRIES: int = 0

    # Real band proxies, tried in order before falling back to simulation.
    # Ex: BAND_SOURCE_URLS='["http://localhost:8080/bands"]'
    BAND_SOURCE_URLS: List[str] = []
    HTTP_TIMEOUT: float = 10.0

    # NASA CMR (HLS Sentinel-2 granules)
    CMR_SEARCH_URL: str = "https://cmr.earthdata.nasa.gov/search/granules.json"
    HLS_VI_COLLECTION_ID: str = "C2764729595-LPCLOUD"  # HLSS30-VI v2.0
    HLS_SR_COLLECTION_ID: str = "C2021957295-LPCLOUD"  # HLSS30 v2.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

settings = Settings()
