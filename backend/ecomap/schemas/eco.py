# backend/ecomap/schemas/eco.py
from typing import Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Sentinel-2 integer encoding (16-bit style, 0-10000)
REFLECTANCE_SCALE = 10000.0

SourceTag = Literal["real", "simulated"]
RiskLevel = Literal["critical", "high", "moderate", "low"]
Trend = Literal["declining", "at_risk", "stable", "slight_decline"]


class CamelModel(BaseModel):
    """Front-end speaks camelCase (waterQuality, ecoPercentile...)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BandSample(CamelModel):
    # Sentinel-2: B2, B3, B4, B8, B11
    blue: float
    green: float
    red: float
    nir: float
    swir: float

    date: Optional[str] = None
    source: SourceTag = "simulated"
    provider: Optional[str] = None

    def reflectance(self) -> Dict[str, float]:
        return {
            "blue": self.blue / REFLECTANCE_SCALE,
            "green": self.green / REFLECTANCE_SCALE,
            "red": self.red / REFLECTANCE_SCALE,
            "nir": self.nir / REFLECTANCE_SCALE,
            "swir": self.swir / REFLECTANCE_SCALE,
        }


class SpectralIndices(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    ndvi: float = Field(ge=-1, le=1)
    ndwi: float = Field(ge=-1, le=1)
    mndwi: float = Field(ge=-1, le=1)
    evi: float = Field(ge=-1, le=1)
    savi: float = Field(ge=-1, le=1)


class DomainScore(CamelModel):
    value: float = Field(ge=0, le=100)
    category: str
    color: str


class LocationScore(CamelModel):
    lat: float
    lon: float
    date: Optional[str] = None

    water_quality: float = Field(ge=0, le=100)
    greenspace: float = Field(ge=0, le=100)
    eco_score: float = Field(ge=0, le=100)

    water_category: str
    greenspace_category: str
    water_color: str
    greenspace_color: str

    source: SourceTag
    provider: Optional[str] = None
    strategy: str
    indices: Optional[SpectralIndices] = None


class TimeSeriesPoint(CamelModel):
    date: str
    ndvi: Optional[float] = None
    ndwi: Optional[float] = None
    water_quality: float
    greenspace: float
    eco_score: float
    source: SourceTag


class Prediction(CamelModel):
    current_score: float
    predicted_score: float
    years_ahead: int
    annual_decline: float
    risk_level: RiskLevel
    needs_action: bool

    trend: Trend
    regional_factor: float
    urban_pressure: float


# --- PER-LOCATION ANALYSIS (popup detail) ---

class PollutantBreakdown(CamelModel):
    """Share of the impairment (100 - index) attributed to each pollutant class."""
    nutrients: int
    sediments: int
    organic: int
    chemicals: int


class WaterQualityReport(CamelModel):
    lat: float
    lon: float
    index: int = Field(ge=0, le=100)
    category: str
    color: str
    turbidity: int = Field(ge=0, le=100)
    pollutants: PollutantBreakdown
    trend: Literal["improving", "declining", "stable"]
    last_updated: str
    source: SourceTag = "simulated"


class GreenspaceReport(CamelModel):
    lat: float
    lon: float
    ndvi: float = Field(ge=-1, le=1)
    coverage: int = Field(ge=0, le=100)
    category: str
    color: str
    parks: int
    trees: int
    trend: Literal["increasing", "decreasing", "stable"]
    last_updated: str
    source: SourceTag = "simulated"