# backend/ecomap/schemas/geo.py
from typing import List, Dict, Any, Literal, Optional
from pydantic import BaseModel, Field, model_validator

from ecomap.core.errors import validate_coordinates
from ecomap.schemas.eco import CamelModel, Prediction


class Location(BaseModel):
    lat: float
    lon: float

    @model_validator(mode="after")
    def _check_range(self):
        validate_coordinates(self.lat, self.lon)
        return self


class Bounds(BaseModel):
    """Viewport / region to grid. Same ranges as Location."""
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @model_validator(mode="after")
    def _check_order(self):
        validate_coordinates(self.min_lat, self.min_lon)
        validate_coordinates(self.max_lat, self.max_lon)
        if self.min_lat >= self.max_lat or self.min_lon >= self.max_lon:
            raise ValueError("Bounds must satisfy min_lat < max_lat and min_lon < max_lon")
        return self


class TractProperties(CamelModel):
    """
    Define WHICH data goes to the map.
    Everything except lat/lon is filled in by the pipeline, stage by stage.
    """
    lat: float
    lon: float

    water_quality: Optional[float] = None
    greenspace: Optional[float] = None
    eco_score: Optional[float] = None
    eco_percentile: Optional[int] = None

    # Render colours
    water_color: Optional[str] = None
    greenspace_color: Optional[str] = None
    percentile_color: Optional[str] = None

    source: Optional[str] = None
    prediction: Optional[Prediction] = None


class Tract(BaseModel):
    type: Literal["Feature"] = "Feature"
    id: str
    geometry: Dict[str, Any]
    properties: TractProperties


class BatchSummary(CamelModel):
    tract_count: int = 0
    average_percentile: Optional[float] = None
    average_eco_score: Optional[float] = None


class FeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[Tract] = Field(default_factory=list)
    summary: Optional[BatchSummary] = None
