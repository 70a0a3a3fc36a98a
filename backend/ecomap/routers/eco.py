# backend/ecomap/routers/eco.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from ecomap.api.deps import get_orchestrator
from ecomap.core.errors import validate_coordinates
from ecomap.schemas.eco import GreenspaceReport, LocationScore, TimeSeriesPoint, WaterQualityReport
from ecomap.schemas.geo import Bounds, FeatureCollection, Location
from ecomap.services.orchestrator import EcoScoreOrchestrator
from ecomap.services.satellite.hls_probe import HlsProbeService
from ecomap.services.tracts.grid import Density, to_geodataframe

router = APIRouter()

StrategyName = Literal["spectral", "direct"]


class TractRequest(BaseModel):
    bounds: Bounds
    density: Density = "medium"
    strategy: Optional[StrategyName] = None


class AtRiskRequest(TractRequest):
    years_ahead: Optional[int] = None


def _unprocessable(e: ValueError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(e))


# --- LOCATIONS ---

@router.get("/score", response_model=LocationScore)
async def score_location(
    lat: float,
    lon: float,
    date: Optional[str] = None,
    strategy: Optional[StrategyName] = None,
    orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator),
):
    """Water quality + greenspace + eco score for one point."""
    try:
        return await orchestrator.score_location(lat, lon, date, strategy)
    except ValueError as e:
        raise _unprocessable(e)


@router.post("/compare", response_model=List[LocationScore])
async def compare_locations(
    locations: List[Location],
    strategy: Optional[StrategyName] = None,
    orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator),
):
    """Side-by-side scores for the comparison panel (near-duplicates dropped)."""
    return await orchestrator.compare_locations(locations, strategy=strategy)


@router.get("/timeseries", response_model=List[TimeSeriesPoint])
async def time_series(
    lat: float,
    lon: float,
    start: str,
    end: str,
    strategy: Optional[StrategyName] = None,
    orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator),
):
    try:
        return await orchestrator.time_series(lat, lon, start, end, strategy)
    except ValueError as e:
        raise _unprocessable(e)


@router.get("/analysis/water", response_model=WaterQualityReport)
async def analyze_water(
    lat: float,
    lon: float,
    date: Optional[str] = None,
    orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator),
):
    """Popup detail: turbidity, pollutant breakdown and trend."""
    try:
        return await orchestrator.analyze_water_quality(lat, lon, date)
    except ValueError as e:
        raise _unprocessable(e)


@router.get("/analysis/greenspace", response_model=GreenspaceReport)
async def analyze_greenspace(
    lat: float,
    lon: float,
    date: Optional[str] = None,
    orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator),
):
    try:
        return await orchestrator.analyze_greenspace(lat, lon, date)
    except ValueError as e:
        raise _unprocessable(e)


# --- TRACTS ---

@router.post("/tracts/score", response_model=FeatureCollection)
async def score_tracts(body: TractRequest, orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator)):
    """Grid for the viewport, scored and ranked (percentiles relative to this batch)."""
    tracts = orchestrator.load_tracts_for_view(body.bounds, body.density)
    await orchestrator.score_batch(tracts, strategy=body.strategy)
    return {"features": tracts, "summary": orchestrator.summarize(tracts)}


@router.post("/tracts/at-risk", response_model=FeatureCollection)
async def at_risk_tracts(body: AtRiskRequest, orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator)):
    """Only the tracts whose projection is critical/high, worst first."""
    if body.years_ahead is not None and body.years_ahead <= 0:
        raise HTTPException(status_code=422, detail="years_ahead must be positive")

    tracts = orchestrator.load_tracts_for_view(body.bounds, body.density)
    await orchestrator.score_batch(tracts, strategy=body.strategy)
    flagged = await orchestrator.predict_batch(tracts, body.years_ahead)
    return {"features": flagged, "summary": orchestrator.summarize(flagged)}


@router.get("/tracts/preview")
async def preview_tracts(
    density: Density = Query("high"),
    min_lat: Optional[float] = None,
    max_lat: Optional[float] = None,
    min_lon: Optional[float] = None,
    max_lon: Optional[float] = None,
    orchestrator: EcoScoreOrchestrator = Depends(get_orchestrator),
):
    """
    Raw (unscored) Sonoma County grid as GeoJSON, straight from geopandas.
    Pass all four edges to cut it down to a viewport.
    """
    edges = (min_lat, max_lat, min_lon, max_lon)
    bounds = None
    if any(e is not None for e in edges):
        try:
            bounds = Bounds(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)
        except ValueError as e:
            raise _unprocessable(e)

    gdf = to_geodataframe(orchestrator.preview_tracts(density, bounds))
    return Response(content=gdf.to_json(), media_type="application/json")


# --- DIAGNOSTICS ---

@router.get("/probe/hls")
async def probe_hls(lat: float, lon: float, date: Optional[str] = None):
    """
    Diagnostic route: which HLS granules does NASA CMR have for this point?
    No authentication, to keep quick checks quick.
    """
    try:
        lat, lon = validate_coordinates(lat, lon)
        probe = HlsProbeService()
        return await probe.run_diagnostic(lat, lon, date)
    except ValueError as e:
        raise _unprocessable(e)
