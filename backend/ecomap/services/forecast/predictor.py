# backend/ecomap/services/forecast/predictor.py
import asyncio
import logging
from typing import List, Optional

from ecomap.core import regions
from ecomap.core.cache import ResultCache, location_key
from ecomap.core.errors import validate_coordinates
from ecomap.schemas.eco import Prediction
from ecomap.schemas.geo import Tract
from ecomap.services.scoring.converter import clamp_score, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_CURRENT_SCORE = 50.0

# Yearly points lost per trend class
BASE_DECLINE = {
    "declining": -1.5,
    "at_risk": -1.0,
    "slight_decline": -0.5,
    "stable": -0.1,
}

URBAN_PRESSURE = -1.2
SUBURBAN_PRESSURE = -0.8
RURAL_PRESSURE = -0.3

RISK_ORDER = {"critical": 0, "high": 1, "moderate": 2, "low": 3}


def classify_trend(lat: float, lon: float) -> str:
    # Order matters: first match wins
    if regions.is_urban(lat, lon):
        return "declining"
    if regions.is_protected(lat, lon):
        return "stable"
    if regions.is_coastal(lat, lon):
        return "at_risk"
    return "slight_decline"


def urban_pressure_factor(lat: float, lon: float) -> float:
    if regions.is_urban(lat, lon):
        return URBAN_PRESSURE
    if regions.is_suburban(lat, lon):
        return SUBURBAN_PRESSURE
    return RURAL_PRESSURE


def annual_decline(trend: str, regional_factor: float, urban_pressure: float) -> float:
    return BASE_DECLINE[trend] + regional_factor + urban_pressure


def classify_risk(current_score: float, predicted_score: float, years_ahead: int) -> str:
    decline_rate = (current_score - predicted_score) / years_ahead

    if predicted_score < 30 or decline_rate > 2:
        return "critical"
    if predicted_score < 50 or decline_rate > 1.5:
        return "high"
    if decline_rate > 0.5:
        return "moderate"
    return "low"


class TrendPredictor:
    """
    Rule-based projection of a tract's eco score N years out.
    No model is trained: trend class, regional factor and urban pressure
    come from fixed bounding boxes.
    """

    def __init__(self, cache: Optional[ResultCache] = None):
        self.cache = cache if cache is not None else ResultCache(name="predictions")

    def project(self, lat: float, lon: float, current_score: float, years_ahead: int) -> Prediction:
        if years_ahead <= 0:
            raise ValueError("years_ahead must be a positive number of years")
        lat, lon = validate_coordinates(lat, lon)

        trend = classify_trend(lat, lon)
        regional = regions.regional_trend_factor(lat, lon)
        pressure = urban_pressure_factor(lat, lon)
        decline = annual_decline(trend, regional, pressure)

        predicted = clamp_score(current_score + decline * years_ahead)
        risk = classify_risk(current_score, predicted, years_ahead)

        return Prediction(
            current_score=current_score,
            predicted_score=round_half_up(predicted),
            years_ahead=years_ahead,
            annual_decline=decline,
            risk_level=risk,
            needs_action=risk in ("critical", "high"),
            trend=trend,
            regional_factor=regional,
            urban_pressure=pressure,
        )

    async def predict(self, tract: Tract, years_ahead: int = 15) -> Prediction:
        props = tract.properties
        current = props.eco_score if props.eco_score is not None else DEFAULT_CURRENT_SCORE

        # Score is part of the key so a re-scored tract is not served a stale projection
        key = location_key(props.lat, props.lon, f"{years_ahead}y@{current:.4f}")
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        prediction = self.project(props.lat, props.lon, current, years_ahead)
        self.cache.set(key, prediction)
        return prediction

    async def predict_batch(self, tracts: List[Tract], years_ahead: int = 15) -> List[Tract]:
        """Tracts needing action, worst first (risk level, then lowest predicted score)."""
        predictions = await asyncio.gather(*(self.predict(t, years_ahead) for t in tracts))

        ranked = sorted(
            zip(tracts, predictions),
            key=lambda pair: (RISK_ORDER[pair[1].risk_level], pair[1].predicted_score),
        )

        flagged = []
        for tract, prediction in ranked:
            if prediction.needs_action:
                tract.properties.prediction = prediction
                flagged.append(tract)

        logger.info(f"🔮 {len(flagged)}/{len(tracts)} tracts need action in {years_ahead} years.")
        return flagged
