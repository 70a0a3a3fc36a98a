# backend/ecomap/services/scoring/aggregator.py
from bisect import bisect_right
from typing import List, Sequence

from ecomap.schemas.geo import BatchSummary, Tract
from ecomap.services.scoring.converter import clamp_score, percentile_color, round_half_up

WATER_WEIGHT = 0.5
GREENSPACE_WEIGHT = 0.5

# Percentile of a score when there is nothing to rank against
EMPTY_BATCH_PERCENTILE = 50


def eco_score(water_quality: float, greenspace: float) -> float:
    return clamp_score(water_quality * WATER_WEIGHT + greenspace * GREENSPACE_WEIGHT)


def percentile(score: float, batch: Sequence[float]) -> int:
    """Share of the batch at or below `score`, 0-100. Only meaningful within that batch."""
    if not batch:
        return EMPTY_BATCH_PERCENTILE
    return _ranked_percentile(score, sorted(batch))


def _ranked_percentile(score: float, ordered: Sequence[float]) -> int:
    rank = bisect_right(ordered, score)
    return round_half_up(100 * rank / len(ordered))


def assign_percentiles(tracts: List[Tract]) -> List[Tract]:
    """Recomputes ecoPercentile for every scored tract against the current batch."""
    scored = [t for t in tracts if t.properties.eco_score is not None]
    ordered = sorted(t.properties.eco_score for t in scored)

    for tract in scored:
        p = _ranked_percentile(tract.properties.eco_score, ordered)
        tract.properties.eco_percentile = p
        tract.properties.percentile_color = percentile_color(p)
    return tracts


def summarize(tracts: Sequence[Tract]) -> BatchSummary:
    percentiles = [t.properties.eco_percentile for t in tracts if t.properties.eco_percentile is not None]
    scores = [t.properties.eco_score for t in tracts if t.properties.eco_score is not None]

    return BatchSummary(
        tract_count=len(tracts),
        average_percentile=round(sum(percentiles) / len(percentiles)) if percentiles else None,
        average_eco_score=round(sum(scores) / len(scores), 2) if scores else None,
    )
