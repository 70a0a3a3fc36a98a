# backend/ecomap/services/scoring/converter.py
import math

from ecomap.schemas.eco import DomainScore

# (threshold, category) - first threshold reached wins
CATEGORY_THRESHOLDS = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Moderate"),
    (20, "Poor"),
)
LOWEST_CATEGORY = "Very Poor"

# Deep blue (cleanest) -> reddish (polluted)
WATER_COLORS = ("#003366", "#0066cc", "#3399ff", "#6699cc", "#cc6666")
# Dark green (dense) -> very light green
GREENSPACE_COLORS = ("#004d00", "#006600", "#339933", "#66cc66", "#99ff99")
# Green (best) -> red (worst)
PERCENTILE_COLORS = ("#00cc00", "#66cc00", "#ffcc00", "#ff9900", "#cc0000")


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def round_half_up(value: float) -> int:
    # Matches the map front end: 12.5 -> 13, -0.5 -> 0
    return int(math.floor(value + 0.5))


def ndvi_to_greenspace(ndvi: float) -> float:
    """NDVI -> greenspace coverage %. 0.3 ~ 15%, 0.6 ~ 45%."""
    if ndvi < 0:
        return 0.0
    if ndvi < 0.3:
        return ndvi * 50
    if ndvi < 0.6:
        return 15 + (ndvi - 0.3) * 100
    return clamp_score(45 + (ndvi - 0.6) * 137.5)


def ndwi_to_water_quality(ndwi: float) -> float:
    """NDWI -> water quality index. Strong water signal gets a clarity bonus."""
    base = (ndwi + 1) * 50
    if ndwi > 0.5:
        return min(100.0, base + 20)
    if ndwi > 0:
        return clamp_score(base)
    return max(0.0, base - 20)


def _bucket(value: float) -> int:
    for i, (threshold, _) in enumerate(CATEGORY_THRESHOLDS):
        if value >= threshold:
            return i
    return len(CATEGORY_THRESHOLDS)


def categorize(value: float) -> str:
    i = _bucket(value)
    return CATEGORY_THRESHOLDS[i][1] if i < len(CATEGORY_THRESHOLDS) else LOWEST_CATEGORY


def water_color(value: float) -> str:
    return WATER_COLORS[_bucket(value)]


def greenspace_color(value: float) -> str:
    return GREENSPACE_COLORS[_bucket(value)]


def percentile_color(percentile: float) -> str:
    return PERCENTILE_COLORS[_bucket(percentile)]


def water_score(value: float) -> DomainScore:
    value = clamp_score(value)
    return DomainScore(value=value, category=categorize(value), color=water_color(value))


def greenspace_score(value: float) -> DomainScore:
    value = clamp_score(value)
    return DomainScore(value=value, category=categorize(value), color=greenspace_color(value))
