# backend/ecomap/core/regions.py
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    name: str
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        # Open interval: points exactly on an edge are outside
        return self.min_lat < lat < self.max_lat and self.min_lon < lon < self.max_lon


# --- URBAN CORES ---
URBAN_AREAS = (
    BoundingBox("New York", 40, 42, -74, -73),
    BoundingBox("Los Angeles", 34, 35, -119, -118),
    BoundingBox("Chicago", 41, 42, -88, -87),
    BoundingBox("Houston", 29, 30, -96, -95),
    BoundingBox("San Francisco", 37, 38, -123, -122),
)

SUBURBAN_AREAS = (
    BoundingBox("Near New York", 39, 41, -75, -73),
    BoundingBox("Near Los Angeles", 33, 35, -118, -117),
    BoundingBox("Near Chicago", 40, 42, -89, -87),
)

# --- VEGETATION / CONSERVATION ---
PACIFIC_NORTHWEST = BoundingBox("Pacific Northwest", 45, 50, -125, -100)
SOUTHEAST = BoundingBox("Southeast", 30, 36, -90, -75)
DESERT_SOUTHWEST = BoundingBox("Desert Southwest", 32, 40, -120, -110)

# Water estimate uses a wider PNW band than the greenspace one
PACIFIC_NORTHWEST_WATERSHED = BoundingBox("Pacific Northwest watershed", 40, 50, -125, -100)

VEGETATED_AREAS = (PACIFIC_NORTHWEST, SOUTHEAST)

PROTECTED_AREAS = (
    BoundingBox("Pacific Northwest parks", 44, 50, -125, -110),
    BoundingBox("Sierra Nevada", 36, 38, -120, -115),
    BoundingBox("Great Smoky Mountains", 35, 37, -84, -82),
)

# --- COASTS ---
# Reference meridians for the East (-80) and West (-122) coasts
COASTAL_MERIDIANS = (-80.0, -122.0)
COASTAL_MERIDIAN_TOLERANCE = 5.0
GULF_COAST = BoundingBox("Gulf Coast", 25, 31, -85, -80)

# --- DEVELOPMENT PRESSURE (ordered, first match wins) ---
REGIONAL_TREND_FACTORS: Tuple[Tuple[BoundingBox, float], ...] = (
    (BoundingBox("Southern California", 34, 36, -119, -117), -0.8),
    (BoundingBox("New York", 40, 42, -74, -73), -0.7),
    (PACIFIC_NORTHWEST, -0.2),
)
DEFAULT_REGIONAL_FACTOR = -0.5

# --- NDVI OFFSETS for the per-location greenspace analysis (ordered, first match wins) ---
REGIONAL_NDVI_OFFSETS: Tuple[Tuple[BoundingBox, float], ...] = (
    (BoundingBox("Pacific Northwest coast", 45, 50, -125, -120), 0.3),
    (DESERT_SOUTHWEST, -0.2),
    (SOUTHEAST, 0.1),
)


def first_match(boxes, lat: float, lon: float) -> Optional[BoundingBox]:
    for box in boxes:
        if box.contains(lat, lon):
            return box
    return None


def is_urban(lat: float, lon: float) -> bool:
    return first_match(URBAN_AREAS, lat, lon) is not None


def is_suburban(lat: float, lon: float) -> bool:
    return first_match(SUBURBAN_AREAS, lat, lon) is not None


def is_vegetated(lat: float, lon: float) -> bool:
    return first_match(VEGETATED_AREAS, lat, lon) is not None


def is_protected(lat: float, lon: float) -> bool:
    return first_match(PROTECTED_AREAS, lat, lon) is not None


def is_coastal(lat: float, lon: float) -> bool:
    near_meridian = any(abs(lon - m) < COASTAL_MERIDIAN_TOLERANCE for m in COASTAL_MERIDIANS)
    return near_meridian or GULF_COAST.contains(lat, lon)


def regional_trend_factor(lat: float, lon: float) -> float:
    for box, factor in REGIONAL_TREND_FACTORS:
        if box.contains(lat, lon):
            return factor
    return DEFAULT_REGIONAL_FACTOR


def regional_ndvi_offset(lat: float, lon: float) -> float:
    for box, offset in REGIONAL_NDVI_OFFSETS:
        if box.contains(lat, lon):
            return offset
    return 0.0
