# backend/ecomap/services/scoring/indices.py
"""
Spectral indices from surface reflectance (0-1).

Sentinel-2 bands: Blue B2, Green B3, Red B4, NIR B8, SWIR B11.
Every index is clamped to [-1, 1]; a zero denominator yields 0.
"""
from ecomap.schemas.eco import BandSample, SpectralIndices

DEFAULT_SOIL_FACTOR = 0.5


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def _normalized_difference(a: float, b: float) -> float:
    if a + b == 0:
        return 0.0
    return _clamp((a - b) / (a + b))


def ndvi(red: float, nir: float) -> float:
    """(NIR - Red) / (NIR + Red)"""
    return _normalized_difference(nir, red)


def ndwi(green: float, nir: float) -> float:
    """(Green - NIR) / (Green + NIR)"""
    return _normalized_difference(green, nir)


def mndwi(green: float, swir: float) -> float:
    """(Green - SWIR) / (Green + SWIR). Better than NDWI for open water."""
    return _normalized_difference(green, swir)


def evi(red: float, nir: float, blue: float) -> float:
    """2.5 * (NIR - Red) / (NIR + 6*Red - 7.5*Blue + 1)"""
    denominator = nir + 6 * red - 7.5 * blue + 1
    if denominator == 0:
        return 0.0
    return _clamp(2.5 * ((nir - red) / denominator))


def savi(red: float, nir: float, soil_factor: float = DEFAULT_SOIL_FACTOR) -> float:
    """(NIR - Red) / (NIR + Red + L) * (1 + L)"""
    denominator = nir + red + soil_factor
    if denominator == 0:
        return 0.0
    return _clamp(((nir - red) / denominator) * (1 + soil_factor))


def compute_indices(bands: BandSample, soil_factor: float = DEFAULT_SOIL_FACTOR) -> SpectralIndices:
    r = bands.reflectance()
    return SpectralIndices(
        ndvi=ndvi(r["red"], r["nir"]),
        ndwi=ndwi(r["green"], r["nir"]),
        mndwi=mndwi(r["green"], r["swir"]),
        evi=evi(r["red"], r["nir"], r["blue"]),
        savi=savi(r["red"], r["nir"], soil_factor),
    )
