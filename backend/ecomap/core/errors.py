# backend/ecomap/core/errors.py
import math


class InvalidCoordinatesError(ValueError):
    """Latitude/longitude outside the WGS84 range or not numeric."""

    def __init__(self, lat, lon):
        self.lat = lat
        self.lon = lon
        super().__init__(f"Invalid coordinates: lat={lat}, lon={lon}")


class DataSourceUnavailable(RuntimeError):
    """A band source could not produce a sample (no config, HTTP error, empty payload)."""


def validate_coordinates(lat, lon):
    """Returns (lat, lon) as floats or raises InvalidCoordinatesError."""
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError(lat, lon)

    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise InvalidCoordinatesError(lat, lon)
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lon_f <= 180.0):
        raise InvalidCoordinatesError(lat, lon)

    return lat_f, lon_f
