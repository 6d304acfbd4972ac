import math
from dataclasses import dataclass

EARTH_RADIUS_METERS = 6_371_000.0

FULL_LONGITUDE = ((-180.0, 180.0),)


@dataclass(frozen=True)
class GeoFilter:
    lat: float
    lng: float
    radius_meters: float


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def longitude_ranges(min_lng: float, max_lng: float) -> tuple[tuple[float, float], ...]:
    """Split a longitude span that crosses the antimeridian into in-range pieces."""
    if max_lng - min_lng >= 360.0:
        return FULL_LONGITUDE
    if min_lng < -180.0:
        return ((min_lng + 360.0, 180.0), (-180.0, max_lng))
    if max_lng > 180.0:
        return ((min_lng, 180.0), (-180.0, max_lng - 360.0))
    return ((min_lng, max_lng),)


def bounding_box(lat: float, lng: float, radius_meters: float):
    """Return (min_lat, max_lat, lng_ranges) enclosing the circle.

    Longitude comes back as one range, or two when the circle crosses the
    antimeridian, or the whole circle of longitude when it covers a pole.
    """
    angular = radius_meters / EARTH_RADIUS_METERS
    d_lat = math.degrees(angular)
    min_lat, max_lat = lat - d_lat, lat + d_lat
    if min_lat <= -90.0 or max_lat >= 90.0:
        return max(-90.0, min_lat), min(90.0, max_lat), FULL_LONGITUDE

    ratio = math.sin(angular) / math.cos(math.radians(lat))
    if ratio >= 1.0:
        return min_lat, max_lat, FULL_LONGITUDE
    d_lng = math.degrees(math.asin(ratio))
    return min_lat, max_lat, longitude_ranges(lng - d_lng, lng + d_lng)
