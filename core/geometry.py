"""Bearing and distance helpers valid at urban scale."""
import math

from core.models import Coordinate

_EARTH_RADIUS_M = 6_371_000.0
_M_PER_DEG_LAT = 111_132.0
_M_PER_DEG_LON_EQUATOR = 111_320.0


def normalize_deg(angle: float) -> float:
    """Wrap any angle into [0, 360)."""
    return angle % 360.0


def angular_difference(a: float, b: float) -> float:
    """Shortest arc (0–180°) between two bearings."""
    return abs((a - b + 540.0) % 360.0 - 180.0)


def bearing(a: Coordinate, b: Coordinate) -> float:
    """
    Initial great-circle bearing from ``a`` to ``b`` in degrees,
    clockwise from north, in [0, 360).
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlon = math.radians(b.lon - a.lon)

    x = math.sin(dlon) * math.cos(lat2)
    y = (math.cos(lat1) * math.sin(lat2)
         - math.sin(lat1) * math.cos(lat2) * math.cos(dlon))

    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0


def distance(a: Coordinate, b: Coordinate) -> float:
    """
    Equirectangular distance in metres, scaled at the mean latitude.

    Only accurate below ~2 km; use :func:`haversine_m` for anything longer.
    """
    mean_lat = math.radians((a.lat + b.lat) / 2.0)
    dy = (b.lat - a.lat) * _M_PER_DEG_LAT
    dx = (b.lon - a.lon) * _M_PER_DEG_LON_EQUATOR * math.cos(mean_lat)
    return math.hypot(dx, dy)


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * _EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))
