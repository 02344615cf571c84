"""Solar position lookups using pvlib."""
from datetime import datetime, timezone

import pandas as pd
import pvlib

from core.geometry import normalize_deg
from core.models import SolarAngles


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def solar_angles(timestamp: datetime, lat: float, lon: float) -> SolarAngles:
    """
    Return the sun's compass azimuth and altitude for a location and instant.

    Args:
        timestamp: Instant to evaluate; naive datetimes are treated as UTC.
        lat: Latitude in decimal degrees.
        lon: Longitude in decimal degrees.

    Returns:
        SolarAngles with azimuth in [0, 360) (0 = north, 90 = east) and
        geometric altitude in degrees (negative below the horizon).
    """
    times = pd.DatetimeIndex([_to_utc(timestamp)])
    location = pvlib.location.Location(latitude=lat, longitude=lon)
    solar_pos = location.get_solarposition(times)
    # pvlib already measures azimuth clockwise from north; only wrap it.
    return SolarAngles(
        azimuth_deg=normalize_deg(float(solar_pos["azimuth"].iloc[0])),
        altitude_deg=float(solar_pos["elevation"].iloc[0]),
    )
