"""Heuristic 0–100 sun-exposure score for a single terrace."""
import math
from datetime import datetime
from typing import Optional

from core.geometry import angular_difference
from core.models import SolarAngles, Venue
from core.solar import solar_angles

# Facing alignment bands: (max angular offset, points).
_ALIGNMENT_BANDS = ((45.0, 55.0), (90.0, 35.0))
_MISALIGNED_POINTS = 10.0

# Altitude bands: (max altitude, points).
_ALTITUDE_BANDS = ((8.0, -30.0), (15.0, -15.0))
_HIGH_SUN_POINTS = 10.0

# Below this altitude, street-level obstructions start to matter.
LOW_SUN_ALTITUDE_DEG = 20.0
_STREET_WIDTH_PENALTY = {"narrow": -15.0, "medium": -5.0, "wide": 0.0}

# Full overcast keeps 40% of the clear-sky score (diffuse light).
CLOUD_ATTENUATION = 0.6


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round_score(value: float) -> int:
    """Clamp to [0, 100] and round half up."""
    return int(math.floor(clamp(value, 0.0, 100.0) + 0.5))


def _alignment_points(diff: float) -> float:
    for limit, points in _ALIGNMENT_BANDS:
        if diff < limit:
            return points
    return _MISALIGNED_POINTS


def _altitude_points(altitude: float) -> float:
    for limit, points in _ALTITUDE_BANDS:
        if altitude < limit:
            return points
    return _HIGH_SUN_POINTS


def cloud_multiplier(cloud_fraction: Optional[float]) -> float:
    """``1 - 0.6 * cloud`` with the fraction clamped to [0, 1]; None means clear."""
    if cloud_fraction is None:
        return 1.0
    return 1.0 - CLOUD_ATTENUATION * clamp(cloud_fraction, 0.0, 1.0)


def raw_score(venue: Venue, solar: SolarAngles, cloud_fraction: Optional[float] = None) -> float:
    """Unclamped, unrounded score. The bands are applied in a fixed order."""
    diff = angular_difference(solar.azimuth_deg, venue.orientation_deg)

    score = _alignment_points(diff)
    score += _altitude_points(solar.altitude_deg)
    if solar.altitude_deg < LOW_SUN_ALTITUDE_DEG:
        score += _STREET_WIDTH_PENALTY.get(venue.street_width, 0.0)

    return score * cloud_multiplier(cloud_fraction)


def score_from_angles(venue: Venue, solar: SolarAngles, cloud_fraction: Optional[float] = None) -> int:
    return round_score(raw_score(venue, solar, cloud_fraction))


def score(venue: Venue, timestamp: datetime, cloud_fraction: Optional[float] = None) -> int:
    """
    Score how much direct sun a terrace gets at ``timestamp``.

    Combines how squarely the seating faces the sun, how high the sun is,
    the street-width penalty for low sun and cloud attenuation. Returns an
    int in [0, 100].
    """
    solar = solar_angles(timestamp, venue.coordinate.lat, venue.coordinate.lon)
    return score_from_angles(venue, solar, cloud_fraction)
