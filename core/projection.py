"""Shade-adjusted exposure now and over the next couple of hours."""
from datetime import datetime, timedelta
from typing import Optional, Sequence

from core.models import Building, ForecastPoint, ShadowConfig, ShadowResult, Venue
from core.scorer import round_score, score_from_angles
from core.shadows import DEFAULT_SHADOW_CONFIG, evaluate
from core.solar import solar_angles

DEFAULT_OFFSETS_MINUTES = (0, 15, 30, 45, 60, 90, 120)

# A shaded terrace keeps 40% of its score, minus up to 20% more with confidence.
SHADED_FACTOR_BASE = 0.4
SHADED_FACTOR_CONFIDENCE_WEIGHT = 0.2


def shade_factor(result: ShadowResult) -> float:
    if not result.shaded:
        return 1.0
    return SHADED_FACTOR_BASE - SHADED_FACTOR_CONFIDENCE_WEIGHT * result.confidence


def exposure_at(
    venue: Venue,
    buildings: Optional[Sequence[Building]],
    cloud_fraction: Optional[float],
    timestamp: datetime,
    config: ShadowConfig = DEFAULT_SHADOW_CONFIG,
) -> tuple[int, ShadowResult]:
    """Return ``(score, shadow_result)`` for one instant."""
    solar = solar_angles(timestamp, venue.coordinate.lat, venue.coordinate.lon)
    raw = score_from_angles(venue, solar, cloud_fraction)
    shadow = evaluate(venue.coordinate, solar, buildings, config)
    return round_score(raw * shade_factor(shadow)), shadow


def project(
    venue: Venue,
    buildings: Optional[Sequence[Building]],
    cloud_fraction: Optional[float],
    base_timestamp: datetime,
    offsets_minutes: Sequence[int] = DEFAULT_OFFSETS_MINUTES,
    config: ShadowConfig = DEFAULT_SHADOW_CONFIG,
) -> list[ForecastPoint]:
    """
    Re-score a terrace at each offset from ``base_timestamp``.

    Buildings are static across offsets; the sun position is recomputed for
    every step. Output order follows ``offsets_minutes``.
    """
    forecast = []
    for offset in offsets_minutes:
        when = base_timestamp + timedelta(minutes=offset)
        value, _ = exposure_at(venue, buildings, cloud_fraction, when, config)
        forecast.append(ForecastPoint(offset_minutes=offset, score=value))
    return forecast
