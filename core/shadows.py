"""Building occlusion: is the sun hidden behind a nearby building?

Each building is reduced to a centroid and a height. A building shades the
terrace when it sits within ``azimuth_tolerance_deg`` of the shadow axis and
its apparent elevation (``atan(height / distance)``) reaches the sun's
altitude. Only the single most convincing building is reported.
"""
import math
from functools import reduce
from typing import Iterable, Iterator, Optional

from core.geometry import angular_difference, bearing, distance
from core.models import Building, Coordinate, ShadowConfig, ShadowResult, SolarAngles

# Elevation overshoot (degrees) at which confidence saturates.
ELEVATION_MARGIN_SATURATION_DEG = 10.0

DEFAULT_SHADOW_CONFIG = ShadowConfig()


def _confidence(elevation_margin: float, azimuth_delta: float, tolerance: float) -> float:
    # A zero tolerance only admits perfectly aligned buildings.
    alignment = 1.0 - azimuth_delta / tolerance if tolerance > 0 else 1.0
    conf = (elevation_margin / ELEVATION_MARGIN_SATURATION_DEG) * alignment
    return max(0.0, min(1.0, conf))


def _candidates(
    point: Coordinate,
    solar: SolarAngles,
    buildings: Iterable[Building],
    config: ShadowConfig,
) -> Iterator[ShadowResult]:
    shadow_axis = (solar.azimuth_deg + 180.0) % 360.0

    for building in buildings:
        d = distance(point, building.centroid)
        if d > config.max_occlusion_distance_m:
            continue

        delta = angular_difference(bearing(point, building.centroid), shadow_axis)
        if delta > config.azimuth_tolerance_deg:
            continue

        elevation = math.degrees(math.atan2(building.height_m or 0.0, d))
        if elevation >= solar.altitude_deg:
            yield ShadowResult(
                shaded=True,
                confidence=_confidence(
                    elevation - solar.altitude_deg, delta, config.azimuth_tolerance_deg
                ),
                culprit=building,
            )


def _stronger(best: ShadowResult, candidate: ShadowResult) -> ShadowResult:
    # Strict comparison: ties keep the earlier building, and a zero-confidence
    # candidate never flips the result to shaded.
    return candidate if candidate.confidence > best.confidence else best


def evaluate(
    point: Coordinate,
    solar: SolarAngles,
    buildings: Optional[Iterable[Building]],
    config: ShadowConfig = DEFAULT_SHADOW_CONFIG,
) -> ShadowResult:
    """Return the strongest single-building occlusion at ``point``, if any."""
    if not buildings:
        return ShadowResult.none()
    return reduce(_stronger, _candidates(point, solar, buildings, config), ShadowResult.none())
