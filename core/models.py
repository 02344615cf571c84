"""Plain data types shared by the exposure engine and its collaborators."""
from dataclasses import dataclass
from typing import Literal, Optional

StreetWidth = Literal["narrow", "medium", "wide"]


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float


@dataclass(frozen=True)
class Venue:
    """An outdoor seating area as the scorer sees it."""

    coordinate: Coordinate
    orientation_deg: float  # compass bearing the seating faces
    street_width: StreetWidth = "medium"


@dataclass(frozen=True)
class SolarAngles:
    azimuth_deg: float   # 0 = north, 90 = east
    altitude_deg: float  # negative when below the horizon


@dataclass(frozen=True)
class Building:
    """Building footprint reduced to its centroid and an estimated height."""

    id: int
    height_m: float
    centroid: Coordinate


@dataclass(frozen=True)
class ShadowResult:
    shaded: bool
    confidence: float
    culprit: Optional[Building] = None

    @classmethod
    def none(cls) -> "ShadowResult":
        return cls(shaded=False, confidence=0.0, culprit=None)


@dataclass(frozen=True)
class ForecastPoint:
    offset_minutes: int
    score: int


@dataclass(frozen=True)
class ShadowConfig:
    """Tuning knobs for building occlusion."""

    max_occlusion_distance_m: float = 80.0
    azimuth_tolerance_deg: float = 25.0
