"""API route definitions."""
import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from core.buildings import get_buildings
from core.config import Settings, get_settings
from core.models import Building
from core.places import Place, demo_places, get_nearby_places
from core.projection import DEFAULT_OFFSETS_MINUTES, exposure_at, project
from core.weather import get_cloud_fraction

router = APIRouter(prefix="/api")

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class ForecastPointModel(BaseModel):
    offset_minutes: int
    score: int


class TerraceResponse(BaseModel):
    id: int
    name: str
    lat: float
    lon: float
    amenity: Optional[str] = None
    orientation_deg: float
    street_width: str
    distance_m: int

    cuisine: Optional[str] = None
    opening_hours: Optional[str] = None
    outdoor_seating: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None

    has_outdoor: bool = False
    terrace_confidence: float = Field(0.0, ge=0.0, le=1.0)
    terrace_evidence: list[str] = Field(default_factory=list)

    sun_score: int = Field(..., ge=0, le=100)
    shaded: bool = False
    shadow_evaluated: bool = True
    shade_confidence: float = 0.0
    culprit_id: Optional[int] = None
    forecast: Optional[list[ForecastPointModel]] = None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _cloud_fraction_or_default(lat: float, lon: float, settings: Settings) -> float:
    try:
        cloud = await get_cloud_fraction(lat, lon)
    except (httpx.HTTPError, ValueError) as exc:
        _log.warning("Could not get cloud fraction (%s); using default.", exc)
        return settings.default_cloud_fraction
    if cloud is None:
        _log.warning("No cloud cover in weather response; using default.")
        return settings.default_cloud_fraction
    return cloud


async def _buildings_near(
    place: Place, settings: Settings, limiter: asyncio.Semaphore
) -> Optional[list[Building]]:
    """Buildings close enough to shade ``place``; None when the lookup failed."""
    async with limiter:
        try:
            return await get_buildings(
                place.coordinate.lat,
                place.coordinate.lon,
                settings.shadow.max_occlusion_distance_m,
            )
        except (httpx.HTTPError, ValueError) as exc:
            _log.warning(
                "Building lookup failed for place %s (%s); scoring without shadows.",
                place.id, exc,
            )
            return None


def _score_place(
    place: Place,
    buildings: Optional[list[Building]],
    cloud_fraction: float,
    now: datetime,
    with_forecast: bool,
    settings: Settings,
) -> TerraceResponse:
    venue = place.venue
    sun_score, shadow = exposure_at(venue, buildings, cloud_fraction, now, settings.shadow)

    forecast = None
    if with_forecast:
        # Offset 0 is the instant just scored; only project the later ones.
        later = [offset for offset in DEFAULT_OFFSETS_MINUTES if offset != 0]
        scores = {
            p.offset_minutes: p.score
            for p in project(venue, buildings, cloud_fraction, now, later, settings.shadow)
        }
        scores[0] = sun_score
        forecast = [
            ForecastPointModel(offset_minutes=offset, score=scores[offset])
            for offset in DEFAULT_OFFSETS_MINUTES
        ]

    return TerraceResponse(
        id=place.id,
        name=place.name,
        lat=place.coordinate.lat,
        lon=place.coordinate.lon,
        amenity=place.amenity,
        orientation_deg=place.orientation_deg,
        street_width=place.street_width,
        distance_m=place.distance_m,
        has_outdoor=place.has_outdoor,
        terrace_confidence=place.terrace_confidence,
        terrace_evidence=list(place.terrace_evidence),
        sun_score=sun_score,
        shaded=shadow.shaded,
        shadow_evaluated=buildings is not None,
        shade_confidence=round(shadow.confidence, 3),
        culprit_id=shadow.culprit.id if shadow.culprit else None,
        forecast=forecast,
        **place.tags,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health")
def health():
    return {"ok": True}


@router.get("/terraces/nearby", response_model=list[TerraceResponse])
async def terraces_nearby(
    lat: Optional[float] = Query(None, description="Latitude"),
    lon: Optional[float] = Query(None, description="Longitude"),
    radius: float = Query(1500, gt=0, description="Search radius in metres"),
    forecast: bool = Query(False, description="Include a two-hour exposure forecast"),
    demo: bool = Query(False, description="Use built-in demo venues"),
) -> list[TerraceResponse]:
    """
    Rank nearby terraces by how much sun they get right now.

      1. Fetch cloud cover (default 0.3 when unavailable)
      2. Fetch candidate venues (or the demo set)
      3. Fetch the buildings around each venue for shadow casting
      4. Score every venue and sort by descending sun score
    """
    if lat is None or lon is None or not (math.isfinite(lat) and math.isfinite(lon)):
        raise HTTPException(status_code=400, detail="bad_params: lat and lon are required")

    settings = get_settings()
    _log.info("Looking for places around %s, %s within %sm", lat, lon, radius)

    try:
        cloud_fraction = await _cloud_fraction_or_default(lat, lon, settings)

        places = demo_places(lat, lon) if demo else await get_nearby_places(lat, lon, radius)
        if not places:
            _log.info("No places found; try demo=true for test data")
            return []

        limiter = asyncio.Semaphore(settings.building_fetch_concurrency)
        buildings_by_place = await asyncio.gather(
            *(_buildings_near(place, settings, limiter) for place in places)
        )

        now = datetime.now(timezone.utc)
        items = [
            _score_place(place, buildings, cloud_fraction, now, forecast, settings)
            for place, buildings in zip(places, buildings_by_place)
        ]
    except Exception as exc:
        _log.exception("Error in /api/terraces/nearby")
        raise HTTPException(
            status_code=500,
            detail=f"internal_error: {exc}. Try adding ?demo=true to get test data",
        ) from exc

    items.sort(key=lambda item: item.sun_score, reverse=True)
    _log.info("Returning %d places with sun scores", len(items))
    return items


@router.get("/terraces/{terrace_id}/sunscore")
def terrace_sunscore(terrace_id: int):
    raise HTTPException(
        status_code=501,
        detail="not_implemented: per-terrace scores need a place lookup by id",
    )
