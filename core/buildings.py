"""Building footprints (centroid + estimated height) from Overpass."""
import logging
import math
from typing import Optional

import httpx

from core.cache import TTLCache
from core.config import get_settings
from core.models import Building, Coordinate

_log = logging.getLogger(__name__)

_BUILDING_CACHE = TTLCache(ttl_seconds=10 * 60)

METRES_PER_LEVEL = 3.0
DEFAULT_HEIGHT_M = 12.0


def _as_float(value) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).lower().replace("m", "").strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def height_from_tags(tags: Optional[dict]) -> float:
    """Explicit ``height`` tag, else ``building:levels`` × 3 m, else 12 m."""
    tags = tags or {}
    height = _as_float(tags.get("height"))
    if height is not None:
        return height
    levels = _as_float(tags.get("building:levels"))
    if levels is not None:
        return levels * METRES_PER_LEVEL
    return DEFAULT_HEIGHT_M


def _parse_building(element: dict) -> Optional[Building]:
    center = element.get("center") or {}
    lat = _as_float(center.get("lat", element.get("lat")))
    lon = _as_float(center.get("lon", element.get("lon")))
    if lat is None or lon is None:
        return None
    return Building(
        id=element["id"],
        height_m=height_from_tags(element.get("tags")),
        centroid=Coordinate(lat=lat, lon=lon),
    )


def parse_buildings(payload: dict) -> list[Building]:
    buildings = []
    for element in payload.get("elements") or []:
        building = _parse_building(element)
        if building is not None:
            buildings.append(building)
    return buildings


async def get_buildings(lat: float, lon: float, radius_m: float = 150) -> list[Building]:
    """
    Fetch buildings within ``radius_m`` of a point. Cached for ten minutes.

    Raises:
        httpx.HTTPError: On transport or HTTP-status errors.
    """
    cache_key = f"{lat:.4f}_{lon:.4f}_{radius_m:g}"
    cached = _BUILDING_CACHE.get(cache_key)
    if cached is not None:
        _log.debug("Using cached buildings for %s", cache_key)
        return cached

    around = f"(around:{radius_m:g},{lat},{lon})"
    query = (
        "[out:json][timeout:25];\n"
        "(\n"
        f'  way["building"]{around};\n'
        f'  relation["building"]{around};\n'
        ");\n"
        "out center tags;\n"
    )

    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.http_timeout_s) as client:
        response = await client.post(
            settings.overpass_url,
            content=query,
            headers={"Content-Type": "text/plain", "User-Agent": settings.user_agent},
        )
        response.raise_for_status()
        payload = response.json()

    buildings = parse_buildings(payload or {})
    _log.info("Loaded %d buildings within %sm of (%.5f, %.5f)", len(buildings), radius_m, lat, lon)
    _BUILDING_CACHE.purge()
    _BUILDING_CACHE.set(cache_key, buildings)
    return buildings
