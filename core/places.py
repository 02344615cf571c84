"""Place lookup: bars, cafés and restaurants around a point via Overpass."""
import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from core.cache import TTLCache
from core.config import get_settings
from core.geometry import haversine_m
from core.models import Coordinate, StreetWidth, Venue

_log = logging.getLogger(__name__)

_PLACE_CACHE = TTLCache(ttl_seconds=5 * 60)

_AMENITY_PATTERN = "^(bar|restaurant|cafe|pub|biergarten)$"

# Outdoor seating counts as detected from this confidence upward.
OUTDOOR_CONFIDENCE_THRESHOLD = 0.6


@dataclass(frozen=True)
class Place:
    """A venue from the place lookup, with the tags the API passes through."""

    id: int
    name: str
    coordinate: Coordinate
    amenity: Optional[str]
    orientation_deg: float
    street_width: StreetWidth
    distance_m: int
    has_outdoor: bool = False
    terrace_confidence: float = 0.0
    terrace_evidence: tuple[str, ...] = ()
    tags: dict = field(default_factory=dict, compare=False)

    @property
    def venue(self) -> Venue:
        return Venue(
            coordinate=self.coordinate,
            orientation_deg=self.orientation_deg,
            street_width=self.street_width,
        )


def _overpass_query(lat: float, lon: float, radius_m: float) -> str:
    around = f"(around:{radius_m:g},{lat},{lon})"
    selector = f'["amenity"~"{_AMENITY_PATTERN}"]'
    return (
        "[out:json][timeout:25];\n"
        "(\n"
        f"  node{selector}{around};\n"
        f"  way{selector}{around};\n"
        f"  relation{selector}{around};\n"
        ");\n"
        "out center meta;\n"
    )


def estimate_orientation(osm_id: int) -> float:
    """Pseudo-random but stable facing direction; OSM has no terrace bearing."""
    return float((osm_id * 37) % 360)


def estimate_street_width(amenity: Optional[str]) -> StreetWidth:
    if amenity == "biergarten":
        return "wide"
    if amenity == "cafe":
        return "narrow"
    return "medium"


def detect_outdoor_seating(tags: dict) -> tuple[float, list[str]]:
    """
    Accumulate confidence that a venue has a terrace from its OSM tags.

    Returns (confidence in [0, 1], evidence strings in the order found).
    """
    conf = 0.0
    evidence: list[str] = []

    if tags.get("outdoor_seating") == "yes":
        conf += 0.8
        evidence.append("osm:outdoor_seating=yes")
    if "seats:outside" in tags:
        conf += 0.25
        evidence.append(f"osm:seats:outside={tags['seats:outside']}")
    if tags.get("terrace") == "yes":
        conf = max(conf, 0.7)
        evidence.append("osm:terrace=yes")
    if tags.get("amenity") == "biergarten":
        conf = max(conf, 0.95)
        evidence.append("osm:biergarten")
    if tags.get("outdoor_seating:covered") == "yes":
        evidence.append("osm:outdoor_seating:covered=yes")
        conf = min(1.0, conf + 0.05)

    return max(0.0, min(1.0, conf)), evidence


def _element_coordinate(element: dict) -> Optional[Coordinate]:
    center = element.get("center") or {}
    lat = element.get("lat", center.get("lat"))
    lon = element.get("lon", center.get("lon"))
    if lat is None or lon is None:
        return None
    return Coordinate(lat=float(lat), lon=float(lon))


def _parse_place(element: dict, origin: Coordinate) -> Optional[Place]:
    coordinate = _element_coordinate(element)
    if coordinate is None:
        return None

    tags = element.get("tags") or {}
    amenity = tags.get("amenity")
    conf, evidence = detect_outdoor_seating(tags)

    return Place(
        id=element["id"],
        name=tags.get("name") or tags.get("brand") or "Unnamed bar",
        coordinate=coordinate,
        amenity=amenity,
        orientation_deg=estimate_orientation(element["id"]),
        street_width=estimate_street_width(amenity),
        distance_m=round(haversine_m(origin, coordinate)),
        has_outdoor=conf >= OUTDOOR_CONFIDENCE_THRESHOLD,
        terrace_confidence=round(conf, 2),
        terrace_evidence=tuple(evidence),
        tags={
            key: tags[key]
            for key in ("cuisine", "opening_hours", "outdoor_seating", "website", "phone")
            if key in tags
        },
    )


def parse_places(payload: dict, lat: float, lon: float) -> list[Place]:
    """Turn an Overpass JSON payload into places sorted by distance."""
    origin = Coordinate(lat=lat, lon=lon)
    places = [
        place
        for place in (_parse_place(el, origin) for el in payload.get("elements") or [])
        if place is not None
    ]
    places.sort(key=lambda p: p.distance_m)
    return places


def demo_places(lat: float, lon: float) -> list[Place]:
    """Two fixed venues around the query point, used when Overpass is down."""
    origin = Coordinate(lat=lat, lon=lon)
    fixtures = [
        (-1, "Le Rayon Vert", 0.001, 0.001, "bar", 180.0, "medium", True, 0.9),
        (-2, "Chez Azur", -0.001, 0.0005, "restaurant", 220.0, "narrow", False, 0.2),
    ]
    places = []
    for osm_id, name, dlat, dlon, amenity, orientation, width, outdoor, conf in fixtures:
        coordinate = Coordinate(lat=lat + dlat, lon=lon + dlon)
        places.append(Place(
            id=osm_id,
            name=name,
            coordinate=coordinate,
            amenity=amenity,
            orientation_deg=orientation,
            street_width=width,
            distance_m=round(haversine_m(origin, coordinate)),
            has_outdoor=outdoor,
            terrace_confidence=conf,
            terrace_evidence=("demo",),
        ))
    return places


async def get_nearby_places(lat: float, lon: float, radius_m: float = 1500) -> list[Place]:
    """
    Fetch bars, restaurants, cafés, pubs and beer gardens within ``radius_m``.

    Results are cached for five minutes per (rounded centre, radius). When
    Overpass is unreachable or answers with an error, the demo venues are
    returned instead so the caller still has something to rank.
    """
    cache_key = f"{lat:.4f}_{lon:.4f}_{radius_m:g}"
    cached = _PLACE_CACHE.get(cache_key)
    if cached is not None:
        _log.debug("Using cached places for %s", cache_key)
        return cached

    settings = get_settings()
    _log.info("Overpass place lookup radius=%sm around (%.5f, %.5f)", radius_m, lat, lon)
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_s) as client:
            response = await client.post(
                settings.overpass_url,
                content=_overpass_query(lat, lon, radius_m),
                headers={"Content-Type": "text/plain", "User-Agent": settings.user_agent},
            )
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        _log.warning("Overpass place lookup failed (%s); falling back to demo data.", exc)
        return demo_places(lat, lon)

    if not payload or not payload.get("elements"):
        _log.warning("No elements in Overpass response")
        return []

    places = parse_places(payload, lat, lon)
    _log.info("Found %d places from Overpass", len(places))
    dropped = _PLACE_CACHE.purge()
    if dropped:
        _log.debug("Place cache cleanup: dropped %d stale entries", dropped)
    _PLACE_CACHE.set(cache_key, places)
    return places
