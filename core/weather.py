"""Cloud cover from Open-Meteo (free, no API key)."""
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from core.cache import TTLCache
from core.config import get_settings

_log = logging.getLogger(__name__)

_CLOUD_CACHE = TTLCache(ttl_seconds=5 * 60)


async def get_cloud_fraction(lat: float, lon: float, when: Optional[datetime] = None) -> Optional[float]:
    """
    Current cloud cover as a fraction in [0, 1].

    Returns None when Open-Meteo answers with a non-2xx status or without a
    numeric ``cloud_cover`` value. Transport errors propagate.
    """
    when = when or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    hour = when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H")
    cache_key = f"{lat:.3f}:{lon:.3f}:{hour}"
    cached = _CLOUD_CACHE.get(cache_key)
    if cached is not None:
        return cached

    settings = get_settings()
    params = {
        "latitude": lat,
        "longitude": lon,
        "hourly": "cloud_cover",
        "forecast_hours": 1,
        "timeformat": "iso8601",
    }
    async with httpx.AsyncClient(timeout=settings.http_timeout_s) as client:
        response = await client.get(settings.open_meteo_url, params=params)

    if not response.is_success:
        _log.warning("Open-Meteo returned HTTP %s", response.status_code)
        return None

    covers = (response.json().get("hourly") or {}).get("cloud_cover") or []
    cover = covers[0] if covers else None
    if isinstance(cover, bool) or not isinstance(cover, (int, float)):
        return None

    fraction = max(0.0, min(1.0, cover / 100.0))
    _CLOUD_CACHE.set(cache_key, fraction)
    return fraction
