"""Tests for the Open-Meteo cloud-cover lookup."""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.weather import get_cloud_fraction

_WHEN = datetime(2024, 6, 21, 12, 30, 0, tzinfo=timezone.utc)


def _patch_httpx(payload=None, ok: bool = True, status: int = 200):
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    mock_response.is_success = ok
    mock_response.status_code = status

    mock_client = AsyncMock()
    mock_client.get.return_value = mock_response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)

    return patch("core.weather.httpx.AsyncClient", return_value=mock_client), mock_client


@pytest.mark.asyncio
async def test_cloud_cover_percent_becomes_fraction():
    patcher, client = _patch_httpx({"hourly": {"cloud_cover": [75]}})
    with patcher:
        assert await get_cloud_fraction(48.85, 2.35, _WHEN) == pytest.approx(0.75)

    params = client.get.call_args.kwargs["params"]
    assert params["hourly"] == "cloud_cover"
    assert params["forecast_hours"] == 1


@pytest.mark.asyncio
async def test_cloud_fraction_clamped():
    patcher, _ = _patch_httpx({"hourly": {"cloud_cover": [140]}})
    with patcher:
        assert await get_cloud_fraction(48.85, 2.35, _WHEN) == 1.0


@pytest.mark.asyncio
async def test_http_error_status_returns_none():
    patcher, _ = _patch_httpx(ok=False, status=503)
    with patcher:
        assert await get_cloud_fraction(48.85, 2.35, _WHEN) is None


@pytest.mark.asyncio
async def test_missing_value_returns_none():
    patcher, _ = _patch_httpx({"hourly": {"cloud_cover": [None]}})
    with patcher:
        assert await get_cloud_fraction(48.85, 2.35, _WHEN) is None


@pytest.mark.asyncio
async def test_cached_within_the_same_hour():
    patcher, client = _patch_httpx({"hourly": {"cloud_cover": [0]}})
    with patcher:
        first = await get_cloud_fraction(48.85, 2.35, _WHEN)
        second = await get_cloud_fraction(48.85, 2.35, _WHEN.replace(minute=55))

    assert first == second == 0.0
    assert client.get.await_count == 1
