"""Tests for core.projection: shade factor, exposure_at and project."""
import math
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from core.models import Building, Coordinate, ForecastPoint, ShadowResult, SolarAngles, Venue
from core.projection import DEFAULT_OFFSETS_MINUTES, exposure_at, project, shade_factor

_BASE = datetime(2024, 6, 21, 10, 0, 0, tzinfo=timezone.utc)
_TERRACE = Coordinate(48.8566, 2.3522)
_VENUE = Venue(coordinate=_TERRACE, orientation_deg=180.0, street_width="wide")

# 30 m north of the terrace, tall enough to hide a 20° sun completely.
_TOWER = Building(id=7, height_m=40.0, centroid=Coordinate(_TERRACE.lat + 30.0 / 111_132.0, _TERRACE.lon))


def _fixed_sun(azimuth: float = 180.0, altitude: float = 45.0):
    return lambda ts, lat, lon: SolarAngles(azimuth_deg=azimuth, altitude_deg=altitude)


# ---------------------------------------------------------------------------
# shade_factor
# ---------------------------------------------------------------------------

def test_shade_factor_unshaded_is_one():
    assert shade_factor(ShadowResult.none()) == 1.0


@pytest.mark.parametrize("confidence, expected", [(0.0, 0.4), (0.5, 0.3), (1.0, 0.2)])
def test_shade_factor_scales_with_confidence(confidence, expected):
    assert shade_factor(ShadowResult(True, confidence)) == pytest.approx(expected)


# ---------------------------------------------------------------------------
# exposure_at
# ---------------------------------------------------------------------------

def test_exposure_without_buildings_is_raw_score():
    with patch("core.projection.solar_angles", side_effect=_fixed_sun()):
        value, shadow = exposure_at(_VENUE, [], 0.0, _BASE)

    assert value == 65
    assert shadow.shaded is False


def test_exposure_under_full_shadow_keeps_twenty_percent():
    with patch("core.projection.solar_angles", side_effect=_fixed_sun(altitude=20.0)):
        value, shadow = exposure_at(_VENUE, [_TOWER], 0.0, _BASE)

    # raw 65, shade factor 0.4 - 0.2 * 1.0
    assert shadow.culprit is _TOWER
    assert value == 13


def test_exposure_combines_cloud_and_shadow():
    with patch("core.projection.solar_angles", side_effect=_fixed_sun(altitude=20.0)):
        value, _ = exposure_at(_VENUE, [_TOWER], 1.0, _BASE)

    # raw round(65 * 0.4) = 26, then 26 * 0.2 = 5.2
    assert value == 5


# ---------------------------------------------------------------------------
# project
# ---------------------------------------------------------------------------

def test_projection_returns_one_point_per_offset_in_order():
    with patch("core.projection.solar_angles", side_effect=_fixed_sun()):
        forecast = project(_VENUE, [], 0.0, _BASE, [0, 15, 30])

    assert [p.offset_minutes for p in forecast] == [0, 15, 30]
    assert all(isinstance(p, ForecastPoint) for p in forecast)


def test_projection_preserves_unsorted_offsets():
    with patch("core.projection.solar_angles", side_effect=_fixed_sun()):
        forecast = project(_VENUE, [], 0.0, _BASE, [30, 0, 15])

    assert [p.offset_minutes for p in forecast] == [30, 0, 15]


def test_projection_recomputes_sun_for_each_offset():
    with patch("core.projection.solar_angles", side_effect=_fixed_sun()) as mock_sun:
        project(_VENUE, [], 0.0, _BASE, [0, 45, 120])

    called_times = [c.args[0] for c in mock_sun.call_args_list]
    assert called_times == [_BASE, _BASE + timedelta(minutes=45), _BASE + timedelta(minutes=120)]


def test_projection_tracks_sun_moving_behind_building():
    """Sun sinks from 60° to 20°. The tower (≈53° tall from the terrace) starts shading it."""
    altitudes = iter([60.0, 20.0])

    def _sinking_sun(ts, lat, lon):
        return SolarAngles(azimuth_deg=180.0, altitude_deg=next(altitudes))

    with patch("core.projection.solar_angles", side_effect=_sinking_sun):
        forecast = project(_VENUE, [_TOWER], 0.0, _BASE, [0, 60])

    assert forecast[0].score == 65
    assert forecast[1].score == 13


def test_projection_empty_offsets():
    assert project(_VENUE, [], 0.3, _BASE, []) == []


def test_default_offsets_cover_two_hours():
    assert DEFAULT_OFFSETS_MINUTES == (0, 15, 30, 45, 60, 90, 120)


def test_projection_is_deterministic_with_real_ephemeris():
    first = project(_VENUE, [_TOWER], 0.3, _BASE)
    second = project(_VENUE, [_TOWER], 0.3, _BASE)

    assert first == second
    assert len(first) == len(DEFAULT_OFFSETS_MINUTES)
    for point in first:
        assert isinstance(point.score, int)
        assert 0 <= point.score <= 100
