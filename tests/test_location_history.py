import logging
import math

import pytest

from catenary.config.settings import TuningSettings
from catenary.core.geo import GeoPoint, bearing_deg
from catenary.domain.models import Trace, TooSlow, WaitingForMoreLocations, WaitingForTimeToPass
from catenary.tracing.history import LocationHistory

METERS_PER_DEGREE_LAT = 6_371_000 * math.pi / 180


def _north_of(p: GeoPoint, meters: float) -> GeoPoint:
    return GeoPoint(lat=p.lat + meters / METERS_PER_DEGREE_LAT, lon=p.lon)


START = GeoPoint(lat=53.55, lon=9.99)


def test_waiting_for_more_locations_reports_retained_count(clock):
    history = LocationHistory(TuningSettings(), clock=clock)
    assert history.trace() == WaitingForMoreLocations(received=0, required=4)

    history.add_location(START)
    clock.advance(1)
    history.add_location(_north_of(START, 20))

    assert history.trace() == WaitingForMoreLocations(received=2, required=4)


def test_history_never_grows_beyond_capacity(clock):
    history = LocationHistory(TuningSettings(max_locations_in_history=3), clock=clock)
    for i in range(10):
        history.add_location(_north_of(START, i * 10))
        clock.advance(1)
        assert len(history) <= 3

    # Newest first; the oldest samples were dropped.
    assert [s.point for s in history.samples] == [_north_of(START, i * 10) for i in (9, 8, 7)]


def test_trace_purges_expired_locations(clock):
    history = LocationHistory(TuningSettings(), clock=clock)
    for i in range(4):
        history.add_location(_north_of(START, i * 20))
        clock.advance(1)
    assert isinstance(history.trace(), Trace)

    clock.advance(60)
    assert history.trace() == WaitingForMoreLocations(received=0, required=4)
    assert len(history) == 0


def test_location_exactly_at_max_age_is_purged(clock):
    history = LocationHistory(TuningSettings(max_location_age_seconds=60), clock=clock)
    history.add_location(START)
    clock.advance(59.9)
    history.add_location(_north_of(START, 10))
    clock.advance(0.1)

    assert history.trace() == WaitingForMoreLocations(received=1, required=4)


def test_trace_speed_and_slope_from_two_samples(clock):
    settings = TuningSettings(max_locations_in_history=2, min_location_time_delta_seconds=1.0)
    history = LocationHistory(settings, clock=clock)
    a = START
    b = GeoPoint(lat=START.lat + 10 / METERS_PER_DEGREE_LAT, lon=START.lon)

    history.add_location(a)
    clock.advance(1)
    history.add_location(b)
    result = history.trace()

    assert isinstance(result, Trace)
    assert result.speed == pytest.approx(10.0, abs=1e-3)
    assert result.slope == pytest.approx(bearing_deg(a, b))
    assert result.location == (b.lat, b.lon)


def test_trace_uses_oldest_sample_in_window(clock):
    settings = TuningSettings(max_locations_in_history=3, min_location_time_delta_seconds=1.0)
    history = LocationHistory(settings, clock=clock)

    # This one falls out of the window and must not influence the speed.
    history.add_location(_north_of(START, -1000))
    clock.advance(1)
    for meters in (0, 10, 20):
        history.add_location(_north_of(START, meters))
        clock.advance(1)
    clock.advance(-1)

    result = history.trace()
    assert isinstance(result, Trace)
    assert result.speed == pytest.approx(10.0, abs=1e-3)
    assert result.slope == pytest.approx(0.0, abs=1e-6)


def test_waiting_for_time_to_pass(clock):
    history = LocationHistory(TuningSettings(), clock=clock)
    for i in range(4):
        history.add_location(_north_of(START, i * 20))
        clock.advance(0.4)

    assert history.trace() == WaitingForTimeToPass()


def test_too_slow_reports_speeds(clock):
    history = LocationHistory(TuningSettings(), clock=clock)
    for _ in range(4):
        history.add_location(START)
        clock.advance(1)
    clock.advance(-1)

    result = history.trace()
    assert isinstance(result, TooSlow)
    assert result.current_speed == pytest.approx(0.0)
    assert result.required_speed == 3.0


def test_speed_just_below_threshold_is_tolerated(clock):
    settings = TuningSettings(max_locations_in_history=2, min_location_time_delta_seconds=1.0)
    history = LocationHistory(settings, clock=clock)
    history.add_location(START)
    clock.advance(1)
    history.add_location(_north_of(START, 2.9995))

    assert isinstance(history.trace(), Trace)


def test_speed_clearly_below_threshold_is_too_slow(clock):
    settings = TuningSettings(max_locations_in_history=2, min_location_time_delta_seconds=1.0)
    history = LocationHistory(settings, clock=clock)
    history.add_location(START)
    clock.advance(1)
    history.add_location(_north_of(START, 2.99))

    assert isinstance(history.trace(), TooSlow)


@pytest.mark.parametrize(
    "point",
    [
        GeoPoint(lat=float("nan"), lon=10.0),
        GeoPoint(lat=10.0, lon=float("inf")),
        GeoPoint(lat=91.0, lon=10.0),
        GeoPoint(lat=10.0, lon=-181.0),
    ],
)
def test_invalid_location_is_replaced_by_sentinel(clock, caplog, point):
    history = LocationHistory(TuningSettings(), clock=clock)
    with caplog.at_level(logging.WARNING, logger="catenary.tracing.history"):
        history.add_location(point)

    assert history.samples[0].point == GeoPoint(lat=0.0, lon=0.0)
    assert "invalid location" in caplog.text
