from catenary.config.settings import TuningSettings
from catenary.domain.models import Trace
from catenary.tracing.proximity import overlaps

SETTINGS = TuningSettings()
MIN_SPEED = SETTINGS.min_speed_meters_per_second
MAX_SLOPE = SETTINGS.trace_match_max_slope_diff_degrees


def test_low_speed_never_overlaps():
    slow = Trace(location=(0.0, 0.0), speed=MIN_SPEED - 1.0, slope=0.0)
    fast = Trace(location=(0.0, 0.0), speed=MIN_SPEED + 1.0, slope=0.0)

    assert not overlaps(slow, fast, SETTINGS), "self has low speed"
    assert not overlaps(fast, slow, SETTINGS), "other has low speed"
    assert not overlaps(slow, slow, SETTINGS), "both have low speed"


def test_slope_diff():
    a = Trace(location=(0.0, 0.0), speed=MIN_SPEED + 1.0, slope=0.0)

    assert overlaps(a, a, SETTINGS), "same slope"
    assert overlaps(a, Trace(location=(0.0, 0.0), speed=MIN_SPEED + 1.0, slope=MAX_SLOPE - 1.0), SETTINGS)
    assert not overlaps(a, Trace(location=(0.0, 0.0), speed=MIN_SPEED + 1.0, slope=MAX_SLOPE + 1.0), SETTINGS)


def test_slope_diff_at_limit_does_not_overlap():
    a = Trace(location=(0.0, 0.0), speed=MIN_SPEED + 1.0, slope=10.0)
    b = Trace(location=(0.0, 0.0), speed=MIN_SPEED + 1.0, slope=10.0 + MAX_SLOPE)

    assert not overlaps(a, b, SETTINGS)
    assert not overlaps(b, a, SETTINGS)


def test_bus_rush_hour_europapassage_to_kunsthalle():
    bus_speed_rush_hour = 6.0
    a = Trace(location=(53.552196, 9.994872), speed=12.0, slope=0.0)
    b = Trace(location=(53.555574, 10.000226), speed=bus_speed_rush_hour, slope=0.0)

    assert overlaps(a, b, SETTINGS)
    assert overlaps(b, a, SETTINGS)


def test_europapassage_to_schwanenwik_depends_on_own_speed():
    # About 1.9 km apart: inside 12 m/s x 180 s = 2160 m, outside 10 m/s x 180 s = 1800 m.
    schwanenwik = Trace(location=(53.564007, 10.015946), speed=12.0, slope=0.0)

    assert overlaps(Trace(location=(53.552196, 9.994872), speed=12.0, slope=0.0), schwanenwik, SETTINGS)
    assert not overlaps(Trace(location=(53.552196, 9.994872), speed=10.0, slope=0.0), schwanenwik, SETTINGS)


def test_bus_gurlittinsel_to_schwanenwik():
    bus_speed = 13.0
    a = Trace(location=(53.559220, 10.007939), speed=bus_speed, slope=0.0)
    b = Trace(location=(53.564007, 10.015946), speed=12.0, slope=0.0)

    assert overlaps(a, b, SETTINGS)


def test_distance_bound_uses_only_own_speed():
    # ~1 km apart along the equator.
    fast = Trace(location=(0.0, 0.0), speed=20.0, slope=90.0)
    slow = Trace(location=(0.0, 0.009), speed=4.0, slope=90.0)

    assert overlaps(fast, slow, SETTINGS)
    assert not overlaps(slow, fast, SETTINGS)


def test_far_apart_traces_do_not_overlap():
    hamburg = Trace(location=(53.55, 9.99), speed=30.0, slope=0.0)
    berlin = Trace(location=(52.52, 13.40), speed=30.0, slope=0.0)

    assert not overlaps(hamburg, berlin, SETTINGS)
