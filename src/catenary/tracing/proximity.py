"""Proximity matching between two traces."""

from __future__ import annotations

from catenary.config.settings import TuningSettings
from catenary.core.geo import haversine_m
from catenary.domain.models import Trace


def overlaps(this: Trace, other: Trace, settings: TuningSettings) -> bool:
    """Whether the owner of `this` should see messages sent from `other`.

    Both parties must be moving at least `min_speed_meters_per_second`. `other` must be
    closer than the distance `this` covers in `trace_match_max_move_seconds`, and the
    headings must differ by less than `trace_match_max_slope_diff_degrees`.

    Only `this.speed` bounds the distance, so the result is not symmetric. The message
    store always passes the viewer's trace as `this`.
    """
    min_speed = settings.min_speed_meters_per_second
    if this.speed < min_speed or other.speed < min_speed:
        return False

    distance_m = haversine_m(this.point, other.point)
    slope_diff = abs(other.slope - this.slope)

    return (
        distance_m < this.speed * settings.trace_match_max_move_seconds
        and slope_diff < settings.trace_match_max_slope_diff_degrees
    )
