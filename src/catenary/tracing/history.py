"""
Location history and trace derivation.

A `LocationHistory` belongs to exactly one client session. It keeps the newest
`max_locations_in_history` samples and derives a `Trace` from the newest sample and
the oldest sample still inside that window. When no trace can be derived it returns
one of the `NoTrace` variants instead of raising, so the caller's polling loop can
show guidance and try again on the next sample.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from catenary.config.settings import TuningSettings
from catenary.core.geo import GeoPoint, bearing_deg, haversine_m
from catenary.core.time import Clock, elapsed_whole_seconds, utcnow
from catenary.domain.models import (
    TooSlow,
    Trace,
    TraceResult,
    WaitingForMoreLocations,
    WaitingForTimeToPass,
)

logger = logging.getLogger(__name__)

# Keeps a speed sitting right at the threshold from flapping between Trace and TooSlow.
SPEED_EPSILON = 1e-3

INVALID_LOCATION_SENTINEL = GeoPoint(lat=0.0, lon=0.0)


@dataclass(frozen=True)
class LocationSample:
    point: GeoPoint
    captured_at: datetime


class LocationHistory:
    """Newest-first, bounded, time-windowed location samples for one client."""

    def __init__(self, settings: TuningSettings, *, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._size = settings.max_locations_in_history
        self._max_age_seconds = settings.max_location_age_seconds
        self._min_time_delta_seconds = settings.min_location_time_delta_seconds
        self._min_speed = settings.min_speed_meters_per_second
        self._samples: list[LocationSample] = []

    @property
    def size(self) -> int:
        return self._size

    @property
    def samples(self) -> tuple[LocationSample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def add_location(self, point: GeoPoint) -> None:
        """Record a sample captured now. Invalid coordinates become `(0, 0)`."""
        if not point.is_valid():
            logger.warning("invalid location %r, using %r instead", point, INVALID_LOCATION_SENTINEL)
            point = INVALID_LOCATION_SENTINEL
        self._samples.insert(0, LocationSample(point=point, captured_at=self._clock()))
        if len(self._samples) > self._size:
            self._samples.pop()

    def _purge_expired(self) -> None:
        now = self._clock()
        self._samples = [
            s for s in self._samples if elapsed_whole_seconds(s.captured_at, now) < self._max_age_seconds
        ]

    def trace(self) -> TraceResult:
        """Derive a trace from the retained window, or explain why there is none."""
        self._purge_expired()

        if len(self._samples) < self._size:
            return WaitingForMoreLocations(received=len(self._samples), required=self._size)

        latest = self._samples[0]
        earliest = self._samples[self._size - 1]

        duration = round((latest.captured_at - earliest.captured_at).total_seconds(), 3)
        if duration < self._min_time_delta_seconds or duration <= 0:
            return WaitingForTimeToPass()

        distance = haversine_m(earliest.point, latest.point)
        speed = distance / duration
        if speed < self._min_speed - SPEED_EPSILON:
            return TooSlow(current_speed=speed, required_speed=self._min_speed)

        slope = bearing_deg(earliest.point, latest.point)
        logger.debug(
            "duration: %.3f s, distance: %.1f m, speed: %.2f m/s, slope: %.1f deg",
            duration,
            distance,
            speed,
            slope,
        )
        return Trace(location=latest.point.as_tuple(), speed=speed, slope=slope)
