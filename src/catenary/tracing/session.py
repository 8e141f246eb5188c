"""
Per-client tracing sessions.

The device sensor either hands us a coordinate or one of the W3C
`GeolocationPositionError` codes. A `TraceSession` folds both into the single
`Trace | NoTrace` result type so callers handle one state machine.

`SessionRegistry` keeps one session per viewer id for the HTTP layer.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime

from catenary.config.settings import TuningSettings
from catenary.core.geo import GeoPoint
from catenary.core.time import Clock, elapsed_whole_seconds, utcnow
from catenary.domain.models import (
    NoPermission,
    NoTrace,
    PositionUnavailable,
    Timeout,
    TraceResult,
    WaitingForMoreLocations,
)
from catenary.tracing.history import LocationHistory

# GeolocationPositionError codes.
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


def no_trace_from_position_error(code: int) -> NoTrace:
    if code == PERMISSION_DENIED:
        return NoPermission()
    if code == POSITION_UNAVAILABLE:
        return PositionUnavailable()
    return Timeout()


class TraceSession:
    """One client's history plus the last result handed out."""

    def __init__(self, settings: TuningSettings, *, clock: Clock = utcnow) -> None:
        self._clock = clock
        self.history = LocationHistory(settings, clock=clock)
        self.current: TraceResult = WaitingForMoreLocations(received=0, required=self.history.size)
        self.last_seen: datetime = clock()

    def observe(self, point: GeoPoint) -> TraceResult:
        self.last_seen = self._clock()
        self.history.add_location(point)
        self.current = self.history.trace()
        return self.current

    def observe_error(self, code: int) -> TraceResult:
        self.last_seen = self._clock()
        self.current = no_trace_from_position_error(code)
        return self.current


class SessionRegistry:
    """Thread-safe map of viewer id -> TraceSession with idle expiry."""

    def __init__(self, settings: TuningSettings, *, clock: Clock = utcnow) -> None:
        self._settings = settings
        self._clock = clock
        # A session idle this long has no usable samples left; drop it.
        self._idle_seconds = max(1, settings.max_location_age_seconds * 10)
        self._sessions: dict[uuid.UUID, TraceSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, viewer_id: uuid.UUID) -> TraceSession:
        now = self._clock()
        with self._lock:
            stale = [k for k, s in self._sessions.items() if elapsed_whole_seconds(s.last_seen, now) >= self._idle_seconds]
            for k in stale:
                del self._sessions[k]
            session = self._sessions.get(viewer_id)
            if session is None:
                session = TraceSession(self._settings, clock=self._clock)
                self._sessions[viewer_id] = session
            session.last_seen = now
            return session
