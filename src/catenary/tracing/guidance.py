"""User-facing guidance for each NoTrace variant."""

from __future__ import annotations

from catenary.domain.models import (
    NoPermission,
    NoTrace,
    PositionUnavailable,
    Timeout,
    TooSlow,
    WaitingForMoreLocations,
    WaitingForTimeToPass,
)


def progress_percent(state: WaitingForMoreLocations) -> float:
    """Progress bar width while the history fills up; never fully empty."""
    if state.received > 0 and state.required > 0:
        return state.received / state.required * 100.0
    return 2.0


def guidance(no_trace: NoTrace) -> str:
    if isinstance(no_trace, NoPermission):
        return "Please allow location access and reload the page."
    if isinstance(no_trace, (PositionUnavailable, Timeout)):
        return "Failed to locate you. Please try again in a few moments by refreshing the page."
    if isinstance(no_trace, WaitingForMoreLocations):
        return "Matching you with other users..."
    if isinstance(no_trace, WaitingForTimeToPass):
        return "Calculating your speed. Please wait."
    if isinstance(no_trace, TooSlow):
        return (
            f"You are moving at {no_trace.current_speed:.1f} meters per second. "
            f"{no_trace.required_speed:.1f} meters per second is the minimum speed required "
            "to match you with other users."
        )
    raise TypeError(f"unknown NoTrace variant: {no_trace!r}")
