"""
Domain models.

These types represent the stable "contract" between layers:
- tracing output (`Trace` or one `NoTrace` variant)
- the ingestion payload (`ChatMessageIn`)
- the stored message (`ChatMessage`, internal and mutable for voting)
- the outbound projection (`ChatMessageOut`)

`Trace` and the `NoTrace` variants are Pydantic models so the API can return them
as JSON directly; `NoTrace` is a discriminated union keyed on `kind`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from catenary.config.settings import TuningSettings
from catenary.core.geo import GeoPoint
from catenary.core.time import Clock, utcnow

logger = logging.getLogger(__name__)


class Trace(BaseModel):
    """Position, speed and heading derived from recent motion."""

    model_config = ConfigDict(frozen=True)

    location: tuple[float, float]  # lat, lon
    speed: float = Field(..., ge=0)  # meters per second
    slope: float  # degrees

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.location[0], lon=self.location[1])


class NoPermission(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["no_permission"] = "no_permission"


class PositionUnavailable(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["position_unavailable"] = "position_unavailable"


class Timeout(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["timeout"] = "timeout"


class WaitingForMoreLocations(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["waiting_for_more_locations"] = "waiting_for_more_locations"
    received: int
    required: int


class WaitingForTimeToPass(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["waiting_for_time_to_pass"] = "waiting_for_time_to_pass"


class TooSlow(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["too_slow"] = "too_slow"
    current_speed: float
    required_speed: float


NoTrace = Annotated[
    Union[
        NoPermission,
        PositionUnavailable,
        Timeout,
        WaitingForMoreLocations,
        WaitingForTimeToPass,
        TooSlow,
    ],
    Field(discriminator="kind"),
]

TraceResult = Union[Trace, NoTrace]

# Retrying (keep polling the sensor) can turn these into a Trace; the others need the user.
RETRYABLE_NO_TRACE = (WaitingForMoreLocations, WaitingForTimeToPass, TooSlow)


def is_retryable(result: TraceResult) -> bool:
    return isinstance(result, RETRYABLE_NO_TRACE)


class Vote(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"


class ChatMessageIn(BaseModel):
    """A message as received from a client, before it reaches the store."""

    id: uuid.UUID
    author: uuid.UUID
    text: str
    trace: Trace
    timestamp: datetime

    @classmethod
    def new(
        cls,
        author: uuid.UUID,
        text: str,
        trace: Trace,
        *,
        settings: TuningSettings,
        clock: Clock = utcnow,
    ) -> "ChatMessageIn":
        """Assign id + timestamp; truncate to the max length, then trim whitespace."""
        if len(text) > settings.max_message_length:
            logger.warning("message too long: %d chars, truncating to %d", len(text), settings.max_message_length)
            text = text[: settings.max_message_length]
        return cls(id=uuid.uuid4(), author=author, text=text.strip(), trace=trace, timestamp=clock())


@dataclass
class ChatMessage:
    """Stored form. `upvoters` and `downvoters` never share a member."""

    id: uuid.UUID
    author: uuid.UUID
    display_name: str
    text: str
    trace: Trace
    timestamp: datetime
    upvoters: set[uuid.UUID] = field(default_factory=set)
    downvoters: set[uuid.UUID] = field(default_factory=set)

    @classmethod
    def from_inbound(cls, msg: ChatMessageIn, display_name: str) -> "ChatMessage":
        return cls(
            id=msg.id,
            author=msg.author,
            display_name=display_name,
            text=msg.text,
            trace=msg.trace,
            timestamp=msg.timestamp,
        )

    def vote_of(self, viewer_id: uuid.UUID | None) -> Vote:
        if viewer_id is None:
            return Vote.NONE
        if viewer_id in self.upvoters:
            return Vote.UP
        if viewer_id in self.downvoters:
            return Vote.DOWN
        return Vote.NONE


class ChatMessageOut(BaseModel):
    """Per-viewer projection of a stored message."""

    id: uuid.UUID
    display_name: str
    text: str
    upvote_count: int = Field(..., ge=0)
    downvote_count: int = Field(..., ge=0)
    viewer_vote: Vote = Vote.NONE
    timestamp: datetime

    @classmethod
    def project(cls, msg: ChatMessage, viewer_id: uuid.UUID | None) -> "ChatMessageOut":
        return cls(
            id=msg.id,
            display_name=msg.display_name,
            text=msg.text,
            upvote_count=len(msg.upvoters),
            downvote_count=len(msg.downvoters),
            viewer_vote=msg.vote_of(viewer_id),
            timestamp=msg.timestamp,
        )
