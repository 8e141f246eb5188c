"""
API routes.

Endpoints:
- GET  `/api/health`: liveness + current store size.
- GET  `/api/settings`: tuning thresholds (the client shows them in its guidance).
- POST `/api/trace`: report a location sample or a sensor error; returns the derived trace.
- POST `/api/messages`: queue a message for the writer thread.
- POST `/api/messages/list`: messages visible from the caller's trace.
- POST `/api/messages/{message_id}/vote`: toggle an up/down vote.

Viewers are identified by an anonymous uuid cookie, issued on first contact.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field, model_validator

from catenary.config.settings import Settings
from catenary.core.geo import GeoPoint
from catenary.core.time import Clock
from catenary.domain.models import ChatMessageIn, ChatMessageOut, NoTrace, Trace, WaitingForMoreLocations, is_retryable
from catenary.store.plane import Plane
from catenary.store.writer import MessageWriter
from catenary.tracing.guidance import guidance, progress_percent
from catenary.tracing.session import SessionRegistry

router = APIRouter()


class SendMessageRequest(BaseModel):
    text: str
    trace: Trace


class ListMessagesRequest(BaseModel):
    trace: Trace


class ListMessagesResponse(BaseModel):
    messages: list[ChatMessageOut] = Field(default_factory=list)


class VoteRequest(BaseModel):
    up: bool


class LocationReport(BaseModel):
    """Either a coordinate pair or a GeolocationPositionError code."""

    lat: float | None = None
    lon: float | None = None
    error_code: int | None = None

    @model_validator(mode="after")
    def _validate_shape(self) -> "LocationReport":
        has_point = self.lat is not None and self.lon is not None
        if has_point == (self.error_code is not None):
            raise ValueError("send either lat+lon or error_code")
        return self


class TraceResponse(BaseModel):
    trace: Trace | None = None
    no_trace: Optional[NoTrace] = None
    guidance: str | None = None
    retryable: bool = False
    progress_percent: float | None = None


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _plane(request: Request) -> Plane:
    return request.app.state.plane


def _writer(request: Request) -> MessageWriter:
    return request.app.state.writer


def _sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _clock(request: Request) -> Clock:
    return request.app.state.clock


def viewer_id(request: Request, response: Response) -> uuid.UUID:
    """Read the viewer's uuid cookie, issuing a new one if it is missing or malformed."""
    cookie_name = _settings(request).app.user_cookie_name
    raw = request.cookies.get(cookie_name, "")
    try:
        return uuid.UUID(raw)
    except ValueError:
        issued = uuid.uuid4()
        response.set_cookie(cookie_name, str(issued), httponly=True, samesite="strict")
        return issued


@router.get("/api/health")
def get_health(plane: Plane = Depends(_plane), writer: MessageWriter = Depends(_writer)) -> dict:
    return {"status": "ok", "messages": len(plane), "pending": writer.pending()}


@router.get("/api/settings")
def get_public_settings(settings: Settings = Depends(_settings)) -> dict:
    """Return the tuning thresholds (no secrets live in settings)."""
    return {"tuning": settings.tuning.model_dump(mode="json")}


@router.post("/api/trace", response_model=TraceResponse, response_model_exclude_none=True)
def post_trace(
    report: LocationReport,
    user: uuid.UUID = Depends(viewer_id),
    sessions: SessionRegistry = Depends(_sessions),
) -> TraceResponse:
    session = sessions.get(user)
    if report.error_code is not None:
        result = session.observe_error(report.error_code)
    else:
        result = session.observe(GeoPoint(lat=float(report.lat), lon=float(report.lon)))

    if isinstance(result, Trace):
        return TraceResponse(trace=result)
    return TraceResponse(
        no_trace=result,
        guidance=guidance(result),
        retryable=is_retryable(result),
        progress_percent=progress_percent(result) if isinstance(result, WaitingForMoreLocations) else None,
    )


@router.post("/api/messages", status_code=status.HTTP_202_ACCEPTED)
def post_message(
    body: SendMessageRequest,
    user: uuid.UUID = Depends(viewer_id),
    settings: Settings = Depends(_settings),
    writer: MessageWriter = Depends(_writer),
    clock: Clock = Depends(_clock),
) -> dict:
    if not body.text.strip():
        return {"queued": False}

    msg = ChatMessageIn.new(user, body.text, body.trace, settings=settings.tuning, clock=clock)
    if not writer.submit(msg):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "INGEST_QUEUE_FULL", "message": "Too many messages in flight, try again."},
        )
    return {"queued": True, "id": str(msg.id)}


@router.post("/api/messages/list", response_model=ListMessagesResponse)
def list_messages(
    body: ListMessagesRequest,
    user: uuid.UUID = Depends(viewer_id),
    plane: Plane = Depends(_plane),
) -> ListMessagesResponse:
    return ListMessagesResponse(messages=plane.get_messages(body.trace, user))


@router.post("/api/messages/{message_id}/vote", status_code=status.HTTP_204_NO_CONTENT)
def vote_message(
    message_id: uuid.UUID,
    body: VoteRequest,
    user: uuid.UUID = Depends(viewer_id),
    plane: Plane = Depends(_plane),
) -> None:
    plane.vote_message(message_id, user, body.up)
