"""
Debate API endpoints.

Provides REST endpoints for creating debates, reading their state, turns and
events, submitting moderator actions, and an SSE stream of the event log.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sse_starlette.sse import EventSourceResponse

from api.dependencies import get_debate_service
from api.middleware.auth import get_optional_user
from shared.exceptions import ArenaError, NotFoundError, PreconditionError, ValidationError
from shared.models import AuthenticatedUser

from .interfaces import IDebateService
from .models import (
    ActionRequest,
    CreateDebateRequest,
    Debate,
    DebateTranscript,
    EventPage,
)

router = APIRouter()


def to_http_error(error: ArenaError) -> HTTPException:
    """Map a domain error to an HTTP error with the error's dict as detail."""
    if isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, ValidationError):
        status_code = 400
    elif isinstance(error, PreconditionError):
        status_code = 409
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=error.to_dict())


@router.post("", response_model=Debate, status_code=201)
async def create_debate(
    request: CreateDebateRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: IDebateService = Depends(get_debate_service),
) -> Debate:
    """
    Create a new debate.

    The debate is created in 'created' status. If the request includes a
    credential the debate starts immediately; otherwise start it later with
    a resume action.
    """
    try:
        return await service.create_debate(request, user)
    except ArenaError as e:
        raise to_http_error(e)


@router.get("/{debate_id}", response_model=Debate)
async def get_debate(
    debate_id: str,
    service: IDebateService = Depends(get_debate_service),
) -> Debate:
    """Get a debate's current state."""
    try:
        return await service.get_debate(debate_id)
    except ArenaError as e:
        raise to_http_error(e)


@router.get("/{debate_id}/turns", response_model=DebateTranscript)
async def get_turns(
    debate_id: str,
    service: IDebateService = Depends(get_debate_service),
) -> DebateTranscript:
    """Get the debate's turns in order."""
    try:
        turns = await service.get_turns(debate_id)
    except ArenaError as e:
        raise to_http_error(e)
    return DebateTranscript(debate_id=debate_id, turns=turns)


@router.get("/{debate_id}/events", response_model=EventPage)
async def get_events(
    debate_id: str,
    after: int = Query(default=0, ge=0, description="Return events after this sequence"),
    limit: int = Query(default=200, ge=1, le=500, description="Maximum events to return"),
    service: IDebateService = Depends(get_debate_service),
) -> EventPage:
    """
    Get stored events after a sequence number.

    Pass the returned last_sequence as 'after' to continue.
    """
    try:
        return await service.get_events(debate_id, after, limit)
    except ArenaError as e:
        raise to_http_error(e)


@router.post("/{debate_id}/actions", response_model=Debate)
async def submit_action(
    debate_id: str,
    request: ActionRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: IDebateService = Depends(get_debate_service),
) -> Debate:
    """
    Submit a moderator action: pause, resume, skip, inject or stop.

    Resume needs a provider credential: in the request, cached from an
    earlier request for this debate, or stored for the signed-in user.
    """
    try:
        return await service.submit_action(debate_id, request, user)
    except ArenaError as e:
        raise to_http_error(e)


def resolve_cursor(after: int, last_event_id: Optional[str]) -> int:
    """The later of the query cursor and a reconnecting client's Last-Event-ID."""
    if last_event_id and last_event_id.strip().isdigit():
        return max(after, int(last_event_id.strip()))
    return after


async def event_generator(
    debate_id: str,
    after: int,
    service: IDebateService,
):
    """
    Generate SSE events for a debate.

    Yields events in the format:
        id: <sequence>
        event: <event_type>
        data: <json_data>
    """
    async for envelope in service.stream_events(debate_id, after):
        yield envelope.to_sse()


@router.get("/{debate_id}/stream")
async def stream_debate(
    debate_id: str,
    after: int = Query(default=0, ge=0, description="Replay events after this sequence"),
    last_event_id: Optional[str] = Header(default=None, alias="Last-Event-ID"),
    service: IDebateService = Depends(get_debate_service),
):
    """
    Stream debate events via SSE.

    Replays stored events after the cursor, then relays new ones as they are
    appended. The stream ends after debate.completed. Reconnecting clients
    resume from Last-Event-ID.

    Event types:
    - debate.started: The debate began running
    - turn.started: A debater is about to speak
    - token: A visible text fragment of the current turn
    - turn.completed: The full turn, with any hidden reasoning
    - action.processed: A moderator action was applied
    - error: A turn failed; the debate is paused
    - debate.completed: The debate ended (always last)
    """
    return EventSourceResponse(
        event_generator(debate_id, resolve_cursor(after, last_event_id), service),
        media_type="text/event-stream",
    )
