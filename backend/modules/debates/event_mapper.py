"""
Event mapper between typed event payloads and stored event records.

The event log stores every payload as an opaque JSON string next to its tag.
This module owns the schema for each known tag:
- encode_payload() turns a typed payload into the stored (type, payload) pair
- decode_event() turns a stored DebateEvent back into a typed EventEnvelope

Unknown tags are passed through as UnknownEventPayload so that readers keep
working when newer writers add event types.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MalformedEventError
from .models import (
    DebateEvent,
    DebateEventType,
    Speaker,
    Turn,
    UserActionType,
    Winner,
)


class DebateStartedPayload(BaseModel):
    type: Literal["debate.started"] = "debate.started"
    debate_id: str


class TurnStartedPayload(BaseModel):
    type: Literal["turn.started"] = "turn.started"
    speaker: Speaker
    turn_number: int


class TokenPayload(BaseModel):
    """One visible fragment, in stream order."""

    type: Literal["token"] = "token"
    speaker: Speaker
    content: str


class TurnCompletedPayload(BaseModel):
    type: Literal["turn.completed"] = "turn.completed"
    speaker: Speaker
    full_content: str = ""
    reasoning: Optional[str] = None
    turn_number: Optional[int] = None
    timestamp: Optional[datetime] = None


class DebateCompletedPayload(BaseModel):
    """How the debate ended; confidence is set when a heuristic ended it."""

    type: Literal["debate.completed"] = "debate.completed"
    winner: Optional[Winner] = None
    reason: str
    confidence: Optional[float] = None


class ActionSummary(BaseModel):
    type: UserActionType
    payload: Optional[str] = None


class ActionProcessedPayload(BaseModel):
    type: Literal["action.processed"] = "action.processed"
    action: ActionSummary


class ErrorPayload(BaseModel):
    type: Literal["error"] = "error"
    message: str
    code: Optional[str] = None
    turn_number: Optional[int] = None


class UnknownEventPayload(BaseModel):
    """Passthrough for tags this reader does not know."""

    model_config = {"extra": "allow"}

    type: str


EventPayload = Annotated[
    Union[
        DebateStartedPayload,
        TurnStartedPayload,
        TokenPayload,
        TurnCompletedPayload,
        DebateCompletedPayload,
        ActionProcessedPayload,
        ErrorPayload,
    ],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter[Any] = TypeAdapter(EventPayload)
_known_types = frozenset(t.value for t in DebateEventType)


@dataclass(frozen=True)
class EventEnvelope:
    """
    A decoded event: log position plus typed payload.

    Synthetic envelopes are made up by a reader rather than stored; their
    sequence is the reader's cursor and is never sent as an SSE id.
    """

    debate_id: str
    sequence: int
    data: BaseModel
    created_at: datetime
    synthetic: bool = False

    @property
    def type(self) -> str:
        return self.data.type

    @property
    def is_completion(self) -> bool:
        return self.data.type == DebateEventType.DEBATE_COMPLETED.value

    def to_sse(self) -> dict[str, str]:
        """Convert to the dict shape EventSourceResponse expects."""
        event = {
            "event": self.data.type,
            "data": self.data.model_dump_json(exclude_none=True),
        }
        if not self.synthetic:
            event["id"] = str(self.sequence)
        return event


def encode_payload(payload: BaseModel) -> tuple[str, str]:
    """
    Serialize a typed payload for storage.

    Returns:
        Tuple of (event type tag, JSON payload without the tag)
    """
    tag = getattr(payload, "type")
    body = payload.model_dump(mode="json", exclude={"type"}, exclude_none=True)
    return tag, json.dumps(body)


def decode_event(event: DebateEvent) -> EventEnvelope:
    """
    Decode a stored event into a typed envelope.

    Raises:
        MalformedEventError: If the payload is not a JSON object or does not
            match the schema for its tag
    """
    try:
        body = json.loads(event.payload)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedEventError(event.debate_id, event.sequence, str(e)) from e

    if not isinstance(body, dict):
        raise MalformedEventError(
            event.debate_id, event.sequence, "payload is not a JSON object"
        )

    body["type"] = event.type
    if event.type in _known_types:
        try:
            data = _payload_adapter.validate_python(body)
        except PydanticValidationError as e:
            raise MalformedEventError(
                event.debate_id, event.sequence, str(e)
            ) from e
    else:
        data = UnknownEventPayload(**body)

    return EventEnvelope(
        debate_id=event.debate_id,
        sequence=event.sequence,
        data=data,
        created_at=event.created_at,
    )


def _normalize_reasoning(reasoning: Any) -> Optional[str]:
    if not isinstance(reasoning, str):
        return None
    trimmed = reasoning.strip()
    return trimmed or None


def normalize_completed_turn(
    payload: Union[TurnCompletedPayload, Mapping[str, Any]],
    debate_id: str,
    fallback_number: int,
    fallback_timestamp: Optional[datetime] = None,
) -> Optional[Turn]:
    """
    Rebuild a Turn from a turn.completed payload.

    Observers that only see the event feed use this to rebuild the
    transcript. Missing or invalid turn numbers and timestamps fall back to
    the supplied values; blank reasoning becomes None.

    Returns:
        The Turn, or None if the payload names no speaker
    """
    if isinstance(payload, TurnCompletedPayload):
        payload = payload.model_dump()

    speaker = payload.get("speaker")
    if not speaker:
        return None

    number = payload.get("turn_number")
    if not (isinstance(number, int) and not isinstance(number, bool) and number > 0):
        number = fallback_number

    timestamp = payload.get("timestamp")
    if isinstance(timestamp, str):
        try:
            timestamp = datetime.fromisoformat(timestamp)
        except ValueError:
            timestamp = None
    if not isinstance(timestamp, datetime):
        timestamp = fallback_timestamp or datetime.now(timezone.utc)

    return Turn(
        debate_id=debate_id,
        number=number,
        speaker=Speaker(speaker),
        content=payload.get("full_content") or "",
        reasoning=_normalize_reasoning(payload.get("reasoning")),
        timestamp=timestamp,
    )
