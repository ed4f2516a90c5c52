"""
Debates module data models.

These models define the core data structures for the debate arena:
the Debate aggregate, its Turns, moderator UserActions and the raw
DebateEvent log records. Typed event payloads live in event_mapper.py.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Speaker(str, Enum):
    """One of the two debate participants."""

    A = "A"
    B = "B"

    @property
    def other(self) -> "Speaker":
        return Speaker.B if self is Speaker.A else Speaker.A


class DebateStatus(str, Enum):
    """Debate lifecycle status."""

    CREATED = "created"      # Created but not started
    RUNNING = "running"      # Orchestration loop may produce turns
    PAUSED = "paused"        # Halted by a moderator, resumable
    COMPLETED = "completed"  # Ended by a heuristic or the turn limit
    ABORTED = "aborted"      # Stopped by a moderator

    @property
    def is_terminal(self) -> bool:
        return self in (DebateStatus.COMPLETED, DebateStatus.ABORTED)


TERMINAL_STATUSES = frozenset({DebateStatus.COMPLETED, DebateStatus.ABORTED})
ACTIVE_STATUSES = frozenset({DebateStatus.RUNNING, DebateStatus.PAUSED})


class WinningCondition(str, Enum):
    """How the debate's winner is meant to be decided."""

    SELF_TERMINATE = "self-terminate"
    USER_DECIDES = "user-decides"
    AI_JUDGE = "ai-judge"


class Winner(str, Enum):
    """Result of a finished debate."""

    A = "A"
    B = "B"
    DRAW = "draw"

    @classmethod
    def from_speaker(cls, speaker: Speaker) -> "Winner":
        return cls(speaker.value)


class DebaterConfig(BaseModel):
    """Configuration for one side of the debate."""

    model_config = {"frozen": True}

    model: str = Field(..., min_length=1, description="Completion model identifier")
    name: str = Field(..., min_length=1, description="Display name")
    system_prompt: Optional[str] = Field(
        None,
        description="Replaces the generated system prompt entirely",
    )
    objective: Optional[str] = Field(None, description="What this debater argues for")
    reasoning_enabled: Optional[bool] = Field(
        None,
        description="Request provider-side reasoning (only sent when toggleable)",
    )
    reasoning_toggleable: Optional[bool] = Field(
        None,
        description="Whether the model accepts a reasoning on/off switch",
    )


class Debate(BaseModel):
    """
    The debate aggregate root.

    Turns, events and user actions reference the debate by ID rather than
    being embedded, so the event log can be read incrementally.
    """

    id: str = Field(..., description="Debate ID (UUID)")
    topic: str = Field(..., description="The debate topic")
    debater_a: DebaterConfig
    debater_b: DebaterConfig
    max_turns: int = Field(..., ge=1, description="Paired turns; 2x this many utterances")
    winning_condition: WinningCondition = WinningCondition.SELF_TERMINATE
    status: DebateStatus = DebateStatus.CREATED
    current_speaker: Speaker = Speaker.A
    winner: Optional[Winner] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def max_utterances(self) -> int:
        return self.max_turns * 2

    def debater(self, speaker: Speaker) -> DebaterConfig:
        return self.debater_a if speaker is Speaker.A else self.debater_b


class Turn(BaseModel):
    """One persisted utterance. Immutable once written."""

    model_config = {"frozen": True}

    debate_id: str
    number: int = Field(..., ge=1, description="1-based, shared by both speakers")
    speaker: Speaker
    content: str
    reasoning: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)


class UserActionType(str, Enum):
    """Moderator commands."""

    PAUSE = "pause"
    RESUME = "resume"
    SKIP = "skip"
    INJECT = "inject"
    STOP = "stop"


class ActionRequest(BaseModel):
    """A moderator command as submitted by a caller."""

    type: UserActionType
    payload: Optional[str] = Field(None, max_length=5000, description="Text for inject")
    credential: Optional[str] = Field(
        None,
        description="Provider key, used by resume; never persisted",
        repr=False,
    )


class UserAction(BaseModel):
    """Audit record of a processed moderator command."""

    model_config = {"frozen": True}

    id: Optional[str] = None
    debate_id: str
    type: UserActionType
    payload: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    processed_at: Optional[datetime] = None


class DebateEventType(str, Enum):
    """Known event log tags."""

    DEBATE_STARTED = "debate.started"
    TURN_STARTED = "turn.started"
    TOKEN = "token"
    TURN_COMPLETED = "turn.completed"
    DEBATE_COMPLETED = "debate.completed"
    ACTION_PROCESSED = "action.processed"
    ERROR = "error"


class DebateEvent(BaseModel):
    """
    A raw event log record.

    The payload is the JSON string exactly as stored; use
    event_mapper.decode_event() to get the typed payload.
    """

    model_config = {"frozen": True}

    debate_id: str
    sequence: int = Field(..., ge=1, description="Strictly increasing per debate")
    type: str = Field(..., description="Event tag; unknown tags are passed through")
    payload: str = Field(..., description="Serialized JSON payload")
    created_at: datetime = Field(default_factory=utc_now)


class CreateDebateRequest(BaseModel):
    """Request to create a new debate."""

    topic: str = Field(
        ...,
        min_length=10,
        max_length=10000,
        description="The topic to debate",
    )
    debater_a: DebaterConfig
    debater_b: DebaterConfig
    max_turns: int = Field(default=10, ge=2, le=50, description="Paired turn limit")
    winning_condition: WinningCondition = WinningCondition.SELF_TERMINATE
    credential: Optional[str] = Field(
        None,
        description="Provider key; when given, the debate starts immediately",
        repr=False,
    )

    @field_validator("topic")
    @classmethod
    def strip_topic(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 10:
            raise ValueError("Topic must be at least 10 characters")
        return stripped


class EventPage(BaseModel):
    """A page of raw events after a cursor."""

    debate_id: str
    events: list[DebateEvent]
    last_sequence: int = Field(..., description="Cursor to pass as 'after' next time")


class DebateTranscript(BaseModel):
    """All turns of a debate in number order."""

    debate_id: str
    turns: list[Turn]
