"""
Debates module interfaces.

IDebateService is what the API layer depends on. The remaining protocols are
the collaborators the core needs from outside: durable storage, a completion
provider, and a per-user credential store.
"""

from datetime import datetime
from typing import Protocol, Optional, AsyncIterator, Iterable, runtime_checkable

from langchain_core.messages import BaseMessage

from shared.models import AuthenticatedUser

from .models import (
    ActionRequest,
    CreateDebateRequest,
    Debate,
    DebateEvent,
    DebateStatus,
    EventPage,
    Turn,
    UserAction,
)
from .event_mapper import EventEnvelope


@runtime_checkable
class IDebateStore(Protocol):
    """
    Durable storage for debates and everything that hangs off them.

    Implementations must enforce uniqueness of (debate_id, number) for
    turns and (debate_id, sequence) for events.
    """

    def insert_debate(self, debate: Debate) -> Debate: ...

    def get_debate(self, debate_id: str) -> Optional[Debate]: ...

    def update_debate(
        self,
        debate_id: str,
        changes: dict,
        expected_status: Optional[Iterable[DebateStatus]] = None,
    ) -> Optional[Debate]:
        """
        Apply changes, optionally only if the current status is expected.

        Returns the updated debate, or None if the debate is missing or its
        status did not match (the compare-and-set failed).
        """
        ...

    def delete_debate(self, debate_id: str) -> None: ...

    def list_expired_debate_ids(self, cutoff: datetime) -> list[str]:
        """IDs of terminal debates created before the cutoff."""
        ...

    def count_turns(self, debate_id: str) -> int: ...

    def list_turns(self, debate_id: str) -> list[Turn]: ...

    def insert_turn(self, turn: Turn) -> Turn: ...

    def delete_turns(self, debate_id: str) -> None: ...

    def latest_event_sequence(self, debate_id: str) -> int:
        """Highest stored sequence for the debate, 0 if none."""
        ...

    def insert_event(self, event: DebateEvent) -> DebateEvent: ...

    def list_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> list[DebateEvent]: ...

    def delete_events(self, debate_id: str) -> None: ...

    def insert_action(self, action: UserAction) -> UserAction: ...

    def list_actions(self, debate_id: str) -> list[UserAction]: ...

    def delete_actions(self, debate_id: str) -> None: ...


@runtime_checkable
class ICompletionProvider(Protocol):
    """A streaming chat-completion backend."""

    def stream(
        self,
        model: str,
        messages: list[BaseMessage],
        credential: str,
        reasoning: Optional[bool] = None,
    ) -> AsyncIterator[str]:
        """
        Stream raw text chunks for a conversation.

        Args:
            model: Provider model identifier
            messages: Ordered conversation
            credential: Provider API key for this call only
            reasoning: Reasoning switch, or None to leave it unset
        """
        ...


@runtime_checkable
class ICredentialStore(Protocol):
    """Per-user credential storage, encrypted at rest by the implementation."""

    async def get_credential(self, user_id: str) -> Optional[str]:
        """Return the user's plaintext credential, or None if not stored."""
        ...


@runtime_checkable
class IDebateService(Protocol):
    """
    Interface for debate operations.

    This protocol defines the contract that the debates module exposes
    to the API layer and the CLI.
    """

    async def create_debate(
        self,
        request: CreateDebateRequest,
        user: Optional[AuthenticatedUser] = None,
    ) -> Debate:
        """
        Create a new debate.

        The debate is created in CREATED status. If the request carries a
        credential the orchestration loop is started straight away.

        Raises:
            DebateValidationError: If the request is invalid
        """
        ...

    async def get_debate(self, debate_id: str) -> Debate:
        """
        Get a debate by ID.

        Raises:
            DebateNotFoundError: If the debate doesn't exist
        """
        ...

    async def get_turns(self, debate_id: str) -> list[Turn]:
        """Get all turns of a debate in number order."""
        ...

    async def get_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> EventPage:
        """
        Get raw events with sequence strictly greater than after_sequence.

        Raises:
            DebateNotFoundError: If the debate doesn't exist
        """
        ...

    async def submit_action(
        self,
        debate_id: str,
        request: ActionRequest,
        user: Optional[AuthenticatedUser] = None,
    ) -> Debate:
        """
        Apply a moderator action and return the debate afterwards.

        Raises:
            DebateNotFoundError: If the debate doesn't exist
            CredentialRequiredError: If resume has no credential to run with
        """
        ...

    def stream_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
    ) -> AsyncIterator[EventEnvelope]:
        """
        Relay decoded events from the cursor until the debate ends.
        """
        ...
