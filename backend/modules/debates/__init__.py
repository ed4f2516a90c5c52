"""
Debates module.

Handles debate creation, orchestration, moderation, and event streaming.

Public API:
- IDebateService: Interface for debate operations
- IDebateStore / ICompletionProvider / ICredentialStore: Collaborator protocols
- Debate, Turn, DebateEvent, UserAction: Core records
- CreateDebateRequest, ActionRequest: Request models
- build_debate_service: Wires a DebateService around a store and provider
"""

from .interfaces import (
    ICompletionProvider,
    ICredentialStore,
    IDebateService,
    IDebateStore,
)
from .models import (
    ActionRequest,
    CreateDebateRequest,
    Debate,
    DebateEvent,
    DebateEventType,
    DebaterConfig,
    DebateStatus,
    EventPage,
    Speaker,
    Turn,
    UserAction,
    UserActionType,
    Winner,
    WinningCondition,
)
from .exceptions import (
    CredentialRequiredError,
    DebateAlreadyFinishedError,
    DebateError,
    DebateNotFoundError,
    DebateValidationError,
    EventConflictError,
    InvalidActionError,
    MalformedEventError,
    ProviderError,
    TurnConflictError,
)
from .service import DebateService, build_debate_service

__all__ = [
    # Interfaces
    "ICompletionProvider",
    "ICredentialStore",
    "IDebateService",
    "IDebateStore",
    # Models
    "ActionRequest",
    "CreateDebateRequest",
    "Debate",
    "DebateEvent",
    "DebateEventType",
    "DebaterConfig",
    "DebateStatus",
    "EventPage",
    "Speaker",
    "Turn",
    "UserAction",
    "UserActionType",
    "Winner",
    "WinningCondition",
    # Exceptions
    "CredentialRequiredError",
    "DebateAlreadyFinishedError",
    "DebateError",
    "DebateNotFoundError",
    "DebateValidationError",
    "EventConflictError",
    "InvalidActionError",
    "MalformedEventError",
    "ProviderError",
    "TurnConflictError",
    # Service
    "DebateService",
    "build_debate_service",
]
