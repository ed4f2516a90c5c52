"""
Debates module exceptions.
"""

from typing import Optional

from shared.exceptions import (
    ArenaError,
    NotFoundError,
    ValidationError,
    PreconditionError,
    ExternalServiceError,
)


class DebateError(ArenaError):
    """Base exception for debate-related errors."""

    pass


class DebateNotFoundError(NotFoundError):
    """Raised when a debate is not found."""

    def __init__(self, debate_id: str):
        super().__init__(
            f"Debate not found: {debate_id}",
            code="DEBATE_NOT_FOUND",
            details={"debate_id": debate_id},
        )


class DebateValidationError(ValidationError):
    """Raised when debate setup input is invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code="DEBATE_INVALID",
            details={"field": field} if field else {},
        )


class InvalidActionError(ValidationError):
    """Raised when a moderator action type is not recognized."""

    def __init__(self, action_type: str):
        super().__init__(
            f"Invalid action type: {action_type}",
            code="INVALID_ACTION",
            details={"action_type": action_type},
        )


class CredentialRequiredError(PreconditionError):
    """Raised when a debate must run but no provider credential can be found."""

    def __init__(self, debate_id: str):
        super().__init__(
            "A provider API key is required to run this debate. "
            "Supply one with the request or save one to your account.",
            code="CREDENTIAL_REQUIRED",
            details={"debate_id": debate_id},
        )


class DebateAlreadyFinishedError(PreconditionError):
    """Raised when an operation needs a debate that has not ended."""

    def __init__(self, debate_id: str, status: str):
        super().__init__(
            f"Debate has already finished: {debate_id}",
            code="DEBATE_FINISHED",
            details={"debate_id": debate_id, "status": status},
        )


class TurnConflictError(DebateError):
    """Raised when a turn number is already taken."""

    def __init__(self, debate_id: str, number: int):
        super().__init__(
            f"Turn {number} already exists for debate {debate_id}",
            code="TURN_CONFLICT",
            details={"debate_id": debate_id, "number": number},
        )


MALFORMED_EVENT_CODE = "MALFORMED_EVENT"


class MalformedEventError(DebateError):
    """Raised when a stored event payload cannot be parsed."""

    def __init__(self, debate_id: str, sequence: int, reason: str):
        super().__init__(
            f"Malformed payload for event {sequence}: {reason}",
            code=MALFORMED_EVENT_CODE,
            details={"debate_id": debate_id, "sequence": sequence},
        )


class ProviderError(ExternalServiceError):
    """Raised when the completion provider keeps failing after retries."""

    def __init__(
        self,
        model: str,
        message: str,
        attempts: int = 1,
        original_error: Optional[str] = None,
    ):
        super().__init__(
            f"Provider error ({model}): {message}",
            service="completion_provider",
            code="PROVIDER_ERROR",
            details={
                "model": model,
                "attempts": attempts,
                "original_error": original_error,
            },
        )


class EventConflictError(DebateError):
    """Raised when an event sequence number is already taken."""

    def __init__(self, debate_id: str, sequence: int):
        super().__init__(
            f"Event {sequence} already exists for debate {debate_id}",
            code="EVENT_CONFLICT",
            details={"debate_id": debate_id, "sequence": sequence},
        )
