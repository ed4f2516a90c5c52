"""
Debate repository for database access.

Encapsulates all Supabase queries and data mapping for debate-related tables:
- debates
- debate_turns
- debate_events
- user_actions

The turns and events tables carry unique constraints on
(debate_id, number) and (debate_id, sequence); violations surface as
TurnConflictError and EventConflictError.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from postgrest.exceptions import APIError
from pydantic import BaseModel

from shared.repository import BaseRepository
from .exceptions import EventConflictError, TurnConflictError
from .models import (
    Debate,
    DebateEvent,
    DebaterConfig,
    DebateStatus,
    Speaker,
    Turn,
    UserAction,
    UserActionType,
    Winner,
    WinningCondition,
    TERMINAL_STATUSES,
    utc_now,
)

UNIQUE_VIOLATION = "23505"


class DebateRepository(BaseRepository[Debate]):
    """
    Repository for debate data access.

    Implements IDebateStore. All methods return Pydantic models with proper
    mapping from database rows.

    Note: This repository does NOT perform authorization checks.
    The service layer decides who may see or act on a debate.
    """

    # -------------------------------------------------------------------------
    # Debate operations
    # -------------------------------------------------------------------------

    def insert_debate(self, debate: Debate) -> Debate:
        """
        Create a new debate record.

        Args:
            debate: The debate to store, with its ID already assigned.

        Returns:
            The stored Debate as read back from the database.
        """
        result = self._db.table("debates").insert(self._debate_row(debate)).execute()
        return self._map_to_debate(result.data[0])

    def get_debate(self, debate_id: str) -> Optional[Debate]:
        result = self._db.table("debates").select("*").eq("id", debate_id).execute()
        row = self._first(result.data)
        return self._map_to_debate(row) if row else None

    def update_debate(
        self,
        debate_id: str,
        changes: dict,
        expected_status: Optional[Iterable[DebateStatus]] = None,
    ) -> Optional[Debate]:
        """
        Update debate fields, optionally guarded by the current status.

        The status guard is part of the UPDATE's WHERE clause, so the
        compare-and-set happens in a single statement.

        Returns:
            The updated Debate, or None if no row matched.
        """
        data = {key: self._to_column(value) for key, value in changes.items()}
        data["updated_at"] = self._to_timestamp(utc_now())

        query = self._db.table("debates").update(data).eq("id", debate_id)
        if expected_status is not None:
            query = query.in_("status", [s.value for s in expected_status])

        result = query.execute()
        row = self._first(result.data)
        return self._map_to_debate(row) if row else None

    def delete_debate(self, debate_id: str) -> None:
        self._db.table("debates").delete().eq("id", debate_id).execute()

    def list_expired_debate_ids(self, cutoff: datetime) -> list[str]:
        result = (
            self._db.table("debates")
            .select("id")
            .in_("status", [s.value for s in TERMINAL_STATUSES])
            .lt("created_at", self._to_timestamp(cutoff))
            .execute()
        )
        return [str(row["id"]) for row in result.data]

    # -------------------------------------------------------------------------
    # Turn operations
    # -------------------------------------------------------------------------

    def count_turns(self, debate_id: str) -> int:
        result = (
            self._db.table("debate_turns")
            .select("number", count="exact")
            .eq("debate_id", debate_id)
            .execute()
        )
        return result.count or 0

    def list_turns(self, debate_id: str) -> list[Turn]:
        result = (
            self._db.table("debate_turns")
            .select("*")
            .eq("debate_id", debate_id)
            .order("number")
            .execute()
        )
        return [self._map_to_turn(row) for row in result.data]

    def insert_turn(self, turn: Turn) -> Turn:
        """
        Save a turn.

        Raises:
            TurnConflictError: If the turn number is already taken
        """
        data = {
            "debate_id": turn.debate_id,
            "number": turn.number,
            "speaker": turn.speaker.value,
            "content": turn.content,
            "reasoning": turn.reasoning,
            "timestamp": self._to_timestamp(turn.timestamp),
        }
        try:
            result = self._db.table("debate_turns").insert(data).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise TurnConflictError(turn.debate_id, turn.number) from e
            raise
        return self._map_to_turn(result.data[0])

    def delete_turns(self, debate_id: str) -> None:
        self._db.table("debate_turns").delete().eq("debate_id", debate_id).execute()

    # -------------------------------------------------------------------------
    # Event operations
    # -------------------------------------------------------------------------

    def latest_event_sequence(self, debate_id: str) -> int:
        result = (
            self._db.table("debate_events")
            .select("sequence")
            .eq("debate_id", debate_id)
            .order("sequence", desc=True)
            .limit(1)
            .execute()
        )
        row = self._first(result.data)
        return int(row["sequence"]) if row else 0

    def insert_event(self, event: DebateEvent) -> DebateEvent:
        """
        Append an event record.

        Raises:
            EventConflictError: If the sequence number is already taken
        """
        data = {
            "debate_id": event.debate_id,
            "sequence": event.sequence,
            "type": event.type,
            "payload": event.payload,
            "created_at": self._to_timestamp(event.created_at),
        }
        try:
            result = self._db.table("debate_events").insert(data).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise EventConflictError(event.debate_id, event.sequence) from e
            raise
        return self._map_to_event(result.data[0])

    def list_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> list[DebateEvent]:
        result = (
            self._db.table("debate_events")
            .select("*")
            .eq("debate_id", debate_id)
            .gt("sequence", after_sequence)
            .order("sequence")
            .limit(limit)
            .execute()
        )
        return [self._map_to_event(row) for row in result.data]

    def delete_events(self, debate_id: str) -> None:
        self._db.table("debate_events").delete().eq("debate_id", debate_id).execute()

    # -------------------------------------------------------------------------
    # User action operations
    # -------------------------------------------------------------------------

    def insert_action(self, action: UserAction) -> UserAction:
        data = {
            "debate_id": action.debate_id,
            "type": action.type.value,
            "payload": action.payload,
            "created_at": self._to_timestamp(action.created_at),
            "processed_at": (
                self._to_timestamp(action.processed_at) if action.processed_at else None
            ),
        }
        result = self._db.table("user_actions").insert(data).execute()
        return self._map_to_action(result.data[0])

    def list_actions(self, debate_id: str) -> list[UserAction]:
        result = (
            self._db.table("user_actions")
            .select("*")
            .eq("debate_id", debate_id)
            .order("created_at")
            .execute()
        )
        return [self._map_to_action(row) for row in result.data]

    def delete_actions(self, debate_id: str) -> None:
        self._db.table("user_actions").delete().eq("debate_id", debate_id).execute()

    # -------------------------------------------------------------------------
    # Private mapping methods
    # -------------------------------------------------------------------------

    def _to_column(self, value: Any) -> Any:
        """Convert a model value to its column representation."""
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, datetime):
            return self._to_timestamp(value)
        return value

    def _debate_row(self, debate: Debate) -> dict[str, Any]:
        return {
            "id": debate.id,
            "topic": debate.topic,
            "debater_a": debate.debater_a.model_dump(mode="json"),
            "debater_b": debate.debater_b.model_dump(mode="json"),
            "max_turns": debate.max_turns,
            "winning_condition": debate.winning_condition.value,
            "status": debate.status.value,
            "current_speaker": debate.current_speaker.value,
            "winner": debate.winner.value if debate.winner else None,
            "created_at": self._to_timestamp(debate.created_at),
            "updated_at": self._to_timestamp(debate.updated_at),
        }

    def _map_to_debate(self, data: dict[str, Any]) -> Debate:
        """Map database row to Debate model."""
        winner = data.get("winner")
        return Debate(
            id=str(data["id"]),
            topic=data["topic"],
            debater_a=DebaterConfig(**data["debater_a"]),
            debater_b=DebaterConfig(**data["debater_b"]),
            max_turns=data["max_turns"],
            winning_condition=WinningCondition(
                data.get("winning_condition") or WinningCondition.SELF_TERMINATE.value
            ),
            status=DebateStatus(data["status"]),
            current_speaker=Speaker(data.get("current_speaker") or Speaker.A.value),
            winner=Winner(winner) if winner else None,
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    def _map_to_turn(self, data: dict[str, Any]) -> Turn:
        """Map database row to Turn model."""
        return Turn(
            debate_id=str(data["debate_id"]),
            number=data["number"],
            speaker=Speaker(data["speaker"]),
            content=data.get("content", ""),
            reasoning=data.get("reasoning"),
            timestamp=data["timestamp"],
        )

    def _map_to_event(self, data: dict[str, Any]) -> DebateEvent:
        """Map database row to DebateEvent model."""
        payload = data["payload"]
        if not isinstance(payload, str):
            # jsonb columns come back already parsed
            payload = json.dumps(payload)
        return DebateEvent(
            debate_id=str(data["debate_id"]),
            sequence=data["sequence"],
            type=data["type"],
            payload=payload,
            created_at=data["created_at"],
        )

    def _map_to_action(self, data: dict[str, Any]) -> UserAction:
        """Map database row to UserAction model."""
        return UserAction(
            id=str(data["id"]),
            debate_id=str(data["debate_id"]),
            type=UserActionType(data["type"]),
            payload=data.get("payload"),
            created_at=data["created_at"],
            processed_at=data.get("processed_at"),
        )
