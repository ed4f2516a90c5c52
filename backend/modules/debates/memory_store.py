"""
In-process debate store.

Used by the CLI, by tests, and by the API when STORAGE_BACKEND=memory.
Nothing survives a restart.
"""

import threading
from datetime import datetime
from typing import Iterable, Optional

from .exceptions import EventConflictError, TurnConflictError
from .models import (
    Debate,
    DebateEvent,
    DebateStatus,
    TERMINAL_STATUSES,
    Turn,
    UserAction,
    utc_now,
)


class InMemoryDebateStore:
    """
    IDebateStore backed by dicts.

    A single lock guards every method, which makes update_debate's
    compare-and-set atomic.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._debates: dict[str, Debate] = {}
        self._turns: dict[str, dict[int, Turn]] = {}
        self._events: dict[str, dict[int, DebateEvent]] = {}
        self._actions: dict[str, list[UserAction]] = {}
        self._action_ids = 0

    # -------------------------------------------------------------------------
    # Debates
    # -------------------------------------------------------------------------

    def insert_debate(self, debate: Debate) -> Debate:
        with self._lock:
            self._debates[debate.id] = debate
            return debate

    def get_debate(self, debate_id: str) -> Optional[Debate]:
        with self._lock:
            return self._debates.get(debate_id)

    def update_debate(
        self,
        debate_id: str,
        changes: dict,
        expected_status: Optional[Iterable[DebateStatus]] = None,
    ) -> Optional[Debate]:
        with self._lock:
            debate = self._debates.get(debate_id)
            if debate is None:
                return None
            if expected_status is not None and debate.status not in set(expected_status):
                return None
            updated = debate.model_copy(update={**changes, "updated_at": utc_now()})
            self._debates[debate_id] = updated
            return updated

    def delete_debate(self, debate_id: str) -> None:
        with self._lock:
            self._debates.pop(debate_id, None)

    def list_expired_debate_ids(self, cutoff: datetime) -> list[str]:
        with self._lock:
            return [
                d.id
                for d in self._debates.values()
                if d.status in TERMINAL_STATUSES and d.created_at < cutoff
            ]

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    def count_turns(self, debate_id: str) -> int:
        with self._lock:
            return len(self._turns.get(debate_id, {}))

    def list_turns(self, debate_id: str) -> list[Turn]:
        with self._lock:
            turns = self._turns.get(debate_id, {})
            return [turns[n] for n in sorted(turns)]

    def insert_turn(self, turn: Turn) -> Turn:
        with self._lock:
            turns = self._turns.setdefault(turn.debate_id, {})
            if turn.number in turns:
                raise TurnConflictError(turn.debate_id, turn.number)
            turns[turn.number] = turn
            return turn

    def delete_turns(self, debate_id: str) -> None:
        with self._lock:
            self._turns.pop(debate_id, None)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def latest_event_sequence(self, debate_id: str) -> int:
        with self._lock:
            return max(self._events.get(debate_id, {}), default=0)

    def insert_event(self, event: DebateEvent) -> DebateEvent:
        with self._lock:
            events = self._events.setdefault(event.debate_id, {})
            if event.sequence in events:
                raise EventConflictError(event.debate_id, event.sequence)
            events[event.sequence] = event
            return event

    def list_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> list[DebateEvent]:
        with self._lock:
            events = self._events.get(debate_id, {})
            sequences = sorted(s for s in events if s > after_sequence)
            return [events[s] for s in sequences[:limit]]

    def delete_events(self, debate_id: str) -> None:
        with self._lock:
            self._events.pop(debate_id, None)

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    def insert_action(self, action: UserAction) -> UserAction:
        with self._lock:
            if action.id is None:
                self._action_ids += 1
                action = action.model_copy(update={"id": str(self._action_ids)})
            self._actions.setdefault(action.debate_id, []).append(action)
            return action

    def list_actions(self, debate_id: str) -> list[UserAction]:
        with self._lock:
            return list(self._actions.get(debate_id, []))

    def delete_actions(self, debate_id: str) -> None:
        with self._lock:
            self._actions.pop(debate_id, None)
