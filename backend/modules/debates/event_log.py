"""
Append-only per-debate event log.

Sequence numbers are assigned here: under the debate's lock, read the latest
stored sequence and insert latest + 1. The first event of a debate is 1.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from .event_mapper import EventEnvelope, decode_event, encode_payload
from .interfaces import IDebateStore
from .locks import DebateLocks
from .models import DebateEvent

logger = logging.getLogger(__name__)


class EventLog:
    """Writes typed payloads to the store and reads them back in order."""

    def __init__(self, store: IDebateStore, locks: Optional[DebateLocks] = None):
        self._store = store
        self._locks = locks or DebateLocks()

    async def append(self, debate_id: str, payload: BaseModel) -> int:
        """
        Append an event and return its sequence number.

        Args:
            debate_id: Debate the event belongs to
            payload: One of the typed payloads from event_mapper

        Returns:
            The assigned sequence (1 for a debate's first event)
        """
        event_type, body = encode_payload(payload)
        async with self._locks.for_debate(debate_id):
            sequence = self._store.latest_event_sequence(debate_id) + 1
            self._store.insert_event(
                DebateEvent(
                    debate_id=debate_id,
                    sequence=sequence,
                    type=event_type,
                    payload=body,
                )
            )
        logger.debug(f"Event {sequence} ({event_type}) appended to debate {debate_id}")
        return sequence

    def get_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> list[DebateEvent]:
        """Raw events with sequence > after_sequence, ascending."""
        return self._store.list_events(debate_id, after_sequence=after_sequence, limit=limit)

    def read(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> list[EventEnvelope]:
        """
        Decoded events after the cursor.

        Raises:
            MalformedEventError: On the first payload that does not decode
        """
        return [decode_event(e) for e in self.get_events(debate_id, after_sequence, limit)]

    @property
    def locks(self) -> DebateLocks:
        """Sequencing locks, released by retention cleanup."""
        return self._locks
