"""
Observer feed: tails a debate's event log from a cursor.

The feed is read-only. It polls the log, relays decoded events in sequence
order, and ends after the debate's completion event. If the debate is
terminal but its log holds no completion event (a stopped debate, or a status
write that raced the log write), the feed synthesizes one so every observer
sees exactly one end-of-debate signal.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from .event_log import EventLog
from .event_mapper import (
    DebateCompletedPayload,
    EventEnvelope,
    ErrorPayload,
    decode_event,
)
from .exceptions import MalformedEventError
from .interfaces import IDebateStore
from .models import DebateStatus, utc_now

logger = logging.getLogger(__name__)


class ObserverFeed:
    """Relays a debate's events to one observer."""

    def __init__(
        self,
        store: IDebateStore,
        event_log: EventLog,
        poll_interval: float = 0.75,
        page_limit: int = 500,
    ):
        self._store = store
        self._events = event_log
        self.poll_interval = poll_interval
        self.page_limit = page_limit

    async def relay(
        self,
        debate_id: str,
        after_sequence: int = 0,
        stop: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[EventEnvelope]:
        """
        Yield events with sequence > after_sequence until the debate ends.

        Malformed payloads are reported as error envelopes and skipped.
        Setting stop ends the relay at the next poll.
        """
        cursor = after_sequence
        final_pass = False

        while stop is None or not stop.is_set():
            events = self._events.get_events(debate_id, cursor, self.page_limit)
            for event in events:
                cursor = event.sequence
                try:
                    envelope = decode_event(event)
                except MalformedEventError as e:
                    logger.warning(f"Debate {debate_id}: skipping event {event.sequence}: {e}")
                    yield EventEnvelope(
                        debate_id=debate_id,
                        sequence=event.sequence,
                        data=ErrorPayload(message=e.message, code=e.code),
                        created_at=event.created_at,
                    )
                    continue
                yield envelope
                if envelope.is_completion:
                    return

            if len(events) >= self.page_limit:
                continue

            debate = self._store.get_debate(debate_id)
            if debate is None:
                yield EventEnvelope(
                    debate_id=debate_id,
                    sequence=cursor,
                    data=ErrorPayload(message="Debate not found", code="DEBATE_NOT_FOUND"),
                    created_at=utc_now(),
                    synthetic=True,
                )
                return

            if debate.status.is_terminal:
                # One more read in case the completion event landed after
                # this poll's page but before the status read.
                if not final_pass:
                    final_pass = True
                    continue
                reason = (
                    "Debate aborted"
                    if debate.status == DebateStatus.ABORTED
                    else "Debate completed"
                )
                yield EventEnvelope(
                    debate_id=debate_id,
                    sequence=cursor,
                    data=DebateCompletedPayload(winner=debate.winner, reason=reason),
                    created_at=utc_now(),
                    synthetic=True,
                )
                return

            await self._wait(stop)

    async def _wait(self, stop: Optional[asyncio.Event]) -> None:
        if stop is None:
            await asyncio.sleep(self.poll_interval)
            return
        try:
            await asyncio.wait_for(stop.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass
