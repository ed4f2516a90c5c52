"""Tests for the append-only event log."""

import asyncio

import pytest

from modules.debates.event_log import EventLog
from modules.debates.event_mapper import DebateStartedPayload, TokenPayload
from modules.debates.exceptions import MalformedEventError
from modules.debates.models import DebateEvent, Speaker


class TestEventLogAppend:
    @pytest.mark.asyncio
    async def test_first_event_is_sequence_one(self, store):
        """A debate's first event gets sequence 1."""
        log = EventLog(store)
        assert await log.append("debate-1", DebateStartedPayload(debate_id="debate-1")) == 1

    @pytest.mark.asyncio
    async def test_sequences_increase(self, store):
        """Each append gets the next sequence number."""
        log = EventLog(store)
        sequences = [
            await log.append("debate-1", TokenPayload(speaker=Speaker.A, content=str(i)))
            for i in range(5)
        ]
        assert sequences == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_debates_are_sequenced_independently(self, store):
        """Each debate has its own sequence."""
        log = EventLog(store)
        await log.append("debate-1", DebateStartedPayload(debate_id="debate-1"))
        await log.append("debate-1", DebateStartedPayload(debate_id="debate-1"))
        assert await log.append("debate-2", DebateStartedPayload(debate_id="debate-2")) == 1

    @pytest.mark.asyncio
    async def test_concurrent_appends_get_unique_sequences(self, store):
        """Concurrent writers never share a sequence number."""
        log = EventLog(store)
        sequences = await asyncio.gather(*[
            log.append("debate-1", TokenPayload(speaker=Speaker.B, content=f"t{i}"))
            for i in range(25)
        ])
        assert sorted(sequences) == list(range(1, 26))

    @pytest.mark.asyncio
    async def test_continues_after_existing_events(self, store):
        """Sequencing continues from what is already stored."""
        store.insert_event(DebateEvent(debate_id="debate-1", sequence=41, type="token", payload="{}"))
        log = EventLog(store)
        assert await log.append("debate-1", DebateStartedPayload(debate_id="debate-1")) == 42


class TestEventLogRead:
    @pytest.mark.asyncio
    async def test_get_events_after_cursor(self, store):
        """Only events after the cursor are returned, ascending."""
        log = EventLog(store)
        for i in range(6):
            await log.append("debate-1", TokenPayload(speaker=Speaker.A, content=str(i)))

        events = log.get_events("debate-1", after_sequence=2, limit=3)
        assert [e.sequence for e in events] == [3, 4, 5]

    @pytest.mark.asyncio
    async def test_cursor_resumes_without_loss_or_duplication(self, store):
        """Reading page by page with the last cursor sees every event once."""
        log = EventLog(store)
        for i in range(7):
            await log.append("debate-1", TokenPayload(speaker=Speaker.A, content=str(i)))

        seen = []
        cursor = 0
        while True:
            page = log.get_events("debate-1", cursor, limit=3)
            if not page:
                break
            seen.extend(e.sequence for e in page)
            cursor = page[-1].sequence
        assert seen == list(range(1, 8))

    @pytest.mark.asyncio
    async def test_read_decodes(self, store):
        """read() returns typed envelopes."""
        log = EventLog(store)
        await log.append("debate-1", TokenPayload(speaker=Speaker.A, content="Hi"))
        envelopes = log.read("debate-1")
        assert envelopes[0].data == TokenPayload(speaker=Speaker.A, content="Hi")

    def test_read_raises_on_malformed(self, store):
        """read() surfaces malformed payloads to the caller."""
        store.insert_event(DebateEvent(debate_id="debate-1", sequence=1, type="token", payload="oops"))
        with pytest.raises(MalformedEventError):
            EventLog(store).read("debate-1")
