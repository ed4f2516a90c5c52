"""Tests for event payload encoding and decoding."""

import json
from datetime import datetime, timezone

import pytest

from modules.debates.event_mapper import (
    ActionProcessedPayload,
    ActionSummary,
    DebateCompletedPayload,
    DebateStartedPayload,
    ErrorPayload,
    EventEnvelope,
    TokenPayload,
    TurnCompletedPayload,
    TurnStartedPayload,
    UnknownEventPayload,
    decode_event,
    encode_payload,
    normalize_completed_turn,
)
from modules.debates.exceptions import MalformedEventError
from modules.debates.models import DebateEvent, Speaker, UserActionType, Winner


def stored(event_type: str, payload: str, sequence: int = 1) -> DebateEvent:
    return DebateEvent(debate_id="debate-1", sequence=sequence, type=event_type, payload=payload)


class TestEncodePayload:
    def test_tag_is_returned_separately(self):
        """The tag should not be duplicated inside the JSON body."""
        tag, body = encode_payload(TokenPayload(speaker=Speaker.A, content="Hi"))
        assert tag == "token"
        assert json.loads(body) == {"speaker": "A", "content": "Hi"}

    def test_none_fields_are_omitted(self):
        """Unset optional fields should not be stored."""
        _, body = encode_payload(DebateCompletedPayload(reason="max turns reached"))
        assert json.loads(body) == {"reason": "max turns reached"}

    def test_action_payload_nests_action(self):
        """action.processed should carry the action summary."""
        tag, body = encode_payload(
            ActionProcessedPayload(action=ActionSummary(type=UserActionType.INJECT, payload="Hey"))
        )
        assert tag == "action.processed"
        assert json.loads(body) == {"action": {"type": "inject", "payload": "Hey"}}


class TestDecodeEvent:
    def test_decodes_known_tag(self):
        """A known tag should decode into its typed payload."""
        envelope = decode_event(stored("turn.started", '{"speaker": "B", "turn_number": 4}', 7))
        assert isinstance(envelope.data, TurnStartedPayload)
        assert envelope.data.speaker is Speaker.B
        assert envelope.data.turn_number == 4
        assert envelope.sequence == 7
        assert envelope.type == "turn.started"

    def test_decodes_completion(self):
        """debate.completed should be recognised as the completion signal."""
        envelope = decode_event(stored("debate.completed", '{"winner": "draw", "reason": "x"}'))
        assert envelope.is_completion is True
        assert envelope.data.winner is Winner.DRAW

    def test_round_trip_preserves_payload(self):
        """A stored payload should decode back to an equal model."""
        original = TurnCompletedPayload(
            speaker=Speaker.A,
            full_content="Full text",
            reasoning="why",
            turn_number=3,
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        tag, body = encode_payload(original)
        assert decode_event(stored(tag, body)).data == original

    def test_unknown_tag_passes_through(self):
        """Tags this reader does not know should be passed through."""
        envelope = decode_event(stored("judge.verdict", '{"score": 7}'))
        assert isinstance(envelope.data, UnknownEventPayload)
        assert envelope.type == "judge.verdict"
        assert envelope.data.model_extra == {"score": 7}
        assert envelope.is_completion is False

    def test_invalid_json_raises(self):
        """Unparsable payloads should raise MalformedEventError."""
        with pytest.raises(MalformedEventError) as exc_info:
            decode_event(stored("token", "{not json", 5))
        assert exc_info.value.details["sequence"] == 5

    def test_non_object_json_raises(self):
        """A JSON array is not a valid payload."""
        with pytest.raises(MalformedEventError):
            decode_event(stored("token", "[1, 2]"))

    def test_schema_mismatch_raises(self):
        """A known tag with the wrong shape should raise."""
        with pytest.raises(MalformedEventError):
            decode_event(stored("turn.started", '{"speaker": "C"}'))


class TestEnvelopeToSse:
    def test_sse_shape(self):
        """to_sse should give event, id and JSON data with the tag included."""
        envelope = decode_event(stored("debate.started", '{"debate_id": "debate-1"}', 12))
        sse = envelope.to_sse()
        assert sse["event"] == "debate.started"
        assert sse["id"] == "12"
        assert json.loads(sse["data"]) == {"type": "debate.started", "debate_id": "debate-1"}

    def test_synthetic_envelope_has_no_id(self):
        """Envelopes a reader made up never reuse a stored event's id."""
        envelope = EventEnvelope(
            debate_id="debate-1",
            sequence=7,
            data=DebateCompletedPayload(reason="Debate aborted"),
            created_at=datetime.now(timezone.utc),
            synthetic=True,
        )
        sse = envelope.to_sse()
        assert "id" not in sse
        assert sse["event"] == "debate.completed"

    def test_error_payload_sse(self):
        """Error payloads should omit empty fields."""
        envelope = decode_event(stored("error", '{"message": "boom"}'))
        assert isinstance(envelope.data, ErrorPayload)
        assert json.loads(envelope.to_sse()["data"]) == {"type": "error", "message": "boom"}

    def test_started_payload_model(self):
        """DebateStartedPayload defaults its tag."""
        assert DebateStartedPayload(debate_id="x").type == "debate.started"


class TestNormalizeCompletedTurn:
    def test_full_payload(self):
        """A complete payload should map field for field."""
        ts = datetime(2024, 5, 1, tzinfo=timezone.utc)
        turn = normalize_completed_turn(
            {
                "speaker": "B",
                "full_content": "Rebuttal",
                "reasoning": "because",
                "turn_number": 2,
                "timestamp": ts.isoformat(),
            },
            debate_id="debate-1",
            fallback_number=9,
        )
        assert turn.number == 2
        assert turn.speaker is Speaker.B
        assert turn.content == "Rebuttal"
        assert turn.reasoning == "because"
        assert turn.timestamp == ts

    def test_missing_number_uses_fallback(self):
        """Missing or invalid turn numbers fall back."""
        turn = normalize_completed_turn(
            {"speaker": "A", "full_content": "x", "turn_number": 0},
            debate_id="debate-1",
            fallback_number=4,
        )
        assert turn.number == 4

    def test_bad_timestamp_uses_fallback(self):
        """Unparsable timestamps fall back to the supplied value."""
        fallback = datetime(2023, 1, 1, tzinfo=timezone.utc)
        turn = normalize_completed_turn(
            {"speaker": "A", "timestamp": "yesterday"},
            debate_id="debate-1",
            fallback_number=1,
            fallback_timestamp=fallback,
        )
        assert turn.timestamp == fallback
        assert turn.content == ""

    def test_blank_reasoning_becomes_none(self):
        """Whitespace-only reasoning should be normalised to None."""
        turn = normalize_completed_turn(
            {"speaker": "A", "full_content": "x", "reasoning": "   "},
            debate_id="debate-1",
            fallback_number=1,
        )
        assert turn.reasoning is None

    def test_missing_speaker_returns_none(self):
        """A payload without a speaker cannot become a turn."""
        assert normalize_completed_turn({"full_content": "x"}, "debate-1", 1) is None

    def test_accepts_typed_payload(self):
        """A TurnCompletedPayload can be passed directly."""
        payload = TurnCompletedPayload(speaker=Speaker.A, full_content="Opening", turn_number=1)
        turn = normalize_completed_turn(payload, "debate-1", fallback_number=5)
        assert turn.number == 1
        assert turn.content == "Opening"
