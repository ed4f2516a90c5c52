"""Tests for debates module models."""

import pytest
from pydantic import ValidationError

from modules.debates.models import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ActionRequest,
    CreateDebateRequest,
    Debate,
    DebaterConfig,
    DebateEvent,
    DebateStatus,
    Speaker,
    Turn,
    UserActionType,
    Winner,
    WinningCondition,
)


class TestSpeaker:
    def test_other(self):
        """Each speaker's opponent is the other one."""
        assert Speaker.A.other is Speaker.B
        assert Speaker.B.other is Speaker.A

    def test_values(self):
        assert Speaker("A") is Speaker.A


class TestDebateStatus:
    def test_status_values(self):
        """Should have all expected status values."""
        assert DebateStatus.CREATED.value == "created"
        assert DebateStatus.RUNNING.value == "running"
        assert DebateStatus.PAUSED.value == "paused"
        assert DebateStatus.COMPLETED.value == "completed"
        assert DebateStatus.ABORTED.value == "aborted"

    @pytest.mark.parametrize(
        "status,terminal",
        [
            (DebateStatus.CREATED, False),
            (DebateStatus.RUNNING, False),
            (DebateStatus.PAUSED, False),
            (DebateStatus.COMPLETED, True),
            (DebateStatus.ABORTED, True),
        ],
    )
    def test_is_terminal(self, status, terminal):
        assert status.is_terminal is terminal
        assert (status in TERMINAL_STATUSES) is terminal

    def test_active_statuses(self):
        assert ACTIVE_STATUSES == {DebateStatus.RUNNING, DebateStatus.PAUSED}


class TestWinner:
    def test_from_speaker(self):
        assert Winner.from_speaker(Speaker.B) is Winner.B

    def test_draw_value(self):
        assert Winner.DRAW.value == "draw"


class TestDebaterConfig:
    def test_minimal(self):
        config = DebaterConfig(model="openai/gpt-4o", name="Pro")
        assert config.system_prompt is None
        assert config.reasoning_toggleable is None

    def test_model_required(self):
        """A debater needs a model identifier."""
        with pytest.raises(ValidationError):
            DebaterConfig(model="", name="Pro")

    def test_frozen(self):
        config = DebaterConfig(model="m", name="n")
        with pytest.raises(ValidationError):
            config.name = "other"


class TestDebate:
    def test_defaults(self, debater_a, debater_b):
        """New debates are created, speaker A first, no winner."""
        debate = Debate(
            id="d", topic="Topic here", debater_a=debater_a, debater_b=debater_b, max_turns=3
        )
        assert debate.status is DebateStatus.CREATED
        assert debate.current_speaker is Speaker.A
        assert debate.winner is None
        assert debate.winning_condition is WinningCondition.SELF_TERMINATE
        assert debate.created_at.tzinfo is not None

    def test_max_utterances(self, debater_a, debater_b):
        """max_turns counts pairs of utterances."""
        debate = Debate(
            id="d", topic="Topic here", debater_a=debater_a, debater_b=debater_b, max_turns=3
        )
        assert debate.max_utterances == 6

    def test_debater_lookup(self, debater_a, debater_b):
        debate = Debate(
            id="d", topic="Topic here", debater_a=debater_a, debater_b=debater_b, max_turns=3
        )
        assert debate.debater(Speaker.A) is debater_a
        assert debate.debater(Speaker.B) is debater_b

    def test_serializes_enums_as_values(self, debater_a, debater_b):
        debate = Debate(
            id="d", topic="Topic here", debater_a=debater_a, debater_b=debater_b, max_turns=3
        )
        data = debate.model_dump(mode="json")
        assert data["status"] == "created"
        assert data["winning_condition"] == "self-terminate"


class TestTurn:
    def test_number_starts_at_one(self):
        with pytest.raises(ValidationError):
            Turn(debate_id="d", number=0, speaker=Speaker.A, content="x")

    def test_immutable(self):
        turn = Turn(debate_id="d", number=1, speaker=Speaker.A, content="x")
        with pytest.raises(ValidationError):
            turn.content = "changed"


class TestDebateEvent:
    def test_sequence_starts_at_one(self):
        with pytest.raises(ValidationError):
            DebateEvent(debate_id="d", sequence=0, type="token", payload="{}")

    def test_any_type_tag_allowed(self):
        """Unknown tags are stored as-is."""
        event = DebateEvent(debate_id="d", sequence=1, type="judge.verdict", payload="{}")
        assert event.type == "judge.verdict"


class TestCreateDebateRequest:
    def test_valid_request(self, debater_a, debater_b):
        request = CreateDebateRequest(
            topic="  Should cities ban private cars?  ",
            debater_a=debater_a,
            debater_b=debater_b,
        )
        assert request.topic == "Should cities ban private cars?"
        assert request.max_turns == 10
        assert request.credential is None

    def test_topic_whitespace_does_not_count(self, debater_a, debater_b):
        """Padding cannot make a short topic long enough."""
        with pytest.raises(ValidationError):
            CreateDebateRequest(topic="   tiny       ", debater_a=debater_a, debater_b=debater_b)

    @pytest.mark.parametrize("max_turns", [1, 51])
    def test_max_turns_bounds(self, debater_a, debater_b, max_turns):
        with pytest.raises(ValidationError):
            CreateDebateRequest(
                topic="A long enough topic",
                debater_a=debater_a,
                debater_b=debater_b,
                max_turns=max_turns,
            )

    def test_credential_hidden_from_repr(self, debater_a, debater_b):
        request = CreateDebateRequest(
            topic="A long enough topic",
            debater_a=debater_a,
            debater_b=debater_b,
            credential="sk-secret",
        )
        assert "sk-secret" not in repr(request)


class TestActionRequest:
    def test_parses_type(self):
        assert ActionRequest(type="skip").type is UserActionType.SKIP

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            ActionRequest(type="rewind")

    def test_payload_length_limit(self):
        with pytest.raises(ValidationError):
            ActionRequest(type="inject", payload="x" * 5001)
