"""Tests for the debate service facade."""

import asyncio
from datetime import timedelta

import pytest

from modules.debates.event_mapper import DebateCompletedPayload
from modules.debates.exceptions import (
    CredentialRequiredError,
    DebateAlreadyFinishedError,
    DebateNotFoundError,
    DebateValidationError,
    InvalidActionError,
)
from modules.debates.models import (
    ActionRequest,
    CreateDebateRequest,
    DebateStatus,
    UserActionType,
    utc_now,
)
from modules.debates.service import build_debate_service, build_retention_cleaner


@pytest.fixture
def provider(scripted_provider):
    return scripted_provider()


@pytest.fixture
def service(store, provider, settings):
    return build_debate_service(store, provider, settings)


@pytest.fixture
def create_request(debater_a, debater_b):
    def _make(**overrides) -> CreateDebateRequest:
        fields = {
            "topic": "Should cities ban private cars downtown?",
            "debater_a": debater_a,
            "debater_b": debater_b,
            "max_turns": 2,
        }
        fields.update(overrides)
        return CreateDebateRequest(**fields)

    return _make


class TestCreateDebate:
    @pytest.mark.asyncio
    async def test_without_credential_stays_created(self, service, create_request, provider):
        """A debate created without a key waits for a resume."""
        debate = await service.create_debate(create_request())

        assert debate.status is DebateStatus.CREATED
        assert service.runner.is_running(debate.id) is False
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_with_credential_runs_to_completion(self, service, create_request, provider):
        """A key in the request starts the debate in the background."""
        debate = await service.create_debate(create_request(credential="sk-test"))
        assert debate.status is DebateStatus.RUNNING

        await service.runner.wait(debate.id)

        finished = await service.get_debate(debate.id)
        assert finished.status is DebateStatus.COMPLETED
        assert len(await service.get_turns(debate.id)) == 4
        assert {c["credential"] for c in provider.calls} == {"sk-test"}

    @pytest.mark.asyncio
    async def test_blank_credential_does_not_start(self, service, create_request):
        debate = await service.create_debate(create_request(credential="   "))
        assert debate.status is DebateStatus.CREATED

    @pytest.mark.asyncio
    async def test_max_turns_outside_configured_bounds(self, store, provider, settings, create_request):
        """Limits come from settings, not only from the request model."""
        service = build_debate_service(
            store, provider, settings.model_copy(update={"max_turns_limit": 5})
        )
        with pytest.raises(DebateValidationError) as exc_info:
            await service.create_debate(create_request(max_turns=6))
        assert exc_info.value.details == {"field": "max_turns"}

    @pytest.mark.asyncio
    async def test_topic_shorter_than_configured_minimum(self, store, provider, settings, create_request):
        service = build_debate_service(
            store, provider, settings.model_copy(update={"min_topic_length": 50})
        )
        with pytest.raises(DebateValidationError):
            await service.create_debate(create_request())


class TestReads:
    @pytest.mark.asyncio
    async def test_get_missing_debate(self, service):
        with pytest.raises(DebateNotFoundError):
            await service.get_debate("missing")

    @pytest.mark.asyncio
    async def test_get_turns_missing_debate(self, service):
        with pytest.raises(DebateNotFoundError):
            await service.get_turns("missing")

    @pytest.mark.asyncio
    async def test_event_page_cursor(self, service, create_request):
        """last_sequence is the cursor for the next page."""
        debate = await service.create_debate(create_request(credential="sk"))
        await service.runner.wait(debate.id)

        first = await service.get_events(debate.id, 0, limit=3)
        assert [e.sequence for e in first.events] == [1, 2, 3]
        assert first.last_sequence == 3

        rest = await service.get_events(debate.id, first.last_sequence, limit=500)
        assert rest.events[0].sequence == 4

        empty = await service.get_events(debate.id, 10_000)
        assert empty.events == []
        assert empty.last_sequence == 10_000

    @pytest.mark.asyncio
    async def test_event_limit_is_clamped(self, service, make_debate):
        make_debate()
        page = await service.get_events("debate-1", 0, limit=0)
        assert page.events == []


class TestSubmitAction:
    @pytest.mark.asyncio
    async def test_resume_created_debate_starts_it(self, service, create_request):
        """Resume with a key starts a debate that never ran."""
        debate = await service.create_debate(create_request())

        updated = await service.submit_action(
            debate.id, ActionRequest(type=UserActionType.RESUME, credential="sk-late")
        )
        assert updated.status is DebateStatus.RUNNING

        await service.runner.wait(debate.id)
        assert (await service.get_debate(debate.id)).status is DebateStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_resume_without_credential(self, service, make_debate):
        """Resume with no key anywhere fails before anything is recorded."""
        make_debate(status=DebateStatus.PAUSED)

        with pytest.raises(CredentialRequiredError):
            await service.submit_action("debate-1", ActionRequest(type=UserActionType.RESUME))

        assert service._store.list_actions("debate-1") == []

    @pytest.mark.asyncio
    async def test_resume_reuses_cached_credential(self, service, create_request, provider):
        """The key given at creation is remembered for a later resume."""
        debate = await service.create_debate(create_request(credential="sk-first"))
        await service.submit_action(debate.id, ActionRequest(type=UserActionType.PAUSE))
        await service.runner.wait(debate.id)

        await service.submit_action(debate.id, ActionRequest(type=UserActionType.RESUME))
        await service.runner.wait(debate.id)

        assert (await service.get_debate(debate.id)).status is DebateStatus.COMPLETED
        assert {c["credential"] for c in provider.calls} == {"sk-first"}

    @pytest.mark.asyncio
    async def test_resume_finished_debate(self, service, make_debate):
        make_debate(status=DebateStatus.COMPLETED)
        with pytest.raises(DebateAlreadyFinishedError):
            await service.submit_action(
                "debate-1", ActionRequest(type=UserActionType.RESUME, credential="sk")
            )

    @pytest.mark.asyncio
    async def test_pause_running_debate(self, service, create_request):
        """A pause lands between utterances and the loop exits."""
        debate = await service.create_debate(create_request(credential="sk", max_turns=10))

        paused = await service.submit_action(debate.id, ActionRequest(type=UserActionType.PAUSE))
        assert paused.status is DebateStatus.PAUSED

        await service.runner.wait(debate.id)
        assert (await service.get_debate(debate.id)).status is DebateStatus.PAUSED
        assert service.runner.is_running(debate.id) is False

    @pytest.mark.asyncio
    async def test_stop(self, service, make_debate):
        make_debate(status=DebateStatus.PAUSED)
        debate = await service.submit_action("debate-1", ActionRequest(type=UserActionType.STOP))
        assert debate.status is DebateStatus.ABORTED

    @pytest.mark.asyncio
    async def test_action_on_missing_debate(self, service):
        with pytest.raises(DebateNotFoundError):
            await service.submit_action("missing", ActionRequest(type=UserActionType.PAUSE))

    @pytest.mark.asyncio
    async def test_inject(self, service, make_debate):
        make_debate(status=DebateStatus.PAUSED)
        await service.submit_action(
            "debate-1", ActionRequest(type=UserActionType.INJECT, payload="Mind the buses")
        )
        turns = await service.get_turns("debate-1")
        assert turns[0].content == "[User]: Mind the buses"


class TestStreamEvents:
    @pytest.mark.asyncio
    async def test_streams_until_completion(self, service, create_request):
        """An observer sees every event and ends on debate.completed."""
        debate = await service.create_debate(create_request(credential="sk"))

        envelopes = await asyncio.wait_for(
            _collect(service.stream_events(debate.id)), timeout=5
        )

        assert envelopes[0].type == "debate.started"
        assert isinstance(envelopes[-1].data, DebateCompletedPayload)
        sequences = [e.sequence for e in envelopes]
        assert sequences == sorted(sequences)
        await service.runner.wait(debate.id)

    @pytest.mark.asyncio
    async def test_two_observers_see_the_same_events(self, service, create_request):
        debate = await service.create_debate(create_request(credential="sk"))

        first, second = await asyncio.wait_for(
            asyncio.gather(
                _collect(service.stream_events(debate.id)),
                _collect(service.stream_events(debate.id)),
            ),
            timeout=5,
        )

        assert [e.sequence for e in first] == [e.sequence for e in second]


class TestBuildRetentionCleaner:
    def test_uses_configured_retention(self, store, settings):
        cleaner = build_retention_cleaner(
            store, settings.model_copy(update={"debate_retention_hours": 6})
        )
        assert cleaner.retention.total_seconds() == 6 * 3600

    @pytest.mark.asyncio
    async def test_purge_releases_service_locks(self, service, store, settings, create_request):
        """A finished, purged debate holds no event or turn lock."""
        debate = await service.create_debate(create_request(credential="sk"))
        await service.runner.wait(debate.id)
        events, turns = service.lock_registries
        assert debate.id in events
        assert debate.id in turns

        cleaner = build_retention_cleaner(store, settings, locks=service.lock_registries)
        assert cleaner.purge(now=utc_now() + timedelta(days=2)) == 1

        assert debate.id not in events
        assert debate.id not in turns


async def _collect(iterator) -> list:
    return [item async for item in iterator]


def test_invalid_action_type_rejected_by_request_model():
    """Unknown action types never reach the service."""
    with pytest.raises(ValueError):
        ActionRequest(type="rewind")


def test_invalid_action_error_code():
    assert InvalidActionError("rewind").code == "INVALID_ACTION"
