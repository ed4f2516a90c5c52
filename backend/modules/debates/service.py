"""
Debate service: the facade the API layer and the CLI call into.

Validates requests against the configured limits, resolves credentials,
and hands debates to the runner. Orchestration itself lives in engine.py.
"""

import logging
from datetime import timedelta
from typing import AsyncIterator, Optional, Sequence

from shared.config import Settings, get_settings
from shared.models import AuthenticatedUser

from .actions import ActionProcessor
from .cleanup import RetentionCleaner
from .credentials import CredentialCache, CredentialResolver
from .engine import DebateEngine
from .event_log import EventLog
from .event_mapper import EventEnvelope
from .exceptions import (
    DebateAlreadyFinishedError,
    DebateNotFoundError,
    DebateValidationError,
)
from .feed import ObserverFeed
from .interfaces import ICompletionProvider, ICredentialStore, IDebateService, IDebateStore
from .locks import DebateLocks
from .models import (
    ActionRequest,
    CreateDebateRequest,
    Debate,
    DebateStatus,
    EventPage,
    Turn,
    UserActionType,
)
from .responder import ModelResponder
from .runner import DebateRunner

logger = logging.getLogger(__name__)


class DebateService(IDebateService):
    """
    Debate service.

    Implements IDebateService on top of the engine, the action processor,
    the event log and the observer feed.
    """

    def __init__(
        self,
        store: IDebateStore,
        engine: DebateEngine,
        runner: DebateRunner,
        actions: ActionProcessor,
        event_log: EventLog,
        feed: ObserverFeed,
        credentials: CredentialResolver,
        settings: Optional[Settings] = None,
    ):
        self._store = store
        self._engine = engine
        self._runner = runner
        self._actions = actions
        self._events = event_log
        self._feed = feed
        self._credentials = credentials
        self._settings = settings or get_settings()

    @property
    def runner(self) -> DebateRunner:
        return self._runner

    @property
    def lock_registries(self) -> tuple[DebateLocks, DebateLocks]:
        """Per-debate event and turn locks, for retention cleanup to release."""
        return self._events.locks, self._engine.turn_locks

    async def create_debate(
        self,
        request: CreateDebateRequest,
        user: Optional[AuthenticatedUser] = None,
    ) -> Debate:
        """Create a debate, starting it when the request carries a credential."""
        settings = self._settings
        if len(request.topic.strip()) < settings.min_topic_length:
            raise DebateValidationError(
                f"Topic must be at least {settings.min_topic_length} characters",
                field="topic",
            )
        if not settings.max_turns_min <= request.max_turns <= settings.max_turns_limit:
            raise DebateValidationError(
                f"max_turns must be between {settings.max_turns_min} "
                f"and {settings.max_turns_limit}",
                field="max_turns",
            )

        debate = self._engine.create(
            topic=request.topic,
            debater_a=request.debater_a,
            debater_b=request.debater_b,
            max_turns=request.max_turns,
            winning_condition=request.winning_condition,
        )

        if request.credential and request.credential.strip():
            credential = await self._credentials.resolve(debate.id, request.credential, user)
            debate = await self._engine.start(debate.id)
            self._runner.launch(debate.id, credential)

        return debate

    async def get_debate(self, debate_id: str) -> Debate:
        debate = self._store.get_debate(debate_id)
        if debate is None:
            raise DebateNotFoundError(debate_id)
        return debate

    async def get_turns(self, debate_id: str) -> list[Turn]:
        await self.get_debate(debate_id)
        return self._store.list_turns(debate_id)

    async def get_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
        limit: int = 200,
    ) -> EventPage:
        await self.get_debate(debate_id)
        limit = max(1, min(limit, self._settings.event_page_limit))
        events = self._events.get_events(debate_id, after_sequence, limit)
        return EventPage(
            debate_id=debate_id,
            events=events,
            last_sequence=events[-1].sequence if events else after_sequence,
        )

    async def submit_action(
        self,
        debate_id: str,
        request: ActionRequest,
        user: Optional[AuthenticatedUser] = None,
    ) -> Debate:
        """
        Apply a moderator action.

        Resume needs a credential before anything is recorded; once the
        debate is running again its loop is relaunched. Resuming a debate
        that was created without a credential starts it.
        """
        debate = await self.get_debate(debate_id)

        credential: Optional[str] = None
        if request.type is UserActionType.RESUME:
            if debate.status.is_terminal:
                raise DebateAlreadyFinishedError(debate_id, debate.status.value)
            credential = await self._credentials.resolve(debate_id, request.credential, user)

        if not await self._actions.process_action(debate_id, request.type, request.payload):
            raise DebateNotFoundError(debate_id)

        if credential is not None:
            current = await self.get_debate(debate_id)
            if current.status == DebateStatus.CREATED:
                current = await self._engine.start(debate_id)
            if current.status == DebateStatus.RUNNING:
                self._runner.launch(debate_id, credential)

        return await self.get_debate(debate_id)

    def stream_events(
        self,
        debate_id: str,
        after_sequence: int = 0,
    ) -> AsyncIterator[EventEnvelope]:
        return self._feed.relay(debate_id, after_sequence)


def build_debate_service(
    store: IDebateStore,
    provider: ICompletionProvider,
    settings: Optional[Settings] = None,
    credential_store: Optional[ICredentialStore] = None,
    credential_cache: Optional[CredentialCache] = None,
) -> DebateService:
    """
    Wire a DebateService and its collaborators around a store and provider.

    Args:
        store: Debate storage
        provider: Completion provider used for every debater
        settings: Limits and timeouts (defaults to application settings)
        credential_store: Per-user credential lookup for resume, if any
        credential_cache: Shared cache (so a RetentionCleaner can evict it)
    """
    settings = settings or get_settings()
    turn_locks = DebateLocks()
    event_log = EventLog(store)
    responder = ModelResponder(
        provider,
        max_retries=settings.provider_max_retries,
        timeout=settings.turn_timeout_seconds,
    )
    engine = DebateEngine(store, event_log, responder, turn_locks)
    cache = credential_cache
    if cache is None:
        cache = CredentialCache(ttl=timedelta(hours=settings.credential_ttl_hours))

    return DebateService(
        store=store,
        engine=engine,
        runner=DebateRunner(engine),
        actions=ActionProcessor(store, event_log, turn_locks),
        event_log=event_log,
        feed=ObserverFeed(
            store,
            event_log,
            poll_interval=settings.stream_poll_interval_seconds,
            page_limit=settings.event_page_limit,
        ),
        credentials=CredentialResolver(cache, credential_store),
        settings=settings,
    )


def build_retention_cleaner(
    store: IDebateStore,
    settings: Optional[Settings] = None,
    credential_cache: Optional[CredentialCache] = None,
    locks: Sequence[DebateLocks] = (),
) -> RetentionCleaner:
    settings = settings or get_settings()
    return RetentionCleaner(
        store,
        retention=timedelta(hours=settings.debate_retention_hours),
        credential_cache=credential_cache,
        locks=locks,
    )
