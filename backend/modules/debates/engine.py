"""
Debate state machine and orchestration loop.

Lifecycle: created -> running <-> paused -> completed | aborted.

Only a running debate produces turns. Every status transition is a
compare-and-set against the store, so a moderator's pause or stop applied
while a turn is in flight is never overwritten by the loop. The loop
re-reads the status before each turn; that is how pause and stop take
effect, always between utterances.
"""

import logging
import uuid
from typing import Optional

from shared.exceptions import ArenaError

from .event_log import EventLog
from .event_mapper import (
    DebateCompletedPayload,
    DebateStartedPayload,
    ErrorPayload,
    TokenPayload,
    TurnCompletedPayload,
    TurnStartedPayload,
)
from .exceptions import DebateNotFoundError, DebateValidationError
from .heuristics import (
    agreement_confidence,
    check_for_agreement,
    check_for_circular_argument,
    circular_confidence,
)
from .interfaces import IDebateStore
from .locks import DebateLocks
from .models import (
    ACTIVE_STATUSES,
    Debate,
    DebaterConfig,
    DebateStatus,
    Speaker,
    Turn,
    Winner,
    WinningCondition,
)
from .responder import ModelResponder, ResponderResult

logger = logging.getLogger(__name__)

REASON_MAX_TURNS = "max turns reached"
REASON_AGREEMENT = "agreement detected"
REASON_CIRCULAR = "circular argument detected"


async def append_turn(
    store: IDebateStore,
    turn_locks: DebateLocks,
    debate_id: str,
    speaker: Optional[Speaker],
    content: str,
    reasoning: Optional[str] = None,
) -> Turn:
    """
    Persist the debate's next turn.

    The number is count + 1, assigned under the debate's turn lock, which the
    engine holds for a whole model turn. Model turns and moderator
    interjections therefore share one contiguous numbering. With no speaker,
    the turn goes to the debate's current speaker as read under the lock.
    """
    async with turn_locks.for_debate(debate_id):
        if speaker is None:
            speaker = store.get_debate(debate_id).current_speaker
        number = store.count_turns(debate_id) + 1
        return store.insert_turn(
            Turn(
                debate_id=debate_id,
                number=number,
                speaker=speaker,
                content=content,
                reasoning=reasoning,
            )
        )


class DebateEngine:
    """Drives debates from creation through alternating turns to termination."""

    def __init__(
        self,
        store: IDebateStore,
        event_log: EventLog,
        responder: ModelResponder,
        turn_locks: Optional[DebateLocks] = None,
    ):
        self._store = store
        self._events = event_log
        self._responder = responder
        self._turn_locks = turn_locks or DebateLocks()

    @property
    def turn_locks(self) -> DebateLocks:
        return self._turn_locks

    def create(
        self,
        topic: str,
        debater_a: Optional[DebaterConfig],
        debater_b: Optional[DebaterConfig],
        max_turns: int,
        winning_condition: WinningCondition = WinningCondition.SELF_TERMINATE,
    ) -> Debate:
        """
        Create a debate in CREATED status with speaker A to open.

        Raises:
            DebateValidationError: If the topic is blank, a debater is
                missing, or max_turns is below 1
        """
        topic = (topic or "").strip()
        if not topic:
            raise DebateValidationError("Topic must not be empty", field="topic")
        if debater_a is None or not debater_a.model:
            raise DebateValidationError("Debater A needs a model", field="debater_a")
        if debater_b is None or not debater_b.model:
            raise DebateValidationError("Debater B needs a model", field="debater_b")
        if max_turns < 1:
            raise DebateValidationError("max_turns must be at least 1", field="max_turns")

        debate = self._store.insert_debate(
            Debate(
                id=str(uuid.uuid4()),
                topic=topic,
                debater_a=debater_a,
                debater_b=debater_b,
                max_turns=max_turns,
                winning_condition=winning_condition,
            )
        )
        logger.info(f"Created debate {debate.id} ({debate.max_turns} paired turns)")
        return debate

    async def start(self, debate_id: str) -> Debate:
        """
        Move a created or paused debate to running.

        Emits debate.started only when this call made the transition, so
        starting a running debate is a no-op.

        Raises:
            DebateNotFoundError: If the debate doesn't exist
        """
        updated = self._store.update_debate(
            debate_id,
            {"status": DebateStatus.RUNNING},
            expected_status={DebateStatus.CREATED, DebateStatus.PAUSED},
        )
        if updated is None:
            debate = self._store.get_debate(debate_id)
            if debate is None:
                raise DebateNotFoundError(debate_id)
            return debate

        await self._events.append(debate_id, DebateStartedPayload(debate_id=debate_id))
        logger.info(f"Debate {debate_id} started")
        return updated

    async def run_one_turn(self, debate_id: str, credential: str) -> bool:
        """
        Produce one utterance for the current speaker.

        The debate's turn lock is held from turn.started until the turn is
        persisted and the speaker flipped, so an interjection arriving
        mid-turn waits and takes the following number.

        Returns:
            True if the loop should continue, False if the debate is not
            running or has just ended
        """
        debate = self._store.get_debate(debate_id)
        if debate is None or debate.status != DebateStatus.RUNNING:
            return False

        async with self._turn_locks.for_debate(debate_id):
            # Re-read under the lock; an interjection may have run meanwhile.
            debate = self._store.get_debate(debate_id)
            if debate is None or debate.status != DebateStatus.RUNNING:
                return False

            transcript = self._store.list_turns(debate_id)
            if len(transcript) >= debate.max_utterances:
                await self._finish(debate_id, None, REASON_MAX_TURNS)
                return False

            speaker = debate.current_speaker
            number = len(transcript) + 1

            await self._events.append(
                debate_id, TurnStartedPayload(speaker=speaker, turn_number=number)
            )
            logger.debug(f"Debate {debate_id}: turn {number} for {speaker.value}")

            try:
                result = await self._speak(debate, speaker, transcript, credential)
            except Exception as e:
                logger.exception(f"Debate {debate_id}: turn {number} failed")
                await self._halt(debate_id, e, number)
                return False

            turn = self._store.insert_turn(
                Turn(
                    debate_id=debate_id,
                    number=number,
                    speaker=speaker,
                    content=result.content,
                    reasoning=result.reasoning,
                )
            )
            await self._events.append(
                debate_id,
                TurnCompletedPayload(
                    speaker=speaker,
                    full_content=turn.content,
                    reasoning=turn.reasoning,
                    turn_number=turn.number,
                    timestamp=turn.timestamp,
                ),
            )

            if check_for_agreement(turn.content):
                await self._finish(
                    debate_id,
                    Winner.from_speaker(speaker),
                    REASON_AGREEMENT,
                    agreement_confidence(turn.content),
                )
                return False

            turns = self._store.list_turns(debate_id)
            if check_for_circular_argument(turns):
                await self._finish(
                    debate_id, Winner.DRAW, REASON_CIRCULAR, circular_confidence(turns)
                )
                return False

            updated = self._store.update_debate(
                debate_id,
                {"current_speaker": speaker.other},
                expected_status=ACTIVE_STATUSES,
            )
        return updated is not None and updated.status == DebateStatus.RUNNING

    async def _speak(
        self,
        debate: Debate,
        speaker: Speaker,
        transcript: list[Turn],
        credential: str,
    ) -> ResponderResult:
        """Stream the speaker's reply as token events and return the parsed result."""
        stream = self._responder.respond(
            speaker,
            debate.debater(speaker),
            debate.topic,
            transcript,
            credential,
            opponent_objective=debate.debater(speaker.other).objective,
        )
        async for fragment in stream:
            await self._events.append(
                debate.id, TokenPayload(speaker=speaker, content=fragment)
            )
        return stream.result

    async def run(self, debate_id: str, credential: str) -> None:
        """
        Loop driver: start a created debate, then take turns while it is running.

        A paused debate is left paused; resuming it is a status change made
        before the loop is launched.

        A failing turn halts the loop: the failure is logged, recorded as an
        error event, and the debate is paused so a resume can retry it.
        """
        debate = self._store.get_debate(debate_id)
        if debate is not None and debate.status == DebateStatus.CREATED:
            await self.start(debate_id)

        while True:
            debate = self._store.get_debate(debate_id)
            if debate is None or debate.status != DebateStatus.RUNNING:
                break
            try:
                if not await self.run_one_turn(debate_id, credential):
                    break
            except Exception as e:
                logger.exception(f"Debate {debate_id}: turn failed")
                await self._halt(debate_id, e)
                break

        logger.debug(f"Debate {debate_id}: loop exited")

    async def _finish(
        self,
        debate_id: str,
        winner: Optional[Winner],
        reason: str,
        confidence: Optional[float] = None,
    ) -> bool:
        """Complete the debate and emit debate.completed, unless it already ended."""
        updated = self._store.update_debate(
            debate_id,
            {"status": DebateStatus.COMPLETED, "winner": winner},
            expected_status=ACTIVE_STATUSES,
        )
        if updated is None:
            logger.info(f"Debate {debate_id} ended elsewhere before '{reason}' applied")
            return False

        await self._events.append(
            debate_id,
            DebateCompletedPayload(winner=winner, reason=reason, confidence=confidence),
        )
        logger.info(
            f"Debate {debate_id} completed: {reason} "
            f"(winner: {winner.value if winner else 'none'})"
        )
        return True

    async def _halt(
        self,
        debate_id: str,
        error: Exception,
        turn_number: Optional[int] = None,
    ) -> None:
        if isinstance(error, ArenaError):
            message, code = error.message, error.code
        else:
            message, code = str(error) or type(error).__name__, "INTERNAL_ERROR"

        await self._events.append(
            debate_id,
            ErrorPayload(
                message=message,
                code=code,
                turn_number=turn_number or self._store.count_turns(debate_id) + 1,
            ),
        )
        self._store.update_debate(
            debate_id,
            {"status": DebateStatus.PAUSED},
            expected_status={DebateStatus.RUNNING},
        )
