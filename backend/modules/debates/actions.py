"""
Moderator action processing.

Every action on an existing debate is recorded for audit and announced with
an action.processed event, whether or not it changed anything. The side
effects depend on the action and on the debate's status at that moment.
"""

import logging
from typing import Optional, Union

from .engine import append_turn
from .event_log import EventLog
from .event_mapper import ActionProcessedPayload, ActionSummary
from .exceptions import InvalidActionError
from .interfaces import IDebateStore
from .locks import DebateLocks
from .models import DebateStatus, UserAction, UserActionType, utc_now

logger = logging.getLogger(__name__)

INJECT_PREFIX = "[User]: "


def parse_action_type(value: Union[str, UserActionType]) -> UserActionType:
    """
    Raises:
        InvalidActionError: If the value is not one of the five actions
    """
    try:
        return UserActionType(value)
    except ValueError as e:
        raise InvalidActionError(str(value)) from e


class ActionProcessor:
    """Applies pause, resume, skip, inject and stop to a debate."""

    def __init__(
        self,
        store: IDebateStore,
        event_log: EventLog,
        turn_locks: DebateLocks,
    ):
        self._store = store
        self._events = event_log
        self._turn_locks = turn_locks

    async def process_action(
        self,
        debate_id: str,
        action_type: Union[str, UserActionType],
        payload: Optional[str] = None,
    ) -> bool:
        """
        Record and apply a moderator action.

        Resume only flips the status; restarting the loop is the caller's
        job. Skip flips the speaker without producing a turn.

        Returns:
            False if the debate does not exist, True otherwise

        Raises:
            InvalidActionError: If the action type is unknown (nothing is
                recorded)
        """
        action_type = parse_action_type(action_type)

        debate = self._store.get_debate(debate_id)
        if debate is None:
            return False

        self._store.insert_action(
            UserAction(
                debate_id=debate_id,
                type=action_type,
                payload=payload,
                processed_at=utc_now(),
            )
        )

        if action_type is UserActionType.PAUSE:
            self._transition(debate_id, DebateStatus.RUNNING, DebateStatus.PAUSED)

        elif action_type is UserActionType.RESUME:
            self._transition(debate_id, DebateStatus.PAUSED, DebateStatus.RUNNING)

        elif action_type is UserActionType.SKIP:
            current = self._store.get_debate(debate_id)
            if current is not None:
                self._store.update_debate(
                    debate_id, {"current_speaker": current.current_speaker.other}
                )

        elif action_type is UserActionType.INJECT:
            if payload and payload.strip():
                # Waits for a model turn in flight; the speaker is read after it.
                turn = await append_turn(
                    self._store,
                    self._turn_locks,
                    debate_id,
                    None,
                    f"{INJECT_PREFIX}{payload}",
                )
                logger.debug(f"Debate {debate_id}: injected turn {turn.number}")

        elif action_type is UserActionType.STOP:
            self._store.update_debate(
                debate_id,
                {"status": DebateStatus.ABORTED},
                expected_status={
                    DebateStatus.CREATED,
                    DebateStatus.RUNNING,
                    DebateStatus.PAUSED,
                },
            )

        await self._events.append(
            debate_id,
            ActionProcessedPayload(
                action=ActionSummary(type=action_type, payload=payload)
            ),
        )
        logger.info(f"Debate {debate_id}: processed {action_type.value}")
        return True

    def _transition(
        self,
        debate_id: str,
        from_status: DebateStatus,
        to_status: DebateStatus,
    ) -> bool:
        updated = self._store.update_debate(
            debate_id, {"status": to_status}, expected_status={from_status}
        )
        if updated is None:
            logger.debug(
                f"Debate {debate_id}: not {from_status.value}, "
                f"{to_status.value} has no effect"
            )
        return updated is not None
