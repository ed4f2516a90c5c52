"""
Model responder: one debater's turn, streamed.

Builds the debater's conversation, calls the completion provider, and runs
the raw stream through the TagStreamParser so only visible argument text is
yielded. Hidden reasoning is returned with the final result.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from .exceptions import ProviderError
from .interfaces import ICompletionProvider
from .models import DebaterConfig, Speaker, Turn
from .tag_parser import TagStreamParser

logger = logging.getLogger(__name__)

DEFAULT_OPPONENT_GOAL = "to convince others of their perspective"
TURN_PROMPT = "Your turn to respond."


def build_system_prompt(
    debater: DebaterConfig,
    topic: str,
    opponent_objective: Optional[str] = None,
) -> str:
    """Build the debater's system instruction, unless it overrides it."""
    if debater.system_prompt:
        return debater.system_prompt

    objective = debater.objective or f"Convincingly argue your position on: {topic}"
    opponent_goal = opponent_objective or DEFAULT_OPPONENT_GOAL

    return f"""You are {debater.name}, participating in a debate.

Your objective: {objective}
The topic: "{topic}"
Your opponent is trying {opponent_goal}.

Rules:
1. Make persuasive, well-reasoned arguments.
2. Address points your opponent raised.
3. Be respectful but firm in your position.
4. You may use <reasoning>tags for your private thinking</reasoning>.
5. You may close with a one-sentence <rationale_summary>why your argument holds</rationale_summary>. It is never shown to your opponent.
6. Keep responses concise (2-4 paragraphs)."""


def build_messages(
    speaker: Speaker,
    debater: DebaterConfig,
    topic: str,
    previous_turns: Sequence[Turn],
    opponent_objective: Optional[str] = None,
) -> list[BaseMessage]:
    """
    Build the conversation for the speaker's next turn.

    The speaker's own past turns are assistant messages and everything
    else (the opponent, moderator interjections in the opponent's slot) is
    a user message.
    """
    messages: list[BaseMessage] = [
        SystemMessage(content=build_system_prompt(debater, topic, opponent_objective)),
    ]
    for turn in previous_turns:
        if turn.speaker == speaker:
            messages.append(AIMessage(content=turn.content))
        else:
            messages.append(HumanMessage(content=turn.content))
    messages.append(HumanMessage(content=TURN_PROMPT))
    return messages


def reasoning_switch(debater: DebaterConfig) -> Optional[bool]:
    """Reasoning flag to send, or None when the model has no toggle."""
    if not debater.reasoning_toggleable:
        return None
    return bool(debater.reasoning_enabled)


@dataclass(frozen=True)
class ResponderResult:
    """Completed turn output."""

    content: str
    reasoning: Optional[str] = None


class ResponseStream:
    """
    Async iterable of visible fragments for one turn.

    Iterate it to completion, then read result. Failures before the first
    visible fragment are retried; once text has been handed to the caller a
    retry would duplicate it, so the failure propagates instead.
    """

    def __init__(
        self,
        provider: ICompletionProvider,
        debater: DebaterConfig,
        messages: list[BaseMessage],
        credential: str,
        max_retries: int,
        timeout: float,
    ):
        self._provider = provider
        self._debater = debater
        self._messages = messages
        self._credential = credential
        self._max_retries = max_retries
        self._timeout = timeout
        self._result: Optional[ResponderResult] = None

    @property
    def result(self) -> ResponderResult:
        if self._result is None:
            raise RuntimeError("Response stream has not completed")
        return self._result

    def __aiter__(self) -> AsyncIterator[str]:
        return self._run()

    async def _run(self) -> AsyncIterator[str]:
        model = self._debater.model
        attempts = self._max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            parser = TagStreamParser()
            visible_parts: list[str] = []
            try:
                chunks = self._provider.stream(
                    model,
                    self._messages,
                    self._credential,
                    reasoning_switch(self._debater),
                )
                async for text in self._with_timeout(chunks):
                    parsed = parser.feed(text)
                    if parsed.visible:
                        visible_parts.append(parsed.visible)
                        yield parsed.visible

                tail = parser.finish()
                if tail.visible:
                    visible_parts.append(tail.visible)
                    yield tail.visible

                self._result = ResponderResult(
                    content="".join(visible_parts).strip(),
                    reasoning=parser.reasoning,
                )
                return
            except ProviderError:
                raise
            except Exception as e:
                last_error = e
                if visible_parts:
                    raise ProviderError(
                        model,
                        f"stream failed after partial output: {e}",
                        attempts=attempt,
                        original_error=repr(e),
                    ) from e
                logger.warning(
                    f"Completion attempt {attempt}/{attempts} for {model} failed: {e!r}"
                )

        raise ProviderError(
            model,
            f"failed after {attempts} attempts: {last_error}",
            attempts=attempts,
            original_error=repr(last_error),
        ) from last_error

    async def _with_timeout(self, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
        """Re-yield chunks, failing if any single chunk takes too long."""
        iterator = chunks.__aiter__()
        try:
            while True:
                try:
                    text = await asyncio.wait_for(iterator.__anext__(), self._timeout)
                except StopAsyncIteration:
                    return
                yield text
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()


class ModelResponder:
    """Produces streamed turns for debaters through a completion provider."""

    def __init__(
        self,
        provider: ICompletionProvider,
        max_retries: int = 2,
        timeout: float = 30.0,
    ):
        self._provider = provider
        self.max_retries = max_retries
        self.timeout = timeout

    def respond(
        self,
        speaker: Speaker,
        debater: DebaterConfig,
        topic: str,
        previous_turns: Sequence[Turn],
        credential: str,
        opponent_objective: Optional[str] = None,
    ) -> ResponseStream:
        """
        Start a turn for the speaker.

        Args:
            speaker: Which side is speaking
            debater: The speaker's configuration
            topic: Debate topic
            previous_turns: Transcript so far, in order
            credential: Provider key for this call
            opponent_objective: The other side's stated objective

        Returns:
            A ResponseStream yielding visible fragments
        """
        messages = build_messages(speaker, debater, topic, previous_turns, opponent_objective)
        return ResponseStream(
            self._provider,
            debater,
            messages,
            credential,
            max_retries=self.max_retries,
            timeout=self.timeout,
        )
