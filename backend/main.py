"""
Debate Arena - run a turn-based debate between two language models.

Both debaters stream through OpenRouter using the server's OPENROUTER_API_KEY.
The debate runs against an in-memory store; the terminal shows each debater's
turn live in its own column, then the result.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from rich.live import Live

from cli.display import (
    console,
    create_layout,
    print_error,
    print_header,
    print_result,
    print_turn_summary,
    update_panel,
)
from modules.debates.event_mapper import (
    DebateCompletedPayload,
    ErrorPayload,
    TokenPayload,
    TurnCompletedPayload,
    TurnStartedPayload,
    normalize_completed_turn,
)
from modules.debates.exceptions import MALFORMED_EVENT_CODE, DebateValidationError
from modules.debates.memory_store import InMemoryDebateStore
from modules.debates.models import (
    ActionRequest,
    CreateDebateRequest,
    DebaterConfig,
    Speaker,
    Turn,
    UserActionType,
)
from modules.debates.service import DebateService, build_debate_service
from providers.factory import get_completion_provider
from shared.config import Settings, get_settings

logger = logging.getLogger(__name__)


async def run_debate(service: DebateService, request: CreateDebateRequest) -> int:
    """Create the debate, follow its event feed, and render it.

    The transcript is rebuilt from turn.completed events, the same way any
    feed observer would, rather than read back from the store.

    Args:
        service: Debate service wired to a store and provider
        request: Creation request, including the credential

    Returns:
        Process exit code (0 on completion, 1 on a failed turn)
    """
    debate = await service.create_debate(request)
    print_header(debate)

    layout = create_layout()
    buffers = {Speaker.A: "", Speaker.B: ""}
    turn_numbers: dict[Speaker, int] = {}
    transcript: dict[int, Turn] = {}
    for speaker in buffers:
        update_panel(layout, speaker, debate.debater(speaker).name, "Waiting...")

    failure: Optional[ErrorPayload] = None
    ending: Optional[DebateCompletedPayload] = None

    with Live(layout, console=console, refresh_per_second=10) as live:
        async for envelope in service.stream_events(debate.id):
            data = envelope.data
            if isinstance(data, TurnStartedPayload):
                buffers[data.speaker] = ""
                turn_numbers[data.speaker] = data.turn_number
            elif isinstance(data, TokenPayload):
                buffers[data.speaker] += data.content
            elif isinstance(data, TurnCompletedPayload):
                turn = normalize_completed_turn(
                    data, debate.id, len(transcript) + 1, envelope.created_at
                )
                if turn is not None:
                    transcript[turn.number] = turn
                    buffers[turn.speaker] = turn.content
            elif isinstance(data, ErrorPayload):
                if data.code == MALFORMED_EVENT_CODE:
                    logger.warning(f"Skipped unreadable event {envelope.sequence}: {data.message}")
                    continue
                failure = data
                break
            elif isinstance(data, DebateCompletedPayload):
                ending = data

            for speaker, content in buffers.items():
                update_panel(
                    layout,
                    speaker,
                    debate.debater(speaker).name,
                    content,
                    turn_numbers.get(speaker),
                )
            live.refresh()

    if failure is not None:
        print_error(failure.message)
        await service.submit_action(debate.id, ActionRequest(type=UserActionType.STOP))
        await service.runner.wait(debate.id)
        return 1

    for number in sorted(transcript):
        turn = transcript[number]
        print_turn_summary(turn.number, debate.debater(turn.speaker).name, turn.content)

    await service.runner.wait(debate.id)
    if ending is not None:
        print_result(debate, ending.winner, ending.reason, ending.confidence)
    return 0


def build_request(args: argparse.Namespace, settings: Settings) -> CreateDebateRequest:
    return CreateDebateRequest(
        topic=args.topic,
        debater_a=DebaterConfig(
            model=args.model_a,
            name=args.name_a,
            objective=args.objective_a,
        ),
        debater_b=DebaterConfig(
            model=args.model_b,
            name=args.name_b,
            objective=args.objective_b,
        ),
        max_turns=args.max_turns or settings.max_turns_default,
        credential=settings.openrouter_api_key,
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a debate between two language models via OpenRouter"
    )
    parser.add_argument("topic", help="The topic to debate")
    parser.add_argument("--model-a", required=True, help="Model for debater A")
    parser.add_argument("--model-b", required=True, help="Model for debater B")
    parser.add_argument("--name-a", default="Debater A", help="Display name for A")
    parser.add_argument("--name-b", default="Debater B", help="Display name for B")
    parser.add_argument("--objective-a", help="What debater A argues for")
    parser.add_argument("--objective-b", help="What debater B argues for")
    parser.add_argument(
        "--max-turns", "-t",
        type=int,
        help="Turns per debater (default: MAX_TURNS_DEFAULT, 10)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not settings.openrouter_api_key:
        print_error("OPENROUTER_API_KEY is not set.")
        return 1

    try:
        request = build_request(args, settings)
    except ValueError as e:
        print_error(str(e))
        return 1

    service = build_debate_service(
        InMemoryDebateStore(),
        get_completion_provider(settings),
        settings=settings,
    )
    try:
        return asyncio.run(run_debate(service, request))
    except DebateValidationError as e:
        print_error(e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
