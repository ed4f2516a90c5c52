"""Rich terminal UI components for streaming debate display."""

from typing import Optional

from rich.console import Console
from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from modules.debates.models import Debate, Speaker, Winner

console = Console()

MAX_PANEL_LINES = 30
SPEAKER_STYLES = {Speaker.A: "blue", Speaker.B: "magenta"}


def create_layout() -> Layout:
    """Create a two-column layout, one column per debater."""
    layout = Layout()
    layout.split_row(
        Layout(name=Speaker.A.value, ratio=1),
        Layout(name=Speaker.B.value, ratio=1),
    )
    return layout


def update_panel(
    layout: Layout,
    speaker: Speaker,
    name: str,
    content: str,
    turn_number: Optional[int] = None,
) -> None:
    """Update a debater's panel with new content.

    Truncates content to the last 30 lines to keep the display manageable.
    """
    lines = content.split("\n")
    if len(lines) > MAX_PANEL_LINES:
        display_content = "...\n" + "\n".join(lines[-MAX_PANEL_LINES:])
    else:
        display_content = content

    title = f"{name} (turn {turn_number})" if turn_number else name
    panel = Panel(
        Text(display_content, overflow="fold"),
        title=title,
        border_style=SPEAKER_STYLES[speaker],
    )
    layout[speaker.value].update(panel)


def print_header(debate: Debate) -> None:
    console.print(f"[bold]Topic:[/bold] {debate.topic}")
    console.print(
        f"[dim]{debate.debater_a.name} ({debate.debater_a.model}) vs "
        f"{debate.debater_b.name} ({debate.debater_b.model})[/dim]"
    )
    console.print(f"[dim]Max turns: {debate.max_turns} each[/dim]\n")


def print_turn_summary(turn_number: int, name: str, content: str) -> None:
    """Print a compact line after a turn completes."""
    console.print(f"[dim]Turn {turn_number} complete: {name} ({len(content):,} chars)[/dim]")


def format_winner(debate: Debate, winner: Optional[Winner]) -> str:
    if winner is None:
        return "no winner"
    if winner is Winner.DRAW:
        return "draw"
    return debate.debater(Speaker(winner.value)).name


def print_result(
    debate: Debate,
    winner: Optional[Winner],
    reason: str,
    confidence: Optional[float] = None,
) -> None:
    """Print how the debate ended."""
    console.print("─" * 60)
    console.print(f"[bold]Result:[/bold] {format_winner(debate, winner)}")
    if confidence:
        console.print(f"[dim]Reason: {reason} (confidence {confidence:.0%})[/dim]")
    else:
        console.print(f"[dim]Reason: {reason}[/dim]")


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
