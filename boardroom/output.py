"""Rich console output and markdown file save for discussion results."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from boardroom.broadcast import DiscussionEvent, DiscussionFailed, TurnCompleted, TurnStarted
from boardroom.models import DiscussionState, DiscussionStatus, MeetingResult, Turn

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_ROLE_STYLES = {"CEO": "cyan", "CFO": "green", "CTO": "magenta", "HR": "yellow"}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def print_turn(turn: Turn) -> None:
    style = _ROLE_STYLES.get(turn.role.value, "white")
    console.print(
        Panel(
            turn.text,
            title=f"[bold {style}]{turn.role.value}[/bold {style}]",
            subtitle=f"#{turn.sequence_index} via {turn.backend or 'unknown'}",
            border_style=style,
        )
    )


def print_event(discussion_id: str, event: DiscussionEvent) -> None:
    """Console renderer for live broadcaster events."""
    if isinstance(event, TurnStarted):
        console.print(Text(f"{event.role.value} is speaking...", style="dim"))
    elif isinstance(event, TurnCompleted):
        print_turn(event.turn)
    elif isinstance(event, DiscussionFailed):
        console.print(f"[bold red]Discussion failed:[/bold red] {event.error.message}")


def print_state_summary(state: DiscussionState) -> None:
    colour = "green" if state.status == DiscussionStatus.COMPLETED else "red"
    console.print(Rule(f"[bold {colour}]Discussion {state.status.value}[/bold {colour}]"))
    console.print(
        Text(f"Topic: {state.topic} | Turns: {len(state.turns)}/{len(state.roles)}", style="dim")
    )
    if state.error:
        for cause in state.error.causes:
            console.print(f"  [red]-[/red] {cause}")


def print_meeting(result: MeetingResult) -> None:
    console.print(Rule(f"[bold cyan]Meeting (via {result.model_used})[/bold cyan]"))
    for entry in result.transcript:
        console.print(f"[bold]{entry.role}:[/bold] {entry.message}")
    if result.meeting_summary:
        console.print(Rule("Summary"))
        console.print(Markdown(result.meeting_summary))
    if result.key_points:
        console.print(Markdown("\n".join(f"- {p}" for p in result.key_points)))
    for role, topic in result.per_role_topics.items():
        console.print(Text(f"{role} owns: {topic}", style="dim"))


def save_to_file(state: DiscussionState, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the discussion transcript as a markdown file.

    Args:
        state: Final DiscussionState (completed or failed).
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the topic.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(state.topic)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    backends = sorted({t.backend for t in state.turns if t.backend})
    lines: list[str] = [
        f"# Boardroom Discussion: {state.topic[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Roles:** {', '.join(r.value for r in state.roles)}",
        f"**Status:** {state.status.value}",
        f"**Backends:** {', '.join(backends) if backends else 'n/a'}",
        "",
        "---",
        "",
    ]

    for turn in state.turns:
        lines += [f"## {turn.sequence_index + 1}. {turn.role.value}", "", turn.text, ""]

    if state.error:
        lines += ["## Failure", "", state.error.message, ""]
        lines += [f"- {c}" for c in state.error.causes]
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Discussion saved to: %s", filepath)
    return filepath
