"""Click CLI: config loading, candidate selection, discussion run and output."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from boardroom.agenda import parse_agenda
from boardroom.backends import AssistantTurnBackend, CompletionTurnBackend, TurnBackend
from boardroom.broadcast import CallbackBroadcaster
from boardroom.errors import AllBackendsExhaustedError, DiscussionValidationError
from boardroom.fallback import ModelFallbackClient
from boardroom.healthcheck import check_chain
from boardroom.meeting import simulate_meeting
from boardroom.models import DiscussionState, DiscussionStatus
from boardroom.output import print_event, print_meeting, print_state_summary, save_to_file
from boardroom.poller import RunPoller
from boardroom.providers.anthropic import AnthropicProvider
from boardroom.providers.base import AIProvider, ProviderError
from boardroom.providers.gemini import GeminiProvider
from boardroom.providers.openai_assistants import OpenAIAssistantsBackend
from boardroom.providers.openai_provider import OpenAIProvider
from boardroom.sequencer import RoleSequencer

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "google-genai": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

BACKENDS = ("chain", "assistants")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def _build_candidates(config: AppConfig, names: list[str] | None = None) -> list[AIProvider]:
    """Build the fallback chain in configured order, skipping unusable entries."""
    candidates: list[AIProvider] = []
    for model_cfg in config.chain(names):
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logger.warning("Candidate '%s' has unknown sdk '%s', skipping", model_cfg.name, model_cfg.sdk)
            continue
        try:
            candidates.append(provider_cls(model_cfg))
        except Exception as exc:
            logger.warning("Failed to instantiate candidate '%s': %s", model_cfg.name, exc)
    return candidates


def _build_backend(config: AppConfig, backend_name: str, models_arg: str | None) -> TurnBackend:
    if backend_name == "assistants":
        assistants = OpenAIAssistantsBackend(config.assistants)
        poller = RunPoller(
            assistants,
            interval_sec=config.assistants.polling.interval_sec,
            max_attempts=config.assistants.polling.max_attempts,
        )
        return AssistantTurnBackend(poller, config.prompts.opening)

    candidates = _build_candidates(config, _split(models_arg))
    if not candidates:
        raise click.ClickException("No backend candidates available. Check API keys in .env or adjust --models.")
    return CompletionTurnBackend(ModelFallbackClient(), candidates)


def _check_candidates(candidates: list[AIProvider]) -> list[AIProvider]:
    """Ping candidates and drop the ones that fail, keeping chain order."""
    console.print("\n[bold]Checking candidates...[/bold]")
    health = asyncio.run(check_chain(candidates))

    for result in health.results:
        if result.ok:
            console.print(f"  [green]OK  [/green] {result.position + 1}. {result.candidate} ({result.latency_sec:.1f}s)")
        else:
            short_err = result.error.splitlines()[0][:120] if result.error else "unknown error"
            console.print(f"  [red]FAIL[/red] {result.position + 1}. {result.candidate}: {short_err}")

    if health.first_choice is None:
        raise click.ClickException("No candidates passed the health check.")
    console.print(f"  First choice: [bold]{health.first_choice}[/bold]\n")
    return health.working(candidates)


def _load(verbose: bool) -> AppConfig:
    load_dotenv()
    _setup_logging(verbose)
    try:
        return load_config()
    except FileNotFoundError as exc:
        raise click.ClickException(f"Config error: {exc}") from exc


@click.group()
def main() -> None:
    """Boardroom -- simulated executive discussions.

    \b
    Examples:
      boardroom discuss "Q4 budget" --roles CEO,CFO
      boardroom discuss --file agenda.md --backend assistants
      boardroom meeting "Entering the EU market" --roles CEO,CFO,CTO,HR
      boardroom check
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")


@main.command()
@click.argument("topic", required=False)
@click.option("--file", "agenda_file", type=click.Path(exists=True), help="Read topic (and frontmatter) from .md file")
@click.option("--roles", default=None, help="Comma-separated role order, e.g. CEO,CFO,CTO")
@click.option("--backend", "backend_name", type=click.Choice(BACKENDS), default=None,
              help="chain = completion fallback, assistants = thread submit/poll (default: from config)")
@click.option("--models", default=None, help="Comma-separated fallback chain, overrides config order")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--json", "as_json", is_flag=True, help="Print the final state as JSON instead of rich panels")
@click.option("--no-save", is_flag=True, help="Do not write a markdown transcript")
@click.option("--skip-health-check", is_flag=True, default=False, help="Skip the API connectivity check")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def discuss(
    topic: str | None,
    agenda_file: str | None,
    roles: str | None,
    backend_name: str | None,
    models: str | None,
    output_path: str | None,
    as_json: bool,
    no_save: bool,
    skip_health_check: bool,
    verbose: bool,
) -> None:
    """Run one discussion: each role speaks once, in order."""
    config = _load(verbose)

    agenda = parse_agenda(Path(agenda_file)) if agenda_file else None
    topic_text = topic or (agenda.topic if agenda else "")
    role_list = _split(roles) or (agenda.roles if agenda and agenda.roles else config.defaults.roles)
    effective_backend = backend_name or (agenda.backend if agenda and agenda.backend else config.defaults.backend)
    if effective_backend not in BACKENDS:
        raise click.BadParameter(f"Unknown backend {effective_backend!r}", param_hint="--backend")

    try:
        backend = _build_backend(config, effective_backend, models)
    except ProviderError as exc:
        raise click.ClickException(str(exc)) from exc

    if isinstance(backend, CompletionTurnBackend) and not skip_health_check:
        backend = CompletionTurnBackend(ModelFallbackClient(), _check_candidates(list(backend.candidates)))

    broadcaster = None if as_json else CallbackBroadcaster(print_event)
    sequencer = RoleSequencer(backend, broadcaster=broadcaster, prompts=config.prompts)

    try:
        state: DiscussionState = asyncio.run(sequencer.run(topic_text, role_list))
    except DiscussionValidationError as exc:
        raise click.UsageError(str(exc)) from exc

    if as_json:
        payload = state.to_dict() if state.status == DiscussionStatus.COMPLETED else state.error_payload()
        click.echo(json.dumps(payload, indent=2))
    else:
        print_state_summary(state)

    if not no_save:
        output_dir = Path(output_path) if output_path else config.defaults.output_dir
        slug = Path(agenda_file).stem if agenda_file else None
        saved = save_to_file(state, output_dir, slug_override=slug)
        if not as_json:
            console.print(f"\n[dim]Saved to: {saved}[/dim]")

    if state.status != DiscussionStatus.COMPLETED:
        sys.exit(1)


@main.command()
@click.argument("topic")
@click.option("--roles", default=None, help="Comma-separated participants (default: from config)")
@click.option("--models", default=None, help="Comma-separated fallback chain, overrides config order")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def meeting(topic: str, roles: str | None, models: str | None, verbose: bool) -> None:
    """Simulate a full strategy meeting in a single generation."""
    config = _load(verbose)
    candidates = _build_candidates(config, _split(models))
    if not candidates:
        raise click.ClickException("No backend candidates available. Check API keys in .env.")

    try:
        result = asyncio.run(
            simulate_meeting(topic, _split(roles) or config.defaults.roles, ModelFallbackClient(), candidates, config.prompts)
        )
    except DiscussionValidationError as exc:
        raise click.UsageError(str(exc)) from exc
    except AllBackendsExhaustedError as exc:
        console.print(f"[bold red]Meeting failed:[/bold red] {exc}")
        sys.exit(1)
    print_meeting(result)


@main.command()
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def check(verbose: bool) -> None:
    """Ping every configured candidate that has an API key."""
    config = _load(verbose)
    candidates = _build_candidates(config, list(config.models))
    if not candidates:
        raise click.ClickException("No candidates available. Check API keys in .env.")
    _check_candidates(candidates)


if __name__ == "__main__":
    main()
