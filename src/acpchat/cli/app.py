"""Developer CLI application using Typer."""
import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import ChatSettings, load_settings
from ..errors import UnsupportedUpdateError
from ..observability import setup_logging
from ..transcript.store import TranscriptStore
from ..updates.dispatcher import UpdateDispatcher
from ..updates.models import parse_session_update
from .formatting import render_transcript

# Create Typer app
app = typer.Typer(
    name="acpchat",
    help="Streaming conversation aggregation for agent session updates",
    no_args_is_help=True,
    add_completion=False,
)

# Console for rich output
console = Console()


def _load_settings() -> ChatSettings:
    try:
        settings = load_settings()
    except ValidationError as e:
        console.print(f"[red]Error: invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    setup_logging(settings.log_level, settings.log_format)
    return settings


@app.command()
def replay(
    path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="JSONL file with one session update per line"
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the resulting chat state as JSON"
    )
):
    """Fold recorded session updates into a transcript and print it."""
    _load_settings()

    store = TranscriptStore()
    dispatcher = UpdateDispatcher(store)

    with path.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                dispatcher.dispatch(parse_session_update(json.loads(line)))
            except UnsupportedUpdateError as e:
                console.print(f"[red]Error: line {line_number}: {escape(str(e))}[/red]")
                raise typer.Exit(code=1)
            except (json.JSONDecodeError, ValidationError) as e:
                console.print(f"[red]Error: line {line_number}: invalid update: {escape(str(e))}[/red]")
                raise typer.Exit(code=1)

    state = store.state
    if as_json:
        typer.echo(json.dumps(state.model_dump(mode="json", by_alias=True), indent=2))
        return

    if not state.messages:
        console.print("[dim]No messages.[/dim]")
        return

    for renderable in render_transcript(state):
        console.print(renderable)
    console.print(f"[dim]Phase: {state.streaming_phase.value}[/dim]")


@app.command()
def config():
    """Show the effective configuration."""
    settings = _load_settings()

    table = Table(title="acpchat configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
