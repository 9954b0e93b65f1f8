from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    echo_heading,
    render_averages,
    render_history,
    render_import,
    render_measurement,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the temperature station service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Station API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("record")
def record_command(
    ctx: typer.Context,
    city: str = typer.Argument(..., help="City the reading belongs to."),
    temperature: float = typer.Argument(..., help="Temperature reading."),
    at: Optional[str] = typer.Option(
        None,
        "--at",
        help="ISO-8601 reading time; the server uses the current time when omitted.",
    ),
) -> None:
    """Record a single temperature reading."""
    state = _get_state(ctx)
    payload = state.client.record(city, temperature, timestamp=at)
    typer.secho("Measurement recorded.", fg=typer.colors.GREEN)
    render_measurement(payload)


@app.command("history")
def history_command(
    ctx: typer.Context,
    city: str = typer.Argument(..., help="City to list readings for."),
) -> None:
    """Show every stored reading for a city, oldest first."""
    state = _get_state(ctx)
    render_history(city, state.client.history(city))


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    city: str = typer.Argument(..., help="City to look up."),
) -> None:
    """Show the most recent reading for a city."""
    state = _get_state(ctx)
    echo_heading(f"Latest for {city}")
    render_measurement(state.client.latest(city))


@app.command("cities")
def cities_command(ctx: typer.Context) -> None:
    """List cities with recorded readings."""
    state = _get_state(ctx)
    cities = state.client.cities()
    if not cities:
        typer.echo("No cities recorded.")
        return
    for city in cities:
        typer.echo(city)


@app.command("averages")
def averages_command(
    ctx: typer.Context,
    window: Optional[int] = typer.Option(
        None,
        "--window",
        "-w",
        min=1,
        help="Number of most recent readings to average per city.",
    ),
) -> None:
    """Show the trailing average temperature of every city."""
    state = _get_state(ctx)
    render_averages(state.client.averages(window))


@app.command("import")
def import_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
) -> None:
    """Record every row of a city,timestamp,temperature CSV file."""
    state = _get_state(ctx)
    typer.echo(f"Importing {file} to {state.config.base_url} ...")
    render_import(state.client.import_file(file))
