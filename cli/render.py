from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_measurement(payload: Dict[str, Any]) -> None:
    echo_key_values(
        [
            ("city", payload.get("city")),
            ("temperature", payload.get("temperature")),
            ("timestamp", payload.get("timestamp")),
        ]
    )


def render_history(city: str, rows: List[Dict[str, Any]]) -> None:
    echo_heading(f"History for {city}")
    if not rows:
        typer.echo("No measurements recorded.")
        return
    for row in rows:
        typer.echo(f"  - {row.get('timestamp')}: {row.get('temperature')}")


def render_averages(payload: Dict[str, Any]) -> None:
    echo_heading(f"Trailing averages (window={payload.get('window')})")
    averages = payload.get("averages") or {}
    if not averages:
        typer.echo("No measurements recorded.")
        return
    for city in sorted(averages):
        typer.echo(f"  - {city}: {averages[city]:.2f}")


def render_import(payload: Dict[str, Any]) -> None:
    echo_heading("Import Result")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("accepted", payload.get("accepted")),
            ("rejected", payload.get("rejected")),
        ]
    )

    summaries = payload.get("summaries") or []
    typer.echo()
    echo_heading("Cities")
    if summaries:
        for summary in summaries:
            typer.echo(
                f"  - {summary.get('city')}: count={summary.get('count')} "
                f"min={summary.get('min_value')} max={summary.get('max_value')} "
                f"mean={summary.get('mean_value')}"
            )
    else:
        typer.echo("No measurements recorded.")

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(
                f"  - row {error.get('row_number')}: {error.get('reason')}"
            )
    else:
        typer.echo("No errors recorded.")
