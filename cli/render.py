from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_readings(payload: Dict[str, Any]) -> None:
    readings = payload.get("readings") or []
    echo_heading("Sensor Readings")
    echo_key_values(
        [
            ("sensor_id", payload.get("sensor_id")),
            ("count", len(readings)),
        ]
    )

    typer.echo()
    if not readings:
        typer.echo("No readings recorded.")
        return
    width = max(len(str(reading.get("timestamp"))) for reading in readings)
    for reading in readings:
        typer.echo(f"  {str(reading.get('timestamp')):<{width}}  {reading.get('value')}")
