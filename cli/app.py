from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_readings
from models.records import MAX_SENSOR_ID
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for running and talking to the sensor readings service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _parse_pair(pair: str) -> Dict[str, Any]:
    timestamp, sep, raw_value = pair.rpartition("=")
    if not sep or not timestamp:
        raise typer.BadParameter(f"Expected TIMESTAMP=VALUE, got {pair!r}.")
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise typer.BadParameter(f"Value in {pair!r} is not a number.") from exc
    return {"timestamp": timestamp, "value": value}


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
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


@app.command("serve")
def serve_command(
    port: int = typer.Argument(..., help="TCP port to listen on."),
    data_dir: str = typer.Argument(
        ...,
        help="Prefix for sensor log paths; the sensor id is appended as-is.",
    ),
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind."),
) -> None:
    """Run the HTTP service."""
    os.environ["SENSOR_DATA_DIR"] = data_dir
    get_settings.cache_clear()
    typer.echo(f"data directory set to {data_dir}")
    typer.echo(f"listening on port {port}")
    uvicorn.run("app.main:app", host=host, port=port, log_config=None)


@app.command("push")
def push_command(
    ctx: typer.Context,
    sensor_id: int = typer.Argument(..., min=0, max=MAX_SENSOR_ID, help="Target sensor id."),
    readings: List[str] = typer.Argument(..., help="One or more TIMESTAMP=VALUE pairs."),
) -> None:
    """Append readings to a sensor log."""
    state = _get_state(ctx)
    payload = [_parse_pair(pair) for pair in readings]
    accepted = state.client.push_readings(sensor_id, payload)
    typer.secho(
        f"Stored {accepted} reading(s) for sensor {sensor_id}.", fg=typer.colors.GREEN
    )


@app.command("fetch")
def fetch_command(
    ctx: typer.Context,
    sensor_id: int = typer.Argument(..., min=0, max=MAX_SENSOR_ID, help="Sensor id to read."),
) -> None:
    """Show a sensor's readings in timestamp order."""
    state = _get_state(ctx)
    payload = state.client.get_readings(sensor_id)
    render_readings(payload)
