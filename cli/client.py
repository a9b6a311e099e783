from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the readings service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def push_readings(self, sensor_id: int, readings: List[Dict[str, Any]]) -> int:
        try:
            response = self._client.post(
                "/readings",
                json={"sensor_id": sensor_id, "readings": readings},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        accepted = payload.get("accepted")
        if not isinstance(accepted, int):
            raise typer.BadParameter("Unexpected response payload when pushing readings.")
        return accepted

    def get_readings(self, sensor_id: int) -> Dict[str, Any]:
        try:
            response = self._client.get("/readings", params={"sensor_id": sensor_id})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
