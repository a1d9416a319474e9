from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the telemetry search service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def current_readings(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("/readings/current", body)

    def historical_readings(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("/readings/historical", body)

    def latest_reading(self, vehicle_id: str, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        path = f"/vehicles/{quote(vehicle_id, safe='')}/readings/latest"
        return self._post(path, body, allow_missing=True)

    def vehicle_history(self, vehicle_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._post(f"/vehicles/{quote(vehicle_id, safe='')}/readings", body)

    def _post(
        self, path: str, body: Dict[str, Any], allow_missing: bool = False
    ) -> Any:
        try:
            response = self._client.post(path, json=body)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
