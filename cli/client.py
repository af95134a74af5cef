from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig

USAGE_PATH = "/api/v1/power-usage"


class ApiClient:
    """Minimal HTTP client for the power usage service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_usage(self, target: str, date: str, time: str) -> Dict[str, List[Dict[str, Any]]]:
        response = self._request(target, date, time, csv=False)
        payload = response.json()
        if not isinstance(payload, dict):
            raise typer.BadParameter("Unexpected response payload for power usage.")
        return payload

    def get_usage_csv(self, target: str, date: str, time: str) -> str:
        return self._request(target, date, time, csv=True).text

    def _request(self, target: str, date: str, time: str, csv: bool) -> httpx.Response:
        params = {"target": target, "date": date, "time": time}
        if csv:
            params["csv"] = "true"
        try:
            response = self._client.get(USAGE_PATH, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
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
