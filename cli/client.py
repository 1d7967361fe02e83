from __future__ import annotations

from typing import Any, Dict, Iterable, Tuple

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for a running dashboard proxy."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def health(self) -> Dict[str, Any]:
        return self._get("/api/health")

    def sensors(self) -> Any:
        return self._get("/api/aranet/sensors")

    def measurements(self, params: Iterable[Tuple[str, str]] = ()) -> Dict[str, Any]:
        return self._get("/api/aranet/measurements", params)

    def _get(self, path: str, params: Iterable[Tuple[str, str]] = ()) -> Any:
        try:
            response = self._client.get(path, params=list(params))
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.HTTPError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error") or data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
