"""Async client for the Aranet Cloud REST API."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Optional, Sequence, Tuple

import httpx

from services.errors import (
    MalformedPayloadError,
    UpstreamStatusError,
    UpstreamUnavailableError,
)
from settings import Settings

logger = logging.getLogger(__name__)

SENSORS_PATH = "/api/v1/sensors"
TELEMETRY_LAST_PATH = "/api/v1/telemetry/last"
TELEMETRY_HISTORY_PATH = "/api/v1/telemetry/history"
ALARMS_ACTUAL_PATH = "/api/v1/alarms/actual"
MEASUREMENTS_LAST_PATH = "/api/v1/measurements/last"

QueryParams = Sequence[Tuple[str, Any]]


class AranetClient:
    """Issues authenticated GET requests against the upstream API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json", "ApiKey": api_key},
            transport=transport,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, path: str, params: Optional[Iterable[Tuple[str, Any]]] = None) -> Any:
        """GET ``path`` with ``params`` and return the decoded JSON body."""
        query = [(key, str(value)) for key, value in (params or ()) if value is not None]
        started = time.perf_counter()
        try:
            response = await self._client.get(path, params=query or None)
        except httpx.HTTPError as exc:
            detail = str(exc) or type(exc).__name__
            raise UpstreamUnavailableError(
                f"Upstream request failed: {detail}", upstream_path=path
            ) from exc

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.debug(
            "Upstream call completed",
            extra={"upstream_path": path, "status": response.status_code, "elapsed_ms": elapsed_ms},
        )

        if not response.is_success:
            raise UpstreamStatusError(response.status_code, response.text, upstream_path=path)

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayloadError("Upstream returned a non-JSON body.", upstream_path=path) from exc

    async def sensors(self, params: Optional[QueryParams] = None) -> Any:
        return await self.get_json(SENSORS_PATH, params)

    async def telemetry_last(self, params: Optional[QueryParams] = None) -> Any:
        return await self.get_json(TELEMETRY_LAST_PATH, params)

    async def telemetry_history(self, params: Optional[QueryParams] = None) -> Any:
        return await self.get_json(TELEMETRY_HISTORY_PATH, params)

    async def alarms_actual(self, params: Optional[QueryParams] = None) -> Any:
        return await self.get_json(ALARMS_ACTUAL_PATH, params)

    async def measurements_last(self, params: Optional[QueryParams] = None) -> Any:
        return await self.get_json(MEASUREMENTS_LAST_PATH, params)


def build_aranet_client(settings: Settings) -> AranetClient:
    """Factory that wires the upstream client from settings."""
    return AranetClient(base_url=settings.aranet_base_url, api_key=settings.require_api_key())
