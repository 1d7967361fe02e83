"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status

from app.schemas import ErrorResponse, HealthResponse, MeasurementsEnvelope
from services.aranet import AranetClient
from services.reshaper import reshape_payload

router = APIRouter(prefix="/api")

_UPSTREAM_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_502_BAD_GATEWAY: {
        "model": ErrorResponse,
        "description": "The upstream API failed or returned an unusable body.",
    },
}


def get_aranet_client(request: Request) -> AranetClient:
    return request.app.state.aranet_client


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthResponse:
    return HealthResponse(ok=True)


@router.get(
    "/aranet/sensors",
    summary="Sensor metadata, passed through from upstream.",
    responses=_UPSTREAM_ERROR_RESPONSES,
)
async def list_sensors(
    request: Request,
    client: AranetClient = Depends(get_aranet_client),
) -> Any:
    return await client.sensors(request.query_params.multi_items())


@router.get(
    "/aranet/telemetry/last",
    summary="Latest telemetry values, passed through from upstream.",
    responses=_UPSTREAM_ERROR_RESPONSES,
)
async def telemetry_last(
    request: Request,
    client: AranetClient = Depends(get_aranet_client),
) -> Any:
    return await client.telemetry_last(request.query_params.multi_items())


@router.get(
    "/aranet/telemetry/history",
    summary="Historical telemetry, passed through from upstream.",
    responses=_UPSTREAM_ERROR_RESPONSES,
)
async def telemetry_history(
    request: Request,
    client: AranetClient = Depends(get_aranet_client),
) -> Any:
    return await client.telemetry_history(request.query_params.multi_items())


@router.get(
    "/aranet/alarms/actual",
    summary="Currently active alarms, passed through from upstream.",
    responses=_UPSTREAM_ERROR_RESPONSES,
)
async def alarms_actual(
    request: Request,
    client: AranetClient = Depends(get_aranet_client),
) -> Any:
    return await client.alarms_actual(request.query_params.multi_items())


@router.get(
    "/aranet/measurements",
    response_model=MeasurementsEnvelope,
    summary="Last measurements with reference ids resolved to names.",
    responses=_UPSTREAM_ERROR_RESPONSES,
)
async def measurements(
    request: Request,
    client: AranetClient = Depends(get_aranet_client),
) -> MeasurementsEnvelope:
    payload = await client.measurements_last(request.query_params.multi_items())
    return reshape_payload(payload)
