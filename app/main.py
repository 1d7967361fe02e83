from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router
from logging_config import configure_logging
from services.aranet import build_aranet_client
from services.errors import UpstreamError, UpstreamStatusError
from settings import ConfigurationError, Settings, get_settings

logger = logging.getLogger(__name__)


async def upstream_error_handler(_request: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning(
        "Upstream request failed",
        extra={
            "upstream_path": exc.upstream_path,
            "status": exc.status_code if isinstance(exc, UpstreamStatusError) else None,
            "reason": type(exc).__name__,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": str(exc)},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    settings.require_api_key()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client = build_aranet_client(settings)
        app.state.aranet_client = client
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="Aranet Dashboard Proxy",
        description="Forwards and reshapes Aranet Cloud telemetry for the dashboard.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.include_router(router)
    return app


def run(settings: Optional[Settings] = None) -> None:
    """Start the HTTP server, exiting with status 1 when misconfigured."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    try:
        app = create_app(settings)
    except ConfigurationError as exc:
        logger.critical("Refusing to start: %s", exc)
        raise SystemExit(1) from exc

    logger.info("Starting backend on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
