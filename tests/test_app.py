from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app, run
from services.aranet import AranetClient
from settings import ConfigurationError, Settings

Handler = Callable[[httpx.Request], httpx.Response]


def _settings(api_key: str | None = "secret-key") -> Settings:
    return Settings(
        host="127.0.0.1",
        port=5050,
        aranet_base_url="https://aranet.test",
        aranet_api_key=api_key,
        log_level="INFO",
        cors_origins=("*",),
    )


class UpstreamStub:
    """Records upstream requests and answers them per path."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Handler] = {}

    def reply(self, path: str, status_code: int = 200, **kwargs) -> None:
        self.routes[path] = lambda _request: httpx.Response(status_code, **kwargs)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, text="no such route")
        return handler(request)


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def api_client(monkeypatch, upstream: UpstreamStub) -> Iterator[TestClient]:
    def build_test_client(settings: Settings) -> AranetClient:
        return AranetClient(
            base_url=settings.aranet_base_url,
            api_key=settings.require_api_key(),
            transport=httpx.MockTransport(upstream.handle),
        )

    monkeypatch.setattr("app.main.build_aranet_client", build_test_client)

    app = create_app(_settings())
    with TestClient(app) as client:
        yield client


def test_health_does_not_call_upstream(api_client: TestClient, upstream: UpstreamStub) -> None:
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert upstream.requests == []


@pytest.mark.parametrize(
    ("route", "upstream_path"),
    [
        ("/api/aranet/sensors", "/api/v1/sensors"),
        ("/api/aranet/telemetry/last", "/api/v1/telemetry/last"),
        ("/api/aranet/telemetry/history", "/api/v1/telemetry/history"),
        ("/api/aranet/alarms/actual", "/api/v1/alarms/actual"),
    ],
)
def test_pass_through_routes_return_upstream_body(
    api_client: TestClient,
    upstream: UpstreamStub,
    route: str,
    upstream_path: str,
) -> None:
    body = {"items": [{"id": "4200001", "name": "Greenhouse"}], "currentTime": "2024-01-01T00:00:00Z"}
    upstream.reply(upstream_path, json=body)

    response = api_client.get(route)

    assert response.status_code == 200
    assert response.json() == body
    assert [request.url.path for request in upstream.requests] == [upstream_path]


def test_query_parameters_are_forwarded_verbatim(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.reply("/api/v1/telemetry/history", json={"readings": []})

    response = api_client.get(
        "/api/aranet/telemetry/history",
        params=[("sensor", "4200001"), ("metric", "1"), ("metric", "2"), ("from", "2024-01-01T00:00:00Z")],
    )

    assert response.status_code == 200
    (request,) = upstream.requests
    assert request.url.params.multi_items() == [
        ("sensor", "4200001"),
        ("metric", "1"),
        ("metric", "2"),
        ("from", "2024-01-01T00:00:00Z"),
    ]


def test_upstream_requests_carry_api_key_headers(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.reply("/api/v1/sensors", json={"items": []})

    api_client.get("/api/aranet/sensors")

    (request,) = upstream.requests
    assert request.url.host == "aranet.test"
    assert request.headers["ApiKey"] == "secret-key"
    assert request.headers["Accept"] == "application/json"


def test_upstream_error_status_maps_to_bad_gateway(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.reply("/api/v1/alarms/actual", status_code=503, text="unavailable")

    response = api_client.get("/api/aranet/alarms/actual")

    assert response.status_code == 502
    assert response.json() == {"error": "Upstream responded 503: unavailable"}


def test_network_failure_maps_to_bad_gateway(api_client: TestClient, upstream: UpstreamStub) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream.routes["/api/v1/telemetry/last"] = refuse

    response = api_client.get("/api/aranet/telemetry/last")

    assert response.status_code == 502
    assert "connection refused" in response.json()["error"]


def test_non_json_body_maps_to_bad_gateway(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.reply("/api/v1/sensors", text="<html>maintenance</html>")

    response = api_client.get("/api/aranet/sensors")

    assert response.status_code == 502
    assert "error" in response.json()


def test_measurements_are_reshaped(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.reply(
        "/api/v1/measurements/last",
        json={
            "readings": [
                {
                    "value": 21.5,
                    "metric": "m1",
                    "unit": "u1",
                    "asset": "a1",
                    "point": "p1",
                    "time": "2024-01-01T00:00:00Z",
                }
            ],
            "links": {
                "metric": [{"rel": "m1", "name": "Temperature"}],
                "unit": [{"rel": "u1", "name": "°C"}],
                "asset": [{"rel": "a1", "name": "Room 1"}],
                "point": [{"rel": "p1", "name": "North"}],
            },
        },
    )

    response = api_client.get("/api/aranet/measurements", params={"sensor": "4200001"})

    assert response.status_code == 200
    assert response.json() == {
        "data": [{"value": 21.5, "nameMetric": "Temperature", "unit": "°C"}],
        "asset": "Room 1",
        "point": "North",
        "time": "2024-01-01T00:00:00Z",
    }
    (request,) = upstream.requests
    assert request.url.path == "/api/v1/measurements/last"
    assert request.url.params["sensor"] == "4200001"


def test_empty_measurements_map_to_bad_gateway(api_client: TestClient, upstream: UpstreamStub) -> None:
    upstream.reply("/api/v1/measurements/last", json={"readings": [], "links": {}})

    response = api_client.get("/api/aranet/measurements")

    assert response.status_code == 502
    assert "no readings" in response.json()["error"]


def test_cors_headers_are_sent(api_client: TestClient) -> None:
    response = api_client.get("/api/health", headers={"Origin": "http://dashboard.local"})

    assert response.headers["access-control-allow-origin"] == "*"


def test_create_app_requires_api_key() -> None:
    with pytest.raises(ConfigurationError):
        create_app(_settings(api_key=None))


def test_run_exits_when_api_key_missing(monkeypatch) -> None:
    started: List[object] = []
    monkeypatch.setattr("app.main.uvicorn.run", lambda *args, **kwargs: started.append(args))

    with pytest.raises(SystemExit) as exc_info:
        run(_settings(api_key=None))

    assert exc_info.value.code == 1
    assert started == []


def test_run_starts_server_with_configured_port(monkeypatch) -> None:
    calls: List[dict] = []
    monkeypatch.setattr("app.main.uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

    run(_settings())

    assert calls == [{"host": "127.0.0.1", "port": 5050, "log_config": None}]


def test_run_logs_configured_bind_address(monkeypatch, caplog) -> None:
    monkeypatch.setattr("app.main.uvicorn.run", lambda *args, **kwargs: None)
    settings = Settings(
        host="192.168.1.20",
        port=6001,
        aranet_base_url="https://aranet.test",
        aranet_api_key="secret-key",
        log_level="INFO",
        cors_origins=("*",),
    )

    with caplog.at_level(logging.INFO, logger="app.main"):
        run(settings)

    messages = [record.getMessage() for record in caplog.records]
    assert "Starting backend on http://192.168.1.20:6001" in messages
    assert not any("localhost" in message for message in messages)
