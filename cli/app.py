from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import typer

from app.main import run
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import echo_key_values, render_json, render_measurements
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Run and query the Aranet dashboard proxy.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _parse_params(values: List[str]) -> List[Tuple[str, str]]:
    params: List[Tuple[str, str]] = []
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {item!r}.", param_hint="--param")
        params.append((key, value))
    return params


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Proxy base URL (defaults to API_BASE_URL env or http://localhost:5050).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the proxy to answer.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to HOST env)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port (defaults to PORT env)."),
) -> None:
    """Start the proxy server."""
    settings = get_settings()
    if host is not None:
        settings = replace(settings, host=host)
    if port is not None:
        settings = replace(settings, port=port)
    run(settings)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the proxy is up."""
    state = _get_state(ctx)
    payload = state.client.health()
    echo_key_values([("base_url", state.config.base_url), ("ok", payload.get("ok"))])


@app.command("sensors")
def sensors_command(ctx: typer.Context) -> None:
    """Print sensor metadata as JSON."""
    state = _get_state(ctx)
    render_json(state.client.sensors())


@app.command("measurements")
def measurements_command(
    ctx: typer.Context,
    param: List[str] = typer.Option(
        [],
        "--param",
        help="Query parameter forwarded upstream, as key=value. Repeatable.",
    ),
) -> None:
    """Show the latest measurements with resolved names."""
    state = _get_state(ctx)
    payload = state.client.measurements(_parse_params(param))
    render_measurements(payload)
