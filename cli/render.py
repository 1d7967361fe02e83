from __future__ import annotations

import json
from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def render_measurements(payload: Dict[str, Any]) -> None:
    echo_heading("Measurements")
    echo_key_values(
        [
            ("asset", payload.get("asset")),
            ("point", payload.get("point")),
            ("time", payload.get("time")),
        ]
    )

    rows = payload.get("data") or []
    typer.echo()
    echo_heading("Readings")
    if rows:
        for row in rows:
            metric = row.get("nameMetric") or "unknown metric"
            unit = row.get("unit") or ""
            typer.echo(f"  - {metric}: {row.get('value')} {unit}".rstrip())
    else:
        typer.echo("No readings returned.")
