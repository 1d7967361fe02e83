"""Resolution of reference ids in measurement payloads."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from app.schemas import (
    Identifier,
    MeasurementRow,
    MeasurementsEnvelope,
    ReferenceTable,
    UpstreamMeasurements,
)
from services.errors import EmptyReadingsError, MalformedPayloadError

logger = logging.getLogger(__name__)


def resolve(table: Optional[ReferenceTable], rel: Optional[Identifier]) -> Optional[str]:
    """Return the name of the first entry in ``table`` whose ``rel`` matches.

    A missing table and a missing entry both yield ``None``.
    """
    if table is None:
        return None
    for entry in table:
        if entry.rel == rel:
            return entry.name
    return None


def reshape_measurements(raw: UpstreamMeasurements) -> MeasurementsEnvelope:
    """Inline metric and unit names and hoist asset, point and time.

    Asset, point and time are taken from the first reading only. Batches
    spanning several assets or points lose that detail; a warning is logged
    when that happens.
    """
    readings = raw.readings
    if not readings:
        raise EmptyReadingsError()

    links = raw.links
    metric_table = links.metric if links is not None else None
    unit_table = links.unit if links is not None else None
    asset_table = links.asset if links is not None else None
    point_table = links.point if links is not None else None

    rows = [
        MeasurementRow(
            value=reading.value,
            name_metric=resolve(metric_table, reading.metric),
            unit=resolve(unit_table, reading.unit),
        )
        for reading in readings
    ]

    assets = {reading.asset for reading in readings}
    points = {reading.point for reading in readings}
    if len(assets) > 1 or len(points) > 1:
        logger.warning(
            "Measurements span %d assets and %d points; keeping the first reading's context",
            len(assets),
            len(points),
            extra={"reading_count": len(readings)},
        )

    first = readings[0]
    return MeasurementsEnvelope(
        data=rows,
        asset=resolve(asset_table, first.asset),
        point=resolve(point_table, first.point),
        time=first.time,
    )


def reshape_payload(payload: Any) -> MeasurementsEnvelope:
    """Validate a decoded JSON body and reshape it."""
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError("Upstream measurements payload is not a JSON object.")
    try:
        raw = UpstreamMeasurements.model_validate(payload)
    except ValidationError as exc:
        raise MalformedPayloadError(
            f"Upstream measurements payload is invalid: {exc.error_count()} validation error(s)."
        ) from exc
    return reshape_measurements(raw)
