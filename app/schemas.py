"""Pydantic schemas for upstream payloads and the HTTP API layer."""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Identifier = Union[str, int]


class ReferenceEntry(BaseModel):
    """One row of a reference table: an opaque id and its display name."""

    model_config = ConfigDict(extra="ignore")

    rel: Identifier
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _stringify_scalar_name(cls, value: Any) -> Any:
        if isinstance(value, (bool, int, float)):
            return str(value)
        return value


ReferenceTable = List[ReferenceEntry]


class Links(BaseModel):
    """Reference tables embedded in a measurements response.

    Every table is optional; upstream omits the ones it has nothing for.
    """

    model_config = ConfigDict(extra="ignore")

    asset: Optional[ReferenceTable] = None
    metric: Optional[ReferenceTable] = None
    point: Optional[ReferenceTable] = None
    unit: Optional[ReferenceTable] = None


class Reading(BaseModel):
    """A single telemetry value as returned by the upstream API."""

    model_config = ConfigDict(extra="ignore")

    value: Any = None
    metric: Optional[Identifier] = None
    unit: Optional[Identifier] = None
    asset: Optional[Identifier] = None
    point: Optional[Identifier] = None
    time: Any = None


class UpstreamMeasurements(BaseModel):
    """Raw body of ``/api/v1/measurements/last``."""

    model_config = ConfigDict(extra="ignore")

    readings: List[Reading] = Field(default_factory=list)
    links: Optional[Links] = None


class MeasurementRow(BaseModel):
    """A reading with its metric and unit resolved to display names."""

    model_config = ConfigDict(populate_by_name=True)

    value: Any = None
    name_metric: Optional[str] = Field(default=None, alias="nameMetric")
    unit: Optional[str] = None


class MeasurementsEnvelope(BaseModel):
    """Reshaped measurements response served to the dashboard."""

    data: List[MeasurementRow] = Field(default_factory=list)
    asset: Optional[str] = None
    point: Optional[str] = None
    time: Any = None


class HealthResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    """Body returned whenever the upstream call fails."""

    error: str
