"""Shared Pydantic schema base with camelCase aliases."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """All API schemas inherit from this to auto-generate camelCase aliases."""

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "from_attributes": True,
    }


def metadata_field() -> Any:
    """Output field for JSON ``metadata`` (stored on ORM models as ``metadata_``)."""
    return Field(
        default=None,
        validation_alias=AliasChoices("metadata_", "metadata"),
        serialization_alias="metadata",
    )


class HealthResponse(BaseModel):
    """Health-check response returned by /health."""
    status: str = "ok"
    app: str
    env: str


class ProbeResult(CamelModel):
    """Outcome of an outbound health probe / connection test."""
    success: bool
    message: str
    status_code: int | None = None
    response_time_ms: float | None = None
