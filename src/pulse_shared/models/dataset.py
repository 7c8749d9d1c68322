"""
models/dataset.py — Pydantic models for catalog-discovery output.

A DatasetMetadata document describes one open-data dataset as seen by the
discovery tooling: its access URL, the fields it exposes with an inferred
semantic type, and the geographic strategy that locates its records. It is
consumed once per scaffold invocation and is not part of the runtime
pipeline.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

SemanticType = Literal[
    "identifier",
    "name",
    "location_name",
    "latitude",
    "longitude",
    "geometry",
    "polyline",
    "timestamp",
    "category",
    "measurement",
    "text",
    "unknown",
]


class FieldInfo(BaseModel):
    name: str = Field(min_length=1)
    semantic_type: SemanticType = "unknown"
    sample_values: list[Any] = Field(default_factory=list)


class DatasetMetadata(BaseModel):
    """Matches the JSON document written by the discovery tooling."""

    id: str = Field(min_length=1)
    title: str = ""
    description: str = ""
    access_url: str | None = None
    fields: list[FieldInfo] = Field(default_factory=list)
    geo_strategy: Literal["embedded", "fields", "lookup", "polyline", "none"] = "none"
    update_frequency: str | None = None
    license: str = "Open Government Licence – Toronto"

    def fields_of(self, semantic_type: SemanticType) -> list[FieldInfo]:
        return [f for f in self.fields if f.semantic_type == semantic_type]
