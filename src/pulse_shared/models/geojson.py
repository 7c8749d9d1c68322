"""
models/geojson.py — Pydantic models for the shared map feature output.

Every transformer produces a FeatureCollection and every validator checks
one. Features are frozen: constructed fresh on each transform and discarded
when the next refresh supersedes them.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pulse_shared.geo import is_valid_coordinate


class PointGeometry(BaseModel):
    """A single (lon, lat) position."""

    model_config = ConfigDict(frozen=True)

    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float]

    @field_validator("coordinates")
    @classmethod
    def check_range(cls, v: tuple[float, float]) -> tuple[float, float]:
        if not is_valid_coordinate(*v):
            raise ValueError(f"coordinates {v} outside lon [-180,180] / lat [-90,90]")
        return v


class LineStringGeometry(BaseModel):
    """An ordered sequence of (lon, lat) positions."""

    model_config = ConfigDict(frozen=True)

    type: Literal["LineString"] = "LineString"
    coordinates: tuple[tuple[float, float], ...] = Field(min_length=2)

    @field_validator("coordinates")
    @classmethod
    def check_range(
        cls, v: tuple[tuple[float, float], ...]
    ) -> tuple[tuple[float, float], ...]:
        for position in v:
            if not is_valid_coordinate(*position):
                raise ValueError(
                    f"position {position} outside lon [-180,180] / lat [-90,90]"
                )
        return v


Geometry = Annotated[Union[PointGeometry, LineStringGeometry], Field(discriminator="type")]


class GeoFeature(BaseModel):
    """One map-displayable entity (station, camera, vehicle, observation)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["Feature"] = "Feature"
    geometry: Geometry
    properties: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def point(cls, lon: float, lat: float, properties: dict[str, Any]) -> "GeoFeature":
        return cls(geometry=PointGeometry(coordinates=(lon, lat)), properties=properties)

    def to_geojson(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class FeatureCollection(BaseModel):
    """Ordered features from one transform call. Empty means no data this cycle."""

    model_config = ConfigDict(frozen=True)

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[GeoFeature] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)

    @classmethod
    def from_geojson(cls, doc: dict[str, Any]) -> "FeatureCollection":
        return cls.model_validate(doc)

    def to_geojson(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
