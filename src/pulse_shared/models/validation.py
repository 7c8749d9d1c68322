"""
models/validation.py — Pydantic model for validator output.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, computed_field


class ValidationResult(BaseModel):
    """
    Outcome of validating one feature collection.

    ``valid`` is derived from ``errors`` and cannot be set independently;
    warnings never affect it. ``data`` carries either the untouched input or
    the subset of records that passed every hard check, depending on the
    source's output policy.
    """

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    data: Any = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        return not self.errors

    @classmethod
    def ok(cls, data: Any = None, warnings: list[str] | None = None) -> "ValidationResult":
        return cls(data=data, warnings=warnings or [])

    @classmethod
    def failed(cls, error: str, data: Any = None) -> "ValidationResult":
        return cls(errors=[error], data=data)
