"""
exceptions.py — Hard-failure exception taxonomy for the pipeline.

Hard failures mean a refresh cycle could not produce a usable result; they
propagate to the caller, which keeps the previous cycle's data on screen.
Soft issues are never raised — validators collect them as warnings.

  PulseError
    FetchError           — non-2xx status, transport error, timeout, bad body
    TransformError       — payload not reducible to a record sequence
    ConfigError          — source descriptor failed schema validation
    PluginNotFoundError  — registry lookup for an unknown id
"""

from __future__ import annotations


class PulseError(Exception):
    """Base exception for all Toronto Pulse pipeline errors."""

    def __init__(self, message: str = "", *, source_id: str | None = None) -> None:
        self.message = message
        self.source_id = source_id
        super().__init__(message)

    def to_error_dict(self) -> dict[str, object]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "source_id": self.source_id,
        }


class FetchError(PulseError):
    """A fetch could not return a payload. Never retried by the pipeline."""

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        url: str | None = None,
        source_id: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message, source_id=source_id)

    def to_error_dict(self) -> dict[str, object]:
        d = super().to_error_dict()
        d["status_code"] = self.status_code
        d["url"] = self.url
        return d


class TransformError(PulseError):
    """The payload could not be reduced to any sequence of records."""


class ConfigError(PulseError):
    """A source descriptor is malformed or references unknown strategies."""


class PluginNotFoundError(PulseError, KeyError):
    """No plugin is registered under the requested id."""

    def __str__(self) -> str:
        return self.message
