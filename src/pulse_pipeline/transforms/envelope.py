"""
transforms/envelope.py — Locate the record array inside a response body.

Upstream feeds wrap their records differently: CKAN datastore responses use
``result.records``, some APIs use ``data``, the road-restrictions feed uses
``Closure``. A sequence is used as is; otherwise the candidate paths are
probed in order; otherwise a single object becomes a one-element batch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pulse_pipeline.exceptions import TransformError

_MISSING = object()


def resolve_path(payload: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings; returns _MISSING if absent."""
    node = payload
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return _MISSING
        node = node[key]
    return node


def unwrap_records(
    payload: Any,
    paths: Iterable[str],
    *,
    source_id: str | None = None,
) -> list[Any]:
    """
    Reduce a payload to a list of records.

    Args:
        payload:   Parsed response body.
        paths:     Candidate dotted paths to probe, in priority order.
        source_id: For error context.

    Returns:
        The record list.

    Raises:
        TransformError: If the payload is neither a sequence nor an object.
    """
    if isinstance(payload, (list, tuple)):
        return list(payload)
    if not isinstance(payload, Mapping):
        raise TransformError(
            f"Cannot extract records from payload of type {type(payload).__name__}",
            source_id=source_id,
        )
    for path in paths:
        candidate = resolve_path(payload, path)
        if isinstance(candidate, list):
            return candidate
    return [payload]
