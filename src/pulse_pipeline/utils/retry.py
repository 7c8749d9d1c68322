"""
utils/retry.py — Backoff for catalog lookups.

Only catalog-discovery calls (CLI ``catalog``) go through here; the
fetch → transform → validate pipeline never retries and leaves that decision
to whoever schedules refreshes.

A FetchError is worth another attempt only when it looks transient: a
transport failure or timeout (no status code), HTTP 429, or any 5xx. A 404
from CKAN fails on the first attempt.

Usage:
    from pulse_pipeline.utils.retry import with_retry

    catalog = CkanDatastoreFetcher("red-light-cameras")
    package_show = with_retry(max_attempts=3)(catalog.package_show)
    package = await package_show()
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from pulse_pipeline.exceptions import FetchError

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, Any]])

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def is_transient(exc: BaseException) -> bool:
    """True for FetchErrors a second attempt could plausibly fix."""
    if not isinstance(exc, FetchError):
        return False
    return exc.status_code is None or exc.status_code in RETRYABLE_STATUS


def _retry_logger(function: str) -> Callable[[RetryCallState], None]:
    def _log(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        log.warning(
            "retry_scheduled",
            function=function,
            attempt=state.attempt_number,
            delay_s=round(state.next_action.sleep, 2) if state.next_action else None,
            status_code=getattr(exc, "status_code", None),
            error=getattr(exc, "message", str(exc)),
        )

    return _log


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    retry_when: Callable[[BaseException], bool] = is_transient,
) -> Callable[[F], F]:
    """
    Retry an async callable with exponential backoff.

    Delays: base_delay * 2^(attempt-1), capped at max_delay.

    Args:
        max_attempts: Total attempts before the last error is re-raised.
        base_delay:   Initial delay in seconds.
        max_delay:    Maximum delay cap in seconds.
        retry_when:   Predicate deciding whether an exception is retryable.

    Returns:
        Decorated async function. The original exception propagates once
        attempts are exhausted or the error is not retryable.
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=base_delay, max=max_delay),
                retry=retry_if_exception(retry_when),
                before_sleep=_retry_logger(getattr(fn, "__qualname__", type(fn).__name__)),
                reraise=True,
            ):
                with attempt:
                    return await fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
