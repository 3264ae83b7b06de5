"""Retry-with-backoff wrapper for calls against the remote store."""

from __future__ import annotations

import random
import time
from typing import Callable, Optional, TypeVar

from album_vault import config

T = TypeVar("T")


def _default_is_retryable(exc: Exception) -> bool:
    return bool(getattr(exc, "retryable", True))


def backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool = False) -> float:
    """Return the pause after failed *attempt* (1-based)."""

    delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
    if jitter:
        delay *= random.uniform(0.5, 1.5)
    return max(0.0, delay)


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    attempts: int = config.DEFAULT_RETRIES,
    base_delay: float = config.DEFAULT_RETRY_BASE_SECONDS,
    max_delay: float = config.DEFAULT_RETRY_MAX_SECONDS,
    jitter: bool = False,
    label: str = "request",
    retry_on: tuple = (Exception,),
    is_retryable: Optional[Callable[[Exception], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run *operation* until it succeeds, retrying exceptions listed in *retry_on*.

    Errors judged non-retryable propagate immediately and silently so the caller
    can decide how to report them; after the last attempt the final error
    propagates unchanged.
    """
    check = is_retryable or _default_is_retryable
    total = max(1, attempts)
    for attempt in range(1, total + 1):
        try:
            return operation()
        except retry_on as exc:
            if not check(exc):
                raise
            if attempt == total:
                print(f"❌ {label} failed after {total} attempt(s): {exc}")
                raise
            delay = backoff_delay(attempt, base_delay, max_delay, jitter)
            print(f"🔁 {label} attempt {attempt}/{total} failed: {exc}; retrying in {delay:.1f}s")
            sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["backoff_delay", "retry_with_backoff"]
