from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")


def retry(
    operation: Callable[[], T],
    retries: int,
    delay_sec: float = 1.0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Run ``operation`` up to ``retries + 1`` times with linear backoff.

    Exceptions outside ``retry_on`` propagate immediately.
    """
    attempts = max(0, retries) + 1
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except retry_on as exc:
            if attempt >= attempts:
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
            if delay_sec > 0:
                time.sleep(delay_sec * attempt)
    raise AssertionError("unreachable")
