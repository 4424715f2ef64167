"""Backoff retry for flaky local reads (browser cookie databases, state files)."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    backoff_factor: float = 2.0,
    jitter: bool = True,
) -> float:
    """Seconds to wait after the given (1-based) failed attempt."""
    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def retry_on(
    *exceptions: Type[BaseException],
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    jitter: bool = True,
) -> Callable:
    """Retry the wrapped call when it raises one of ``exceptions``.

    The final failure is re-raised unchanged so the caller decides how to
    degrade. Anything not listed propagates on the first attempt.
    """
    retryable: Tuple[Type[BaseException], ...] = exceptions or (Exception,)

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt >= attempts:
                        logger.error(
                            "%s gave up after %d attempts: %s",
                            fn.__qualname__, attempts, exc,
                        )
                        raise
                    delay = backoff_delay(
                        attempt, base_delay=base_delay, max_delay=max_delay, jitter=jitter
                    )
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__, attempt, attempts, exc, delay,
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
