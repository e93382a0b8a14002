"""Bounded retry with exponential backoff for store calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ...config import settings
from ...errors import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (StoreUnavailable, ConnectionError, TimeoutError)


def call_with_retry(
    operation: Callable[[], T],
    *,
    description: str,
    max_retries: int | None = None,
    backoff_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying transient failures up to ``max_retries`` times.

    Waits ``backoff_seconds * 2 ** (attempt - 1)`` between attempts and raises
    StoreUnavailable once the retries are spent. Non-transient exceptions
    propagate immediately.
    """
    retries = settings.store_max_retries if max_retries is None else max_retries
    backoff = settings.store_backoff_seconds if backoff_seconds is None else backoff_seconds

    attempt = 0
    while True:
        try:
            return operation()
        except TRANSIENT_ERRORS as exc:
            attempt += 1
            if attempt > retries:
                logger.warning(f"{description} failed after {attempt} attempts: {exc}")
                raise StoreUnavailable(f"{description} failed after {attempt} attempts.", attempts=attempt) from exc
            wait_time = backoff * (2 ** (attempt - 1))
            logger.debug(f"{description} failed, retrying in {wait_time:.2f}s (attempt {attempt}/{retries}): {exc}")
            sleep(wait_time)
