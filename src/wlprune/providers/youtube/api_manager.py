"""
api_manager.py

Retry logic for idempotent reads.

Responsibilities:
- Exponential backoff for browse calls on 429 / 5xx
- Hard pass-through of everything else

Playlist edits never go through here: a repeated removal is not idempotent
once the server has applied the first one.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from wlprune import config
from wlprune.errors import RemoteRequestError
from wlprune.logger import get_logger

logger = get_logger(__name__)
T = TypeVar("T")


def is_retryable_read(exc: BaseException) -> bool:
    return (
        isinstance(exc, RemoteRequestError)
        and exc.status in config.RETRYABLE_READ_STATUS_CODES
    )


def execute_with_retry(
    operation: Callable[[], T],
    name: str = "",
    *,
    max_retries: int = config.DEFAULT_MAX_RETRIES,
    backoff_base_sec: float = config.DEFAULT_BACKOFF_BASE_SEC,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    attempts = max(1, int(max_retries))
    last_exception: Optional[RemoteRequestError] = None

    for attempt in range(attempts):
        try:
            return operation()
        except RemoteRequestError as e:
            if not is_retryable_read(e):
                raise
            last_exception = e

        if attempt == attempts - 1:
            break

        sleep_time = backoff_base_sec * (2**attempt)
        logger.warning(
            f"{name} failed (attempt {attempt + 1}/{attempts}), "
            f"retrying in {sleep_time}s: {last_exception}"
        )
        sleep(sleep_time)

    assert last_exception is not None
    raise last_exception
