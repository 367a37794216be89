"""Retry logic with exponential backoff for supplier HTTP calls."""

import time
from typing import Callable, TypeVar

import httpx
from loguru import logger

T = TypeVar("T")

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    httpx.HTTPStatusError,
)


def retry_with_backoff(
    func: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    exponential_base: float = 2.0,
    max_delay: float = 60.0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Execute function with exponential backoff retry logic.

    Args:
        func: Function to execute
        max_retries: Maximum number of retry attempts (0 = single attempt)
        base_delay: Initial delay between retries in seconds
        exponential_base: Base for exponential backoff calculation
        max_delay: Maximum delay between retries in seconds
        retry_on: Exception types that trigger a retry; others propagate at once

    Returns:
        Result of successful function execution

    Raises:
        Exception: Last exception if all retries fail
    """
    for attempt in range(max_retries + 1):
        try:
            return func()
        except retry_on as e:
            if attempt == max_retries:
                if max_retries:
                    logger.error(f"All {max_retries} retry attempts failed: {e}")
                raise

            delay = min(base_delay * (exponential_base**attempt), max_delay)
            logger.warning(
                f"Attempt {attempt + 1}/{max_retries} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            time.sleep(delay)

    raise RuntimeError("retry_with_backoff exited without result")
