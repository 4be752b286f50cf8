"""
Caller-side retry with exponential backoff for transient storage failures.

The dashboard layer itself never retries; a failed query surfaces immediately
as StorageError. Callers that want another attempt (the CLI, for one) wrap
their call with exponential_backoff and decide which errors are worth it with
is_transient_error.
"""

import functools
import time
from typing import Callable, Optional, Tuple, Type

from sqlalchemy.exc import DisconnectionError, OperationalError


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    retry_if: Optional[Callable[[Exception], bool]] = None,
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        retry_if: Optional predicate; exceptions it rejects propagate unchanged
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=2, retry_if=is_transient_error)
        def load():
            return factory.visible_jobs(["main"])
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retry_if is not None and not retry_if(e):
                        raise

                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)

                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def is_transient_error(exception: BaseException) -> bool:
    """
    Determine if a storage failure is likely transient and worth retrying.

    Walks the exception's cause chain, so a StorageError raised from an
    OperationalError is recognised.

    Args:
        exception: Exception to check

    Returns:
        True if error is likely transient (lost connection, lock, timeout)
    """
    transient_keywords = [
        'database is locked',
        'timeout',
        'timed out',
        'connection',
        'server closed',
        'too many clients',
    ]

    current: Optional[BaseException] = exception
    while current is not None:
        if isinstance(current, DisconnectionError):
            return True
        if isinstance(current, OperationalError):
            error_str = str(current).lower()
            if any(keyword in error_str for keyword in transient_keywords):
                return True
        current = current.__cause__

    return False
