"""Retry policy shared by every outbound remote call.

Only ``ConnectionError`` / ``TimeoutError`` are retried; providers translate
their SDK exceptions into these before the policy sees them.
"""

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


def transient_retry(max_attempts: int) -> AsyncRetrying:
    """Build an ``AsyncRetrying`` controller for transient failures.

    Args:
        max_attempts: Total number of attempts, including the first one.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
