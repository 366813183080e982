"""
Retry-with-backoff primitive shared by every network-bound operation.

The delay schedule is deterministic (no jitter):
- EXPONENTIAL: base_delay_ms * 2^(attempt-1)
- LINEAR:      base_delay_ms * attempt
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BackoffStrategy(Enum):
    """Delay growth between attempts"""
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


def compute_delay_ms(attempt: int, base_delay_ms: int, strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL) -> int:
    """Delay to wait after the given failed attempt (1-indexed)."""
    if strategy is BackoffStrategy.LINEAR:
        return base_delay_ms * attempt
    return base_delay_ms * (2 ** (attempt - 1))


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 5,
    base_delay_ms: int = 1000,
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL,
    retryable: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Run ``operation`` until it succeeds or ``max_attempts`` is exhausted.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total number of attempts (>= 1)
        base_delay_ms: Base delay in milliseconds (>= 0)
        on_retry: Observability hook called as on_retry(attempt, error) before sleeping
        strategy: Delay growth between attempts
        retryable: Predicate; errors it rejects are raised immediately

    Returns:
        The result of the first successful attempt

    Raises:
        The last attempt's exception, unchanged
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    if base_delay_ms < 0:
        raise ValueError(f"base_delay_ms must be >= 0, got {base_delay_ms}")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == max_attempts:
                raise
            if retryable is not None and not retryable(e):
                raise

            delay_ms = compute_delay_ms(attempt, base_delay_ms, strategy)
            if on_retry is not None:
                on_retry(attempt, e)
            logger.warning(
                f"[Retry] Attempt {attempt}/{max_attempts} failed: {e}. Retrying in {delay_ms}ms..."
            )
            await _sleep(delay_ms / 1000)

    # Unreachable: the loop either returns or re-raises on the final attempt
    raise RuntimeError("retry_with_backoff exited without a result")
