"""
Bounded timeout + exponential backoff for payment provider calls.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from common.core.exceptions import ProviderUnavailableError
from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Delay before retry number attempt+1 (attempt is zero-based)."""
    return min(max_seconds, base_seconds * (2**attempt))


async def call_with_retry(
    operation: str,
    call: Callable[[], Awaitable[T]],
    *,
    retryable: Tuple[Type[BaseException], ...],
    max_attempts: int,
    timeout_seconds: float,
    base_delay_seconds: float,
    max_delay_seconds: float,
) -> T:
    """
    Run call() with a per-attempt timeout, retrying transient failures.

    A timeout is always retryable. Anything not in `retryable` propagates
    immediately. Exhausting attempts raises ProviderUnavailableError.
    """
    last_error: Optional[BaseException] = None

    for attempt in range(max_attempts):
        try:
            return await asyncio.wait_for(call(), timeout=timeout_seconds)
        except asyncio.TimeoutError as exc:
            last_error = exc
            logger.warning(
                f"{operation} attempt {attempt + 1}/{max_attempts} timed out after {timeout_seconds}s"
            )
        except retryable as exc:
            last_error = exc
            logger.warning(
                f"{operation} attempt {attempt + 1}/{max_attempts} failed: {exc}",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )

        if attempt < max_attempts - 1:
            delay = backoff_delay(attempt, base_delay_seconds, max_delay_seconds)
            logger.info(f"Retrying {operation} in {delay}s...")
            await asyncio.sleep(delay)

    raise ProviderUnavailableError(
        f"{operation} failed after {max_attempts} attempts: {last_error!r}",
        operation=operation,
        attempts=max_attempts,
    )
