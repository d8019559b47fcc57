"""Retry and timeout envelope for async operations.

Two building blocks used by the login flow:

- `with_deadline` aborts an operation once its deadline elapses and raises
  `OperationTimeoutError`, which callers can tell apart from application
  errors.
- `retry_with_linear_backoff` runs an operation up to `max_attempts` times,
  waiting `attempt_index * base_delay` between attempts, and re-raises the
  last error.

`async_retry_with_backoff` (exponential) is used at startup while the
database is still coming up.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
)

from app.core.exceptions import OperationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


async def with_deadline(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    operation_name: str | None = None,
) -> T:
    """
    Run an operation with a deadline.

    The operation is cancelled once `timeout` seconds have elapsed.

    Args:
        operation: Zero-argument coroutine factory
        timeout: Deadline in seconds
        operation_name: Name used in logs and in the raised error

    Returns:
        The operation's result

    Raises:
        OperationTimeoutError: If the deadline elapsed first
    """
    name = operation_name or getattr(operation, "__name__", "operation")
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"{name} exceeded its {timeout}s deadline")
        raise OperationTimeoutError(operation=name, timeout=timeout) from e


async def retry_with_linear_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: SleepFunc | None = None,
) -> T:
    """
    Run an operation with sequential retries and linear backoff.

    Waits `base_delay`, then `2 * base_delay`, ... between attempts. Errors
    outside `retry_on` are final and propagate immediately.

    Args:
        operation: Zero-argument coroutine factory, re-invoked per attempt
        max_attempts: Total number of attempts
        base_delay: Delay unit in seconds
        retry_on: Exception types that trigger another attempt
        sleep: Sleep coroutine (defaults to asyncio.sleep)

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted
    """
    retrying_kwargs: dict[str, Any] = {
        "retry": retry_if_exception_type(retry_on),
        "stop": stop_after_attempt(max_attempts),
        "wait": wait_incrementing(start=base_delay, increment=base_delay),
        "before_sleep": _log_retry_attempt,
        "reraise": True,
    }
    if sleep is not None:
        retrying_kwargs["sleep"] = sleep

    async for attempt_state in AsyncRetrying(**retrying_kwargs):
        with attempt_state:
            attempt = attempt_state.retry_state.attempt_number
            if attempt > 1:
                logger.info(
                    f"Attempt {attempt}/{max_attempts} for "
                    f"{getattr(operation, '__name__', 'operation')}"
                )
            return await operation()

    # reraise=True means the loop never falls through
    raise RetryError("Max retries exceeded")


def async_retry_with_backoff(
    max_attempts: int = 3,
    min_wait_seconds: int = 1,
    max_wait_seconds: int = 10,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator retrying an async function with exponential backoff.

    Example:
        ```python
        @async_retry_with_backoff(max_attempts=3, exceptions=(OperationalError,))
        async def count_pending(db: AsyncSession) -> int:
            ...
        ```
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return retry(
            retry=retry_if_exception_type(exceptions),
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(
                min=min_wait_seconds,
                max=max_wait_seconds,
            ),
            before_sleep=_log_retry_attempt,
            reraise=True,
        )(func)

    return decorator


def _log_retry_attempt(retry_state: Any) -> None:
    """Log a failed attempt before sleeping."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    fn_name = getattr(retry_state.fn, "__name__", "operation")
    logger.warning(
        f"Attempt {retry_state.attempt_number} of {fn_name} failed after "
        f"{retry_state.seconds_since_start:.2f}s - Exception: {exception}"
    )
