"""
Timeout and retry wrappers for collaborator calls.

with_timeout is a deadline on the caller's wait, not a cancellation
primitive: the wrapped operation keeps running after the deadline and its
late result (or error) is discarded.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from core.exceptions import CandidateValidationError, OperationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_late_outcome(label: str):
    def callback(task: "asyncio.Future[Any]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(f"{label} finished after its deadline with {exc!r}")
        else:
            logger.debug(f"{label} finished after its deadline; result discarded")
    return callback


async def with_timeout(operation: Awaitable[T], duration_ms: int, label: str) -> T:
    """
    Await an operation for at most duration_ms milliseconds.

    Args:
        operation: Awaitable to wait on (coroutine, task or future)
        duration_ms: Deadline in milliseconds
        label: Operation name used in the timeout message

    Raises:
        OperationTimeoutError: If the deadline passes first. The operation
            itself is left running.
    """
    task = asyncio.ensure_future(operation)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout=duration_ms / 1000)
    except asyncio.TimeoutError:
        if task.done():
            # The operation raised a TimeoutError of its own
            raise
        task.add_done_callback(_discard_late_outcome(label))
        logger.warning(f"{label} timeout after {duration_ms}ms")
        raise OperationTimeoutError(label, duration_ms) from None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay_ms: int,
) -> T:
    """
    Invoke operation up to max_attempts times with linear backoff.

    The delay before attempt k (k >= 2) is base_delay_ms * (k - 1).
    Validation errors are never retried. When every attempt fails the last
    error is re-raised as is.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total attempts, including the first
        base_delay_ms: Backoff unit in milliseconds
    """
    base_delay = base_delay_ms / 1000
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        retry=retry_if_not_exception_type(CandidateValidationError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
