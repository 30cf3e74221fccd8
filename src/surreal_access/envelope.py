"""Cancellable operation envelope.

Each driver call runs as its own task and races the caller's
OperationContext. The caller gets exactly one outcome:

- the call's result,
- ``OperationCancelledError`` / ``OperationTimeoutError`` when the context
  fires first,
- ``DriverError`` (or another ``SurrealAccessError``) when the call fails.

A call that loses the race is not cancelled. It keeps running in the
background and its eventual outcome is retrieved and logged, never
delivered.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, TypeVar

from surreal_access.drivers._errors import wrap_driver_error
from surreal_access.errors import (
    DriverError,
    OperationCancelledError,
    OperationTimeoutError,
    SurrealAccessError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from surreal_access.context import FireReason, OperationContext

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _fired_error(
    reason: FireReason, *, operation: str, reference: str | None
) -> OperationCancelledError:
    target = f" on {reference!r}" if reference else ""
    if reason == "timeout":
        return OperationTimeoutError(
            f"{operation}{target} timed out",
            hint="Retry with a longer deadline if the operation is expected to be slow.",
            operation=operation,
            reference=reference,
        )
    return OperationCancelledError(
        f"{operation}{target} cancelled",
        operation=operation,
        reference=reference,
    )


def _log_abandoned(task: asyncio.Task[Any]) -> None:
    """Retrieve the outcome of a task nobody awaits any more."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned %s failed: %s", task.get_name(), exc)
    else:
        logger.debug("Abandoned %s completed after its caller gave up", task.get_name())


def _abandon(task: asyncio.Task[Any], tasks: set[asyncio.Task[Any]] | None) -> None:
    task.add_done_callback(_log_abandoned)
    if tasks is not None:
        tasks.add(task)
        task.add_done_callback(tasks.discard)


async def run_cancellable(
    ctx: OperationContext,
    work: Callable[[], Awaitable[T]],
    *,
    operation: str,
    reference: str | None = None,
    tasks: set[asyncio.Task[Any]] | None = None,
) -> T:
    """Run *work* as a background task bounded by *ctx*.

    Args:
        ctx: Cancellation signal for this invocation.
        work: Zero-argument factory for the driver call.
        operation: Operation name used in errors and logs.
        reference: Record reference the operation targets, if any.
        tasks: Set that keeps abandoned tasks alive until they finish.

    Returns:
        Whatever *work* returns.

    Raises:
        OperationCancelledError: The context was cancelled first.
        OperationTimeoutError: The context's deadline passed first.
        DriverError: The driver call raised a non-library exception.
        SurrealAccessError: Library errors raised inside *work* propagate unchanged.
    """
    reason = ctx.reason()
    if reason is not None:
        raise _fired_error(reason, operation=operation, reference=reference)

    start = time.perf_counter()
    logger.debug("Starting %s reference=%r", operation, reference)

    async def _call() -> T:
        return await work()

    task = asyncio.create_task(_call(), name=f"surreal_access.{operation}")
    waiter = asyncio.create_task(ctx.wait())

    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        waiter.cancel()
        _abandon(task, tasks)
        raise

    # Ties go to the context: a fired context never yields a result.
    if waiter in done:
        _abandon(task, tasks)
        raise _fired_error(waiter.result(), operation=operation, reference=reference)

    waiter.cancel()
    elapsed = time.perf_counter() - start
    if task.cancelled():
        raise OperationCancelledError(
            f"{operation} was cancelled by the driver",
            operation=operation,
            reference=reference,
        )
    exc = task.exception()
    if exc is None:
        logger.debug("Finished %s reference=%r in %.3fs", operation, reference, elapsed)
        return task.result()

    logger.debug("Failed %s reference=%r in %.3fs: %s", operation, reference, elapsed, exc)
    if isinstance(exc, DriverError):
        raise wrap_driver_error(exc, operation=operation, reference=reference)
    if isinstance(exc, SurrealAccessError):
        raise exc
    raise wrap_driver_error(exc, operation=operation, reference=reference) from exc
