"""
Deadline-bounded, cancellable polling.

``poll_until`` is the single wait primitive used by the readiness gate and
the CRD registrar. The deadline is wall-clock: slow attempts consume the
budget, they never extend it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from postgres_operator.errors import ReadinessCancelledError, ReadinessTimeoutError
from postgres_operator.models.readiness import (
    Deadline,
    PollResult,
    PollSchedule,
    ReadinessCause,
)

logger = logging.getLogger(__name__)


async def sleep_or_cancel(
    seconds: float, cancel_event: asyncio.Event | None = None
) -> bool:
    """
    Suspend for ``seconds`` unless cancelled first.

    Returns:
        True if ``cancel_event`` was set before or during the sleep
    """
    if cancel_event is None:
        await asyncio.sleep(seconds)
        return False
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except TimeoutError:
        return False
    return True


async def poll_until(
    check: Callable[[int, Deadline], Awaitable[PollResult]],
    schedule: PollSchedule,
    cancel_event: asyncio.Event | None = None,
    on_pending: Callable[[int, PollResult], Any] | None = None,
) -> Any:
    """
    Call ``check`` until it reports done or the deadline passes.

    Args:
        check: Coroutine function receiving the attempt number and deadline
        schedule: Timeout and interval for the loop
        cancel_event: Optional event; when set, polling stops between attempts
        on_pending: Optional callback invoked after every unsuccessful attempt

    Returns:
        The ``value`` of the first successful ``PollResult``

    Raises:
        ReadinessTimeoutError: Deadline passed; carries the last cause
        ReadinessCancelledError: ``cancel_event`` was set
    """
    deadline = schedule.deadline()
    attempt = 0
    last: PollResult | None = None

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise ReadinessCancelledError(last.cause if last else None)

        attempt += 1
        result = await check(attempt, deadline)
        if result.done:
            return result.value

        last = result
        if on_pending is not None:
            on_pending(attempt, result)

        if deadline.expired:
            break
        # Never sleep past the deadline
        if await sleep_or_cancel(min(schedule.interval, deadline.remaining), cancel_event):
            raise ReadinessCancelledError(last.cause)
        if deadline.expired:
            break

    raise ReadinessTimeoutError(
        cause=last.cause or ReadinessCause.NOT_AVAILABLE,
        timeout=schedule.timeout,
        detail=last.detail,
        last_error=last.error,
    )
