"""Unit tests for the deadline-bounded polling primitive."""

import asyncio
import time

import pytest

from postgres_operator.errors import ReadinessCancelledError, ReadinessTimeoutError
from postgres_operator.models.readiness import (
    Deadline,
    PollResult,
    PollSchedule,
    ReadinessCause,
)
from postgres_operator.utils.polling import poll_until, sleep_or_cancel


class TestSleepOrCancel:
    @pytest.mark.asyncio
    async def test_sleeps_without_event(self):
        assert await sleep_or_cancel(0.01) is False

    @pytest.mark.asyncio
    async def test_already_set_returns_immediately(self):
        event = asyncio.Event()
        event.set()

        started = time.monotonic()
        assert await sleep_or_cancel(5, event) is True
        assert time.monotonic() - started < 0.1

    @pytest.mark.asyncio
    async def test_set_during_sleep(self):
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, event.set)

        started = time.monotonic()
        assert await sleep_or_cancel(5, event) is True
        assert time.monotonic() - started < 1

    @pytest.mark.asyncio
    async def test_elapses_when_not_set(self):
        assert await sleep_or_cancel(0.01, asyncio.Event()) is False


class TestDeadline:
    def test_remaining_uses_clock(self):
        now = [100.0]
        deadline = Deadline(10, clock=lambda: now[0])

        now[0] = 104.0
        assert deadline.elapsed == pytest.approx(4.0)
        assert deadline.remaining == pytest.approx(6.0)
        assert not deadline.expired

        now[0] = 111.0
        assert deadline.remaining == 0
        assert deadline.expired


class TestPollSchedule:
    def test_interval_longer_than_timeout_accepted(self):
        schedule = PollSchedule(timeout=3, interval=5)

        assert schedule.interval > schedule.timeout

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError):
            PollSchedule(timeout=0, interval=0)


class TestPollUntil:
    @pytest.mark.asyncio
    async def test_returns_value_on_first_success(self):
        attempts = []

        async def check(attempt, deadline):
            attempts.append(attempt)
            return PollResult.ready("done")

        value = await poll_until(check, PollSchedule(timeout=1, interval=0.5))

        assert value == "done"
        assert attempts == [1]

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        pending = []

        async def check(attempt, deadline):
            if attempt < 3:
                return PollResult.pending(ReadinessCause.NOT_AVAILABLE, f"attempt {attempt}")
            return PollResult.ready(attempt)

        value = await poll_until(
            check,
            PollSchedule(timeout=1, interval=0.01),
            on_pending=lambda attempt, result: pending.append(attempt),
        )

        assert value == 3
        assert pending == [1, 2]

    @pytest.mark.asyncio
    async def test_timeout_carries_last_cause(self):
        error = RuntimeError("boom")

        async def check(attempt, deadline):
            if attempt == 1:
                return PollResult.pending(ReadinessCause.NOT_AVAILABLE, "not yet")
            return PollResult.pending(ReadinessCause.FETCH_ERROR, "read failed", error=error)

        schedule = PollSchedule(timeout=0.1, interval=0.02)
        started = time.monotonic()
        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await poll_until(check, schedule)

        assert time.monotonic() - started < schedule.timeout + schedule.interval + 0.1
        assert exc_info.value.reason == ReadinessCause.FETCH_ERROR
        assert exc_info.value.detail == "read failed"
        assert exc_info.value.last_error is error
        assert exc_info.value.timeout == schedule.timeout

    @pytest.mark.asyncio
    async def test_interval_longer_than_timeout_polls_once(self):
        attempts = []

        async def check(attempt, deadline):
            attempts.append(attempt)
            return PollResult.pending(ReadinessCause.NOT_AVAILABLE, "not yet")

        started = time.monotonic()
        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await poll_until(check, PollSchedule(timeout=0.05, interval=5))

        assert attempts == [1]
        assert time.monotonic() - started < 1
        assert exc_info.value.reason == ReadinessCause.NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_slow_checks_consume_the_budget(self):
        """A slow check never extends the deadline."""
        attempts = []

        async def check(attempt, deadline):
            attempts.append(attempt)
            await asyncio.sleep(0.06)
            return PollResult.pending(ReadinessCause.NOT_AVAILABLE, "slow")

        with pytest.raises(ReadinessTimeoutError):
            await poll_until(check, PollSchedule(timeout=0.1, interval=0.05))

        assert len(attempts) <= 2

    @pytest.mark.asyncio
    async def test_cancel_before_first_attempt(self):
        event = asyncio.Event()
        event.set()
        called = False

        async def check(attempt, deadline):
            nonlocal called
            called = True
            return PollResult.ready(None)

        with pytest.raises(ReadinessCancelledError) as exc_info:
            await poll_until(check, PollSchedule(timeout=1, interval=0.1), event)

        assert called is False
        assert exc_info.value.reason is None

    @pytest.mark.asyncio
    async def test_cancel_during_interval(self):
        event = asyncio.Event()

        async def check(attempt, deadline):
            event.set()
            return PollResult.pending(ReadinessCause.MARKER_MISSING, "no marker")

        started = time.monotonic()
        with pytest.raises(ReadinessCancelledError) as exc_info:
            await poll_until(check, PollSchedule(timeout=10, interval=5), event)

        assert time.monotonic() - started < 1
        assert exc_info.value.reason == ReadinessCause.MARKER_MISSING
