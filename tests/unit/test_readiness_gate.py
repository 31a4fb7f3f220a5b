"""
Unit tests for the admission webhook readiness gate.

APIService reads are mocked through CustomObjectsApi; timings use short
schedules so the deadline behaviour can be observed directly.
"""

import asyncio
import time

import pytest

from postgres_operator.constants import (
    ADMISSION_WEBHOOK_ACTIVE_ANNOTATION,
    MUTATORS_API_SERVICE,
    VALIDATORS_API_SERVICE,
)
from postgres_operator.errors import ReadinessCancelledError, ReadinessTimeoutError
from postgres_operator.models.readiness import PollSchedule, ReadinessCause
from postgres_operator.services.readiness_gate import (
    ReadinessGate,
    default_api_service_names,
)

NAMES = [MUTATORS_API_SERVICE, VALIDATORS_API_SERVICE]


def _serve(cluster_context, services: dict):
    """Route get_cluster_custom_object(name) to the given per-name callables or dicts."""

    def _get(group, version, plural, name):
        value = services[name]
        if callable(value):
            value = value()
        if isinstance(value, Exception):
            raise value
        return value

    cluster_context.custom_objects.get_cluster_custom_object.side_effect = _get


@pytest.fixture
def schedule():
    return PollSchedule(timeout=0.4, interval=0.05, settle_delay=0.01)


class TestAwaitReady:
    @pytest.mark.asyncio
    async def test_ready_on_first_poll(self, cluster_context, make_api_service, schedule):
        """Already available and annotated: returns after one pass, not the full timeout."""
        _serve(cluster_context, {name: make_api_service(name) for name in NAMES})
        gate = ReadinessGate(cluster_context, schedule)

        started = time.monotonic()
        registration = await gate.await_ready(NAMES)
        elapsed = time.monotonic() - started

        assert registration.name == VALIDATORS_API_SERVICE
        assert gate.ready is True
        assert elapsed < schedule.interval + schedule.settle_delay + 0.1
        # Two availability reads plus the marker read on the primary
        assert cluster_context.custom_objects.get_cluster_custom_object.call_count == 3

    @pytest.mark.asyncio
    async def test_never_available_times_out(self, cluster_context, make_api_service, schedule):
        _serve(
            cluster_context,
            {
                MUTATORS_API_SERVICE: make_api_service(MUTATORS_API_SERVICE),
                VALIDATORS_API_SERVICE: make_api_service(
                    VALIDATORS_API_SERVICE, available=False
                ),
            },
        )
        gate = ReadinessGate(cluster_context, schedule)

        started = time.monotonic()
        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await gate.await_ready(NAMES)
        elapsed = time.monotonic() - started

        assert exc_info.value.reason == ReadinessCause.NOT_AVAILABLE
        assert VALIDATORS_API_SERVICE in str(exc_info.value)
        assert elapsed < schedule.timeout + schedule.interval + 0.1
        assert gate.ready is False

    @pytest.mark.asyncio
    async def test_marker_never_appears_times_out(
        self, cluster_context, make_api_service, schedule
    ):
        _serve(
            cluster_context,
            {name: make_api_service(name, annotated=False) for name in NAMES},
        )
        gate = ReadinessGate(cluster_context, schedule)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await gate.await_ready(NAMES)

        assert exc_info.value.reason == ReadinessCause.MARKER_MISSING
        assert ADMISSION_WEBHOOK_ACTIVE_ANNOTATION in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_fetch_errors_are_transient_until_timeout(
        self, cluster_context, api_error, schedule
    ):
        error = api_error(503, "Service Unavailable")
        _serve(cluster_context, {name: error for name in NAMES})
        gate = ReadinessGate(cluster_context, schedule)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await gate.await_ready(NAMES)

        assert exc_info.value.reason == ReadinessCause.FETCH_ERROR
        assert exc_info.value.last_error is error
        # Polled repeatedly rather than aborting on the first failure
        assert cluster_context.custom_objects.get_cluster_custom_object.call_count > 1

    @pytest.mark.asyncio
    async def test_recovers_after_transient_error(
        self, cluster_context, make_api_service, api_error, schedule
    ):
        responses = iter([api_error(500), make_api_service(MUTATORS_API_SERVICE)])
        _serve(
            cluster_context,
            {
                MUTATORS_API_SERVICE: lambda: next(
                    responses, make_api_service(MUTATORS_API_SERVICE)
                ),
                VALIDATORS_API_SERVICE: make_api_service(VALIDATORS_API_SERVICE),
            },
        )
        gate = ReadinessGate(cluster_context, schedule)

        registration = await gate.await_ready(NAMES)

        assert registration.is_available

    @pytest.mark.asyncio
    async def test_marker_added_later(self, cluster_context, make_api_service, schedule):
        """Availability first, annotation on a later pass."""
        calls = {"primary": 0}

        def validators():
            calls["primary"] += 1
            return make_api_service(VALIDATORS_API_SERVICE, annotated=calls["primary"] > 4)

        _serve(
            cluster_context,
            {
                MUTATORS_API_SERVICE: make_api_service(MUTATORS_API_SERVICE),
                VALIDATORS_API_SERVICE: validators,
            },
        )
        gate = ReadinessGate(cluster_context, schedule)

        registration = await gate.await_ready(NAMES)

        assert registration.has_annotation(ADMISSION_WEBHOOK_ACTIVE_ANNOTATION)

    @pytest.mark.asyncio
    async def test_marker_without_availability_is_not_ready(
        self, cluster_context, make_api_service, schedule
    ):
        """The marker alone never reports ready while a service is unavailable."""
        _serve(
            cluster_context,
            {
                MUTATORS_API_SERVICE: make_api_service(MUTATORS_API_SERVICE, available=False),
                VALIDATORS_API_SERVICE: make_api_service(VALIDATORS_API_SERVICE),
            },
        )
        gate = ReadinessGate(cluster_context, schedule)

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await gate.await_ready(NAMES)

        assert exc_info.value.reason == ReadinessCause.NOT_AVAILABLE
        requested = {
            call.args[3]
            for call in cluster_context.custom_objects.get_cluster_custom_object.call_args_list
        }
        # Availability fails on the first name, so the primary is never read
        assert requested == {MUTATORS_API_SERVICE}

    @pytest.mark.asyncio
    async def test_cancel_event_stops_wait(self, cluster_context, make_api_service):
        _serve(
            cluster_context,
            {name: make_api_service(name, available=False) for name in NAMES},
        )
        gate = ReadinessGate(cluster_context, PollSchedule(timeout=10, interval=0.05))
        cancel_event = asyncio.Event()

        async def cancel_soon():
            await asyncio.sleep(0.1)
            cancel_event.set()

        started = time.monotonic()
        canceller = asyncio.create_task(cancel_soon())
        with pytest.raises(ReadinessCancelledError) as exc_info:
            await gate.await_ready(NAMES, cancel_event=cancel_event)
        await canceller

        assert time.monotonic() - started < 1
        assert exc_info.value.reason == ReadinessCause.NOT_AVAILABLE
        assert not isinstance(exc_info.value, ReadinessTimeoutError)

    @pytest.mark.asyncio
    async def test_defaults_to_webhook_api_services(
        self, cluster_context, make_api_service, schedule
    ):
        _serve(cluster_context, {name: make_api_service(name) for name in NAMES})
        gate = ReadinessGate(cluster_context, schedule)

        await gate.await_ready()

        requested = [
            call.args[3]
            for call in cluster_context.custom_objects.get_cluster_custom_object.call_args_list
        ]
        assert requested == [MUTATORS_API_SERVICE, VALIDATORS_API_SERVICE, VALIDATORS_API_SERVICE]
        assert default_api_service_names() == NAMES

    @pytest.mark.asyncio
    async def test_explicit_primary(self, cluster_context, make_api_service, schedule):
        _serve(
            cluster_context,
            {
                MUTATORS_API_SERVICE: make_api_service(MUTATORS_API_SERVICE),
                VALIDATORS_API_SERVICE: make_api_service(
                    VALIDATORS_API_SERVICE, annotated=False
                ),
            },
        )
        gate = ReadinessGate(cluster_context, schedule)

        registration = await gate.await_ready(NAMES, primary=MUTATORS_API_SERVICE)

        assert registration.name == MUTATORS_API_SERVICE

    @pytest.mark.asyncio
    async def test_empty_names_rejected(self, cluster_context, schedule):
        gate = ReadinessGate(cluster_context, schedule)

        with pytest.raises(ValueError):
            await gate.await_ready([])

        cluster_context.custom_objects.get_cluster_custom_object.assert_not_called()
