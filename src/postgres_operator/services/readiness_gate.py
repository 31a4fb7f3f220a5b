"""
Readiness gate for the aggregated admission webhook APIServices.

The APIServices' ``Available`` condition and the webhook activation
annotation are written by two different controllers at different times.
The gate therefore re-checks both on every pass and only reports ready when
a single pass observes both. Individual read failures are transient; only
the overall deadline is terminal.
"""

import asyncio
import logging
import time
from collections.abc import Sequence

from postgres_operator.constants import (
    ADMISSION_WEBHOOK_ACTIVE_ANNOTATION,
    APIREGISTRATION_GROUP,
    APIREGISTRATION_VERSION,
    APISERVICE_PLURAL,
    ERROR_MARKER_MISSING,
    ERROR_NOT_AVAILABLE,
    MUTATORS_API_SERVICE,
    VALIDATORS_API_SERVICE,
)
from postgres_operator.errors import ReadinessCancelledError, ReadinessTimeoutError
from postgres_operator.models.admission import ExtensionRegistration
from postgres_operator.models.readiness import (
    Deadline,
    PollResult,
    PollSchedule,
    ReadinessCause,
)
from postgres_operator.observability.logging import OperatorLogger
from postgres_operator.observability.metrics import MetricsCollector
from postgres_operator.utils.kubernetes import ClusterContext, describe_api_error
from postgres_operator.utils.polling import poll_until, sleep_or_cancel

logger = logging.getLogger(__name__)


def default_api_service_names() -> list[str]:
    """APIServices fronting the mutating and validating webhooks."""
    return [MUTATORS_API_SERVICE, VALIDATORS_API_SERVICE]


class ReadinessGate:
    """Blocks until the admission APIServices are available and annotated."""

    def __init__(
        self,
        context: ClusterContext,
        schedule: PollSchedule,
        metrics: MetricsCollector | None = None,
    ):
        self.context = context
        self.schedule = schedule
        self.metrics = metrics or MetricsCollector()
        self.logger = OperatorLogger(self.__class__.__name__)
        self.ready = False

    async def fetch_registration(self, name: str) -> ExtensionRegistration:
        obj = await asyncio.to_thread(
            self.context.custom_objects.get_cluster_custom_object,
            APIREGISTRATION_GROUP,
            APIREGISTRATION_VERSION,
            APISERVICE_PLURAL,
            name,
        )
        return ExtensionRegistration.from_api_object(obj)

    async def _fetch(self, name: str) -> tuple[ExtensionRegistration | None, PollResult | None]:
        try:
            return await self.fetch_registration(name), None
        except Exception as e:
            # Reads against an eventually-consistent store may fail briefly
            return None, PollResult.pending(
                ReadinessCause.FETCH_ERROR,
                f"failed to read APIService {name}: {describe_api_error(e)}",
                error=e,
            )

    async def check_once(
        self,
        names: Sequence[str],
        marker_key: str,
        primary: str,
        deadline: Deadline,
        cancel_event: asyncio.Event | None = None,
    ) -> PollResult:
        """
        Run a single readiness pass.

        Availability of every APIService is checked first; only when all are
        available does the pass wait the settle delay and look for the marker
        annotation on the primary APIService.
        """
        for name in names:
            registration, failure = await self._fetch(name)
            if failure is not None:
                return failure
            if not registration.is_available:
                return PollResult.pending(
                    ReadinessCause.NOT_AVAILABLE, ERROR_NOT_AVAILABLE.format(name)
                )
            logger.debug(f"APIService {name} status is true")

        if self.schedule.settle_delay:
            # Let the API server caches catch up before reading the annotation
            settle = min(self.schedule.settle_delay, deadline.remaining)
            if await sleep_or_cancel(settle, cancel_event):
                raise ReadinessCancelledError(ReadinessCause.NOT_AVAILABLE)

        registration, failure = await self._fetch(primary)
        if failure is not None:
            return failure
        if not registration.has_annotation(marker_key):
            return PollResult.pending(
                ReadinessCause.MARKER_MISSING,
                ERROR_MARKER_MISSING.format(primary, marker_key),
            )
        return PollResult.ready(registration)

    def _on_pending(self, attempt: int, result: PollResult) -> None:
        self.logger.log_readiness_attempt(attempt, result.cause, result.detail)
        self.metrics.record_readiness_poll(result.cause)

    async def await_ready(
        self,
        names: Sequence[str] | None = None,
        marker_key: str = ADMISSION_WEBHOOK_ACTIVE_ANNOTATION,
        primary: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ExtensionRegistration:
        """
        Wait until every APIService is Available and the primary one carries
        ``marker_key``.

        Args:
            names: APIService names; defaults to the mutators and validators services
            marker_key: Annotation whose presence marks the webhook as active
            primary: APIService checked for the marker; defaults to the last name
            cancel_event: Optional event that aborts the wait between attempts

        Returns:
            The primary APIService registration as observed on success

        Raises:
            ReadinessTimeoutError: The deadline passed; ``reason`` holds the
                last cause (not_available, marker_missing or fetch_error)
            ReadinessCancelledError: ``cancel_event`` was set
        """
        names = list(names) if names is not None else default_api_service_names()
        if not names:
            raise ValueError("at least one APIService name is required")
        primary = primary or names[-1]

        self.ready = False
        started = time.monotonic()

        async def check(attempt: int, deadline: Deadline) -> PollResult:
            return await self.check_once(names, marker_key, primary, deadline, cancel_event)

        try:
            registration = await poll_until(
                check, self.schedule, cancel_event, on_pending=self._on_pending
            )
        except ReadinessTimeoutError as e:
            duration = time.monotonic() - started
            self.logger.log_readiness_outcome("timeout", duration, e.reason)
            self.metrics.record_readiness_wait("timeout", duration)
            raise
        except ReadinessCancelledError as e:
            duration = time.monotonic() - started
            self.logger.log_readiness_outcome("cancelled", duration, e.reason)
            self.metrics.record_readiness_wait("cancelled", duration)
            raise

        duration = time.monotonic() - started
        self.logger.log_readiness_outcome("ready", duration)
        self.metrics.record_readiness_wait("ready", duration)
        self.ready = True
        return registration
