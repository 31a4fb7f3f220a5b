"""
Admission webhook lifecycle: setup, readiness and teardown.

Ties the registrar, readiness gate and teardown coordinator together with
the operator settings. Setup failures are fatal; readiness ends in success
or a single timeout; teardown always completes with a report.
"""

import asyncio
from collections.abc import Sequence

from postgres_operator.models.admission import TeardownReport, TeardownTarget
from postgres_operator.models.readiness import PollSchedule
from postgres_operator.models.resource_type import (
    ResourceTypeDefinition,
    default_resource_types,
)
from postgres_operator.models.selector import LabelSelector
from postgres_operator.observability.logging import correlation_scope
from postgres_operator.observability.metrics import MetricsCollector
from postgres_operator.services.readiness_gate import (
    ReadinessGate,
    default_api_service_names,
)
from postgres_operator.services.resource_types import ResourceTypeRegistrar
from postgres_operator.services.teardown import (
    TeardownCoordinator,
    default_teardown_targets,
)
from postgres_operator.settings import Settings
from postgres_operator.utils.kubernetes import ClusterContext


class AdmissionLifecycle:
    """Orchestrates the admission webhook lifecycle for one cluster."""

    def __init__(self, context: ClusterContext, settings: Settings):
        self.context = context
        self.settings = settings
        metrics = MetricsCollector()
        self.registrar = ResourceTypeRegistrar(context, metrics=metrics)
        self.gate = ReadinessGate(context, PollSchedule.from_settings(settings), metrics=metrics)
        self.teardown_coordinator = TeardownCoordinator(
            context, grace_seconds=settings.teardown_grace_seconds, metrics=metrics
        )

    @property
    def selector(self) -> LabelSelector:
        return LabelSelector.from_labels(self.settings.app_selector)

    def teardown_targets(self) -> list[TeardownTarget]:
        return default_teardown_targets(
            self.selector,
            namespace=self.settings.operator_namespace,
            service_name=self.settings.operator_service_name,
        )

    async def setup(
        self, definitions: Sequence[ResourceTypeDefinition] | None = None
    ) -> list[str]:
        """Register the operator's resource types. Raises on any fatal failure."""
        if definitions is None:
            definitions = default_resource_types()
        with correlation_scope("setup"):
            return await self.registrar.ensure_types(definitions)

    async def await_ready(self, cancel_event: asyncio.Event | None = None):
        with correlation_scope("readiness"):
            return await self.gate.await_ready(
                default_api_service_names(), cancel_event=cancel_event
            )

    async def teardown(self, cancel_event: asyncio.Event | None = None) -> TeardownReport:
        with correlation_scope("teardown"):
            return await self.teardown_coordinator.tear_down(
                self.teardown_targets(), cancel_event=cancel_event
            )
