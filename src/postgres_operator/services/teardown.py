"""
Best-effort teardown of admission-related objects.

Every target is attempted exactly once, in order, with foreground
propagation. A missing object counts as success and a failure on one target
never stops the others; outcomes are collected into a ``TeardownReport``
for the caller to inspect or escalate.
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

from postgres_operator.constants import (
    APIREGISTRATION_GROUP,
    APIREGISTRATION_VERSION,
    APISERVICE_PLURAL,
    DEFAULT_TEARDOWN_GRACE,
    OPERATOR_NAMESPACE,
    OPERATOR_SERVICE_NAME,
    PROPAGATION_FOREGROUND,
)
from postgres_operator.models.admission import (
    ResourceKind,
    TargetOutcome,
    TargetResult,
    TeardownReport,
    TeardownTarget,
)
from postgres_operator.models.selector import LabelSelector
from postgres_operator.observability.logging import OperatorLogger
from postgres_operator.observability.metrics import MetricsCollector
from postgres_operator.utils.kubernetes import (
    ClusterContext,
    describe_api_error,
    foreground_delete_options,
    is_not_found,
)
from postgres_operator.utils.polling import sleep_or_cancel


def default_teardown_targets(
    selector: LabelSelector,
    namespace: str = OPERATOR_NAMESPACE,
    service_name: str = OPERATOR_SERVICE_NAME,
) -> list[TeardownTarget]:
    """
    Targets covering every admission-related kind.

    Order: validating webhooks, mutating webhooks, APIServices, the operator
    service, its endpoints.
    """
    return [
        TeardownTarget(kind=ResourceKind.VALIDATING_WEBHOOK_CONFIGURATION, selector=selector),
        TeardownTarget(kind=ResourceKind.MUTATING_WEBHOOK_CONFIGURATION, selector=selector),
        TeardownTarget(kind=ResourceKind.API_SERVICE, selector=selector),
        TeardownTarget(kind=ResourceKind.SERVICE, namespace=namespace, name=service_name),
        TeardownTarget(kind=ResourceKind.ENDPOINTS, namespace=namespace, selector=selector),
    ]


class TeardownCoordinator:
    """Deletes admission objects and reports the outcome per target."""

    def __init__(
        self,
        context: ClusterContext,
        grace_seconds: float = DEFAULT_TEARDOWN_GRACE,
        metrics: MetricsCollector | None = None,
    ):
        self.context = context
        self.grace_seconds = grace_seconds
        self.metrics = metrics or MetricsCollector()
        self.logger = OperatorLogger(self.__class__.__name__)

    def _delete_call(self, target: TeardownTarget) -> Callable[[], Any]:
        """Bind the API call deleting ``target``."""
        admission = self.context.admissionregistration_v1
        core = self.context.core_v1
        custom = self.context.custom_objects

        if target.is_collection:
            selector = target.selector.to_string()
            kwargs = {"label_selector": selector, "propagation_policy": PROPAGATION_FOREGROUND}
            match target.kind:
                case ResourceKind.VALIDATING_WEBHOOK_CONFIGURATION:
                    return lambda: admission.delete_collection_validating_webhook_configuration(**kwargs)
                case ResourceKind.MUTATING_WEBHOOK_CONFIGURATION:
                    return lambda: admission.delete_collection_mutating_webhook_configuration(**kwargs)
                case ResourceKind.API_SERVICE:
                    return lambda: custom.delete_collection_cluster_custom_object(
                        APIREGISTRATION_GROUP, APIREGISTRATION_VERSION, APISERVICE_PLURAL, **kwargs
                    )
                case ResourceKind.SERVICE:
                    return lambda: core.delete_collection_namespaced_service(target.namespace, **kwargs)
                case ResourceKind.ENDPOINTS:
                    return lambda: core.delete_collection_namespaced_endpoints(target.namespace, **kwargs)

        body = foreground_delete_options()
        match target.kind:
            case ResourceKind.VALIDATING_WEBHOOK_CONFIGURATION:
                return lambda: admission.delete_validating_webhook_configuration(target.name, body=body)
            case ResourceKind.MUTATING_WEBHOOK_CONFIGURATION:
                return lambda: admission.delete_mutating_webhook_configuration(target.name, body=body)
            case ResourceKind.API_SERVICE:
                return lambda: custom.delete_cluster_custom_object(
                    APIREGISTRATION_GROUP, APIREGISTRATION_VERSION, APISERVICE_PLURAL, target.name, body=body
                )
            case ResourceKind.SERVICE:
                return lambda: core.delete_namespaced_service(target.name, target.namespace, body=body)
            case ResourceKind.ENDPOINTS:
                return lambda: core.delete_namespaced_endpoints(target.name, target.namespace, body=body)
        raise ValueError(f"Unsupported teardown kind: {target.kind}")

    async def delete_target(self, target: TeardownTarget) -> TargetResult:
        """Delete one target; never raises for API failures."""
        error = None
        try:
            await asyncio.to_thread(self._delete_call(target))
        except Exception as e:
            if is_not_found(e):
                # Already absent: prior teardown, never created, or deleted concurrently
                result = TargetResult(target=target, outcome=TargetOutcome.NOT_FOUND)
            else:
                error = e
                result = TargetResult(
                    target=target,
                    outcome=TargetOutcome.ERROR,
                    error=describe_api_error(e),
                )
        else:
            result = TargetResult(target=target, outcome=TargetOutcome.DELETED)

        self.logger.log_teardown_target(
            target.kind, target.describe(), result.outcome, target.namespace, error=error
        )
        self.metrics.record_teardown_target(target.kind, result.outcome)
        return result

    async def tear_down(
        self,
        targets: Sequence[TeardownTarget] | None = None,
        selector: LabelSelector | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TeardownReport:
        """
        Attempt every target, then wait the grace interval.

        Args:
            targets: Targets to delete; defaults to ``default_teardown_targets(selector)``
            selector: Selector for the default targets (required when targets is None)
            cancel_event: Optional event checked between targets

        Returns:
            Report with one result per attempted target. When cancelled, the
            report is marked ``cancelled`` and the remaining targets are skipped.
        """
        if targets is None:
            if selector is None:
                raise ValueError("either targets or selector is required")
            targets = default_teardown_targets(selector)

        report = TeardownReport()
        for target in targets:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                self.logger.warning(
                    f"Teardown cancelled after {len(report.results)} of {len(targets)} targets",
                    operation="teardown",
                )
                return report
            report.results.append(await self.delete_target(target))

        self.logger.info(f"Teardown finished: {report.summary()}", operation="teardown")

        # Let the API server's cached views converge before the caller proceeds
        if self.grace_seconds:
            await sleep_or_cancel(self.grace_seconds, cancel_event)
        return report
