"""
Prometheus metrics for the Postgres operator.

This module provides metrics for the admission lifecycle: CRD registration,
readiness waits and teardown outcomes, and a small HTTP server exposing them.
"""

import logging
from collections.abc import Callable

# aiohttp is provided by kopf; it is declared explicitly in pyproject.toml
# because the metrics server imports it directly.
from aiohttp.web import (
    Application,
    AppRunner,
    Request,
    Response,
    TCPSite,
    json_response,
)
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_metrics_registry = CollectorRegistry()

RESOURCE_TYPE_REGISTRATIONS = Counter(
    "postgres_operator_resource_type_registrations_total",
    "CustomResourceDefinition registration attempts",
    ["name", "result"],
    registry=_metrics_registry,
)

READINESS_WAITS = Counter(
    "postgres_operator_readiness_waits_total",
    "Admission webhook readiness waits by final result",
    ["result"],
    registry=_metrics_registry,
)

READINESS_WAIT_DURATION = Histogram(
    "postgres_operator_readiness_wait_duration_seconds",
    "Time spent waiting for the admission APIServices to become ready",
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=_metrics_registry,
)

READINESS_POLLS = Counter(
    "postgres_operator_readiness_polls_total",
    "Readiness poll attempts that did not succeed, by cause",
    ["cause"],
    registry=_metrics_registry,
)

TEARDOWN_TARGETS = Counter(
    "postgres_operator_teardown_targets_total",
    "Teardown delete attempts by resource kind and outcome",
    ["resource_kind", "outcome"],
    registry=_metrics_registry,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get the operator metrics registry."""
    return _metrics_registry


class MetricsCollector:
    """Thin recording facade over the module-level collectors."""

    def record_resource_type_registration(self, name: str, result: str) -> None:
        RESOURCE_TYPE_REGISTRATIONS.labels(name=name, result=result).inc()

    def record_readiness_poll(self, cause: str) -> None:
        READINESS_POLLS.labels(cause=cause).inc()

    def record_readiness_wait(self, result: str, duration: float) -> None:
        READINESS_WAITS.labels(result=result).inc()
        READINESS_WAIT_DURATION.observe(duration)

    def record_teardown_target(self, resource_kind: str, outcome: str) -> None:
        TEARDOWN_TARGETS.labels(resource_kind=resource_kind, outcome=outcome).inc()


class MetricsServer:
    """
    Serves ``/metrics`` for Prometheus plus the pod probes.

    ``/ready`` reports 503 until ``ready_check`` returns True, so the pod only
    joins the service once the admission webhooks answer; ``/healthz`` always
    answers 200 while the event loop is alive.
    """

    def __init__(
        self,
        port: int = 8081,
        host: str = "0.0.0.0",
        ready_check: Callable[[], bool] | None = None,
    ):
        self.port = port
        self.host = host
        self.ready_check = ready_check
        self.runner: AppRunner | None = None
        self.app = Application()
        self.app.router.add_get("/metrics", self.handle_metrics)
        self.app.router.add_get("/ready", self.handle_ready)
        self.app.router.add_get("/healthz", self.handle_healthz)

    async def handle_metrics(self, request: Request) -> Response:
        try:
            body = generate_latest(get_metrics_registry())
        except Exception as e:
            logger.error(f"Metrics exposition failed: {e}")
            return Response(text=f"metrics unavailable: {type(e).__name__}", status=500)
        return Response(body=body, content_type=CONTENT_TYPE_LATEST)

    async def handle_ready(self, request: Request) -> Response:
        ready = self.ready_check is None or self.ready_check()
        return json_response(
            {"status": "ready" if ready else "not_ready"}, status=200 if ready else 503
        )

    async def handle_healthz(self, request: Request) -> Response:
        return Response(text="ok")

    async def start(self) -> None:
        self.runner = AppRunner(self.app)
        await self.runner.setup()
        await TCPSite(self.runner, self.host, self.port).start()
        logger.info(f"Serving metrics and probes on {self.host}:{self.port}")

    async def stop(self) -> None:
        if self.runner is None:
            return
        # Cleaning up the runner also stops its sites
        await self.runner.cleanup()
        self.runner = None
        logger.info("Metrics endpoint closed")

    async def __aenter__(self) -> "MetricsServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
