#!/usr/bin/env python3
"""
Postgres Operator - Main entry point for the kopf-based admission webhook server.

Startup sequence:
1. Register the operator's CustomResourceDefinitions (fatal on failure)
2. Configure the webhook server (fatal on invalid TLS material or options)
3. Run kopf; once running, wait in the background for the webhook
   APIServices to become available and annotated

Usage:
    python -m postgres_operator.operator

Environment Variables:
    See postgres_operator.settings.Settings
"""

import asyncio
import logging
import sys
import threading

import kopf

from postgres_operator.errors import OperatorError, ReadinessTimeoutError
from postgres_operator.observability.logging import setup_structured_logging
from postgres_operator.observability.metrics import MetricsServer
from postgres_operator.server import ServerOptions, configure, run
from postgres_operator.services.admission_lifecycle import AdmissionLifecycle
from postgres_operator.settings import settings as operator_settings
from postgres_operator.utils.kubernetes import ClusterContext
from postgres_operator.utils.reflector import POSTGRES_VERSION, ReflectorRegistry

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply the logging settings before anything else logs."""
    setup_structured_logging(
        log_level=operator_settings.log_level,
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
        webhook_log_level=operator_settings.webhook_log_level,
    )


async def _await_webhooks(lifecycle: AdmissionLifecycle) -> None:
    try:
        await lifecycle.await_ready()
    except ReadinessTimeoutError as e:
        logger.error(f"Admission webhooks did not become ready: {e}")


@kopf.on.startup()
async def startup_handler(memo: kopf.Memo, **_) -> None:
    """Start the metrics server and the background readiness wait."""
    lifecycle: AdmissionLifecycle = memo.lifecycle

    metrics_server = MetricsServer(
        port=operator_settings.metrics_port,
        host=operator_settings.metrics_host,
        ready_check=lambda: lifecycle.gate.ready,
    )
    try:
        await metrics_server.start()
        memo.metrics_server = metrics_server
    except OSError as e:
        logger.error(f"Failed to start metrics server: {e}")
        logger.warning("Continuing without metrics server")

    # PostgresVersion cache consulted by the validating webhook
    registry = ReflectorRegistry(lifecycle.context)
    memo.versions = registry.for_kind(POSTGRES_VERSION)
    memo.reflector_stop = threading.Event()
    registry.start_all(memo.reflector_stop)

    memo.readiness_task = asyncio.create_task(_await_webhooks(lifecycle))


@kopf.on.cleanup()
async def cleanup_handler(memo: kopf.Memo, **_) -> None:
    logger.info("Shutting down Postgres Operator...")

    reflector_stop = memo.get("reflector_stop")
    if reflector_stop is not None:
        reflector_stop.set()

    task = memo.get("readiness_task")
    if task is not None and not task.done():
        task.cancel()

    metrics_server = memo.get("metrics_server")
    if metrics_server is not None:
        await metrics_server.stop()


def main() -> None:
    """
    Run setup, then serve the webhooks until kopf exits.

    Setup failures are fatal and exit with status 1.
    """
    configure_logging()

    try:
        context = ClusterContext.from_kubeconfig(operator_settings.kubeconfig)
        lifecycle = AdmissionLifecycle(context, operator_settings)

        logger.info("Ensuring CustomResourceDefinitions...")
        asyncio.run(lifecycle.setup())

        server_config = configure(ServerOptions.from_settings(operator_settings))
    except OperatorError as e:
        logger.error(f"Operator setup failed: {e}")
        sys.exit(1)

    server_config.memo.context = context
    server_config.memo.lifecycle = lifecycle

    try:
        run(server_config)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
