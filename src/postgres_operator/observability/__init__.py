"""
Observability utilities for the Postgres operator.

This module provides metrics and structured logging capabilities for
monitoring the admission webhook lifecycle.
"""

from .logging import OperatorLogger, correlation_scope, setup_structured_logging
from .metrics import MetricsCollector, MetricsServer, get_metrics_registry

__all__ = [
    "MetricsCollector",
    "MetricsServer",
    "get_metrics_registry",
    "OperatorLogger",
    "correlation_scope",
    "setup_structured_logging",
]
