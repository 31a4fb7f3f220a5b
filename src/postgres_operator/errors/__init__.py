"""
Error handling module for the Postgres operator.

This module provides an error hierarchy that integrates with kopf and
separates fatal setup failures, readiness timeouts and best-effort teardown
failures.
"""

from .operator_errors import (
    OperatorError,
    ReadinessCancelledError,
    ReadinessTimeoutError,
    ResourceTypeRegistrationError,
    ServerBootstrapError,
    TeardownError,
)

__all__ = [
    "OperatorError",
    "ResourceTypeRegistrationError",
    "ServerBootstrapError",
    "ReadinessTimeoutError",
    "ReadinessCancelledError",
    "TeardownError",
]
