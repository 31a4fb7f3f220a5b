"""
Service layer for the Postgres operator.

This module provides the admission lifecycle services: CRD registration,
readiness gating on the webhook APIServices, and best-effort teardown.
"""

from .admission_lifecycle import AdmissionLifecycle
from .readiness_gate import ReadinessGate, default_api_service_names
from .resource_types import ResourceTypeRegistrar
from .teardown import TeardownCoordinator, default_teardown_targets

__all__ = [
    "AdmissionLifecycle",
    "ReadinessGate",
    "ResourceTypeRegistrar",
    "TeardownCoordinator",
    "default_api_service_names",
    "default_teardown_targets",
]
