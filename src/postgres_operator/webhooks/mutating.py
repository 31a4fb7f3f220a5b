"""
Mutating admission webhook for Postgres resources.

Fills in defaults the validating webhook and the controller rely on.
"""

import logging
from typing import Any

import kopf

from postgres_operator.constants import (
    DEFAULT_REPLICAS,
    DEFAULT_STANDBY_MODE,
    DEFAULT_STORAGE_TYPE,
    DEFAULT_STREAMING_MODE,
    DEFAULT_TERMINATION_POLICY,
    KUBEDB_GROUP,
    KUBEDB_VERSION,
    POSTGRES_PLURAL,
)

logger = logging.getLogger(__name__)

DEFAULT_LEADER_ELECTION = {
    "leaseDurationSeconds": 15,
    "renewDeadlineSeconds": 10,
    "retryPeriodSeconds": 2,
}


def postgres_defaults(spec: dict[str, Any]) -> dict[str, Any]:
    """Spec fields to add; fields already set are never overwritten."""
    defaults: dict[str, Any] = {}
    if spec.get("replicas") is None:
        defaults["replicas"] = DEFAULT_REPLICAS
    if not spec.get("standbyMode"):
        defaults["standbyMode"] = DEFAULT_STANDBY_MODE
    if not spec.get("streamingMode"):
        defaults["streamingMode"] = DEFAULT_STREAMING_MODE
    storage_type = spec.get("storageType") or DEFAULT_STORAGE_TYPE
    if not spec.get("storageType"):
        defaults["storageType"] = storage_type
    if not spec.get("terminationPolicy"):
        # Pause keeps PVCs around, which Ephemeral storage does not have
        defaults["terminationPolicy"] = (
            "Delete" if storage_type == "Ephemeral" else DEFAULT_TERMINATION_POLICY
        )
    if not spec.get("leaderElection"):
        defaults["leaderElection"] = dict(DEFAULT_LEADER_ELECTION)
    return defaults


@kopf.on.mutate(KUBEDB_GROUP, KUBEDB_VERSION, POSTGRES_PLURAL, id="mutate-postgres")
async def mutate_postgres(
    spec: dict,
    patch: kopf.Patch,
    namespace: str,
    name: str,
    operation: str,
    **kwargs,
) -> None:
    if operation not in ("CREATE", "UPDATE"):
        return
    defaults = postgres_defaults(spec)
    if defaults:
        logger.info(
            f"Defaulting Postgres {name} in namespace {namespace}: {', '.join(sorted(defaults))}"
        )
        for field, value in defaults.items():
            patch.spec[field] = value
