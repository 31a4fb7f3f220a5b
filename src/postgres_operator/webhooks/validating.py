"""
Validating admission webhook for Postgres resources.

This webhook validates Postgres configurations before they are accepted by
Kubernetes, enforcing:
- A valid specification
- An existing, non-deprecated PostgresVersion
- Immutable fields on update
"""

import asyncio
import logging
from typing import Any

import kopf
from kubernetes.client.rest import ApiException
from pydantic import ValidationError

from postgres_operator.constants import (
    CATALOG_GROUP,
    IMMUTABLE_POSTGRES_FIELDS,
    KUBEDB_GROUP,
    KUBEDB_VERSION,
    POSTGRES_PLURAL,
    POSTGRES_VERSION_PLURAL,
)
from postgres_operator.models.postgres import PostgresSpec, PostgresVersionSpec
from postgres_operator.utils.kubernetes import ClusterContext
from postgres_operator.utils.reflector import Reflector

logger = logging.getLogger(__name__)


def _sync_get_postgres_version(context: ClusterContext, name: str) -> dict:
    """Synchronous helper to read a PostgresVersion (runs in thread pool)."""
    return context.custom_objects.get_cluster_custom_object(
        group=CATALOG_GROUP,
        version=KUBEDB_VERSION,
        plural=POSTGRES_VERSION_PLURAL,
        name=name,
    )


async def get_postgres_version(
    name: str, context: ClusterContext, versions: Reflector | None = None
) -> PostgresVersionSpec | None:
    """
    Look up a PostgresVersion by name.

    Served from the ``versions`` reflector cache once it has synced;
    otherwise read from the API server through ``context``.

    Returns:
        The parsed version spec, or None if it does not exist
    """
    if versions is not None and versions.synced.is_set():
        obj = versions.get(name)
        if obj is None:
            return None
        return PostgresVersionSpec.model_validate(obj.get("spec") or {})

    try:
        obj = await asyncio.to_thread(_sync_get_postgres_version, context, name)
    except ApiException as e:
        if e.status == 404:
            return None
        raise
    return PostgresVersionSpec.model_validate(obj.get("spec") or {})


def changed_immutable_fields(
    old_spec: dict[str, Any] | None, new_spec: dict[str, Any]
) -> list[str]:
    if not old_spec:
        return []
    return [
        field
        for field in IMMUTABLE_POSTGRES_FIELDS
        if old_spec.get(field) != new_spec.get(field)
    ]


@kopf.on.validate(KUBEDB_GROUP, KUBEDB_VERSION, POSTGRES_PLURAL, id="validate-postgres")
async def validate_postgres(
    spec: dict,
    namespace: str,
    name: str,
    operation: str,
    dryrun: bool,
    memo: kopf.Memo,
    old: dict | None = None,
    **kwargs,
) -> dict:
    """
    Validate a Postgres resource before admission.

    ``memo.context`` is the operator's ``ClusterContext``; ``memo.versions``,
    when present, is the PostgresVersion reflector.

    Raises:
        kopf.AdmissionError: If validation fails
    """
    logger.info(
        f"Validating Postgres {name} in namespace {namespace} "
        f"(operation: {operation}, dryrun: {dryrun})"
    )

    try:
        postgres_spec = PostgresSpec.model_validate(spec)
    except ValidationError as e:
        error_msg = f"Invalid Postgres specification: {e}"
        logger.warning(f"Postgres {name} validation failed: {error_msg}")
        raise kopf.AdmissionError(error_msg) from e

    try:
        version = await get_postgres_version(
            postgres_spec.version, memo.context, memo.get("versions")
        )
    except ApiException as e:
        raise kopf.AdmissionError(
            f"Failed to read PostgresVersion {postgres_spec.version}: {e.reason}"
        ) from e
    if version is None:
        raise kopf.AdmissionError(
            f"PostgresVersion {postgres_spec.version} not found"
        )
    if version.deprecated and operation == "CREATE":
        raise kopf.AdmissionError(
            f"PostgresVersion {postgres_spec.version} is deprecated"
        )

    if operation == "UPDATE":
        old_spec = (old or {}).get("spec")
        changed = changed_immutable_fields(old_spec, spec)
        if changed:
            raise kopf.AdmissionError(
                f"Fields cannot be changed after creation: {', '.join(changed)}"
            )

    logger.info(f"Postgres {name} validation passed")
    return {}
