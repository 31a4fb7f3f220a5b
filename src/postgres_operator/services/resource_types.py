"""
Idempotent CustomResourceDefinition registration.

Definitions must exist (and be established) before anything watching them
starts. Already-existing definitions are left untouched; any other create
failure aborts setup immediately.
"""

import asyncio
from collections.abc import Sequence

from kubernetes.client.rest import ApiException

from postgres_operator.constants import (
    CONDITION_ESTABLISHED,
    CONDITION_TRUE,
    DEFAULT_CRD_ESTABLISH_POLL_INTERVAL,
    DEFAULT_CRD_ESTABLISH_TIMEOUT,
)
from postgres_operator.errors import (
    ReadinessTimeoutError,
    ResourceTypeRegistrationError,
)
from postgres_operator.models.readiness import PollResult, PollSchedule, ReadinessCause
from postgres_operator.models.resource_type import ResourceTypeDefinition
from postgres_operator.observability.logging import OperatorLogger
from postgres_operator.observability.metrics import MetricsCollector
from postgres_operator.utils.kubernetes import (
    ClusterContext,
    describe_api_error,
    is_already_exists,
)
from postgres_operator.utils.polling import poll_until


class ResourceTypeRegistrar:
    """Ensures a set of CustomResourceDefinitions exists in the cluster."""

    def __init__(
        self,
        context: ClusterContext,
        establish_schedule: PollSchedule | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.context = context
        self.establish_schedule = establish_schedule or PollSchedule(
            timeout=DEFAULT_CRD_ESTABLISH_TIMEOUT,
            interval=DEFAULT_CRD_ESTABLISH_POLL_INTERVAL,
        )
        self.metrics = metrics or MetricsCollector()
        self.logger = OperatorLogger(self.__class__.__name__)

    async def ensure_types(
        self,
        definitions: Sequence[ResourceTypeDefinition],
        wait_established: bool = True,
    ) -> list[str]:
        """
        Create every definition that does not exist yet.

        Args:
            definitions: Definitions to register, in order
            wait_established: Block until each definition reports Established

        Returns:
            Names of the definitions created by this call

        Raises:
            ResourceTypeRegistrationError: A create failed for any reason other
                than "already exists", or a definition never became established
        """
        created = []
        for definition in definitions:
            if await self._create(definition):
                created.append(definition.name)

        if wait_established:
            for definition in definitions:
                await self._wait_established(definition)

        return created

    async def _create(self, definition: ResourceTypeDefinition) -> bool:
        try:
            await asyncio.to_thread(
                self.context.apiextensions_v1.create_custom_resource_definition,
                body=definition.to_body(),
            )
        except ApiException as e:
            if is_already_exists(e):
                self.logger.debug(
                    f"CustomResourceDefinition {definition.name} already exists",
                    resource_kind="CustomResourceDefinition",
                    resource_name=definition.name,
                )
                self.metrics.record_resource_type_registration(definition.name, "exists")
                return False
            self.metrics.record_resource_type_registration(definition.name, "error")
            raise ResourceTypeRegistrationError(
                definition.name, describe_api_error(e), cause=e
            ) from e
        except Exception as e:
            # Connection failures never reach the API server
            self.metrics.record_resource_type_registration(definition.name, "error")
            raise ResourceTypeRegistrationError(
                definition.name, describe_api_error(e), cause=e
            ) from e

        self.logger.info(
            f"Created CustomResourceDefinition {definition.name}",
            resource_kind="CustomResourceDefinition",
            resource_name=definition.name,
        )
        self.metrics.record_resource_type_registration(definition.name, "created")
        return True

    async def _wait_established(self, definition: ResourceTypeDefinition) -> None:
        async def check(attempt, deadline) -> PollResult:
            try:
                crd = await asyncio.to_thread(
                    self.context.apiextensions_v1.read_custom_resource_definition,
                    definition.name,
                )
            except Exception as e:
                return PollResult.pending(
                    ReadinessCause.FETCH_ERROR, describe_api_error(e), error=e
                )
            conditions = (crd.status.conditions if crd.status else None) or []
            if any(
                c.type == CONDITION_ESTABLISHED and c.status == CONDITION_TRUE
                for c in conditions
            ):
                return PollResult.ready()
            return PollResult.pending(
                ReadinessCause.NOT_AVAILABLE, f"{definition.name} not established"
            )

        try:
            await poll_until(check, self.establish_schedule)
        except ReadinessTimeoutError as e:
            raise ResourceTypeRegistrationError(
                definition.name, "definition never became established", cause=e
            ) from e
