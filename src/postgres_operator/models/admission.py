"""
Models for admission-related cluster objects.

This module covers the objects the admission lifecycle observes or deletes:
- APIService registrations with their status conditions and annotations
- Teardown targets (kind, namespace, selector or name)
- Per-target teardown results collected into a report
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from postgres_operator.constants import CONDITION_AVAILABLE, CONDITION_TRUE
from postgres_operator.errors import TeardownError
from postgres_operator.models.selector import LabelSelector


class Condition(BaseModel):
    """Status condition as reported by the API server."""

    model_config = {"populate_by_name": True}

    type: str = Field(..., description="Condition type, e.g. Available")
    status: str = Field(..., description="True, False or Unknown")
    reason: str | None = Field(None, description="Machine-readable reason")
    message: str | None = Field(None, description="Human-readable message")
    last_transition_time: str | None = Field(None, alias="lastTransitionTime")


class ExtensionRegistration(BaseModel):
    """
    An aggregated APIService registration.

    Only the parts the readiness gate inspects are modelled: the ordered
    condition list and the annotation map.
    """

    name: str
    conditions: list[Condition] = Field(default_factory=list)
    annotations: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_api_object(cls, obj: dict[str, Any]) -> "ExtensionRegistration":
        """Build from an ``apiregistration.k8s.io/v1`` APIService dict."""
        metadata = obj.get("metadata") or {}
        status = obj.get("status") or {}
        return cls(
            name=metadata.get("name", ""),
            conditions=[
                Condition.model_validate(c) for c in status.get("conditions") or []
            ],
            annotations=metadata.get("annotations") or {},
            labels=metadata.get("labels") or {},
        )

    @property
    def is_available(self) -> bool:
        return any(
            c.type == CONDITION_AVAILABLE and c.status == CONDITION_TRUE
            for c in self.conditions
        )

    def has_annotation(self, key: str) -> bool:
        return key in self.annotations


class ResourceKind(StrEnum):
    """Kinds of admission-related objects removed on teardown."""

    VALIDATING_WEBHOOK_CONFIGURATION = "ValidatingWebhookConfiguration"
    MUTATING_WEBHOOK_CONFIGURATION = "MutatingWebhookConfiguration"
    API_SERVICE = "APIService"
    SERVICE = "Service"
    ENDPOINTS = "Endpoints"

    @property
    def namespaced(self) -> bool:
        return self in (ResourceKind.SERVICE, ResourceKind.ENDPOINTS)


class TeardownTarget(BaseModel):
    """
    One delete command issued during teardown.

    Selector-based targets are deleted with a collection delete; name-based
    targets with a single delete. Exactly one of ``selector`` and ``name``
    must be set.
    """

    model_config = {"frozen": True}

    kind: ResourceKind
    namespace: str | None = None
    selector: LabelSelector | None = None
    name: str | None = None

    @model_validator(mode="after")
    def validate_target(self):
        if (self.selector is None) == (self.name is None):
            raise ValueError("exactly one of selector or name must be set")
        # An empty selector would delete every object of the kind
        if self.selector is not None and not self.selector.requirements:
            raise ValueError("selector must have at least one requirement")
        if self.kind.namespaced and not self.namespace:
            raise ValueError(f"{self.kind} targets require a namespace")
        if not self.kind.namespaced and self.namespace:
            raise ValueError(f"{self.kind} is cluster-scoped")
        return self

    @property
    def is_collection(self) -> bool:
        return self.selector is not None

    def describe(self) -> str:
        location = f"{self.namespace}/" if self.namespace else ""
        if self.name is not None:
            return f"{self.kind} {location}{self.name}"
        return f"{self.kind} {location}[{self.selector}]"


class TargetOutcome(StrEnum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    ERROR = "error"


class TargetResult(BaseModel):
    """Outcome of a single teardown target."""

    target: TeardownTarget
    outcome: TargetOutcome
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        # Absent objects are success: teardown is idempotent
        return self.outcome in (TargetOutcome.DELETED, TargetOutcome.NOT_FOUND)


class TeardownReport(BaseModel):
    """
    Aggregate teardown result.

    The coordinator never raises for individual target failures; callers
    decide whether to escalate via ``raise_for_failures``.
    """

    results: list[TargetResult] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.cancelled and all(r.succeeded for r in self.results)

    @property
    def failures(self) -> list[TargetResult]:
        return [r for r in self.results if not r.succeeded]

    def outcome_for(self, kind: ResourceKind) -> list[TargetOutcome]:
        return [r.outcome for r in self.results if r.target.kind == kind]

    def raise_for_failures(self) -> None:
        if self.failures:
            raise TeardownError(
                [f"{r.target.describe()}: {r.error}" for r in self.failures]
            )

    def summary(self) -> str:
        counts = {outcome: 0 for outcome in TargetOutcome}
        for result in self.results:
            counts[result.outcome] += 1
        parts = [f"{counts[o]} {o.value}" for o in TargetOutcome]
        if self.cancelled:
            parts.append("cancelled")
        return ", ".join(parts)
