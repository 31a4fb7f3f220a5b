"""
Typed label selectors.

Selectors are built from requirements and serialized in exactly one place,
``LabelSelector.to_string``, which produces the Kubernetes label selector
syntax accepted by list and delete-collection calls.
"""

from collections.abc import Mapping
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class SelectorOperator(StrEnum):
    """Label selector operators supported by the Kubernetes API."""

    EQUALS = "="
    NOT_EQUALS = "!="
    IN = "in"
    NOT_IN = "notin"
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"


class LabelRequirement(BaseModel):
    """A single ``key operator values`` clause."""

    model_config = {"frozen": True}

    key: str = Field(..., min_length=1, description="Label key")
    operator: SelectorOperator = Field(
        SelectorOperator.EQUALS, description="Comparison operator"
    )
    values: tuple[str, ...] = Field(default=(), description="Values to compare with")

    @model_validator(mode="after")
    def validate_values(self):
        if self.operator in (SelectorOperator.EQUALS, SelectorOperator.NOT_EQUALS):
            if len(self.values) != 1:
                raise ValueError(
                    f"operator '{self.operator}' requires exactly one value"
                )
        elif self.operator in (SelectorOperator.IN, SelectorOperator.NOT_IN):
            if not self.values:
                raise ValueError(f"operator '{self.operator}' requires values")
        elif self.values:
            raise ValueError(f"operator '{self.operator}' takes no values")
        return self

    def to_string(self) -> str:
        match self.operator:
            case SelectorOperator.EQUALS | SelectorOperator.NOT_EQUALS:
                return f"{self.key}{self.operator}{self.values[0]}"
            case SelectorOperator.IN | SelectorOperator.NOT_IN:
                return f"{self.key} {self.operator} ({','.join(self.values)})"
            case SelectorOperator.EXISTS:
                return self.key
            case SelectorOperator.DOES_NOT_EXIST:
                return f"!{self.key}"

    def matches(self, labels: Mapping[str, str]) -> bool:
        value = labels.get(self.key)
        match self.operator:
            case SelectorOperator.EQUALS:
                return value == self.values[0]
            case SelectorOperator.NOT_EQUALS:
                return value != self.values[0]
            case SelectorOperator.IN:
                return value in self.values
            case SelectorOperator.NOT_IN:
                return value not in self.values
            case SelectorOperator.EXISTS:
                return self.key in labels
            case SelectorOperator.DOES_NOT_EXIST:
                return self.key not in labels


class LabelSelector(BaseModel):
    """
    A conjunction of label requirements.

    An empty selector matches everything and serializes to an empty string.
    """

    model_config = {"frozen": True}

    requirements: tuple[LabelRequirement, ...] = Field(default=())

    @classmethod
    def from_labels(cls, labels: Mapping[str, str]) -> "LabelSelector":
        """Build an exact-match selector, e.g. ``{"app": "kubedb"}`` -> ``app=kubedb``."""
        return cls(
            requirements=tuple(
                LabelRequirement(key=key, values=(value,))
                for key, value in sorted(labels.items())
            )
        )

    def to_string(self) -> str:
        return ",".join(requirement.to_string() for requirement in self.requirements)

    def matches(self, labels: Mapping[str, str] | None) -> bool:
        labels = labels or {}
        return all(requirement.matches(labels) for requirement in self.requirements)

    def __str__(self) -> str:
        return self.to_string()
