"""
CustomResourceDefinition descriptors.

A ``ResourceTypeDefinition`` is the declarative description of one custom
resource type; ``to_body`` renders the ``apiextensions.k8s.io/v1`` manifest
submitted by the registrar.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from postgres_operator.constants import (
    CATALOG_GROUP,
    KUBEDB_GROUP,
    KUBEDB_VERSION,
    POSTGRES_KIND,
    POSTGRES_PLURAL,
    POSTGRES_SINGULAR,
    POSTGRES_VERSION_KIND,
    POSTGRES_VERSION_PLURAL,
    POSTGRES_VERSION_SINGULAR,
)

OPEN_OBJECT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "x-kubernetes-preserve-unknown-fields": True,
}


class ResourceTypeDefinition(BaseModel):
    """Group/version/kind plus schema of one custom resource type."""

    model_config = {"frozen": True}

    group: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    kind: str = Field(..., min_length=1)
    plural: str = Field(..., min_length=1)
    singular: str = Field(..., min_length=1)
    scope: Literal["Namespaced", "Cluster"] = "Namespaced"
    short_names: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    labels: tuple[tuple[str, str], ...] = ()
    schema_: dict[str, Any] = Field(
        default_factory=lambda: {
            "type": "object",
            "properties": {"spec": OPEN_OBJECT_SCHEMA, "status": OPEN_OBJECT_SCHEMA},
        },
        alias="schema",
    )
    printer_columns: tuple[dict[str, Any], ...] = ()

    @property
    def name(self) -> str:
        return f"{self.plural}.{self.group}"

    def to_body(self) -> dict[str, Any]:
        names: dict[str, Any] = {
            "kind": self.kind,
            "listKind": f"{self.kind}List",
            "plural": self.plural,
            "singular": self.singular,
        }
        if self.short_names:
            names["shortNames"] = list(self.short_names)
        if self.categories:
            names["categories"] = list(self.categories)

        version: dict[str, Any] = {
            "name": self.version,
            "served": True,
            "storage": True,
            "schema": {"openAPIV3Schema": self.schema_},
            "subresources": {"status": {}},
        }
        if self.printer_columns:
            version["additionalPrinterColumns"] = list(self.printer_columns)

        return {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": self.name, "labels": dict(self.labels)},
            "spec": {
                "group": self.group,
                "scope": self.scope,
                "names": names,
                "versions": [version],
            },
        }


def postgres_version_definition() -> ResourceTypeDefinition:
    """Catalog type listing the Postgres versions the operator can run."""
    return ResourceTypeDefinition(
        group=CATALOG_GROUP,
        version=KUBEDB_VERSION,
        kind=POSTGRES_VERSION_KIND,
        plural=POSTGRES_VERSION_PLURAL,
        singular=POSTGRES_VERSION_SINGULAR,
        scope="Cluster",
        short_names=("pgversion",),
        categories=("datastore", "kubedb", "appscode"),
        labels=(("app", "kubedb"),),
        printer_columns=(
            {"name": "Version", "type": "string", "jsonPath": ".spec.version"},
            {"name": "DB_IMAGE", "type": "string", "jsonPath": ".spec.db.image"},
            {"name": "Deprecated", "type": "boolean", "jsonPath": ".spec.deprecated"},
            {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
        ),
    )


def postgres_definition() -> ResourceTypeDefinition:
    return ResourceTypeDefinition(
        group=KUBEDB_GROUP,
        version=KUBEDB_VERSION,
        kind=POSTGRES_KIND,
        plural=POSTGRES_PLURAL,
        singular=POSTGRES_SINGULAR,
        short_names=("pg",),
        categories=("datastore", "kubedb", "appscode", "all"),
        labels=(("app", "kubedb"),),
        printer_columns=(
            {"name": "Version", "type": "string", "jsonPath": ".spec.version"},
            {"name": "Status", "type": "string", "jsonPath": ".status.phase"},
            {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
        ),
    )


def default_resource_types() -> list[ResourceTypeDefinition]:
    """Definitions that must exist before the operator starts watching."""
    return [postgres_version_definition(), postgres_definition()]
