"""
Pydantic models for the KubeDB Postgres and PostgresVersion resources.

These models back the admission webhooks: the validating webhook parses
incoming specs with them and the mutating webhook uses their defaults.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from postgres_operator.constants import (
    DEFAULT_STANDBY_MODE,
    DEFAULT_STORAGE_TYPE,
    DEFAULT_STREAMING_MODE,
    DEFAULT_TERMINATION_POLICY,
)

StorageType = Literal["Durable", "Ephemeral"]
TerminationPolicy = Literal["Pause", "Delete", "WipeOut", "DoNotTerminate"]
StandbyMode = Literal["Hot", "Warm"]
StreamingMode = Literal["Synchronous", "Asynchronous"]


class ImageRef(BaseModel):
    image: str = Field(..., min_length=1, description="Container image")


class PostgresVersionSpec(BaseModel):
    """Catalog entry describing one supported Postgres version."""

    model_config = {"populate_by_name": True}

    version: str = Field(..., min_length=1, description="Postgres version")
    deprecated: bool = Field(False, description="Whether the version is deprecated")
    db: ImageRef = Field(..., description="Database image")
    exporter: ImageRef = Field(..., description="Prometheus exporter image")
    tools: ImageRef = Field(..., description="Backup/restore tools image")


class SecretRef(BaseModel):
    model_config = {"populate_by_name": True}

    secret_name: str = Field(..., alias="secretName")


class LeaderElectionConfig(BaseModel):
    model_config = {"populate_by_name": True}

    lease_duration_seconds: int = Field(15, alias="leaseDurationSeconds", ge=1)
    renew_deadline_seconds: int = Field(10, alias="renewDeadlineSeconds", ge=1)
    retry_period_seconds: int = Field(2, alias="retryPeriodSeconds", ge=1)

    @model_validator(mode="after")
    def validate_timings(self):
        if self.lease_duration_seconds <= self.renew_deadline_seconds:
            raise ValueError("leaseDurationSeconds must be greater than renewDeadlineSeconds")
        if self.renew_deadline_seconds <= self.retry_period_seconds:
            raise ValueError("renewDeadlineSeconds must be greater than retryPeriodSeconds")
        return self


class PostgresSpec(BaseModel):
    """Specification of a Postgres database managed by KubeDB."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    version: str = Field(..., min_length=1, description="Referenced PostgresVersion name")
    replicas: int = Field(1, ge=1, description="Number of Postgres instances")
    standby_mode: StandbyMode = Field(DEFAULT_STANDBY_MODE, alias="standbyMode")
    streaming_mode: StreamingMode = Field(DEFAULT_STREAMING_MODE, alias="streamingMode")
    storage_type: StorageType = Field(DEFAULT_STORAGE_TYPE, alias="storageType")
    storage: dict[str, Any] | None = Field(
        None, description="PersistentVolumeClaim spec for Durable storage"
    )
    database_secret: SecretRef | None = Field(None, alias="databaseSecret")
    leader_election: LeaderElectionConfig | None = Field(None, alias="leaderElection")
    init: dict[str, Any] | None = Field(None, description="Initialization source")
    termination_policy: TerminationPolicy = Field(
        DEFAULT_TERMINATION_POLICY, alias="terminationPolicy"
    )

    @field_validator("storage")
    @classmethod
    def validate_storage(cls, v):
        if v is not None and not v.get("resources", {}).get("requests", {}).get("storage"):
            raise ValueError("storage.resources.requests.storage is required")
        return v

    @model_validator(mode="after")
    def validate_storage_type(self):
        if self.storage_type == "Durable" and self.storage is None:
            raise ValueError("storage is required when storageType is Durable")
        if self.storage_type == "Ephemeral" and self.termination_policy == "Pause":
            raise ValueError("terminationPolicy Pause is not supported for Ephemeral storage")
        return self
