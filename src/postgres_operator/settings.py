"""Operator settings read from environment variables (and an optional .env).

Each field names its variable through ``validation_alias``. Defaults match a
stock KubeDB install in kube-system.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from postgres_operator.constants import (
    APP_LABEL_KEY,
    APP_LABEL_VALUE,
    DEFAULT_READINESS_POLL_INTERVAL,
    DEFAULT_READINESS_SETTLE_DELAY,
    DEFAULT_READINESS_TIMEOUT,
    DEFAULT_TEARDOWN_GRACE,
    OPERATOR_NAMESPACE,
    OPERATOR_SERVICE_NAME,
)


class Settings(BaseSettings):
    """Environment-driven operator configuration."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Operator identification
    operator_namespace: str = Field(
        default=OPERATOR_NAMESPACE,
        description="Namespace where the operator service and endpoints live",
        validation_alias="OPERATOR_NAMESPACE",
    )
    operator_service_name: str = Field(
        default=OPERATOR_SERVICE_NAME,
        description="Name of the service backing the aggregated APIServices",
        validation_alias="OPERATOR_SERVICE_NAME",
    )
    app_label_key: str = Field(
        default=APP_LABEL_KEY,
        description="Label key shared by all admission-related objects",
        validation_alias="APP_LABEL_KEY",
    )
    app_label_value: str = Field(
        default=APP_LABEL_VALUE,
        description="Label value shared by all admission-related objects",
        validation_alias="APP_LABEL",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root log level name",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Emit one JSON object per log record",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Tag log records with the lifecycle phase correlation ID",
    )
    webhook_log_level: str = Field(
        default="WARNING",
        validation_alias="WEBHOOK_LOG_LEVEL",
        description="Log level for admission webhook handlers",
    )

    # Readiness gating
    readiness_timeout_seconds: float = Field(
        default=DEFAULT_READINESS_TIMEOUT,
        validation_alias="READINESS_TIMEOUT_SECONDS",
        description="Wall-clock budget for the webhook APIServices to become ready",
    )
    readiness_poll_interval_seconds: float = Field(
        default=DEFAULT_READINESS_POLL_INTERVAL,
        validation_alias="READINESS_POLL_INTERVAL_SECONDS",
        description="Delay between readiness polls",
    )
    readiness_settle_delay_seconds: float = Field(
        default=DEFAULT_READINESS_SETTLE_DELAY,
        validation_alias="READINESS_SETTLE_DELAY_SECONDS",
        description="Pause after all APIServices report Available, before the annotation check",
    )

    # Teardown
    teardown_grace_seconds: float = Field(
        default=DEFAULT_TEARDOWN_GRACE,
        validation_alias="TEARDOWN_GRACE_SECONDS",
        description="Pause after teardown so the API server caches converge",
    )

    # Webhook server
    bind_address: str = Field(
        default="127.0.0.1",
        validation_alias="BIND_ADDRESS",
        description="Address the secure webhook server binds to",
    )
    webhook_port: int = Field(
        default=8443,
        validation_alias="WEBHOOK_PORT",
        description="Secure port of the admission webhook server",
    )
    cert_dir: str = Field(
        default="/tmp/k8s-webhook-server/serving-certs",
        validation_alias="CERT_DIR",
        description="Directory holding tls.crt and tls.key for the webhook server",
    )
    kubeconfig: str | None = Field(
        default=None,
        validation_alias="KUBECONFIG",
        description="Path to kubeconfig (in-cluster config is tried first)",
    )
    authentication_kubeconfig: str | None = Field(
        default=None,
        validation_alias="AUTHENTICATION_KUBECONFIG",
        description="Kubeconfig used for delegated authentication",
    )
    authorization_kubeconfig: str | None = Field(
        default=None,
        validation_alias="AUTHORIZATION_KUBECONFIG",
        description="Kubeconfig used for delegated authorization",
    )
    enable_rbac: bool = Field(
        default=True,
        validation_alias="ENABLE_RBAC",
        description="Enable RBAC for the managed database workloads",
    )
    enable_mutating_webhook: bool = Field(
        default=True,
        validation_alias="ENABLE_MUTATING_WEBHOOK",
        description="Serve the mutating admission webhook",
    )
    enable_validating_webhook: bool = Field(
        default=True,
        validation_alias="ENABLE_VALIDATING_WEBHOOK",
        description="Serve the validating admission webhook",
    )

    # Metrics and observability
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port serving /metrics, /ready and /healthz",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Bind address of the metrics endpoint",
    )

    @property
    def app_selector(self) -> dict[str, str]:
        """Label mapping selecting every admission-related object."""
        return {self.app_label_key: self.app_label_value}


# Read once at import; tests build their own Settings()
settings = Settings()
