"""
Webhook server bootstrap.

Builds the kopf settings hosting the admission webhooks from
``ServerOptions`` and runs the operator until a stop signal fires.
Configuration failures (missing TLS material, invalid option combinations)
raise ``ServerBootstrapError`` and abort setup.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import kopf
from pydantic import BaseModel, Field, ValidationError

from postgres_operator.constants import ERROR_TLS_MATERIAL
from postgres_operator.errors import ServerBootstrapError
from postgres_operator.settings import Settings

logger = logging.getLogger(__name__)

CERT_FILE = "tls.crt"
KEY_FILE = "tls.key"


class ServerOptions(BaseModel):
    """Options consumed by the webhook server bootstrap."""

    bind_address: str = Field("127.0.0.1", description="Secure bind address")
    bind_port: int = Field(8443, ge=1, le=65535, description="Secure bind port")
    cert_dir: str = Field(..., description="Directory with tls.crt and tls.key")
    kubeconfig: str | None = Field(None, description="Core API kubeconfig")
    authentication_kubeconfig: str | None = Field(
        None, description="Kubeconfig for delegated authentication"
    )
    authorization_kubeconfig: str | None = Field(
        None, description="Kubeconfig for delegated authorization"
    )
    enable_rbac: bool = True
    enable_mutating_webhook: bool = True
    enable_validating_webhook: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServerOptions":
        try:
            return cls(
                bind_address=settings.bind_address,
                bind_port=settings.webhook_port,
                cert_dir=settings.cert_dir,
                kubeconfig=settings.kubeconfig,
                authentication_kubeconfig=settings.authentication_kubeconfig,
                authorization_kubeconfig=settings.authorization_kubeconfig,
                enable_rbac=settings.enable_rbac,
                enable_mutating_webhook=settings.enable_mutating_webhook,
                enable_validating_webhook=settings.enable_validating_webhook,
            )
        except ValidationError as e:
            raise ServerBootstrapError(f"Invalid server options: {e}", cause=e) from e

    @property
    def certfile(self) -> Path:
        return Path(self.cert_dir) / CERT_FILE

    @property
    def pkeyfile(self) -> Path:
        return Path(self.cert_dir) / KEY_FILE


@dataclass
class ServerConfig:
    """Validated options plus the kopf settings built from them."""

    options: ServerOptions
    operator_settings: kopf.OperatorSettings
    memo: kopf.Memo


def register_webhooks(options: ServerOptions) -> list[str]:
    """
    Import the webhook modules enabled by ``options``.

    Importing a module registers its handlers with kopf's default registry;
    kopf refuses to start with admission handlers but no admission server,
    so disabled webhooks must not be imported at all.
    """
    registered = []
    if options.enable_validating_webhook:
        from postgres_operator.webhooks import validating  # noqa: F401

        registered.append("validating")
    if options.enable_mutating_webhook:
        from postgres_operator.webhooks import mutating  # noqa: F401

        registered.append("mutating")
    return registered


def configure(options: ServerOptions) -> ServerConfig:
    """
    Validate ``options`` and build the kopf settings for the webhook server.

    Raises:
        ServerBootstrapError: TLS material is missing or the options are inconsistent
    """
    if not (options.enable_validating_webhook or options.enable_mutating_webhook):
        raise ServerBootstrapError("At least one admission webhook must be enabled")

    for path in (options.certfile, options.pkeyfile):
        if not path.is_file():
            raise ServerBootstrapError(ERROR_TLS_MATERIAL.format(path))

    for label, path in (
        ("authentication", options.authentication_kubeconfig),
        ("authorization", options.authorization_kubeconfig),
    ):
        if path and not Path(path).is_file():
            raise ServerBootstrapError(f"Remote {label} kubeconfig not found: {path}")

    operator_settings = kopf.OperatorSettings()
    operator_settings.admission.server = kopf.WebhookServer(
        addr=options.bind_address,
        port=options.bind_port,
        host=options.bind_address,
        certfile=str(options.certfile),
        pkeyfile=str(options.pkeyfile),
    )
    # Webhook configurations and APIServices are installed by the deploy
    # manifests, labelled app=kubedb, not by kopf.
    operator_settings.admission.managed = None

    logger.info(
        f"Admission webhooks configured on {options.bind_address}:{options.bind_port} "
        f"using certificates from {options.cert_dir}"
    )
    logger.info(
        f"RBAC {'enabled' if options.enable_rbac else 'disabled'}; "
        f"authentication via {options.authentication_kubeconfig or 'in-cluster config'}, "
        f"authorization via {options.authorization_kubeconfig or 'in-cluster config'}"
    )
    return ServerConfig(
        options=options, operator_settings=operator_settings, memo=kopf.Memo()
    )


def run(
    config: ServerConfig, stop_flag: asyncio.Event | threading.Event | None = None
) -> None:
    """Serve the webhooks. Blocks until ``stop_flag`` is set or kopf fails."""
    registered = register_webhooks(config.options)
    logger.info(f"Starting webhook server with handlers: {', '.join(registered)}")
    kopf.run(
        clusterwide=True,
        settings=config.operator_settings,
        memo=config.memo,
        stop_flag=stop_flag,
    )
