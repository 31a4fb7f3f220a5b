"""
Kubernetes utilities for the Postgres operator.

This module provides the cluster access context handed to every component,
plus small helpers for API error classification and delete options.

Key functionality:
- In-cluster / kubeconfig client loading
- A context object holding every typed API used by the operator
- Foreground deletion options and not-found / conflict detection
"""

import logging
from functools import cached_property

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from postgres_operator.constants import PROPAGATION_FOREGROUND

logger = logging.getLogger(__name__)


def get_kubernetes_client(kubeconfig: str | None = None) -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    In-cluster configuration is tried first, then the given kubeconfig (or
    the default kubeconfig location).

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config(config_file=kubeconfig)
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


class ClusterContext:
    """
    Cluster access handles shared by the admission lifecycle components.

    Components receive a context in their constructor instead of creating
    API clients themselves, so tests can hand in mocks.
    """

    def __init__(self, api_client: client.ApiClient):
        self.api_client = api_client

    @classmethod
    def from_kubeconfig(cls, kubeconfig: str | None = None) -> "ClusterContext":
        return cls(get_kubernetes_client(kubeconfig))

    @cached_property
    def core_v1(self) -> client.CoreV1Api:
        return client.CoreV1Api(self.api_client)

    @cached_property
    def admissionregistration_v1(self) -> client.AdmissionregistrationV1Api:
        return client.AdmissionregistrationV1Api(self.api_client)

    @cached_property
    def apiextensions_v1(self) -> client.ApiextensionsV1Api:
        return client.ApiextensionsV1Api(self.api_client)

    @cached_property
    def custom_objects(self) -> client.CustomObjectsApi:
        return client.CustomObjectsApi(self.api_client)


def foreground_delete_options() -> client.V1DeleteOptions:
    """Delete options removing dependents before the owner."""
    return client.V1DeleteOptions(propagation_policy=PROPAGATION_FOREGROUND)


def is_not_found(error: Exception) -> bool:
    return isinstance(error, ApiException) and error.status == 404


def is_already_exists(error: Exception) -> bool:
    return isinstance(error, ApiException) and error.status == 409


def describe_api_error(error: Exception) -> str:
    """Short one-line description of an API error for reports."""
    if isinstance(error, ApiException):
        return f"HTTP {error.status}: {error.reason}"
    return f"{type(error).__name__}: {error}"
