"""
Pytest configuration and fixtures for integration tests.

These tests run against a real Kubernetes cluster reachable through the
in-cluster configuration or the local kubeconfig. They are skipped when no
cluster is reachable.
"""

import uuid

import pytest
from kubernetes import client, config

from postgres_operator.models.selector import LabelSelector
from postgres_operator.utils.kubernetes import ClusterContext


@pytest.fixture(scope="session")
def kube_config():
    """Load Kubernetes configuration, skipping the session without a cluster."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        try:
            config.load_kube_config()
        except (config.ConfigException, FileNotFoundError) as e:
            pytest.skip(f"No Kubernetes cluster configured: {e}")

    configuration = client.Configuration.get_default_copy()
    try:
        client.VersionApi(client.ApiClient(configuration)).get_code()
    except Exception as e:
        pytest.skip(f"Kubernetes cluster not reachable: {e}")
    return configuration


@pytest.fixture(scope="session")
def cluster_context(kube_config) -> ClusterContext:
    return ClusterContext(client.ApiClient(kube_config))


@pytest.fixture
def unique_selector() -> LabelSelector:
    """Selector matching nothing that exists, so teardown never touches real objects."""
    return LabelSelector.from_labels({"app": f"kubedb-test-{uuid.uuid4().hex[:8]}"})
