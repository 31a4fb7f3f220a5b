"""Shared pytest fixtures; cluster access is mocked unless a test directory overrides it."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client.rest import ApiException

from postgres_operator.constants import ADMISSION_WEBHOOK_ACTIVE_ANNOTATION


@pytest.fixture
def api_error():
    """Factory for ApiException with a given HTTP status."""

    def _make(status: int, reason: str = "") -> ApiException:
        return ApiException(status=status, reason=reason or f"HTTP {status}")

    return _make


@pytest.fixture
def cluster_context():
    """ClusterContext stand-in whose typed APIs are MagicMocks."""
    return MagicMock()


@pytest.fixture
def make_api_service():
    """Factory for APIService dicts as returned by CustomObjectsApi."""

    def _make(name: str, available: bool = True, annotated: bool = True) -> dict:
        annotations = {ADMISSION_WEBHOOK_ACTIVE_ANNOTATION: "true"} if annotated else {}
        return {
            "apiVersion": "apiregistration.k8s.io/v1",
            "kind": "APIService",
            "metadata": {
                "name": name,
                "labels": {"app": "kubedb"},
                "annotations": annotations,
            },
            "status": {
                "conditions": [
                    {
                        "type": "Available",
                        "status": "True" if available else "False",
                        "reason": "Passed" if available else "MissingEndpoints",
                    }
                ]
            },
        }

    return _make
