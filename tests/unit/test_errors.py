"""Unit tests for the operator error hierarchy."""

import kopf

from postgres_operator.errors import (
    ReadinessCancelledError,
    ReadinessTimeoutError,
    ResourceTypeRegistrationError,
    TeardownError,
)


def test_timeout_carries_cause_and_detail():
    cause = RuntimeError("connection refused")

    error = ReadinessTimeoutError(
        "fetch_error", timeout=120, detail="failed to read APIService", last_error=cause
    )

    assert error.reason == "fetch_error"
    assert error.last_error is cause
    assert error.cause is cause
    assert "Timed out after 120s" in str(error)
    assert "failed to read APIService" in str(error)
    assert "Action required" in str(error)


def test_retryable_errors_become_temporary():
    kopf_error = TeardownError(["APIService [app=kubedb]: HTTP 500"]).as_kopf_error()

    assert isinstance(kopf_error, kopf.TemporaryError)


def test_setup_errors_become_permanent():
    error = ResourceTypeRegistrationError("postgreses.kubedb.com", "HTTP 403: Forbidden")

    assert isinstance(error.as_kopf_error(), kopf.PermanentError)
    assert "postgreses.kubedb.com" in str(error)


def test_cancelled_without_cause():
    error = ReadinessCancelledError()

    assert error.reason is None
    assert str(error) == "Readiness wait cancelled"
