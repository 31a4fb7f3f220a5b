"""
Errors raised by the admission lifecycle.

Setup failures (resource type registration, webhook server bootstrap) are
fatal. A readiness timeout ends the wait but leaves the decision to the
caller, and teardown failures are only raised when a caller escalates a
report. Every error converts to the matching kopf error for use inside
handlers.
"""

import kopf


class OperatorError(Exception):
    """
    Base class for operator errors.

    Args:
        message: Human-readable description
        category: One of setup, readiness or teardown
        retryable: Whether retrying the same step can succeed
        delay: Retry delay in seconds when converted to a kopf error
        user_action: Hint appended to the message
        cause: Underlying exception
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self) -> kopf.TemporaryError | kopf.PermanentError:
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        message = super().__str__()
        if self.user_action:
            message = f"{message}\nAction required: {self.user_action}"
        return message


class ResourceTypeRegistrationError(OperatorError):
    """A CustomResourceDefinition could not be created. Aborts setup."""

    def __init__(self, name: str, message: str, cause: Exception | None = None):
        super().__init__(
            message=f"Failed to register CustomResourceDefinition '{name}': {message}",
            category="setup",
            retryable=False,
            user_action="Check apiextensions.k8s.io permissions and the CRD schema",
            cause=cause,
        )
        self.name = name


class ServerBootstrapError(OperatorError):
    """The webhook server could not be configured. Aborts setup."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=message,
            category="setup",
            retryable=False,
            user_action="Check TLS material and webhook server options",
            cause=cause,
        )


class ReadinessTimeoutError(OperatorError):
    """
    The admission APIServices did not become ready within the deadline.

    Carries the last observed blocking cause (``not_available``,
    ``marker_missing`` or ``fetch_error``) and, when the last attempt failed
    to read, the underlying error.
    """

    def __init__(
        self,
        cause: str,
        timeout: float,
        detail: str | None = None,
        last_error: Exception | None = None,
    ):
        message = f"Timed out after {timeout}s waiting for admission webhooks ({cause})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(
            message=message,
            category="readiness",
            retryable=True,
            user_action="Check the operator pod logs and APIService status conditions",
            cause=last_error,
        )
        self.reason = cause
        self.timeout = timeout
        self.detail = detail
        self.last_error = last_error


class ReadinessCancelledError(OperatorError):
    """The caller cancelled a readiness wait before it completed."""

    def __init__(self, cause: str | None = None):
        message = "Readiness wait cancelled"
        if cause:
            message = f"{message} (last cause: {cause})"
        super().__init__(message=message, category="readiness", retryable=False)
        self.reason = cause


class TeardownError(OperatorError):
    """Raised on request when a teardown report contains failed targets."""

    def __init__(self, failures: list[str]):
        super().__init__(
            message="Teardown failed for: " + "; ".join(failures),
            category="teardown",
            retryable=True,
            user_action="Delete the remaining admission objects manually",
        )
        self.failures = failures
