"""
Structured logging for the Postgres operator.

Every log line can carry a correlation ID shared by all records of one
lifecycle phase (setup, a readiness wait, a teardown), plus the structured
fields listed in ``STRUCTURED_FIELDS`` when they are passed as ``extra``.
"""

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

STRUCTURED_FIELDS = (
    "resource_kind",
    "resource_name",
    "namespace",
    "operation",
    "duration",
    "error_type",
    "outcome",
    "cause",
    "attempt",
    "selector",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
TEXT_FORMAT_WITH_ID = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"

# Loggers of libraries that are too chatty at INFO
QUIET_LOGGERS = ("kopf", "kubernetes", "urllib3", "aiohttp.access")


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    return _correlation_id.get()


def set_correlation_id(value: str) -> str:
    _correlation_id.set(value)
    return value


@contextmanager
def correlation_scope(prefix: str | None = None) -> Iterator[str]:
    """Tag every record logged inside the block with a fresh correlation ID."""
    value = new_correlation_id()
    if prefix:
        value = f"{prefix}-{value}"
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)


class CorrelationIDFilter(logging.Filter):
    """Attach the current correlation ID, minting one for untagged contexts."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or set_correlation_id(
            new_correlation_id()
        )
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }
        payload.update(
            {
                field: getattr(record, field)
                for field in STRUCTURED_FIELDS
                if getattr(record, field, None) is not None
            }
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _level(name: str, fallback: int) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), fallback)


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
    webhook_log_level: str = "WARNING",
) -> None:
    """
    Replace the root handlers with a single stream handler.

    Args:
        log_level: Root log level name
        enable_json_formatting: Emit JSON via ``StructuredFormatter`` instead of text
        correlation_id_enabled: Tag records with the current correlation ID
        webhook_log_level: Level for ``postgres_operator.webhooks``, which logs per request
    """
    handler = logging.StreamHandler()
    if enable_json_formatting:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(TEXT_FORMAT_WITH_ID if correlation_id_enabled else TEXT_FORMAT)
        )
    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(_level(log_level, logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("postgres_operator.webhooks").setLevel(
        _level(webhook_log_level, logging.WARNING)
    )


class OperatorLogger:
    """
    Logger for admission lifecycle events with structured fields.

    Keyword arguments to the level methods become ``extra`` fields, which
    ``StructuredFormatter`` emits when listed in ``STRUCTURED_FIELDS``.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_readiness_attempt(
        self, attempt: int, cause: str, detail: str | None = None
    ) -> None:
        """Log a readiness attempt that did not succeed."""
        message = f"Admission webhooks not ready (attempt {attempt}, {cause})"
        if detail:
            message = f"{message}: {detail}"
        self.info(message, operation="readiness_poll", attempt=attempt, cause=cause)

    def log_readiness_outcome(
        self, outcome: str, duration: float, cause: str | None = None
    ) -> None:
        message = f"Admission webhook readiness {outcome} after {duration:.1f}s"
        if cause:
            message = f"{message} (last cause: {cause})"
        self.logger.log(
            logging.INFO if outcome == "ready" else logging.ERROR,
            message,
            extra={
                "operation": "readiness_wait",
                "outcome": outcome,
                "duration": duration,
                "cause": cause,
            },
        )

    def log_teardown_target(
        self,
        resource_kind: str,
        description: str,
        outcome: str,
        namespace: str | None = None,
        error: Exception | None = None,
    ) -> None:
        # Teardown is best-effort, so failures are warnings
        fields = {
            "operation": "teardown",
            "resource_kind": resource_kind,
            "namespace": namespace,
            "outcome": outcome,
        }
        if error is None:
            self.info(f"Teardown of {description}: {outcome}", **fields)
        else:
            self.warning(
                f"Error in deletion of {description}: {error}",
                error_type=type(error).__name__,
                **fields,
            )

    def debug(self, message: str, **fields) -> None:
        self.logger.debug(message, extra=fields)

    def info(self, message: str, **fields) -> None:
        self.logger.info(message, extra=fields)

    def warning(self, message: str, **fields) -> None:
        self.logger.warning(message, extra=fields)

    def error(self, message: str, exc_info: bool = False, **fields) -> None:
        self.logger.error(message, exc_info=exc_info, extra=fields)
