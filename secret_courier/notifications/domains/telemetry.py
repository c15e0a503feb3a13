"""Operational telemetry for notification outcomes."""
import logging
from typing import Mapping, Optional, Protocol

from prometheus_client import Counter

from secret_courier.secrets.domains.errors import CourierError

TELEMETRY_LOGGER = "secret_courier.telemetry"

_EVENT_COUNTER = Counter(
    "secret_courier_telemetry_events_total",
    "Telemetry events recorded by the notification workflow",
    labelnames=("event",),
)
_EXCEPTION_COUNTER = Counter(
    "secret_courier_telemetry_exceptions_total",
    "Failures recorded by the notification workflow",
    labelnames=("kind",),
)


def failure_kind(error: BaseException) -> str:
    """FailureKind value for courier errors, the exception type name otherwise."""
    return error.kind.value if isinstance(error, CourierError) else type(error).__name__


class TelemetryReporter(Protocol):
    """Records successes and exceptions. Never consulted for control flow."""

    def track_event(self, name: str, properties: Optional[Mapping[str, str]] = None) -> None:
        ...

    def track_exception(self, error: BaseException, properties: Optional[Mapping[str, str]] = None) -> None:
        ...


class LoggingTelemetryReporter:
    """Emit telemetry as structured log records on a dedicated logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(TELEMETRY_LOGGER)

    def track_event(self, name: str, properties: Optional[Mapping[str, str]] = None) -> None:
        self._logger.info(
            "telemetry event %s",
            name,
            extra={"telemetry_event": name, "properties": dict(properties or {})},
        )

    def track_exception(self, error: BaseException, properties: Optional[Mapping[str, str]] = None) -> None:
        kind = failure_kind(error)
        self._logger.error(
            "telemetry exception %s: %s",
            kind,
            error,
            extra={"telemetry_event": "exception", "failure_kind": kind, "properties": dict(properties or {})},
        )


class PrometheusTelemetryReporter(LoggingTelemetryReporter):
    """Count events and failures in Prometheus, keeping the structured log records.

    Counters live in the default registry and are served by ``GET /metrics``.
    Properties carry secret names and addresses, so they stay out of labels.
    """

    def track_event(self, name: str, properties: Optional[Mapping[str, str]] = None) -> None:
        _EVENT_COUNTER.labels(name).inc()
        super().track_event(name, properties)

    def track_exception(self, error: BaseException, properties: Optional[Mapping[str, str]] = None) -> None:
        _EXCEPTION_COUNTER.labels(failure_kind(error)).inc()
        super().track_exception(error, properties)
