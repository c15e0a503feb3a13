import logging

import pytest
from prometheus_client import REGISTRY

from secret_courier.notifications.domains.telemetry import (
    TELEMETRY_LOGGER,
    LoggingTelemetryReporter,
    PrometheusTelemetryReporter,
)
from secret_courier.notifications.workflows.secret_created import SUCCESS_EVENT, build_handler
from secret_courier.secrets.domains.errors import MissingRecipient
from secret_courier.secrets.workflows.secret_operations import SecretMetadataResolver

EVENTS_METRIC = "secret_courier_telemetry_events_total"
EXCEPTIONS_METRIC = "secret_courier_telemetry_exceptions_total"


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_track_event_logs_properties(caplog):
    caplog.set_level(logging.INFO, logger=TELEMETRY_LOGGER)

    LoggingTelemetryReporter().track_event("SecretNotificationSent", {"secretName": "db-password"})

    record = caplog.records[-1]
    assert record.telemetry_event == "SecretNotificationSent"
    assert record.properties == {"secretName": "db-password"}


def test_track_exception_logs_failure_kind(caplog):
    caplog.set_level(logging.INFO, logger=TELEMETRY_LOGGER)

    LoggingTelemetryReporter().track_exception(
        MissingRecipient("Recipient email is missing in metadata."), {"secretName": "db-password"}
    )

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert record.failure_kind == "MissingRecipient"


def test_track_exception_for_unexpected_error(caplog):
    caplog.set_level(logging.INFO, logger=TELEMETRY_LOGGER)

    LoggingTelemetryReporter().track_exception(RuntimeError("boom"))

    assert caplog.records[-1].failure_kind == "RuntimeError"


class TestPrometheusTelemetryReporter:
    """Test suite for Prometheus-backed telemetry."""

    @pytest.fixture
    def default_handler(self, courier_config, store, dispatcher):
        return build_handler(courier_config, SecretMetadataResolver(store), dispatcher=dispatcher)

    def test_build_handler_defaults_to_prometheus(self, default_handler):
        assert isinstance(default_handler._telemetry, PrometheusTelemetryReporter)

    def test_success_increments_event_counter(self, default_handler, dispatcher):
        before = sample(EVENTS_METRIC, event=SUCCESS_EVENT)

        outcome = default_handler.handle({"data": {"objectName": "db-password"}})

        assert outcome.delivered
        assert len(dispatcher.sent) == 1
        assert sample(EVENTS_METRIC, event=SUCCESS_EVENT) == before + 1

    def test_missing_recipient_increments_exception_counter(self, default_handler):
        before = sample(EXCEPTIONS_METRIC, kind="MissingRecipient")
        events_before = sample(EVENTS_METRIC, event=SUCCESS_EVENT)

        outcome = default_handler.handle({"data": {"objectName": "no-recipient"}})

        assert not outcome.delivered
        assert sample(EXCEPTIONS_METRIC, kind="MissingRecipient") == before + 1
        assert sample(EVENTS_METRIC, event=SUCCESS_EVENT) == events_before

    def test_unexpected_error_labelled_by_type_name(self):
        before = sample(EXCEPTIONS_METRIC, kind="RuntimeError")

        PrometheusTelemetryReporter().track_exception(RuntimeError("boom"))

        assert sample(EXCEPTIONS_METRIC, kind="RuntimeError") == before + 1

    def test_still_logs_structured_record(self, caplog):
        caplog.set_level(logging.INFO, logger=TELEMETRY_LOGGER)

        PrometheusTelemetryReporter().track_event(SUCCESS_EVENT, {"secretName": "db-password"})

        assert caplog.records[-1].telemetry_event == SUCCESS_EVENT
