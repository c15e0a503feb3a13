"""Shared fakes and fixtures for secret-courier tests."""
from typing import Dict, List, Optional, Tuple

import pytest

from secret_courier.notifications.domains.artifacts import RetrievalArtifactBuilder
from secret_courier.notifications.workflows.secret_created import SecretCreatedHandler
from secret_courier.secrets.domains.config_loader import (
    CourierConfig,
    NotificationConfig,
    SecretStoreConfig,
)
from secret_courier.secrets.domains.errors import NotFound, Unavailable
from secret_courier.secrets.domains.models import SecretRecord
from secret_courier.secrets.workflows.secret_operations import SecretMetadataResolver

BASE_URL = "https://courier.example.com/retrieve"


class FakeSecretStore:
    """In-memory store recording every lookup."""

    def __init__(self, records: Optional[Dict[str, SecretRecord]] = None, unavailable: bool = False):
        self.records = dict(records or {})
        self.unavailable = unavailable
        self.calls: List[str] = []

    def add(self, identifier: str, value: str, metadata: Optional[Dict[str, str]] = None) -> None:
        self.records[identifier] = SecretRecord(identifier=identifier, value=value, metadata=metadata or {})

    def get_secret(self, identifier: str) -> SecretRecord:
        self.calls.append(identifier)
        if self.unavailable:
            raise Unavailable(f"Secret store unavailable for '{identifier}'", secret_name=identifier)
        if identifier not in self.records:
            raise NotFound(f"Secret '{identifier}' not found", secret_name=identifier)
        return self.records[identifier]


class RecordingDispatcher:
    """Dispatcher stand-in that remembers what it would have sent."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: List[Tuple[str, object]] = []

    def send(self, recipient, artifact) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((recipient, artifact))


class RecordingTelemetry:
    def __init__(self):
        self.events: List[Tuple[str, dict]] = []
        self.exceptions: List[Tuple[BaseException, dict]] = []

    def track_event(self, name, properties=None) -> None:
        self.events.append((name, dict(properties or {})))

    def track_exception(self, error, properties=None) -> None:
        self.exceptions.append((error, dict(properties or {})))


@pytest.fixture
def courier_config():
    return CourierConfig(
        secret_store=SecretStoreConfig(project_id="test-project"),
        retrieval_url=BASE_URL,
        notification=NotificationConfig(sender="courier@example.com", password="app-password"),
    )


@pytest.fixture
def store():
    fake = FakeSecretStore()
    fake.add("db-password", "s3cr3t-value", {"recipientEmail": "alice@example.com", "team": "data"})
    fake.add("no-metadata", "value-without-metadata", {})
    fake.add("no-recipient", "value-without-recipient", {"team": "data"})
    return fake


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def handler(store, dispatcher, telemetry):
    return SecretCreatedHandler(
        resolver=SecretMetadataResolver(store),
        builder=RetrievalArtifactBuilder(),
        dispatcher=dispatcher,
        telemetry=telemetry,
        retrieval_url=BASE_URL,
    )
