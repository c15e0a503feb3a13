"""Workflow triggered when a secret is created in the store."""
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from secret_courier.notifications.domains.artifacts import RetrievalArtifactBuilder
from secret_courier.notifications.domains.mailer import NotificationDispatcher
from secret_courier.notifications.domains.telemetry import PrometheusTelemetryReporter, TelemetryReporter
from secret_courier.rendering import TemplateRenderer
from secret_courier.secrets.domains.config_loader import CourierConfig
from secret_courier.secrets.domains.errors import CourierError, FailureKind, InvalidEvent
from secret_courier.secrets.domains.models import NotificationEvent, Result
from secret_courier.secrets.workflows.secret_operations import SecretMetadataResolver

logger = logging.getLogger(__name__)

SUCCESS_EVENT = "SecretNotificationSent"


@dataclass(frozen=True)
class IngestionOutcome:
    """What happened to one event. Informational only: the transport sees completion."""
    secret_name: Optional[str]
    delivered: bool
    failure: Optional[FailureKind] = None
    detail: str = ""


def extract_event(payload: Any) -> Result[NotificationEvent]:
    """Pull ``data.objectName`` out of a raw event; nothing else is interpreted."""
    if not isinstance(payload, Mapping):
        return Result.failure(InvalidEvent("Event payload must be a JSON object"))
    data = payload.get("data")
    if not isinstance(data, Mapping):
        return Result.failure(InvalidEvent("Event has no 'data' object"))
    object_name = data.get("objectName")
    if not isinstance(object_name, str) or not object_name:
        return Result.failure(InvalidEvent("Event 'data.objectName' must be a non-empty string"))
    return Result.success(NotificationEvent(object_name=object_name, payload=dict(payload)))


class SecretCreatedHandler:
    """Resolve the secret, build its retrieval artifact and notify the recipient.

    Every failure is logged and recorded once in telemetry; nothing is raised
    to the caller.
    """

    def __init__(
        self,
        resolver: SecretMetadataResolver,
        builder: RetrievalArtifactBuilder,
        dispatcher: NotificationDispatcher,
        telemetry: TelemetryReporter,
        retrieval_url: str,
    ):
        self._resolver = resolver
        self._builder = builder
        self._dispatcher = dispatcher
        self._telemetry = telemetry
        self._retrieval_url = retrieval_url

    def handle(self, payload: Any) -> IngestionOutcome:
        try:
            return self._process(payload)
        except CourierError as e:
            return self._fail(e, e.secret_name)
        except Exception as e:
            logger.exception("Unexpected error processing secret-created event")
            return self._fail(e, None)

    def _process(self, payload: Any) -> IngestionOutcome:
        event = extract_event(payload)
        if not event.ok:
            return self._fail(event.error, None)

        secret_name = event.value.object_name
        logger.info(f"Event received for secret {secret_name}")

        resolved = self._resolver.resolve(secret_name)
        if not resolved.ok:
            return self._fail(resolved.error, secret_name)

        recipient = self._resolver.recipient_for(resolved.value)
        if not recipient.ok:
            return self._fail(recipient.error, secret_name)

        artifact = self._builder.build(secret_name, self._retrieval_url)
        if not artifact.ok:
            return self._fail(artifact.error, secret_name)

        self._dispatcher.send(recipient.value, artifact.value)

        self._report_event(SUCCESS_EVENT, {"secretName": secret_name, "recipientEmail": recipient.value})
        logger.info("Notification sent successfully.")
        return IngestionOutcome(secret_name=secret_name, delivered=True)

    def _fail(self, error: BaseException, secret_name: Optional[str]) -> IngestionOutcome:
        kind = error.kind if isinstance(error, CourierError) else None
        logger.error(f"Error processing event: {error}")
        properties = {"secretName": secret_name} if secret_name else {}
        try:
            self._telemetry.track_exception(error, properties)
        except Exception:
            logger.exception("Telemetry reporter failed to record exception")
        return IngestionOutcome(
            secret_name=secret_name,
            delivered=False,
            failure=kind,
            detail=str(error) or type(error).__name__,
        )

    def _report_event(self, name: str, properties: Mapping[str, str]) -> None:
        try:
            self._telemetry.track_event(name, properties)
        except Exception:
            logger.exception(f"Telemetry reporter failed to record {name}")


def build_handler(
    config: CourierConfig,
    resolver: SecretMetadataResolver,
    dispatcher: Optional[NotificationDispatcher] = None,
    telemetry: Optional[TelemetryReporter] = None,
    renderer: Optional[TemplateRenderer] = None,
) -> SecretCreatedHandler:
    """Wire a handler from configuration, defaulting to SMTP and Prometheus telemetry."""
    return SecretCreatedHandler(
        resolver=resolver,
        builder=RetrievalArtifactBuilder(),
        dispatcher=dispatcher or NotificationDispatcher(config.notification, renderer),
        telemetry=telemetry or PrometheusTelemetryReporter(),
        retrieval_url=config.retrieval_url,
    )
