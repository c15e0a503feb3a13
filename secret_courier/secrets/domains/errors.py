"""Failure taxonomy shared by the notification and retrieval paths."""
from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Named failure kinds reported to telemetry and logs."""

    INVALID_EVENT = "InvalidEvent"
    NOT_FOUND = "NotFound"
    MISSING_METADATA = "MissingMetadata"
    MISSING_RECIPIENT = "MissingRecipient"
    ENCODING_ERROR = "EncodingError"
    DISPATCH_ERROR = "DispatchError"
    UNAVAILABLE = "Unavailable"
    UNAUTHORIZED = "Unauthorized"
    BAD_REQUEST = "BadRequest"


class CourierError(Exception):
    """Base class for every failure scoped to a single invocation."""

    kind: FailureKind

    def __init__(self, message: str, secret_name: Optional[str] = None):
        super().__init__(message)
        self.secret_name = secret_name


class InvalidEvent(CourierError):
    """Inbound event does not carry a usable secret identifier."""
    kind = FailureKind.INVALID_EVENT


class NotFound(CourierError):
    """Secret store has no secret with the requested identifier."""
    kind = FailureKind.NOT_FOUND


class MissingMetadata(CourierError):
    """Secret exists but carries no metadata at all."""
    kind = FailureKind.MISSING_METADATA


class MissingRecipient(CourierError):
    """Secret metadata has no usable recipientEmail entry."""
    kind = FailureKind.MISSING_RECIPIENT


class EncodingError(CourierError):
    """Retrieval link could not be built or QR-encoded."""
    kind = FailureKind.ENCODING_ERROR


class DispatchError(CourierError):
    """Notification transport rejected or failed to send the message."""
    kind = FailureKind.DISPATCH_ERROR


class Unavailable(CourierError):
    """Secret store or transport infrastructure could not be reached."""
    kind = FailureKind.UNAVAILABLE


class Unauthorized(CourierError):
    """Credentials were rejected by the secret store."""
    kind = FailureKind.UNAUTHORIZED


class BadRequest(CourierError):
    """Retrieval submission is malformed or incomplete."""
    kind = FailureKind.BAD_REQUEST
