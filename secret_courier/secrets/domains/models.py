"""Domain models for secret notification and retrieval."""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar

from .errors import CourierError, FailureKind

T = TypeVar("T")

RECIPIENT_METADATA_KEY = "recipientEmail"


@dataclass(frozen=True)
class SecretRecord:
    """A secret as read from the store. The value is never part of repr()."""
    identifier: str
    value: str = field(repr=False)
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationEvent:
    """Secret-created event after identifier extraction."""
    object_name: str
    payload: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class RetrievalArtifact:
    """Retrieval link and the QR code (PNG data URI) encoding that same link."""
    identifier: str
    link: str
    qr_code: str = field(repr=False)


@dataclass(frozen=True)
class RetrievalRequest:
    """Secret name submitted through the retrieval form."""
    secret_name: str


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a named failure; callers check ``ok`` explicitly."""
    value: Optional[T] = None
    error: Optional[CourierError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CourierError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[FailureKind]:
        return self.error.kind if self.error is not None else None
