"""GCP Secret Manager client wrapper."""
import logging
from typing import Dict, Optional, Protocol

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .config_loader import SecretStoreConfig
from .errors import NotFound, Unauthorized, Unavailable
from .models import SecretRecord

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Read-only view of a secret store."""

    def get_secret(self, identifier: str) -> SecretRecord:
        """Return the secret, raising NotFound, Unauthorized or Unavailable."""


class GCPSecretStore:
    """Reads secret values and metadata from GCP Secret Manager.

    Metadata is the secret's labels merged with its annotations. Label keys
    must be lowercase, so mixed-case keys such as ``recipientEmail`` are kept
    in annotations, which take precedence on conflicts.
    """

    def __init__(
        self,
        project_id: str,
        endpoint: Optional[str] = None,
        service_account_path: Optional[str] = None,
        client: Optional[secretmanager.SecretManagerServiceClient] = None,
    ):
        self.project_id = project_id
        self.endpoint = endpoint
        self.service_account_path = service_account_path
        self._client = client

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            client_options = {"api_endpoint": self.endpoint} if self.endpoint else None
            if self.service_account_path:
                self._client = secretmanager.SecretManagerServiceClient.from_service_account_file(
                    self.service_account_path, client_options=client_options
                )
            else:
                self._client = secretmanager.SecretManagerServiceClient(client_options=client_options)
        return self._client

    def secret_path(self, identifier: str) -> str:
        return f"projects/{self.project_id}/secrets/{identifier}"

    def get_secret(self, identifier: str) -> SecretRecord:
        """
        Fetch the latest secret version together with its metadata.

        Args:
            identifier: Secret name within the configured project

        Returns:
            SecretRecord with value and metadata as stored

        Raises:
            NotFound: If the secret or its latest version does not exist
            Unauthorized: If credentials are missing or rejected
            Unavailable: If Secret Manager cannot be reached
        """
        name = self.secret_path(identifier)
        try:
            secret = self.client.get_secret(request={"name": name})
            response = self.client.access_secret_version(request={"name": f"{name}/versions/latest"})
        except google_exceptions.NotFound as e:
            raise NotFound(f"Secret '{identifier}' not found", secret_name=identifier) from e
        except (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated) as e:
            logger.warning(f"Secret Manager denied access to {identifier}: {e}")
            raise Unauthorized(f"Access to secret '{identifier}' denied", secret_name=identifier) from e
        except auth_exceptions.GoogleAuthError as e:
            logger.warning(f"No usable GCP credentials: {e}")
            raise Unauthorized("GCP credentials unavailable", secret_name=identifier) from e
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.warning(f"Secret Manager call failed for {identifier}: {e}")
            raise Unavailable(f"Secret store unavailable for '{identifier}'", secret_name=identifier) from e

        metadata: Dict[str, str] = dict(secret.labels or {})
        metadata.update(dict(secret.annotations or {}))
        return SecretRecord(
            identifier=identifier,
            value=response.payload.data.decode("UTF-8"),
            metadata=metadata,
        )

    @classmethod
    def from_config(cls, config: SecretStoreConfig) -> "GCPSecretStore":
        return cls(
            project_id=config.project_id,
            endpoint=config.endpoint,
            service_account_path=config.service_account_path,
        )
