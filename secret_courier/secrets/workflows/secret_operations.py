"""Workflow for resolving secrets and their recipient metadata."""
import logging

from ..domains.errors import BadRequest, MissingMetadata, MissingRecipient, NotFound
from ..domains.gcp_client import SecretStore
from ..domains.models import RECIPIENT_METADATA_KEY, Result, SecretRecord

logger = logging.getLogger(__name__)


class SecretMetadataResolver:
    """Fetch secrets from an injected store and check recipient metadata."""

    def __init__(self, store: SecretStore):
        self._store = store

    def resolve(self, identifier: str) -> Result[SecretRecord]:
        """
        Fetch a secret's value and metadata.

        Args:
            identifier: Name of the secret to fetch

        Returns:
            Result holding the SecretRecord, or a BadRequest / NotFound failure

        Behavior:
            - Empty identifiers fail without calling the store
            - Metadata is returned exactly as stored, never interpreted here
            - Unauthorized and Unavailable propagate to the caller
        """
        if not identifier:
            return Result.failure(BadRequest("Secret identifier must not be empty"))

        try:
            record = self._store.get_secret(identifier)
        except NotFound as e:
            logger.info(f"Secret {identifier} not found in store")
            return Result.failure(e)

        logger.debug(f"Resolved secret {identifier} with {len(record.metadata)} metadata entries")
        return Result.success(record)

    @staticmethod
    def recipient_for(record: SecretRecord) -> Result[str]:
        """Return the recipient address stored in the secret's metadata."""
        if not record.metadata:
            return Result.failure(
                MissingMetadata("Metadata is missing for the secret.", secret_name=record.identifier)
            )

        recipient = record.metadata.get(RECIPIENT_METADATA_KEY)
        if not isinstance(recipient, str) or not recipient.strip():
            return Result.failure(
                MissingRecipient("Recipient email is missing in metadata.", secret_name=record.identifier)
            )
        return Result.success(recipient.strip())
