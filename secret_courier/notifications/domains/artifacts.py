"""Retrieval link and QR code construction."""
import base64
import io
import logging
from urllib.parse import urlparse

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError
from qrcode.image.pil import PilImage

from secret_courier.secrets.domains.errors import EncodingError
from secret_courier.secrets.domains.models import Result, RetrievalArtifact

logger = logging.getLogger(__name__)

SECRET_QUERY_PARAM = "secret"


def compose_link(identifier: str, base_url: str) -> str:
    """Plain string composition; the link is not a capability token."""
    return f"{base_url}?{SECRET_QUERY_PARAM}={identifier}"


def make_qr(data: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=8, border=4)
    qr.add_data(data, optimize=0)
    qr.make(fit=True)
    return qr


def encode_qr(data: str) -> str:
    """Return a PNG data URI for a QR code holding exactly ``data``."""
    image = make_qr(data).make_image(image_factory=PilImage)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class RetrievalArtifactBuilder:
    """Builds the link + QR pair sent to a secret's recipient."""

    def build(self, identifier: str, base_url: str) -> Result[RetrievalArtifact]:
        """
        Compose the retrieval link and QR-encode it.

        Output is a pure function of (identifier, base_url): no random token,
        no timestamp.

        Returns:
            Result holding the RetrievalArtifact, or an EncodingError failure
            when the base URL is malformed or the link cannot be QR-encoded
        """
        parsed = urlparse(base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return Result.failure(
                EncodingError(f"Malformed retrieval base URL: {base_url!r}", secret_name=identifier)
            )
        if not identifier:
            return Result.failure(EncodingError("Secret identifier must not be empty"))

        link = compose_link(identifier, base_url)
        try:
            qr_code = encode_qr(link)
        except (DataOverflowError, ValueError) as e:
            logger.warning(f"QR encoding failed for {identifier}: {e}")
            return Result.failure(EncodingError(f"Could not QR-encode link: {e}", secret_name=identifier))

        return Result.success(RetrievalArtifact(identifier=identifier, link=link, qr_code=qr_code))
