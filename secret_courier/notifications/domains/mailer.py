"""Email notification dispatch over SMTP."""
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from secret_courier.rendering import TemplateRenderer
from secret_courier.secrets.domains.config_loader import NotificationConfig
from secret_courier.secrets.domains.errors import DispatchError
from secret_courier.secrets.domains.models import RetrievalArtifact

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30.0


class NotificationDispatcher:
    """Compose and send one retrieval notification per call. No retries."""

    def __init__(self, config: NotificationConfig, renderer: Optional[TemplateRenderer] = None):
        self._config = config
        self._renderer = renderer or TemplateRenderer()

    def compose(self, recipient: str, artifact: RetrievalArtifact) -> EmailMessage:
        """Build the message: plain-text part plus HTML part with link and QR image."""
        message = EmailMessage()
        message["From"] = self._config.sender
        message["To"] = recipient
        message["Subject"] = self._config.subject
        message.set_content(
            self._renderer.render("notification_email.txt.j2", link=artifact.link)
        )
        message.add_alternative(
            self._renderer.render(
                "notification_email.html.j2", link=artifact.link, qr_code=artifact.qr_code
            ),
            subtype="html",
        )
        return message

    def send(self, recipient: str, artifact: RetrievalArtifact) -> None:
        """
        Send the notification for ``artifact`` to ``recipient``.

        Raises:
            DispatchError: If the SMTP transport fails; the caller decides
                whether to drop or retry
        """
        message = self.compose(recipient, artifact)

        if self._config.dry_run:
            logger.info(f"[dry-run] Would send notification for {artifact.identifier} to {recipient}")
            return

        try:
            self._deliver(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DispatchError(
                f"SMTP delivery to {recipient} failed: {e}", secret_name=artifact.identifier
            ) from e
        logger.info(f"Notification for {artifact.identifier} accepted for delivery to {recipient}")

    def _deliver(self, message: EmailMessage) -> None:
        config = self._config
        smtp_class = smtplib.SMTP_SSL if config.use_ssl else smtplib.SMTP
        with smtp_class(config.smtp_host, config.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            if not config.use_ssl:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
            if config.password:
                smtp.login(config.sender, config.password)
            smtp.send_message(message)
