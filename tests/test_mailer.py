"""Tests for the SMTP notification dispatcher."""
import smtplib
from dataclasses import replace
from unittest import mock

import pytest

from secret_courier.notifications.domains import mailer
from secret_courier.notifications.domains.artifacts import RetrievalArtifactBuilder
from secret_courier.notifications.domains.mailer import NotificationDispatcher
from secret_courier.secrets.domains.errors import DispatchError

BASE_URL = "https://courier.example.com/retrieve"


@pytest.fixture
def artifact():
    return RetrievalArtifactBuilder().build("db-password", BASE_URL).value


@pytest.fixture
def smtp_ssl(monkeypatch):
    factory = mock.MagicMock()
    monkeypatch.setattr(mailer.smtplib, "SMTP_SSL", factory)
    return factory


def html_part(message):
    return message.get_body(preferencelist=("html",)).get_content()


class TestCompose:
    """Test suite for message composition."""

    def test_headers(self, courier_config, artifact):
        message = NotificationDispatcher(courier_config.notification).compose("alice@example.com", artifact)

        assert message["From"] == "courier@example.com"
        assert message["To"] == "alice@example.com"
        assert message["Subject"] == "Your Secret is Ready"

    def test_html_embeds_link_and_qr(self, courier_config, artifact):
        message = NotificationDispatcher(courier_config.notification).compose("alice@example.com", artifact)

        html = html_part(message)
        assert f'<a href="{artifact.link}">{artifact.link}</a>' in html
        assert f'<img src="{artifact.qr_code}" alt="QR Code" />' in html

    def test_plain_text_alternative_has_link(self, courier_config, artifact):
        message = NotificationDispatcher(courier_config.notification).compose("alice@example.com", artifact)

        text = message.get_body(preferencelist=("plain",)).get_content()
        assert artifact.link in text
        assert "data:image/png" not in text


class TestSend:
    """Test suite for SMTP delivery."""

    def test_sends_one_message_over_ssl(self, courier_config, artifact, smtp_ssl):
        NotificationDispatcher(courier_config.notification).send("alice@example.com", artifact)

        smtp_ssl.assert_called_once_with("smtp.gmail.com", 465, timeout=mailer.SMTP_TIMEOUT_SECONDS)
        smtp = smtp_ssl.return_value.__enter__.return_value
        smtp.login.assert_called_once_with("courier@example.com", "app-password")
        smtp.send_message.assert_called_once()
        sent = smtp.send_message.call_args[0][0]
        assert sent["To"] == "alice@example.com"

    def test_plain_smtp_upgrades_with_starttls(self, courier_config, artifact, monkeypatch):
        factory = mock.MagicMock()
        monkeypatch.setattr(mailer.smtplib, "SMTP", factory)
        smtp = factory.return_value.__enter__.return_value
        smtp.has_extn.return_value = True
        config = replace(courier_config.notification, use_ssl=False, smtp_port=587, password=None)

        NotificationDispatcher(config).send("alice@example.com", artifact)

        factory.assert_called_once_with("smtp.gmail.com", 587, timeout=mailer.SMTP_TIMEOUT_SECONDS)
        smtp.starttls.assert_called_once()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()

    @pytest.mark.parametrize(
        "error",
        [smtplib.SMTPAuthenticationError(535, b"bad credentials"), ConnectionRefusedError("refused")],
    )
    def test_transport_failure_is_dispatch_error(self, courier_config, artifact, smtp_ssl, error):
        smtp_ssl.return_value.__enter__.return_value.login.side_effect = error

        with pytest.raises(DispatchError) as exc_info:
            NotificationDispatcher(courier_config.notification).send("alice@example.com", artifact)

        assert exc_info.value.secret_name == "db-password"

    def test_dry_run_skips_smtp(self, courier_config, artifact, smtp_ssl):
        config = replace(courier_config.notification, dry_run=True)

        NotificationDispatcher(config).send("alice@example.com", artifact)

        smtp_ssl.assert_not_called()
