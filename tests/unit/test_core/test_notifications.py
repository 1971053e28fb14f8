#!/usr/bin/env python3
"""Tests for operator notifications."""

import logging
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from myfinance.core.config import NotificationConfig
from myfinance.core.notifications import EmailNotifier, LogNotifier, build_notifier


@pytest.mark.unit
class TestBuildNotifier:
    def test_log_notifier_without_admin(self):
        assert isinstance(build_notifier(NotificationConfig()), LogNotifier)

    def test_email_notifier_with_admin(self):
        assert isinstance(build_notifier(NotificationConfig(admin_email="ops@example.com")), EmailNotifier)

    def test_email_notifier_requires_admin(self):
        with pytest.raises(ValueError):
            EmailNotifier(NotificationConfig())


@pytest.mark.unit
class TestLogNotifier:
    def test_logs_alert(self, caplog):
        with caplog.at_level(logging.ERROR):
            LogNotifier().notify("Failed to process notification", {"subject": "約定"})
        assert "ALERT: Failed to process notification" in caplog.text
        assert "約定" in caplog.text


@pytest.mark.unit
class TestEmailNotifier:
    @pytest.fixture
    def config(self):
        return NotificationConfig(
            admin_email="ops@example.com",
            smtp_username="bot@example.com",
            smtp_password="pw",  # noqa: S106
        )

    def test_build_message(self, config):
        message = EmailNotifier(config).build_message("Run aborted", {"errors": ["x"]})
        assert message["Subject"] == "[MyFinance Alert] Run aborted"
        assert message["To"] == "ops@example.com"
        assert message["From"] == "bot@example.com"
        assert '"errors"' in message.get_content()

    def test_sends_over_smtp_ssl(self, config):
        with patch("myfinance.core.notifications.smtplib.SMTP_SSL") as smtp_class:
            smtp = MagicMock()
            smtp_class.return_value.__enter__.return_value = smtp

            EmailNotifier(config).notify("Run aborted")

        smtp_class.assert_called_once_with("smtp.gmail.com", 465, timeout=30)
        smtp.login.assert_called_once_with("bot@example.com", "pw")
        smtp.send_message.assert_called_once()

    def test_send_failure_is_logged_not_raised(self, config, caplog):
        with patch("myfinance.core.notifications.smtplib.SMTP_SSL", side_effect=smtplib.SMTPException("down")):
            with caplog.at_level(logging.ERROR):
                EmailNotifier(config).notify("Run aborted")
        assert "Failed to send notification email" in caplog.text
