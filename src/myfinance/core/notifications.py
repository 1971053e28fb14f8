#!/usr/bin/env python3
"""
Operator Notifications

Transport faults and configuration faults are reported to an operator
channel in addition to the log. Abstentions, not-yet-available prices and
duplicates are never notified.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Protocol

from .config import NotificationConfig
from .json_utils import format_json

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Sends an operator-facing alert."""

    def notify(self, subject: str, details: dict[str, Any] | None = None) -> None:
        """
        Report a fault.

        Implementations must not raise; a failed notification is only logged.
        """
        ...


class LogNotifier:
    """Notifier used when no admin address is configured."""

    def notify(self, subject: str, details: dict[str, Any] | None = None) -> None:
        logger.error(f"ALERT: {subject} {format_json(details or {})}")


class EmailNotifier:
    """Sends alerts to the admin address over SMTP (SSL)."""

    def __init__(self, config: NotificationConfig):
        if not config.admin_email:
            raise ValueError("EmailNotifier requires an admin email address")
        self.config = config

    def build_message(self, subject: str, details: dict[str, Any] | None = None) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = f"{self.config.subject_prefix} {subject}"
        message["From"] = self.config.smtp_username or self.config.admin_email
        message["To"] = self.config.admin_email
        message.set_content(format_json(details or {}))
        return message

    def notify(self, subject: str, details: dict[str, Any] | None = None) -> None:
        message = self.build_message(subject, details)
        try:
            with smtplib.SMTP_SSL(self.config.smtp_server, self.config.smtp_port, timeout=30) as smtp:
                if self.config.smtp_username and self.config.smtp_password:
                    smtp.login(self.config.smtp_username, self.config.smtp_password)
                smtp.send_message(message)
            logger.info(f"Sent alert to {self.config.admin_email}: {subject}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send notification email: {e}")


def build_notifier(config: NotificationConfig) -> Notifier:
    """Pick the notifier matching the configuration."""
    if config.admin_email:
        return EmailNotifier(config)
    return LogNotifier()
